"""
Write allow-listing for model payloads.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple

from recordmodel.exceptions import ConfigurationError


@dataclass(frozen=True)
class FieldPolicy:
    """
    Columns a model may write and whether its primary key is protected.

    The allow-list order carries no meaning; filtered payloads keep the
    caller's key order.
    """

    allowed_fields: Tuple[str, ...]
    primary_key: str = "id"
    protect_primary_key: bool = True

    def filter_allowed(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Drop every key of ``payload`` that is not allow-listed.

        The primary-key protection is checked on the *filtered* result, so a
        primary key that is not allow-listed is silently dropped.

        Raises
        ------
        ConfigurationError
            If no fields are allowed, or the protected primary key survives
            filtering.
        """
        if not self.allowed_fields:
            raise ConfigurationError("Allowed fields not defined for database writes")
        allowed = set(self.allowed_fields)
        filtered = {key: value for key, value in payload.items() if key in allowed}
        if self.protect_primary_key and self.primary_key in filtered:
            raise ConfigurationError(
                f"Protected Primary Key field '{self.primary_key}' can not be SET"
            )
        return filtered


__all__ = ["FieldPolicy"]
