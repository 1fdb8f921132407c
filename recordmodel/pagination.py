"""
Page metadata produced by ``Model.paginate``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from recordmodel.language import Language


@dataclass
class Pager:
    """
    Describes a fetched page: number, size, total rows and locale.

    The pager never holds the page rows themselves.
    """

    page: int
    per_page: int
    total: int
    language: Language = field(default_factory=Language, repr=False)

    def __post_init__(self) -> None:
        self.page = max(abs(self.page), 1)
        self.per_page = max(abs(self.per_page), 1)
        self.total = max(self.total, 0)

    @property
    def locale(self) -> str:
        return self.language.get_current_locale()

    @property
    def last_page(self) -> int:
        return max(math.ceil(self.total / self.per_page), 1)

    @property
    def previous_page(self) -> Optional[int]:
        if self.page <= 1:
            return None
        return min(self.page - 1, self.last_page)

    @property
    def next_page(self) -> Optional[int]:
        return self.page + 1 if self.page < self.last_page else None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    def label(self) -> str:
        """Human readable "Page 2 of 5" in the pager's locale."""
        return (
            f"{self.language.lang('pagination.page')} {self.page} "
            f"{self.language.lang('pagination.of')} {self.last_page}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page": self.page,
            "per_page": self.per_page,
            "total": self.total,
            "last_page": self.last_page,
            "previous_page": self.previous_page,
            "next_page": self.next_page,
            "locale": self.locale,
        }


__all__ = ["Pager"]
