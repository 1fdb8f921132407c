"""
Message catalogs used for validation errors and pager metadata.

Lines are addressed as ``"<file>.<key>"`` (``"validation.required"``).
Placeholders ``{0}``, ``{1}``... are filled positionally and named
placeholders such as ``{field}`` by keyword.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence

from recordmodel.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_LOCALE = "en"

_CATALOGS: Dict[str, Dict[str, Dict[str, str]]] = {
    "en": {
        "validation": {
            "required": "The {field} field is required.",
            "string": "The {field} field requires a text value.",
            "integer": "The {field} field requires an integer.",
            "number": "The {field} field requires a number.",
            "bool": "The {field} field requires a boolean value.",
            "email": "The {field} field requires a valid email address.",
            "minLength": "The {field} field requires {0} or more characters in length.",
            "maxLength": "The {field} field requires {0} or less characters in length.",
            "exactLength": "The {field} field requires exactly {0} characters in length.",
            "greater": "The {field} field must be greater than {0}.",
            "less": "The {field} field must be less than {0}.",
            "regex": "The {field} field does not match the required pattern.",
            "in": "The {field} field does not have an allowed value.",
            "invalid": "The {field} field is invalid.",
        },
        "pagination": {
            "page": "Page",
            "of": "of",
            "previous": "Previous",
            "next": "Next",
        },
    },
    "pt-br": {
        "validation": {
            "required": "O campo {field} é obrigatório.",
            "string": "O campo {field} requer um texto.",
            "integer": "O campo {field} requer um número inteiro.",
            "number": "O campo {field} requer um número.",
            "bool": "O campo {field} requer um valor booleano.",
            "email": "O campo {field} requer um endereço de e-mail válido.",
            "minLength": "O campo {field} requer {0} ou mais caracteres de comprimento.",
            "maxLength": "O campo {field} requer {0} ou menos caracteres de comprimento.",
            "exactLength": "O campo {field} requer exatamente {0} caracteres de comprimento.",
            "greater": "O campo {field} deve ser maior que {0}.",
            "less": "O campo {field} deve ser menor que {0}.",
            "regex": "O campo {field} não corresponde ao padrão exigido.",
            "in": "O campo {field} não possui um valor permitido.",
            "invalid": "O campo {field} é inválido.",
        },
        "pagination": {
            "page": "Página",
            "of": "de",
            "previous": "Anterior",
            "next": "Próxima",
        },
    },
}


class Language:
    """Locale-aware lookup of message lines with a fallback locale."""

    def __init__(
        self,
        locale: str = DEFAULT_LOCALE,
        fallback_locale: str = DEFAULT_LOCALE,
        catalogs: Optional[Mapping[str, Mapping[str, Mapping[str, str]]]] = None,
    ) -> None:
        self._catalogs: Dict[str, Dict[str, Dict[str, str]]] = {
            loc: {name: dict(lines) for name, lines in files.items()}
            for loc, files in _CATALOGS.items()
        }
        for loc, files in (catalogs or {}).items():
            target = self._catalogs.setdefault(loc, {})
            for name, lines in files.items():
                target.setdefault(name, {}).update(lines)
        self._locale = locale
        self._fallback_locale = fallback_locale

    def get_current_locale(self) -> str:
        return self._locale

    def set_current_locale(self, locale: str) -> "Language":
        self._locale = locale
        return self

    def get_supported_locales(self) -> list[str]:
        return sorted(self._catalogs)

    def _find(self, file: str, key: str, locale: str) -> Optional[str]:
        return self._catalogs.get(locale, {}).get(file, {}).get(key)

    def lang(
        self,
        line: str,
        args: Sequence[Any] = (),
        locale: Optional[str] = None,
        **named: Any,
    ) -> str:
        """
        Render a message line.

        Unknown lines are returned as the line identifier itself.
        """
        file, _, key = line.partition(".")
        text = self._find(file, key, locale or self._locale)
        if text is None:
            text = self._find(file, key, self._fallback_locale)
        if text is None:
            log.debug("Missing language line", extra={"line": line, "locale": locale or self._locale})
            return line
        for index, value in enumerate(args):
            text = text.replace("{" + str(index) + "}", str(value))
        for name, value in named.items():
            text = text.replace("{" + name + "}", str(value))
        return text


__all__ = ["DEFAULT_LOCALE", "Language"]
