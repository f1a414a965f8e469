"""Feiltyper for innlesing av XAF-filer."""

from __future__ import annotations

from typing import Any, Dict, Optional

from ..core.memory import is_memory_error

__all__ = [
    "ParseError",
    "InvalidDocument",
    "MissingRootMarker",
    "MissingRequiredSection",
    "FileTooLarge",
    "MemoryLimitExceeded",
    "IncompleteUnit",
    "wrap_parse_error",
]


class ParseError(Exception):
    """Felles basisklasse; brukes direkte som oppsamlingsfeil."""

    code = "PARSE_ERROR"

    def __init__(self, message: str, *, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.context: Dict[str, Any] = dict(context or {})


class InvalidDocument(ParseError):
    code = "INVALID_DOCUMENT"


class MissingRootMarker(ParseError):
    code = "MISSING_ROOT_MARKER"


class MissingRequiredSection(ParseError):
    code = "MISSING_REQUIRED_SECTION"

    def __init__(self, field: str, message: Optional[str] = None) -> None:
        super().__init__(
            message or f"Ugyldig XAF: påkrevd felt eller seksjon '{field}' mangler.",
            context={"field": field},
        )
        self.field = field


class FileTooLarge(ParseError):
    code = "FILE_TOO_LARGE"

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            "Filen er for stor ({size} MB). Maksimalt {limit} MB er tillatt.".format(
                size=round(size / 1024 / 1024), limit=round(limit / 1024 / 1024)
            ),
            context={"size": size, "limit": limit},
        )
        self.size = size
        self.limit = limit


class MemoryLimitExceeded(ParseError):
    code = "MEMORY_LIMIT_EXCEEDED"


class IncompleteUnit(ParseError):
    code = "INCOMPLETE_UNIT"


def wrap_parse_error(exc: BaseException, context: Optional[Dict[str, Any]] = None) -> ParseError:
    """Pakker en vilkårlig feil inn i riktig ``ParseError``-type."""

    if isinstance(exc, ParseError):
        return exc
    if is_memory_error(exc):
        wrapped: ParseError = MemoryLimitExceeded(
            f"For lite minne til å lese filen: {exc}", context=context
        )
    else:
        wrapped = ParseError(f"XAF-parsing feilet: {exc}", context=context)
    wrapped.__cause__ = exc
    return wrapped
