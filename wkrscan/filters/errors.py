"""Feiltyper for klassifisering av posteringslinjer."""

from __future__ import annotations

from typing import Any, Dict, Optional

from ..core.memory import is_memory_error

__all__ = [
    "FilterError",
    "InvalidRuleSet",
    "InvalidPattern",
    "InvalidCustomRule",
    "FilterProcessingError",
    "FilterMemoryError",
    "FilterTimeoutError",
    "FilterCancelled",
    "ConfigurationError",
    "wrap_filter_error",
]


class FilterError(Exception):
    """Basisklasse med stabil ``code`` og diagnostisk ``context``."""

    code = "FILTER_ERROR"

    def __init__(self, message: str, *, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.context: Dict[str, Any] = dict(context or {})


class InvalidRuleSet(FilterError):
    code = "INVALID_FILTER_RULES"


class InvalidPattern(FilterError):
    code = "INVALID_PATTERN"


class InvalidCustomRule(FilterError):
    code = "INVALID_CUSTOM_RULE"


class FilterProcessingError(FilterError):
    code = "FILTER_PROCESSING_ERROR"

    def __init__(
        self,
        message: str,
        *,
        transaction_count: int,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        merged = dict(context or {})
        merged["transaction_count"] = transaction_count
        super().__init__(message, context=merged)
        self.transaction_count = transaction_count


class FilterMemoryError(FilterError):
    code = "MEMORY_ERROR"


class FilterTimeoutError(FilterError):
    code = "TIMEOUT_ERROR"


class FilterCancelled(FilterError):
    code = "CANCELLED"


class ConfigurationError(FilterError):
    code = "CONFIGURATION_ERROR"


def wrap_filter_error(
    exc: BaseException,
    *,
    transaction_count: int = 0,
    context: Optional[Dict[str, Any]] = None,
) -> FilterError:
    """Pakker en vilkårlig feil inn i en ``FilterError``.

    Feil som allerede er typet returneres uendret. Minnerelaterte feil blir
    ``FilterMemoryError``; alt annet blir ``FilterProcessingError`` med antall
    transaksjoner i konteksten.
    """

    if isinstance(exc, FilterError):
        return exc
    details = dict(context or {})
    details["original_error"] = str(exc)
    if is_memory_error(exc):
        wrapped: FilterError = FilterMemoryError(
            "For lite minne til å filtrere transaksjonene. Prøv batch- eller strømmemodus.",
            context=details,
        )
    else:
        wrapped = FilterProcessingError(
            f"Feil ved filtrering av transaksjoner: {exc}",
            transaction_count=transaction_count,
            context=details,
        )
    wrapped.__cause__ = exc
    return wrapped
