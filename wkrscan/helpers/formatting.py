"""Formattering av beløp, prosenter og datoer i nederlandsk stil."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

from .dates import parse_xaf_date

Number = Union[int, float, Decimal]

_CENT = Decimal("0.01")
_TENTH = Decimal("0.1")


def _to_decimal(value: Optional[Number]) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def _group_thousands(digits: str) -> str:
    """Setter inn punktum som tusenskille i en streng med sifre."""

    return f"{int(digits):,}".replace(",", ".")


def format_number(value: Optional[Number], decimals: int = 0) -> str:
    """Formatterer et tall med punktum som tusenskille og komma som desimaltegn."""

    number = _to_decimal(value)
    if number is None:
        return "—"
    quantum = Decimal(1).scaleb(-decimals)
    rounded = number.quantize(quantum, rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    text = f"{abs(rounded):.{decimals}f}"
    if decimals:
        integer_part, fraction = text.split(".")
        return f"{sign}{_group_thousands(integer_part)},{fraction}"
    return f"{sign}{_group_thousands(text)}"


def format_euro(value: Optional[Number]) -> str:
    """Formatterer et beløp som ``€ 1.234,56``."""

    number = _to_decimal(value)
    if number is None:
        return "—"
    return f"€ {format_number(number.quantize(_CENT, rounding=ROUND_HALF_UP), 2)}"


def format_ratio(numerator: int, denominator: int) -> str:
    """Returnerer andelen i prosent med én desimal, ``"0.0"`` ved nullnevner."""

    if denominator <= 0:
        return "0.0"
    ratio = (Decimal(numerator) * 100 / Decimal(denominator)).quantize(
        _TENTH, rounding=ROUND_HALF_UP
    )
    return f"{ratio:.1f}"


def format_date_nl(value: Optional[str]) -> str:
    """Viser en ISO-dato som ``d-m-yyyy``; ukjente formater vises uendret."""

    if not value:
        return "-"
    parsed = parse_xaf_date(value)
    if parsed is None:
        return value
    return f"{parsed.day}-{parsed.month}-{parsed.year}"


__all__ = ["format_date_nl", "format_euro", "format_number", "format_ratio"]
