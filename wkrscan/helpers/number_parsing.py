"""Tolking av tekstlige beløp til Decimal."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Optional, Union

__all__ = ["parse_decimal"]

NumberLike = Union[str, int, float, Decimal, None]

_ALLOWED_CHARS = frozenset("0123456789.,+-")


def _valid_thousands(text: str, separator: str) -> bool:
    parts = text.split(separator)
    if len(parts) == 1:
        return True
    if any(part == "" for part in parts):
        return False
    if len(parts[0]) not in {1, 2, 3}:
        return False
    return all(len(part) == 3 for part in parts[1:])


def _split_sign(cleaned: str) -> tuple[str, str] | None:
    sign = ""
    if cleaned.startswith("(") or cleaned.endswith(")"):
        if not (cleaned.startswith("(") and cleaned.endswith(")")):
            return None
        cleaned = cleaned[1:-1]
        if not cleaned:
            return None
        sign = "-"

    if any(char not in _ALLOWED_CHARS for char in cleaned):
        return None

    sign_positions = [idx for idx, ch in enumerate(cleaned) if ch in "+-"]
    if len(sign_positions) > 1:
        return None
    if sign_positions and sign_positions[0] not in {0, len(cleaned) - 1}:
        return None

    if cleaned[0] in "+-":
        sign, cleaned = ("-" if cleaned[0] == "-" or sign == "-" else ""), cleaned[1:]
    elif cleaned[-1] in "+-":
        sign, cleaned = ("-" if cleaned[-1] == "-" or sign == "-" else ""), cleaned[:-1]
    return sign, cleaned


def parse_decimal(value: NumberLike) -> Optional[Decimal]:
    """Tolker et beløp og returnerer ``None`` når verdien ikke er et tall.

    Både punktum og komma godtas som desimaltegn, og tusenskilletegn fjernes
    når grupperingen er gyldig (``1.234,56`` og ``1,234.56`` gir samme
    resultat). Parenteser og etterstilt minus tolkes som negativt fortegn.
    """

    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        result = Decimal(str(value))
        return result if result.is_finite() else None

    cleaned = "".join(ch for ch in str(value) if not ch.isspace())
    if not cleaned:
        return None

    split = _split_sign(cleaned)
    if split is None:
        return None
    sign, cleaned = split
    if not cleaned:
        return None

    comma_pos = cleaned.rfind(",")
    dot_pos = cleaned.rfind(".")
    comma_count = cleaned.count(",")
    dot_count = cleaned.count(".")
    decimal_sep: Optional[str] = None

    if comma_count and dot_count:
        decimal_sep = "," if comma_pos > dot_pos else "."
    elif comma_count == 1 and dot_count == 0 and len(cleaned) - comma_pos - 1 <= 2:
        decimal_sep = ","
    elif dot_count == 1 and comma_count == 0:
        decimal_sep = "."

    if decimal_sep:
        integer_part, fractional_part = cleaned.rsplit(decimal_sep, 1)
        thousand_sep = "," if decimal_sep == "." else "."
        if thousand_sep in integer_part and not _valid_thousands(
            integer_part, thousand_sep
        ):
            return None
    else:
        integer_part, fractional_part = cleaned, ""
        separators = {sep for sep in ",." if sep in integer_part}
        if len(separators) > 1:
            return None
        if separators and not _valid_thousands(integer_part, separators.pop()):
            return None

    integer_digits = integer_part.replace(",", "").replace(".", "")
    fractional_digits = fractional_part.replace(",", "").replace(".", "")
    if not integer_digits and not fractional_digits:
        return None

    normalized = sign + (integer_digits or "0")
    if fractional_digits:
        normalized = f"{normalized}.{fractional_digits}"

    try:
        return Decimal(normalized)
    except InvalidOperation:
        return None
