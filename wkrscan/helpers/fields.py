"""Sikker uthenting av skalarverdier fra løst typede noder."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from decimal import Decimal
from typing import Optional

from .number_parsing import parse_decimal

__all__ = ["safe_string", "safe_decimal", "safe_int"]

_ZERO = Decimal("0")


def _raw_text(value: object) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, ET.Element):
        return value.text
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def safe_string(value: object, default: str = "") -> str:
    """Returnerer trimmet tekst, eller ``default`` når verdien mangler."""

    text = _raw_text(value)
    if text is None:
        return default
    stripped = text.strip()
    if not stripped and default:
        return default
    return stripped


def safe_decimal(value: object, default: Decimal = _ZERO) -> Decimal:
    """Tolker et beløp og faller tilbake til ``default`` ved ugyldige verdier."""

    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        parsed = parse_decimal(value)
    else:
        parsed = parse_decimal(_raw_text(value))
    return default if parsed is None else parsed


def safe_int(value: object, default: int = 0) -> int:
    """Tolker et heltall; desimaler avkortes og ugyldige verdier gir ``default``."""

    parsed = parse_decimal(value if isinstance(value, (int, Decimal)) else _raw_text(value))
    if parsed is None:
        return default
    return int(parsed)
