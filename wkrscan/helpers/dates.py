"""Felles hjelpefunksjoner for dato-parsing."""

from __future__ import annotations

from datetime import date, datetime
from functools import lru_cache
from typing import Optional

__all__ = ["clear_date_cache", "is_iso_date_text", "parse_xaf_date"]


def is_iso_date_text(value: Optional[str]) -> bool:
    """Sann når teksten er lang nok til å være en ISO-dato (``YYYY-MM-DD``)."""

    return value is not None and len(value) >= 10


def parse_xaf_date(value: Optional[str]) -> Optional[date]:
    """Forsøk å tolke en dato fra XAF-felt med ulike formater."""

    if value is None:
        return None

    text = value.strip()
    if not text:
        return None

    return _parse_xaf_date_cached(text)


@lru_cache(maxsize=4096)
def _parse_xaf_date_cached(text: str) -> Optional[date]:
    """Tolk en dato-streng med enkel cache for raskere masseimport."""

    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass

    for fmt in ("%d-%m-%Y", "%d.%m.%Y", "%d/%m/%Y", "%Y%m%d"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    return None


def clear_date_cache() -> None:
    """Tømmer datocachen; registreres som opprydding etter store innlesinger."""

    _parse_xaf_date_cached.cache_clear()
