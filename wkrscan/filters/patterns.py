"""Kontomønstre: avsluttende ``*`` gir prefikstreff, ellers eksakt likhet."""

from __future__ import annotations

from typing import FrozenSet, Iterable, Tuple

__all__ = ["WILDCARD", "PatternMatcher", "matches_pattern"]

WILDCARD = "*"


def matches_pattern(account_id: str, pattern: str) -> bool:
    """Sann når ``account_id`` treffer ``pattern``.

    Bare ett avsluttende ``*`` er jokertegn; en stjerne andre steder i mønsteret
    sammenlignes bokstavelig.
    """

    if pattern.endswith(WILDCARD):
        return account_id.startswith(pattern[:-1])
    return account_id == pattern


class PatternMatcher:
    """Forhåndskompilerte mønstre for raske oppslag per linje."""

    __slots__ = ("prefixes", "exact")

    def __init__(self, patterns: Iterable[str]) -> None:
        prefixes = []
        exact = set()
        for pattern in patterns:
            if pattern.endswith(WILDCARD):
                prefixes.append(pattern[:-1])
            else:
                exact.add(pattern)
        self.prefixes: Tuple[str, ...] = tuple(prefixes)
        self.exact: FrozenSet[str] = frozenset(exact)

    def __bool__(self) -> bool:
        return bool(self.prefixes or self.exact)

    def matches(self, account_id: str) -> bool:
        if account_id in self.exact:
            return True
        # str.startswith godtar en tuple; tom tuple gir False.
        return account_id.startswith(self.prefixes)
