"""Hjelpefunksjoner for å lese XML uavhengig av namespace."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Iterator, List, Optional


def local_name(tag: object) -> str:
    """Returnerer elementnavnet uten namespace-prefiks."""

    if not isinstance(tag, str):
        return ""
    if "}" in tag:
        return tag.split("}", 1)[1]
    if ":" in tag:
        return tag.split(":", 1)[1]
    return tag


def namespace_of(tag: object) -> Optional[str]:
    """Returnerer namespace-URI for en tag på formen ``{uri}navn``."""

    if isinstance(tag, str) and tag.startswith("{") and "}" in tag:
        uri = tag.split("}", 1)[0][1:]
        return uri or None
    return None


def text_or_none(element: Optional[ET.Element]) -> Optional[str]:
    """Returnerer tekstinnholdet hvis elementet finnes og har tekst."""

    if element is None or element.text is None:
        return None
    return element.text.strip() or None


def iter_children(element: ET.Element, name: str) -> Iterator[ET.Element]:
    """Itererer over direkte barn med gitt lokale navn."""

    for child in element:
        if local_name(child.tag) == name:
            yield child


def find_child(element: Optional[ET.Element], name: str) -> Optional[ET.Element]:
    """Finner første direkte barn med gitt lokale navn."""

    if element is None:
        return None
    return next(iter_children(element, name), None)


def find_path(element: Optional[ET.Element], path: str) -> Optional[ET.Element]:
    """Følger en ``/``-separert sti av lokale navn fra ``element``."""

    current = element
    for part in path.split("/"):
        if not part:
            continue
        current = find_child(current, part)
        if current is None:
            return None
    return current


def findall_children(element: Optional[ET.Element], name: str) -> List[ET.Element]:
    """Returnerer alle direkte barn med gitt lokale navn."""

    if element is None:
        return []
    return list(iter_children(element, name))


__all__ = [
    "find_child",
    "find_path",
    "findall_children",
    "iter_children",
    "local_name",
    "namespace_of",
    "text_or_none",
]
