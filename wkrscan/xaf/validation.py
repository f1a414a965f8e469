"""Strukturell forhåndssjekk og semantisk validering av XAF-dokumenter."""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from typing import Optional, Union

from ..constants import ROOT_MARKER, TAG_BALANCE_LIMIT_BYTES
from ..helpers.xml_helpers import find_child, local_name
from .errors import FileTooLarge, InvalidDocument, MissingRequiredSection, MissingRootMarker
from .layouts import ACCOUNTS, COMPANY_FIELDS, HEADER_FIELDS, TRANSACTIONS, read_text, resolve_container

__all__ = ["RawDocument", "document_size", "prevalidate", "validate_schema"]

_LOGGER = logging.getLogger(__name__)

RawDocument = Union[str, bytes]

_OPEN_TAG = re.compile(r"<[^/!?][^>]*>")
_CLOSE_TAG = re.compile(r"</[^>]*>")
_SELF_CLOSING_TAG = re.compile(r"<[^>]*/>")
_UTF8_BOM = b"\xef\xbb\xbf"


def document_size(raw: RawDocument) -> int:
    """Størrelse i bytes; tekst måles som UTF-8."""

    if isinstance(raw, (bytes, bytearray)):
        return len(raw)
    return len(raw.encode("utf-8"))


def _as_text(raw: RawDocument) -> str:
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode("utf-8", errors="replace")
    return raw


def prevalidate(raw: RawDocument, *, max_size: Optional[int]) -> int:
    """Sjekker størrelse og grunnleggende XML-struktur før full parsing.

    Tag-balansen kontrolleres bare for dokumenter under 10 MB. Større filer
    slipper denne sjekken, og ubalanserte tagger oppdages da først av
    XML-parseren.
    """

    size = document_size(raw)
    if max_size and size > max_size:
        raise FileTooLarge(size, max_size)

    # Bytes sjekkes uten dekoding; hele teksten trengs bare til tag-balansen.
    if isinstance(raw, (bytes, bytearray)):
        stripped_bytes = bytes(raw[:1024]).lstrip(b" \t\r\n")
        if stripped_bytes.startswith(_UTF8_BOM):
            stripped_bytes = stripped_bytes[len(_UTF8_BOM) :].lstrip(b" \t\r\n")
        head = stripped_bytes.decode("utf-8", errors="replace")
        has_marker = ROOT_MARKER.encode("ascii") in raw
    else:
        head = raw[:1024].lstrip("\ufeff \t\r\n")
        has_marker = ROOT_MARKER in raw
    has_declaration = head.startswith("<?xml")
    has_element = head.startswith("<") and not head.startswith("<?")
    if not (has_declaration or has_element):
        raise InvalidDocument(
            "Ugyldig XML: filen starter ikke med gyldig XML.",
            context={"preview": head[:100]},
        )

    if not has_marker:
        raise MissingRootMarker(
            f"Ugyldig XAF: rot-elementet '{ROOT_MARKER}' mangler.",
            context={"marker": ROOT_MARKER},
        )

    if size < TAG_BALANCE_LIMIT_BYTES:
        text = _as_text(raw)
        open_tags = len(_OPEN_TAG.findall(text))
        close_tags = len(_CLOSE_TAG.findall(text))
        self_closing = len(_SELF_CLOSING_TAG.findall(text))
        if open_tags != close_tags + self_closing:
            raise InvalidDocument(
                "Ugyldig XML: tag-strukturen er ikke balansert.",
                context={
                    "open_tags": open_tags,
                    "close_tags": close_tags,
                    "self_closing_tags": self_closing,
                },
            )
    else:
        _LOGGER.debug("Hopper over tag-balansesjekk for %s bytes", size)

    return size


def validate_schema(root: ET.Element) -> None:
    """Kontrollerer påkrevde seksjoner og felt i et parset dokument."""

    if local_name(root.tag) != ROOT_MARKER:
        raise MissingRootMarker(
            f"Ugyldig XAF: rot-elementet heter '{local_name(root.tag)}', ikke '{ROOT_MARKER}'.",
            context={"root": local_name(root.tag)},
        )

    header = find_child(root, "header")
    if header is None:
        raise MissingRequiredSection("header")
    company = find_child(root, "company")
    if company is None:
        raise MissingRequiredSection("company")

    if read_text(header, HEADER_FIELDS["fiscal_year"].paths) is None:
        raise MissingRequiredSection("header.fiscalYear")
    if read_text(company, COMPANY_FIELDS["legal_id"].paths) is None:
        raise MissingRequiredSection("company.companyIdent")

    if resolve_container(root, ACCOUNTS) is None and resolve_container(root, TRANSACTIONS) is None:
        raise MissingRequiredSection(
            "accounts/transactions",
            "Ugyldig XAF: fant verken kontoplan eller transaksjoner.",
        )
