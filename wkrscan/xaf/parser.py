"""Innlesing og normalisering av XAF-dokumenter."""

from __future__ import annotations

import logging
import time
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from .. import settings
from ..constants import PARSE_CHUNK_BYTES
from ..core.memory import MemoryController
from ..helpers.dates import clear_date_cache, is_iso_date_text
from ..helpers.xml_helpers import find_child, findall_children, namespace_of
from .errors import FileTooLarge, InvalidDocument, ParseError, wrap_parse_error
from .layouts import (
    ACCOUNT_FIELDS,
    ACCOUNTS,
    COMPANY_FIELDS,
    HEADER_FIELDS,
    JOURNAL_FIELDS,
    LINE_ELEMENTS,
    LINE_FIELDS,
    TRANSACTION_FIELDS,
    TRANSACTIONS,
    VERSION_PATHS,
    extract_fields,
    read_text,
    resolve_container,
    resolve_items,
)
from .models import (
    Account,
    Company,
    DocumentMetadata,
    Header,
    Journal,
    NormalizedDocument,
    Transaction,
    TransactionLine,
)
from .validation import RawDocument, prevalidate, validate_schema

__all__ = [
    "XafParser",
    "build_account",
    "build_transaction",
    "parse_xaf",
    "parse_xaf_file",
]

_LOGGER = logging.getLogger(__name__)

LARGE_DOCUMENT_TRANSACTIONS = 1000


def build_account(element: ET.Element) -> Account:
    return Account(**extract_fields(element, ACCOUNT_FIELDS))


def build_transaction(
    element: ET.Element,
    journal_id: str,
    account_names: Mapping[str, str],
) -> Transaction:
    """Bygger en transaksjon med linjer fra et ``transaction``-element."""

    fields = extract_fields(element, TRANSACTION_FIELDS)
    lines: List[TransactionLine] = []
    for line_element in resolve_items(element, LINE_ELEMENTS):
        line_fields = extract_fields(line_element, LINE_FIELDS)
        known_name = account_names.get(line_fields["account_id"])
        if known_name:
            line_fields["account_name"] = known_name
        lines.append(TransactionLine(**line_fields))
    return Transaction(journal_id=journal_id, lines=lines, **fields)


def _date_range(transactions: List[Transaction]) -> Tuple[Optional[str], Optional[str]]:
    dates = sorted(tx.date for tx in transactions if is_iso_date_text(tx.date))
    if not dates:
        return None, None
    return dates[0], dates[-1]


class XafParser:
    """Leser et rått XAF-dokument til en ``NormalizedDocument``.

    XML-en mates til en inkrementell parser i biter på ``chunk_size``; mellom
    hver bit kjøres et sjekkpunkt mot minnekontrolleren. Hele parsingen går
    gjennom ``run_with_memory_guard`` og gir enten et komplett dokument eller
    en ``ParseError``.
    """

    def __init__(
        self,
        *,
        max_file_size: Optional[int] = None,
        validate_schema: Optional[bool] = None,
        controller: Optional[MemoryController] = None,
        chunk_size: int = PARSE_CHUNK_BYTES,
    ) -> None:
        self.max_file_size = settings.MAX_FILE_BYTES if max_file_size is None else max_file_size
        self.validate_schema = (
            not settings.SKIP_SCHEMA_VALIDATION if validate_schema is None else validate_schema
        )
        self.controller = controller or MemoryController()
        self.chunk_size = max(1, chunk_size)

    def check_file_size(self, path: Path) -> int:
        """Avviser filer over grensen før de leses inn."""

        size = path.stat().st_size
        if self.max_file_size and size > self.max_file_size:
            raise FileTooLarge(size, self.max_file_size)
        return size

    def parse(self, raw: RawDocument) -> NormalizedDocument:
        started = time.perf_counter()
        try:
            return self.controller.run_with_memory_guard(lambda: self._parse_once(raw, started))
        except ParseError:
            raise
        except Exception as exc:
            _LOGGER.exception("Uventet feil under XAF-parsing")
            raise wrap_parse_error(exc) from exc

    def _parse_once(self, raw: RawDocument, started: float) -> NormalizedDocument:
        size = prevalidate(raw, max_size=self.max_file_size)
        root = self._build_tree(raw)
        if self.validate_schema:
            validate_schema(root)
        document = self._extract(root, size, started)
        root.clear()
        if document.metadata.number_of_transactions > LARGE_DOCUMENT_TRANSACTIONS:
            self.controller.register_cleanup(clear_date_cache)
        _LOGGER.debug(
            "Leste %s transaksjoner og %s kontoer på %.1f ms",
            document.metadata.number_of_transactions,
            document.metadata.number_of_accounts,
            document.metadata.parse_time_ms,
        )
        return document

    def _build_tree(self, raw: RawDocument) -> ET.Element:
        data = bytes(raw) if isinstance(raw, bytearray) else raw
        pull_parser = ET.XMLPullParser(events=("start",))
        root: Optional[ET.Element] = None
        try:
            for offset in range(0, len(data), self.chunk_size):
                pull_parser.feed(data[offset : offset + self.chunk_size])
                for _event, element in pull_parser.read_events():
                    if root is None:
                        root = element
                self.controller.checkpoint()
            pull_parser.close()
        except ET.ParseError as exc:
            raise InvalidDocument(
                f"Ugyldig XML: {exc}", context={"position": getattr(exc, "position", None)}
            ) from exc
        if root is None:
            raise InvalidDocument("Ugyldig XML: dokumentet inneholder ingen elementer.")
        return root

    def _extract(self, root: ET.Element, size: int, started: float) -> NormalizedDocument:
        header = Header(**extract_fields(find_child(root, "header"), HEADER_FIELDS))
        company = Company(**extract_fields(find_child(root, "company"), COMPANY_FIELDS))

        accounts_container = resolve_container(root, ACCOUNTS)
        accounts = [build_account(el) for el in resolve_items(accounts_container, ACCOUNTS.items)]
        account_names: Dict[str, str] = {acc.id: acc.name for acc in accounts if acc.name}

        journals: List[Journal] = []
        transactions: List[Transaction] = []
        transactions_container = resolve_container(root, TRANSACTIONS)
        for journal_element in resolve_items(transactions_container, TRANSACTIONS.items):
            journal_fields = extract_fields(journal_element, JOURNAL_FIELDS)
            journal_transactions = [
                build_transaction(tx_element, journal_fields["id"], account_names)
                for tx_element in findall_children(journal_element, "transaction")
            ]
            journals.append(Journal(transactions=journal_transactions, **journal_fields))
            transactions.extend(journal_transactions)

        earliest, latest = _date_range(transactions)
        metadata = DocumentMetadata(
            file_size=size,
            number_of_transactions=len(transactions),
            number_of_accounts=len(accounts),
            earliest_date=earliest,
            latest_date=latest,
            parse_time_ms=round((time.perf_counter() - started) * 1000, 1),
            xaf_version=read_text(root, VERSION_PATHS),
            namespace=namespace_of(root.tag),
        )
        return NormalizedDocument(
            header=header,
            company=company,
            accounts=accounts,
            journals=journals,
            transactions=transactions,
            metadata=metadata,
        )


def parse_xaf(raw: RawDocument, **options: object) -> NormalizedDocument:
    """Snarvei for ``XafParser(**options).parse(raw)``."""

    return XafParser(**options).parse(raw)  # type: ignore[arg-type]


def parse_xaf_file(path: str | Path, **options: object) -> NormalizedDocument:
    """Leser en XAF-fil fra disk; størrelsen sjekkes før filen lastes."""

    parser = XafParser(**options)  # type: ignore[arg-type]
    xml_path = Path(path)
    if not xml_path.exists():
        raise FileNotFoundError(f"Fant ikke XAF-filen: {xml_path}")
    parser.check_file_size(xml_path)
    return parser.parse(xml_path.read_bytes())
