"""Strømmende innlesing av transaksjoner fra store XAF-filer."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Union

from ..constants import PARSE_CHUNK_BYTES, STREAM_BUFFER_LIMIT_BYTES
from ..core.memory import MemoryController
from ..helpers.fields import safe_string
from ..helpers.xml_helpers import local_name
from .errors import IncompleteUnit, InvalidDocument, MemoryLimitExceeded
from .layouts import ACCOUNTS
from .models import Account, Transaction
from .parser import build_account, build_transaction
from .validation import document_size

__all__ = ["XafStreamParser", "iter_xaf_transactions", "iter_xaf_file"]

_LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str], None]
Chunk = Union[str, bytes]


class XafStreamParser:
    """Inkrementell parser som leverer én ``transaction`` om gangen.

    Kontoer som dukker opp før transaksjonene huskes og brukes til navneoppslag.
    Elementer tømmes så snart de er lest, slik at minnebruken holdes nede.
    """

    def __init__(self, *, max_buffer_bytes: Optional[int] = None) -> None:
        self.max_buffer_bytes = (
            STREAM_BUFFER_LIMIT_BYTES if max_buffer_bytes is None else max_buffer_bytes
        )
        self._parser = ET.XMLPullParser(events=("start", "end"))
        self._stack: List[str] = []
        self._journal_id = ""
        self._open_transactions = 0
        self._pending_bytes = 0
        self._account_names: Dict[str, str] = {}
        self.accounts: List[Account] = []
        self.transactions_seen = 0
        self.bytes_fed = 0
        self._closed = False

    def feed(self, chunk: Chunk) -> List[Transaction]:
        """Mater en bit og returnerer transaksjonene som ble fullført."""

        if self._closed:
            raise InvalidDocument("Strømparseren er allerede lukket.")
        size = document_size(chunk)
        self.bytes_fed += size
        self._pending_bytes += size
        try:
            self._parser.feed(chunk)
        except ET.ParseError as exc:
            raise InvalidDocument(
                f"Ugyldig XML: {exc}", context={"bytes_fed": self.bytes_fed}
            ) from exc
        completed = self._drain()
        if not self._open_transactions:
            self._pending_bytes = 0
        elif self.max_buffer_bytes and self._pending_bytes > self.max_buffer_bytes:
            raise MemoryLimitExceeded(
                "Transaksjonen er for stor til å leses strømmende.",
                context={"buffered": self._pending_bytes, "limit": self.max_buffer_bytes},
            )
        return completed

    def close(self) -> List[Transaction]:
        """Avslutter strømmen; feiler hvis en transaksjon står åpen."""

        if self._closed:
            return []
        self._closed = True
        if self._open_transactions:
            raise IncompleteUnit(
                "Ufullstendig transaksjon på slutten av filen.",
                context={"bytes_fed": self.bytes_fed},
            )
        try:
            self._parser.close()
        except ET.ParseError as exc:
            raise InvalidDocument(f"Ugyldig XML: {exc}") from exc
        return self._drain()

    def _drain(self) -> List[Transaction]:
        completed: List[Transaction] = []
        for event, element in self._parser.read_events():
            name = local_name(element.tag)
            if event == "start":
                self._stack.append(name)
                if name == "transaction" and self._parent_is("journal"):
                    self._open_transactions += 1
                continue

            if name == "jrnID" and self._parent_is("journal"):
                self._journal_id = safe_string(element.text)
            elif name == "journal":
                self._journal_id = ""
                element.clear()
            elif name in ACCOUNTS.items:
                account = build_account(element)
                self.accounts.append(account)
                if account.name:
                    self._account_names[account.id] = account.name
                element.clear()
            elif name == "transaction" and self._parent_is("journal"):
                completed.append(
                    build_transaction(element, self._journal_id, self._account_names)
                )
                self._open_transactions -= 1
                self.transactions_seen += 1
                element.clear()
            self._stack.pop()
        return completed

    def _parent_is(self, name: str) -> bool:
        return len(self._stack) >= 2 and self._stack[-2] == name


def iter_xaf_transactions(
    chunks: Iterable[Chunk],
    *,
    max_buffer_bytes: Optional[int] = None,
    controller: Optional[MemoryController] = None,
    progress_callback: Optional[ProgressCallback] = None,
    total_bytes: Optional[int] = None,
) -> Iterator[Transaction]:
    """Leser transaksjoner fra en sekvens av biter, én enhet av gangen."""

    parser = XafStreamParser(max_buffer_bytes=max_buffer_bytes)
    for chunk in chunks:
        yield from parser.feed(chunk)
        if controller is not None:
            controller.checkpoint()
        if progress_callback is not None and total_bytes:
            percent = min(99, int(parser.bytes_fed * 100 / total_bytes))
            progress_callback(percent, f"Leste {parser.transactions_seen} transaksjoner")
    yield from parser.close()
    if progress_callback is not None:
        progress_callback(100, f"Leste {parser.transactions_seen} transaksjoner")
    _LOGGER.debug(
        "Strømmet %s transaksjoner fra %s bytes", parser.transactions_seen, parser.bytes_fed
    )


def _read_chunks(path: Path, chunk_size: int) -> Iterator[bytes]:
    with path.open("rb") as handle:
        while True:
            chunk = handle.read(chunk_size)
            if not chunk:
                return
            yield chunk


def iter_xaf_file(
    path: Union[str, Path],
    *,
    chunk_size: int = PARSE_CHUNK_BYTES,
    **options: object,
) -> Iterator[Transaction]:
    """Strømmer transaksjoner fra en XAF-fil på disk."""

    xml_path = Path(path)
    if not xml_path.exists():
        raise FileNotFoundError(f"Fant ikke XAF-filen: {xml_path}")
    total = xml_path.stat().st_size
    return iter_xaf_transactions(
        _read_chunks(xml_path, max(1, chunk_size)),
        total_bytes=total,
        **options,  # type: ignore[arg-type]
    )
