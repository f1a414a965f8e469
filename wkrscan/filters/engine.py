"""Klassifisering av posteringslinjer mot et WKR-regelsett.

Alle strategier bruker samme beslutningsregel per linje og gir samme
rekkefølge som kildedokumentet:

* ``DIRECT`` går gjennom alt i én omgang.
* ``OPTIMIZED`` arbeider i faste batcher med sjekkpunkt og fremdrift etter
  hver batch.
* ``STREAMING`` er en generator med sjekkpunkt for hver ``checkpoint_interval``
  linje.
* ``CHUNKED`` deler opp i biter som kjøres i et begrenset vindu av tråder;
  resultatene settes sammen i innsendingsrekkefølge.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from decimal import Decimal
from enum import Enum
from typing import (
    Callable,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
    Union,
)

from .. import settings
from ..constants import CHECKPOINT_INTERVAL
from ..core.memory import MemoryController
from ..reporting.metrics import RunMetrics, compute_metrics
from ..xaf.models import Account, Transaction, TransactionLine
from .errors import FilterCancelled, FilterError, FilterTimeoutError, wrap_filter_error
from .patterns import PatternMatcher
from .rules import DEFAULT_WKR_RULES, RuleSet, validate_rule_set

__all__ = [
    "ClassifiedLine",
    "ClassificationEngine",
    "REASON_LABELS",
    "Strategy",
    "inclusion_reason",
]

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

ProgressCallback = Callable[[float, str], None]
AccountsArg = Union[Iterable[Account], Mapping[str, str]]

REASON_LABELS: Dict[str, str] = {
    "40": "Omzet - Producten/Diensten",
    "41": "Omzet - Overig",
    "42": "Kostprijs verkopen",
    "43": "Algemene kosten",
    "44": "Personeelskosten",
    "45": "Afschrijvingen",
    "46": "Overige bedrijfskosten",
    "47": "Financiële baten/lasten",
    "48": "Buitengewone baten/lasten",
}
FALLBACK_REASON = "Overige relevante rekening"
UNKNOWN_ACCOUNT = "Onbekende rekening"
NO_DESCRIPTION = "Geen beschrijving"


def inclusion_reason(account_id: str) -> str:
    """Kategori basert på de to første sifrene i kontonummeret."""

    return REASON_LABELS.get(account_id[:2], FALLBACK_REASON)


class Strategy(str, Enum):
    DIRECT = "direct"
    OPTIMIZED = "optimized"
    STREAMING = "streaming"
    CHUNKED = "chunked"


@dataclass(frozen=True)
class ClassifiedLine:
    """Én posteringslinje som er tatt med i WKR-utvalget."""

    ledger: str
    posting: str
    amount: Decimal
    date: str
    account_id: str
    transaction_id: str
    reason: str

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


class _RunControl:
    """Avbrudd, tidsfrist og minnesjekk for én kjøring."""

    def __init__(
        self,
        controller: MemoryController,
        cancel_event: Optional[threading.Event],
        timeout: Optional[float],
    ) -> None:
        self.controller = controller
        self.cancel_event = cancel_event
        self.timeout = timeout
        self.deadline = time.monotonic() + timeout if timeout is not None else None

    def check(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise FilterCancelled("Filtreringen ble avbrutt.")
        if self.deadline is not None and time.monotonic() > self.deadline:
            raise FilterTimeoutError(
                "Filtreringen tok for lang tid.", context={"timeout": self.timeout}
            )

    def checkpoint(self) -> None:
        self.check()
        self.controller.checkpoint()


def _account_names(accounts: Optional[AccountsArg]) -> Dict[str, str]:
    if not accounts:
        return {}
    if isinstance(accounts, Mapping):
        return {str(key): str(value) for key, value in accounts.items() if value}
    return {account.id: account.name for account in accounts if account.name}


def _line_count(transactions: Sequence[Transaction]) -> int:
    return sum(len(transaction.lines) for transaction in transactions)


class ClassificationEngine:
    """Vurderer hver posteringslinje mot et regelsett.

    Regelsettet valideres én gang i konstruktøren og endres aldri. Mønstrene
    kompileres til oppslagsstrukturer, så hver linje krever bare et settoppslag
    og et prefikstreff.
    """

    def __init__(
        self,
        rule_set: Optional[RuleSet] = None,
        *,
        controller: Optional[MemoryController] = None,
        batch_size: Optional[int] = None,
        chunk_size: Optional[int] = None,
        concurrency: Optional[int] = None,
        checkpoint_interval: int = CHECKPOINT_INTERVAL,
    ) -> None:
        self.rule_set = DEFAULT_WKR_RULES if rule_set is None else rule_set
        validate_rule_set(self.rule_set)
        self.controller = controller or MemoryController()
        self.batch_size = max(1, batch_size or settings.BATCH_SIZE)
        self.chunk_size = max(1, chunk_size or settings.CHUNK_SIZE)
        self.concurrency = max(1, concurrency or settings.CONCURRENCY)
        self.checkpoint_interval = max(1, checkpoint_interval)
        self._include = PatternMatcher(self.rule_set.include_patterns)
        self._exclude = PatternMatcher(self.rule_set.exclude_patterns)
        self._exclude_specific = frozenset(self.rule_set.exclude_specific)
        self._predicates = tuple(rule.predicate for rule in self.rule_set.custom_rules)

    # ------------------------------------------------------------------
    # Beslutning per linje
    # ------------------------------------------------------------------
    def should_include(self, line: TransactionLine, date: Optional[str] = None) -> bool:
        account_id = line.account_id
        if not self._include.matches(account_id):
            return False
        if self._exclude.matches(account_id):
            return False
        if account_id in self._exclude_specific:
            return False
        effective = date or line.effective_date
        return all(predicate.evaluate(line, effective) for predicate in self._predicates)

    def inclusion_reason(self, account_id: str) -> str:
        return inclusion_reason(account_id)

    def _classify_transaction(
        self, transaction: Transaction, names: Mapping[str, str]
    ) -> Iterator[Tuple[TransactionLine, Optional[ClassifiedLine]]]:
        for line in transaction.lines:
            date = line.effective_date or transaction.date
            if not self.should_include(line, date):
                yield line, None
                continue
            name = names.get(line.account_id) or line.account_name or UNKNOWN_ACCOUNT
            description = transaction.description or NO_DESCRIPTION
            yield line, ClassifiedLine(
                ledger=f"{line.account_id} {name}",
                posting=f"{transaction.number} {description} - {transaction.date}",
                amount=line.amount,
                date=date,
                account_id=line.account_id,
                transaction_id=transaction.number,
                reason=inclusion_reason(line.account_id),
            )

    def _classify_slice(
        self, transactions: Iterable[Transaction], names: Mapping[str, str]
    ) -> List[ClassifiedLine]:
        results: List[ClassifiedLine] = []
        for transaction in transactions:
            for _line, classified in self._classify_transaction(transaction, names):
                if classified is not None:
                    results.append(classified)
        return results

    # ------------------------------------------------------------------
    # Strategier
    # ------------------------------------------------------------------
    def classify(
        self,
        transactions: Sequence[Transaction],
        accounts: Optional[AccountsArg] = None,
        strategy: Union[Strategy, str] = Strategy.DIRECT,
        *,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
    ) -> List[ClassifiedLine]:
        """Klassifiserer med valgt strategi; alle gir samme resultat."""

        chosen = Strategy(strategy)
        if chosen is Strategy.DIRECT:
            return self.classify_direct(
                transactions, accounts, cancel_event=cancel_event, timeout=timeout
            )
        if chosen is Strategy.OPTIMIZED:
            return self.classify_batched(
                transactions,
                accounts,
                progress_callback=progress_callback,
                cancel_event=cancel_event,
                timeout=timeout,
            )
        if chosen is Strategy.STREAMING:
            return list(
                self.iter_classified(
                    transactions, accounts, cancel_event=cancel_event, timeout=timeout
                )
            )
        return self.classify_chunked(
            transactions,
            accounts,
            progress_callback=progress_callback,
            cancel_event=cancel_event,
            timeout=timeout,
        )

    def classify_direct(
        self,
        transactions: Sequence[Transaction],
        accounts: Optional[AccountsArg] = None,
        *,
        cancel_event: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
    ) -> List[ClassifiedLine]:
        run = _RunControl(self.controller, cancel_event, timeout)
        try:
            run.check()
            return self._classify_slice(transactions, _account_names(accounts))
        except FilterError:
            raise
        except Exception as exc:
            _LOGGER.exception("Direkte filtrering feilet")
            raise wrap_filter_error(exc, transaction_count=len(transactions)) from exc

    def classify_batched(
        self,
        transactions: Sequence[Transaction],
        accounts: Optional[AccountsArg] = None,
        *,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
    ) -> List[ClassifiedLine]:
        """Batchvis filtrering med sjekkpunkt og fremdrift etter hver batch.

        Fremdriften rapporteres som ``(prosent, melding)`` der siste verdi alltid
        er nøyaktig 100.
        """

        names = _account_names(accounts)
        run = _RunControl(self.controller, cancel_event, timeout)

        def _operation() -> List[ClassifiedLine]:
            results: List[ClassifiedLine] = []
            total_batches = -(-len(transactions) // self.batch_size)
            for index, start in enumerate(range(0, len(transactions), self.batch_size), 1):
                run.checkpoint()
                batch = transactions[start : start + self.batch_size]
                results.extend(self._classify_slice(batch, names))
                if progress_callback is not None:
                    progress_callback(
                        index / total_batches * 100, f"Batch {index} av {total_batches}"
                    )
                _LOGGER.debug("Batch %s av %s ferdig", index, total_batches)
            if total_batches == 0 and progress_callback is not None:
                progress_callback(100.0, "Ingen transaksjoner å filtrere")
            return results

        return self._guarded(_operation, len(transactions))

    def iter_classified(
        self,
        transactions: Iterable[Transaction],
        accounts: Optional[AccountsArg] = None,
        *,
        cancel_event: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
    ) -> Iterator[ClassifiedLine]:
        """Lat generator over klassifiserte linjer.

        Tar også imot en generator av transaksjoner, for eksempel fra
        ``iter_xaf_file``. Kan ikke gjenopptas; kall på nytt for å starte om.
        """

        names = _account_names(accounts)
        run = _RunControl(self.controller, cancel_event, timeout)
        run.check()
        processed = 0
        seen_transactions = 0
        try:
            for transaction in transactions:
                seen_transactions += 1
                for _line, classified in self._classify_transaction(transaction, names):
                    if classified is not None:
                        yield classified
                    processed += 1
                    if processed % self.checkpoint_interval == 0:
                        run.checkpoint()
        except FilterError:
            raise
        except Exception as exc:
            _LOGGER.exception("Strømmende filtrering feilet")
            raise wrap_filter_error(exc, transaction_count=seen_transactions) from exc

    def classify_chunked(
        self,
        transactions: Sequence[Transaction],
        accounts: Optional[AccountsArg] = None,
        *,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
    ) -> List[ClassifiedLine]:
        """Kjører biter på ``chunk_size`` i et vindu på ``concurrency`` tråder.

        Hver bit beholder intern rekkefølge, og bitene settes sammen i
        innsendingsrekkefølge uavhengig av hvilken tråd som blir ferdig først.
        """

        names = _account_names(accounts)
        run = _RunControl(self.controller, cancel_event, timeout)
        chunks = [
            transactions[start : start + self.chunk_size]
            for start in range(0, len(transactions), self.chunk_size)
        ]

        def _chunk(chunk: Sequence[Transaction]) -> List[ClassifiedLine]:
            results: List[ClassifiedLine] = []
            for start in range(0, len(chunk), self.batch_size):
                run.checkpoint()
                results.extend(self._classify_slice(chunk[start : start + self.batch_size], names))
            return results

        def _operation() -> List[ClassifiedLine]:
            results: List[ClassifiedLine] = []
            if not chunks:
                if progress_callback is not None:
                    progress_callback(100.0, "Ingen transaksjoner å filtrere")
                return results
            workers = min(self.concurrency, len(chunks))
            with ThreadPoolExecutor(max_workers=workers) as executor:
                for window_start in range(0, len(chunks), workers):
                    window = chunks[window_start : window_start + workers]
                    futures = [executor.submit(_chunk, chunk) for chunk in window]
                    for future in futures:
                        results.extend(future.result())
                    run.checkpoint()
                    if progress_callback is not None:
                        done = window_start + len(window)
                        progress_callback(
                            done / len(chunks) * 100, f"Del {done} av {len(chunks)}"
                        )
            return results

        return self._guarded(_operation, len(transactions))

    def classify_with_metrics(
        self,
        transactions: Sequence[Transaction],
        accounts: Optional[AccountsArg] = None,
        strategy: Union[Strategy, str] = Strategy.OPTIMIZED,
        **options: object,
    ) -> Tuple[List[ClassifiedLine], RunMetrics]:
        """Klassifiserer og måler tid og minne underveis."""

        initial = self.controller.memory_info().used
        peak = initial
        user_callback = options.pop("progress_callback", None)

        def _sample(percent: float, message: str) -> None:
            nonlocal peak
            peak = max(peak, self.controller.memory_info().used)
            if callable(user_callback):
                user_callback(percent, message)

        started = time.perf_counter()
        lines = self.classify(
            transactions,
            accounts,
            strategy,
            progress_callback=_sample,
            **options,  # type: ignore[arg-type]
        )
        elapsed = time.perf_counter() - started
        metrics = compute_metrics(
            elapsed_seconds=elapsed,
            lines_processed=_line_count(transactions),
            initial_memory=initial,
            final_memory=self.controller.memory_info().used,
            peak_memory=peak,
        )
        return lines, metrics

    def _guarded(self, operation: Callable[[], T], transaction_count: int) -> T:
        try:
            return self.controller.run_with_memory_guard(operation)
        except FilterError:
            raise
        except Exception as exc:
            _LOGGER.exception("Filtrering feilet etter %s transaksjoner", transaction_count)
            raise wrap_filter_error(exc, transaction_count=transaction_count) from exc
