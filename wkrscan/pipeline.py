"""Samlet kjede: innlesing, klassifisering og rapportering."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Union

from .core.memory import MemoryController
from .filters.engine import ClassificationEngine, ClassifiedLine, Strategy
from .filters.rules import RuleSet
from .reporting.transformer import FilterResult, FilterStats, build_filter_result, summary_text
from .xaf.models import NormalizedDocument, Transaction
from .xaf.parser import XafParser
from .xaf.stream import iter_xaf_file
from .xaf.validation import RawDocument

__all__ = ["PipelineResult", "analyse_document", "analyse_file", "analyse_file_streaming"]

_LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[float, str], None]


@dataclass
class PipelineResult:
    """Resultat av én kjøring fra rådokument til rapport."""

    document: Optional[NormalizedDocument]
    lines: List[ClassifiedLine]
    stats: FilterStats
    table: str
    csv: str
    summary: str

    @property
    def filter_result(self) -> FilterResult:
        return FilterResult(lines=self.lines, table=self.table, csv=self.csv, stats=self.stats)


def _result(
    document: Optional[NormalizedDocument], lines: List[ClassifiedLine], total_input: int
) -> PipelineResult:
    report = build_filter_result(lines, total_input)
    return PipelineResult(
        document=document,
        lines=report.lines,
        stats=report.stats,
        table=report.table,
        csv=report.csv,
        summary=summary_text(report.stats),
    )


def _classify_document(
    document: NormalizedDocument,
    rule_set: Optional[RuleSet],
    *,
    strategy: Union[Strategy, str],
    controller: MemoryController,
    progress_callback: Optional[ProgressCallback],
    cancel_event: Optional[threading.Event],
    timeout: Optional[float],
) -> PipelineResult:
    engine = ClassificationEngine(rule_set, controller=controller)
    lines = engine.classify(
        document.transactions,
        document.accounts,
        strategy,
        progress_callback=progress_callback,
        cancel_event=cancel_event,
        timeout=timeout,
    )
    _LOGGER.info(
        "Filtrerte %s av %s linjer med strategi %s",
        len(lines),
        document.total_line_count,
        Strategy(strategy).value,
    )
    return _result(document, lines, document.total_line_count)


def analyse_document(
    raw: RawDocument,
    rule_set: Optional[RuleSet] = None,
    *,
    strategy: Union[Strategy, str] = Strategy.DIRECT,
    controller: Optional[MemoryController] = None,
    parser: Optional[XafParser] = None,
    progress_callback: Optional[ProgressCallback] = None,
    cancel_event: Optional[threading.Event] = None,
    timeout: Optional[float] = None,
) -> PipelineResult:
    """Leser ``raw``, klassifiserer alle linjer og bygger rapportene.

    Parser og motor deler samme ``MemoryController``.
    """

    shared = controller or (parser.controller if parser is not None else MemoryController())
    xaf_parser = parser or XafParser(controller=shared)
    document = xaf_parser.parse(raw)
    return _classify_document(
        document,
        rule_set,
        strategy=strategy,
        controller=shared,
        progress_callback=progress_callback,
        cancel_event=cancel_event,
        timeout=timeout,
    )


def analyse_file(
    path: Union[str, Path],
    rule_set: Optional[RuleSet] = None,
    **options: object,
) -> PipelineResult:
    """Som ``analyse_document``, men leser fra disk etter størrelsessjekk."""

    xml_path = Path(path)
    parser = options.pop("parser", None) or XafParser(
        controller=options.get("controller")  # type: ignore[arg-type]
    )
    if not xml_path.exists():
        raise FileNotFoundError(f"Fant ikke XAF-filen: {xml_path}")
    parser.check_file_size(xml_path)  # type: ignore[union-attr]
    return analyse_document(
        xml_path.read_bytes(),
        rule_set,
        parser=parser,  # type: ignore[arg-type]
        **options,  # type: ignore[arg-type]
    )


class _CountingTransactions:
    """Teller linjer mens transaksjonene passerer."""

    def __init__(self, transactions: Iterable[Transaction]) -> None:
        self._transactions = transactions
        self.line_count = 0

    def __iter__(self) -> Iterator[Transaction]:
        for transaction in self._transactions:
            self.line_count += len(transaction.lines)
            yield transaction


def analyse_file_streaming(
    path: Union[str, Path],
    rule_set: Optional[RuleSet] = None,
    *,
    controller: Optional[MemoryController] = None,
    max_buffer_bytes: Optional[int] = None,
    progress_callback: Optional[Callable[[int, str], None]] = None,
    cancel_event: Optional[threading.Event] = None,
    timeout: Optional[float] = None,
) -> PipelineResult:
    """Strømmer transaksjoner fra fil rett inn i klassifiseringen.

    Hele dokumentet bygges aldri i minnet, så ``document`` er ``None`` og
    skjemavalideringen hoppes over.
    """

    shared = controller or MemoryController()
    engine = ClassificationEngine(rule_set, controller=shared)
    source = _CountingTransactions(
        iter_xaf_file(
            path,
            controller=shared,
            max_buffer_bytes=max_buffer_bytes,
            progress_callback=progress_callback,
        )
    )
    lines = list(
        engine.iter_classified(source, cancel_event=cancel_event, timeout=timeout)
    )
    return _result(None, lines, source.line_count)
