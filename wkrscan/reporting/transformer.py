"""Rene transformasjoner fra klassifiserte linjer til tabell, CSV og statistikk."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from ..helpers.dates import is_iso_date_text
from ..helpers.formatting import format_date_nl, format_euro, format_number, format_ratio
from ..helpers.lazy_imports import lazy_pandas

if TYPE_CHECKING:  # pragma: no cover - kun for typekontroll
    import pandas as pd

    from ..filters.engine import ClassifiedLine
else:
    pd = lazy_pandas()

__all__ = [
    "TABLE_HEADER",
    "TABLE_SEPARATOR",
    "EMPTY_TABLE_ROW",
    "CSV_HEADER",
    "ROW_HEADERS",
    "FilterStats",
    "FilterResult",
    "to_table",
    "to_csv",
    "to_rows",
    "to_dataframe",
    "compute_stats",
    "summary_text",
    "build_filter_result",
]

TABLE_HEADER = "| Grootboek | Boeking | Bedrag | Datum |"
TABLE_SEPARATOR = "|---|---|---|---|"
EMPTY_TABLE_ROW = "| Geen gegevens | - | - | - |"
CSV_HEADER = "Grootboek,Boeking,Bedrag,Datum,Reden"
ROW_HEADERS = [
    "Grootboek",
    "Boeking",
    "Bedrag",
    "Datum",
    "Account ID",
    "Transaction ID",
    "Filter Reden",
]

MAX_CELL_LENGTH = 50


def _table_cell(text: str) -> str:
    if not text:
        return "-"
    flattened = text.replace("|", "\\|").replace("\r\n", " ").replace("\n", " ").replace("\r", " ")
    suffix = "..." if len(text) > MAX_CELL_LENGTH else ""
    return flattened[:MAX_CELL_LENGTH] + suffix


def _csv_cell(text: str) -> str:
    if not text:
        return ""
    escaped = text.replace('"', '""')
    if any(char in text for char in '",\n\r'):
        return f'"{escaped}"'
    return escaped


def to_table(lines: Sequence["ClassifiedLine"]) -> str:
    """Tabell med fire kolonner; tom input gir én «Geen gegevens»-rad."""

    if not lines:
        return "\n".join([TABLE_HEADER, TABLE_SEPARATOR, EMPTY_TABLE_ROW])
    rows = [
        "| {ledger} | {posting} | {amount} | {date} |".format(
            ledger=_table_cell(line.ledger),
            posting=_table_cell(line.posting),
            amount=format_euro(line.amount),
            date=format_date_nl(line.date),
        )
        for line in lines
    ]
    return "\n".join([TABLE_HEADER, TABLE_SEPARATOR, *rows])


def to_csv(lines: Sequence["ClassifiedLine"]) -> str:
    if not lines:
        return CSV_HEADER + "\n"
    rows = [
        ",".join(
            [
                _csv_cell(line.ledger),
                _csv_cell(line.posting),
                str(line.amount),
                _csv_cell(line.date),
                _csv_cell(line.reason),
            ]
        )
        for line in lines
    ]
    return "\n".join([CSV_HEADER, *rows])


def to_rows(lines: Sequence["ClassifiedLine"]) -> List[List[Any]]:
    """Radformat for regneark: overskrift først, deretter én rad per linje."""

    rows: List[List[Any]] = [list(ROW_HEADERS)]
    for line in lines:
        rows.append(
            [
                line.ledger,
                line.posting,
                line.amount,
                line.date,
                line.account_id,
                line.transaction_id,
                line.reason,
            ]
        )
    return rows


def to_dataframe(lines: Sequence["ClassifiedLine"]) -> "pd.DataFrame":
    """Bygger en DataFrame med samme kolonner som ``to_rows``."""

    header, *body = to_rows(lines)
    frame = pd.DataFrame(body, columns=header)
    if not frame.empty:
        frame["Bedrag"] = frame["Bedrag"].map(float)
    return frame


@dataclass
class FilterStats:
    """Oppsummering av én kjøring."""

    total_input: int
    total_filtered: int
    filter_ratio: str
    total_amount: Decimal
    earliest: Optional[str] = None
    latest: Optional[str] = None
    account_breakdown: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalInput": self.total_input,
            "totalFiltered": self.total_filtered,
            "filterRatio": self.filter_ratio,
            "totalAmount": str(self.total_amount),
            "dateRange": {"earliest": self.earliest, "latest": self.latest},
            "accountBreakdown": dict(self.account_breakdown),
        }


def compute_stats(lines: Sequence["ClassifiedLine"], total_input_lines: int) -> FilterStats:
    """Beregner antall, andel, sum, datoperiode og fordeling per kontogruppe.

    Fordelingen nøkles på de to første tegnene i kontonummeret. Periode er
    ``None`` når ingen linjer har en gyldig dato.
    """

    total_amount = sum((line.amount for line in lines), Decimal("0"))
    dates = sorted(line.date for line in lines if is_iso_date_text(line.date))
    breakdown: Dict[str, int] = {}
    for line in lines:
        prefix = line.account_id[:2]
        breakdown[prefix] = breakdown.get(prefix, 0) + 1
    return FilterStats(
        total_input=total_input_lines,
        total_filtered=len(lines),
        filter_ratio=format_ratio(len(lines), total_input_lines),
        total_amount=total_amount,
        earliest=dates[0] if dates else None,
        latest=dates[-1] if dates else None,
        account_breakdown=breakdown,
    )


def summary_text(stats: FilterStats) -> str:
    """Markdown-sammendrag med nederlandsk formatering."""

    lines = [
        "**WKR Filter Resultaten**",
        "",
        "📊 **Statistieken:**",
        f"• Totaal transactieregels: {format_number(stats.total_input)}",
        f"• Gefilterde regels: {format_number(stats.total_filtered)} ({stats.filter_ratio}%)",
        f"• Totaalbedrag: {format_euro(stats.total_amount)}",
        "",
    ]
    if stats.earliest and stats.latest:
        lines.append(
            f"📅 **Periode:** {format_date_nl(stats.earliest)} tot {format_date_nl(stats.latest)}"
        )
        lines.append("")
    if stats.account_breakdown:
        lines.append("🏷️ **Verdeling per rekeninggroep:**")
        for prefix, count in sorted(stats.account_breakdown.items()):
            percentage = format_ratio(count, stats.total_filtered)
            lines.append(f"• {prefix}xxxx: {count} regels ({percentage}%)")
    return "\n".join(lines)


@dataclass
class FilterResult:
    """Samlet resultat: linjene og ferdige tekstformater."""

    lines: List["ClassifiedLine"]
    table: str
    csv: str
    stats: FilterStats

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stats": self.stats.to_dict(),
            "transactions": [
                {
                    "grootboek": line.ledger,
                    "boeking": line.posting,
                    "bedrag": str(line.amount),
                    "datum": line.date,
                    "accountId": line.account_id,
                    "transactionId": line.transaction_id,
                    "filterReason": line.reason,
                }
                for line in self.lines
            ],
        }


def build_filter_result(
    lines: Sequence["ClassifiedLine"], total_input_lines: int
) -> FilterResult:
    return FilterResult(
        lines=list(lines),
        table=to_table(lines),
        csv=to_csv(lines),
        stats=compute_stats(lines, total_input_lines),
    )
