"""Tester for tabell, CSV, statistikk og sammendrag."""

from __future__ import annotations

from decimal import Decimal

from wkrscan.filters.engine import ClassifiedLine
from wkrscan.reporting import (
    build_filter_result,
    compute_stats,
    summary_text,
    to_csv,
    to_dataframe,
    to_rows,
    to_table,
)
from wkrscan.reporting.transformer import CSV_HEADER, EMPTY_TABLE_ROW


def _line(
    account_id: str = "400000",
    amount: str = "1000.00",
    date: str = "2023-01-01",
    *,
    ledger: str = "",
    posting: str = "1 Boeking - 2023-01-01",
    transaction_id: str = "1",
    reason: str = "Omzet - Producten/Diensten",
) -> ClassifiedLine:
    return ClassifiedLine(
        ledger=ledger or f"{account_id} Sales NL",
        posting=posting,
        amount=Decimal(amount),
        date=date,
        account_id=account_id,
        transaction_id=transaction_id,
        reason=reason,
    )


def test_empty_table_has_sentinel_row() -> None:
    table = to_table([])

    assert table.splitlines() == [
        "| Grootboek | Boeking | Bedrag | Datum |",
        "|---|---|---|---|",
        EMPTY_TABLE_ROW,
    ]


def test_table_row_formatting() -> None:
    table = to_table([_line(amount="-1234.5", date="2023-03-07")])

    assert table.splitlines()[2] == (
        "| 400000 Sales NL | 1 Boeking - 2023-01-01 | € -1.234,50 | 7-3-2023 |"
    )


def test_table_escapes_pipes_and_truncates_long_text() -> None:
    long_posting = "12 " + "a" * 60
    table = to_table([_line(ledger="400000 Omzet | Hoog", posting=long_posting)])

    row = table.splitlines()[2]
    assert "400000 Omzet \\| Hoog" in row
    assert "12 " + "a" * 47 + "..." in row


def test_table_flattens_newlines() -> None:
    table = to_table([_line(posting="1 Eerste\nTweede - 2023-01-01")])

    assert "1 Eerste Tweede - 2023-01-01" in table
    assert len(table.splitlines()) == 3


def test_empty_csv_is_header_and_newline() -> None:
    assert to_csv([]) == CSV_HEADER + "\n"


def test_csv_quotes_cells_with_separators() -> None:
    csv_text = to_csv([_line(ledger='400000 Omzet, "hoog"', amount="12.50")])

    header, row = csv_text.split("\n")
    assert header == "Grootboek,Boeking,Bedrag,Datum,Reden"
    assert row == (
        '"400000 Omzet, ""hoog""",1 Boeking - 2023-01-01,12.50,2023-01-01,'
        "Omzet - Producten/Diensten"
    )


def test_rows_and_dataframe_share_columns() -> None:
    lines = [_line(), _line("410000", "20.25", transaction_id="2")]

    rows = to_rows(lines)
    frame = to_dataframe(lines)

    assert rows[0] == list(frame.columns)
    assert rows[2][4] == "410000"
    assert frame["Bedrag"].tolist() == [1000.0, 20.25]


def test_stats_for_selection() -> None:
    lines = [
        _line("400000", "100.00", "2023-03-01"),
        _line("400100", "-25.50", "2023-01-15"),
        _line("440000", "10.00", "2023-12-31"),
    ]

    stats = compute_stats(lines, total_input_lines=8)

    assert stats.total_filtered == 3
    assert stats.filter_ratio == "37.5"
    assert stats.total_amount == Decimal("84.50")
    assert (stats.earliest, stats.latest) == ("2023-01-15", "2023-12-31")
    assert stats.account_breakdown == {"40": 2, "44": 1}


def test_stats_without_input() -> None:
    stats = compute_stats([], total_input_lines=0)

    assert stats.filter_ratio == "0.0"
    assert stats.total_amount == Decimal("0")
    assert stats.earliest is None and stats.latest is None
    assert stats.to_dict()["dateRange"] == {"earliest": None, "latest": None}


def test_summary_text() -> None:
    lines = [_line("400000", "1500.00"), _line("410000", "500.00", "2023-02-01")]
    stats = compute_stats(lines, total_input_lines=4)

    text = summary_text(stats)

    assert text.startswith("**WKR Filter Resultaten**")
    assert "• Totaal transactieregels: 4" in text
    assert "• Gefilterde regels: 2 (50.0%)" in text
    assert "• Totaalbedrag: € 2.000,00" in text
    assert "📅 **Periode:** 1-1-2023 tot 1-2-2023" in text
    assert "• 40xxxx: 1 regels (50.0%)" in text
    assert "• 41xxxx: 1 regels (50.0%)" in text


def test_summary_without_dates_skips_period() -> None:
    stats = compute_stats([_line(date="")], total_input_lines=1)

    assert "Periode" not in summary_text(stats)


def test_build_filter_result_to_dict() -> None:
    result = build_filter_result([_line()], total_input_lines=2)

    data = result.to_dict()

    assert data["stats"]["totalFiltered"] == 1
    assert data["stats"]["filterRatio"] == "50.0"
    assert data["transactions"][0]["bedrag"] == "1000.00"
    assert data["transactions"][0]["filterReason"] == "Omzet - Producten/Diensten"
    assert result.table == to_table(result.lines)
