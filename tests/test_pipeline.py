"""Tester for hele kjeden og kommandolinjen."""

from __future__ import annotations

import json
import threading

import pytest

from conftest import build_journal, build_line, build_transaction, build_xaf
from wkrscan.cli import load_rule_set, main
from wkrscan.filters import FilterCancelled, RuleSet, Strategy, find_configuration
from wkrscan.pipeline import analyse_document, analyse_file, analyse_file_streaming
from wkrscan.xaf import FileTooLarge, XafParser


def _document() -> str:
    return build_xaf(
        journals=[
            build_journal(
                [
                    build_transaction("1", [build_line("400000", "1000.00", "C")]),
                    build_transaction(
                        "2",
                        [
                            build_line("410000", "250.00", nr="1"),
                            build_line("490000", "99.00", nr="2"),
                        ],
                        date="2023-04-02",
                    ),
                    build_transaction("3", [build_line("440000", "0.00")]),
                ]
            )
        ]
    )


def test_analyse_document(controller) -> None:
    result = analyse_document(_document(), controller=controller)

    assert [line.account_id for line in result.lines] == ["400000", "410000"]
    assert result.stats.total_input == 4
    assert result.stats.filter_ratio == "50.0"
    assert result.document is not None
    assert result.csv.count("\n") == 2
    assert "• 41xxxx: 1 regels (50.0%)" in result.summary
    assert result.filter_result.stats == result.stats


@pytest.mark.parametrize("strategy", list(Strategy))
def test_streaming_and_strategies_agree(tmp_path, controller, strategy) -> None:
    path = tmp_path / "boek.xaf"
    path.write_text(_document(), encoding="utf-8")

    in_memory = analyse_file(path, strategy=strategy, controller=controller)
    streamed = analyse_file_streaming(path, controller=controller)

    assert streamed.document is None
    assert streamed.lines == in_memory.lines
    assert streamed.stats == in_memory.stats


def test_analyse_file_respects_size_limit(tmp_path) -> None:
    path = tmp_path / "boek.xaf"
    path.write_text(_document(), encoding="utf-8")

    with pytest.raises(FileTooLarge):
        analyse_file(path, parser=XafParser(max_file_size=50))


def test_analyse_file_missing(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        analyse_file(tmp_path / "mangler.xaf")


def test_custom_rule_set_and_cancel(controller) -> None:
    rule_set = RuleSet(include_patterns=("44*",))
    result = analyse_document(_document(), rule_set, controller=controller)
    assert [line.account_id for line in result.lines] == ["440000"]

    event = threading.Event()
    event.set()
    with pytest.raises(FilterCancelled):
        analyse_document(_document(), controller=controller, cancel_event=event)


def test_load_rule_set_accepts_configuration_or_rules(tmp_path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(find_configuration("uitgebreid").to_json(), encoding="utf-8")
    rules_path = tmp_path / "rules.json"
    rules_path.write_text(json.dumps({"includePatterns": ["41*"]}), encoding="utf-8")

    assert load_rule_set(str(config_path)).include_patterns == ("4*", "5*")
    assert load_rule_set(str(rules_path)).include_patterns == ("41*",)


def test_cli_prints_summary(tmp_path, capsys) -> None:
    path = tmp_path / "boek.xaf"
    path.write_text(_document(), encoding="utf-8")

    exit_code = main([str(path)])

    assert exit_code == 0
    assert "**WKR Filter Resultaten**" in capsys.readouterr().out


def test_cli_csv_stream_and_output(tmp_path, capsys) -> None:
    path = tmp_path / "boek.xaf"
    path.write_text(_document(), encoding="utf-8")
    out_dir = tmp_path / "rapport"

    exit_code = main(
        [str(path), "--stream", "--format", "csv", "--preset", "conservatief"]
        + ["--output", str(out_dir)]
    )

    assert exit_code == 0
    output = capsys.readouterr().out.strip().splitlines()
    assert output[0] == "Grootboek,Boeking,Bedrag,Datum,Reden"
    assert [row.split(",")[0] for row in output[1:]] == [
        "400000 Sales NL",
        "410000 Onbekende rekening",
    ]
    assert (out_dir / "wkr_filtering_wkr.csv").exists()
    assert (out_dir / "wkr_filtering_wkr.json").exists()


def test_cli_reports_parse_errors(tmp_path, capsys) -> None:
    path = tmp_path / "feil.xaf"
    path.write_text("<?xml version='1.0'?><root/>", encoding="utf-8")

    exit_code = main([str(path), "--format", "table"])

    assert exit_code == 1
    assert "Feil (MISSING_ROOT_MARKER)" in capsys.readouterr().err


def test_cli_reports_missing_file(tmp_path, capsys) -> None:
    assert main([str(tmp_path / "mangler.xaf")]) == 1
    assert "Feil" in capsys.readouterr().err
