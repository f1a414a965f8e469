"""Kommandolinjeverktøy for WKR-analyse av XAF-filer."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from .filters.engine import Strategy
from .filters.errors import FilterError
from .filters.rules import PRESETS, FilterConfiguration, RuleSet, find_configuration
from .pipeline import PipelineResult, analyse_file, analyse_file_streaming
from .reporting.export import download_payload, save_outputs
from .xaf.errors import ParseError

_LOGGER = logging.getLogger(__name__)

FORMATS = ("table", "csv", "summary", "json")


def load_rule_set(path: str) -> RuleSet:
    """Leser et regelsett eller en hel konfigurasjon fra JSON."""

    text = Path(path).read_text(encoding="utf-8")
    data = json.loads(text)
    if isinstance(data, dict) and "rules" in data:
        return FilterConfiguration.from_json(text).rules
    return RuleSet.from_json(text)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="WKR-filtrering av XAF-revisjonsfiler")
    parser.add_argument("path", help="Sti til XAF-filen som skal analyseres")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--rules", help="JSON-fil med regelsett eller konfigurasjon")
    source.add_argument(
        "--preset",
        choices=sorted(PRESETS),
        help="Forhåndsdefinert konfigurasjon (standard: standaard)",
    )
    parser.add_argument(
        "--strategy",
        choices=[strategy.value for strategy in Strategy],
        default=Strategy.DIRECT.value,
        help="Kjørestrategi for klassifiseringen",
    )
    parser.add_argument(
        "--stream",
        action="store_true",
        help="Strøm transaksjonene fra fil i stedet for å lese hele dokumentet",
    )
    parser.add_argument("--format", choices=FORMATS, default="summary", dest="output_format")
    parser.add_argument("--output", help="Mappe der CSV og JSON lagres")
    parser.add_argument("--verbose", "-v", action="store_true", help="Vis detaljert logging")
    return parser


def _render(result: PipelineResult, output_format: str) -> str:
    if output_format == "table":
        return result.table
    if output_format == "csv":
        return result.csv
    if output_format == "json":
        payload = download_payload(result.filter_result, "json")
        return json.dumps(payload.content, ensure_ascii=False, indent=2)
    return result.summary


def main(argv: Optional[list[str]] = None) -> int:
    """Kjører analysen og skriver valgt format til standard ut."""

    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.rules:
            rule_set = load_rule_set(args.rules)
        else:
            rule_set = find_configuration(args.preset or "standaard").rules

        if args.stream:
            result = analyse_file_streaming(args.path, rule_set)
        else:
            result = analyse_file(args.path, rule_set, strategy=args.strategy)

        print(_render(result, args.output_format))
        if args.output:
            csv_path, json_path = save_outputs(result.filter_result, args.output)
            _LOGGER.info("Lagret %s og %s", csv_path, json_path)
    except (ParseError, FilterError) as exc:
        print(f"Feil ({exc.code}): {exc}", file=sys.stderr)
        return 1
    except (OSError, json.JSONDecodeError) as exc:
        print(f"Feil: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI brukes ved behov
    raise SystemExit(main())


__all__ = ["load_rule_set", "main"]
