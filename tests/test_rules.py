"""Tester for regelsett, mønstre og konfigurasjoner."""

from __future__ import annotations

import json
from decimal import Decimal

import pytest

from wkrscan.filters import (
    DEFAULT_WKR_RULES,
    PREDEFINED_CONFIGURATIONS,
    AmountDirection,
    ConfigurationError,
    CustomRule,
    DateAfter,
    DateBefore,
    FilterConfiguration,
    InvalidCustomRule,
    InvalidPattern,
    InvalidRuleSet,
    MaxAmount,
    MinAmount,
    NonZero,
    PatternMatcher,
    RuleSet,
    find_configuration,
    matches_pattern,
    validate_rule_set,
)
from wkrscan.xaf.models import TransactionLine


def _line(amount: str, amount_type: str = "D", effective_date: str = "") -> TransactionLine:
    return TransactionLine(
        account_id="400000",
        amount=Decimal(amount),
        amount_type=amount_type,
        effective_date=effective_date,
    )


@pytest.mark.parametrize(
    "account_id, pattern, expected",
    [
        ("400000", "4*", True),
        ("490000", "49*", True),
        ("500000", "4*", False),
        ("430000", "430000", True),
        ("4300001", "430000", False),
        ("4*0000", "4*0000", True),
        ("410000", "4*0000", False),
        ("anything", "*", True),
    ],
)
def test_matches_pattern(account_id, pattern, expected) -> None:
    assert matches_pattern(account_id, pattern) is expected


def test_pattern_matcher_agrees_with_matches_pattern() -> None:
    patterns = ["40*", "41*", "480000", "4*1"]
    matcher = PatternMatcher(patterns)

    for account_id in ["400000", "410101", "480000", "4801", "4*1", "421", "500000"]:
        expected = any(matches_pattern(account_id, pattern) for pattern in patterns)
        assert matcher.matches(account_id) is expected


def test_empty_matcher_matches_nothing() -> None:
    matcher = PatternMatcher([])

    assert not matcher
    assert matcher.matches("400000") is False


def test_predicates_evaluate_lines() -> None:
    assert NonZero().evaluate(_line("0")) is False
    assert NonZero().evaluate(_line("-0.01")) is True
    assert MinAmount(Decimal("100")).evaluate(_line("-150")) is True
    assert MinAmount(Decimal("100"), absolute=False).evaluate(_line("-150")) is False
    assert MaxAmount(Decimal("100")).evaluate(_line("99.99")) is True
    assert AmountDirection("C").evaluate(_line("10", "C")) is True
    assert AmountDirection("C").evaluate(_line("10", "D")) is False


def test_date_predicates_use_given_date_before_line_date() -> None:
    line = _line("10", effective_date="2023-06-01")

    assert DateAfter("2023-05-31").evaluate(line) is True
    assert DateBefore("2023-06-01").evaluate(line) is False
    assert DateBefore("2023-06-01").evaluate(line, "2023-01-15") is True
    assert DateAfter("2023-01-01").evaluate(_line("10")) is False


def test_rule_set_is_immutable_and_uses_tuples() -> None:
    rule_set = RuleSet(include_patterns=["4*"], exclude_patterns=["49*"])

    assert rule_set.include_patterns == ("4*",)
    with pytest.raises(AttributeError):
        rule_set.include_patterns = ("5*",)  # type: ignore[misc]


def test_rule_set_json_round_trip_keeps_predicates_executable() -> None:
    original = RuleSet(
        include_patterns=("4*",),
        exclude_patterns=("49*",),
        exclude_specific=("430000",),
        custom_rules=(
            CustomRule("Niet nul", "Nul-bedrag", NonZero()),
            CustomRule("Minimum", "Significant", MinAmount(Decimal("100.50"))),
            CustomRule("Na", "Periode", DateAfter("2023-01-01")),
            CustomRule("Credit", "Richting", AmountDirection("C")),
        ),
    )

    restored = RuleSet.from_json(original.to_json())

    assert restored == original
    assert restored.custom_rules[1].predicate.evaluate(_line("-200")) is True
    assert restored.custom_rules[1].predicate.evaluate(_line("100")) is False


def test_interchange_format_uses_camel_case_keys() -> None:
    data = json.loads(DEFAULT_WKR_RULES.to_json())

    assert data["includePatterns"] == ["4*"]
    assert data["excludePatterns"] == ["49*"]
    assert data["excludeSpecific"] == ["430000", "403130"]
    assert data["customRules"][0]["predicateSpec"] == {"type": "nonZero"}


def test_unknown_predicate_type_is_rejected() -> None:
    payload = {
        "includePatterns": ["4*"],
        "customRules": [{"name": "x", "reason": "y", "predicateSpec": {"type": "regex"}}],
    }

    with pytest.raises(InvalidCustomRule):
        RuleSet.from_dict(payload)


@pytest.mark.parametrize(
    "spec",
    [
        {"type": "minAmount"},
        {"type": "minAmount", "value": "abc"},
        {"type": "dateAfter", "date": "gisteren"},
        {"type": "amountDirection", "direction": "X"},
    ],
)
def test_invalid_predicate_parameters(spec) -> None:
    payload = {
        "includePatterns": ["4*"],
        "customRules": [{"name": "x", "reason": "y", "predicateSpec": spec}],
    }

    with pytest.raises(InvalidCustomRule):
        RuleSet.from_dict(payload)


def test_malformed_json_raises_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        RuleSet.from_json("{ikke json")


def test_validation_requires_include_pattern() -> None:
    with pytest.raises(InvalidRuleSet):
        validate_rule_set(RuleSet(include_patterns=()))


def test_validation_rejects_empty_pattern() -> None:
    with pytest.raises(InvalidPattern):
        validate_rule_set(RuleSet(include_patterns=("4*",), exclude_patterns=("",)))


def test_validation_rejects_unnamed_custom_rule() -> None:
    rule_set = RuleSet(include_patterns=("4*",), custom_rules=(CustomRule("", "r", NonZero()),))

    with pytest.raises(InvalidCustomRule):
        validate_rule_set(rule_set)


def test_predefined_configurations_are_valid() -> None:
    names = [config.name for config in PREDEFINED_CONFIGURATIONS]

    assert names == ["WKR 2025 Standaard", "WKR Conservatief", "WKR Uitgebreid"]
    for config in PREDEFINED_CONFIGURATIONS:
        config.validate()


def test_find_configuration_by_key_or_name() -> None:
    assert find_configuration("conservatief").name == "WKR Conservatief"
    assert find_configuration("WKR Uitgebreid").rules.include_patterns == ("4*", "5*")
    with pytest.raises(ConfigurationError):
        find_configuration("onbekend")


def test_configuration_export_import() -> None:
    config = find_configuration("conservatief")

    restored = FilterConfiguration.from_json(config.to_json())

    assert restored == config
    assert restored.summary()["rule_count"] == 2 + 1 + 2 + 1


def test_configuration_import_sets_default_version() -> None:
    payload = json.dumps({"name": "Eigen", "rules": {"includePatterns": ["44*"]}})

    config = FilterConfiguration.from_json(payload)

    assert config.version == "1.0.0"
    assert config.rules.exclude_patterns == ()


def test_configuration_import_requires_name_and_rules() -> None:
    with pytest.raises(ConfigurationError):
        FilterConfiguration.from_json(json.dumps({"rules": {"includePatterns": ["4*"]}}))


@pytest.mark.parametrize("field_name", ["include_patterns", "exclude_patterns", "exclude_specific"])
def test_single_string_is_not_split_into_patterns(field_name) -> None:
    kwargs = {"include_patterns": ("4*",), field_name: "40*"}

    with pytest.raises(InvalidPattern) as excinfo:
        RuleSet(**kwargs)

    assert excinfo.value.context["field"] == field_name


def test_string_include_pattern_never_widens_selection() -> None:
    with pytest.raises(InvalidPattern):
        RuleSet(include_patterns=b"40*")  # type: ignore[arg-type]

    assert RuleSet(include_patterns=["40*"]).include_patterns == ("40*",)


@pytest.mark.parametrize("flag", ["false", "true", 0, 1, None])
def test_absolute_flag_must_be_boolean(flag) -> None:
    spec = {"type": "minAmount", "value": "100", "absolute": flag}
    payload = {
        "includePatterns": ["4*"],
        "customRules": [{"name": "x", "reason": "y", "predicateSpec": spec}],
    }

    with pytest.raises(InvalidCustomRule):
        RuleSet.from_dict(payload)


def test_absolute_flag_false_is_respected() -> None:
    spec = {"type": "maxAmount", "value": "100", "absolute": False}
    payload = {
        "includePatterns": ["4*"],
        "customRules": [{"name": "x", "reason": "y", "predicateSpec": spec}],
    }

    predicate = RuleSet.from_dict(payload).custom_rules[0].predicate

    assert predicate == MaxAmount(Decimal("100"), absolute=False)
    assert predicate.evaluate(_line("-500")) is True
