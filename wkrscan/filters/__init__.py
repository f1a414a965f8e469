"""Offentlig API for WKR-klassifisering."""

from __future__ import annotations

from .engine import ClassificationEngine, ClassifiedLine, Strategy, inclusion_reason
from .errors import (
    ConfigurationError,
    FilterCancelled,
    FilterError,
    FilterMemoryError,
    FilterProcessingError,
    FilterTimeoutError,
    InvalidCustomRule,
    InvalidPattern,
    InvalidRuleSet,
)
from .patterns import PatternMatcher, matches_pattern
from .rules import (
    DEFAULT_WKR_RULES,
    PREDEFINED_CONFIGURATIONS,
    AmountDirection,
    CustomRule,
    DateAfter,
    DateBefore,
    FilterConfiguration,
    MaxAmount,
    MinAmount,
    NonZero,
    RuleSet,
    find_configuration,
    validate_rule_set,
)

__all__ = [
    "AmountDirection",
    "ClassificationEngine",
    "ClassifiedLine",
    "ConfigurationError",
    "CustomRule",
    "DEFAULT_WKR_RULES",
    "DateAfter",
    "DateBefore",
    "FilterCancelled",
    "FilterConfiguration",
    "FilterError",
    "FilterMemoryError",
    "FilterProcessingError",
    "FilterTimeoutError",
    "InvalidCustomRule",
    "InvalidPattern",
    "InvalidRuleSet",
    "MaxAmount",
    "MinAmount",
    "NonZero",
    "PREDEFINED_CONFIGURATIONS",
    "PatternMatcher",
    "RuleSet",
    "Strategy",
    "find_configuration",
    "inclusion_reason",
    "matches_pattern",
    "validate_rule_set",
]
