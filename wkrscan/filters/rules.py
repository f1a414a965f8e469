"""Regelsett for WKR-klassifisering og utveksling av dem som JSON.

Egendefinerte regler uttrykkes som et lukket sett av predikatvarianter med
egne parametere. Dermed kan et regelsett eksporteres, importeres og kjøres på
nytt uten at logikken går tapt.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..helpers.dates import is_iso_date_text
from ..xaf.models import TransactionLine
from .errors import ConfigurationError, InvalidCustomRule, InvalidPattern, InvalidRuleSet

__all__ = [
    "NonZero",
    "MinAmount",
    "MaxAmount",
    "DateAfter",
    "DateBefore",
    "AmountDirection",
    "Predicate",
    "PREDICATE_TYPES",
    "predicate_from_dict",
    "CustomRule",
    "RuleSet",
    "validate_rule_set",
    "FilterConfiguration",
    "DEFAULT_WKR_RULES",
    "WKR_2025_CONFIG",
    "PREDEFINED_CONFIGURATIONS",
    "PRESETS",
    "find_configuration",
]


def _decimal_param(data: Mapping[str, Any], key: str) -> Decimal:
    raw = data.get(key)
    if raw is None or isinstance(raw, bool):
        raise InvalidCustomRule(f"Predikatet mangler gyldig '{key}'.", context={"spec": dict(data)})
    try:
        value = Decimal(str(raw))
    except InvalidOperation as exc:
        raise InvalidCustomRule(
            f"Ugyldig tall for '{key}': {raw!r}", context={"spec": dict(data)}
        ) from exc
    if not value.is_finite():
        raise InvalidCustomRule(f"Ugyldig tall for '{key}': {raw!r}", context={"spec": dict(data)})
    return value


def _bool_param(data: Mapping[str, Any], key: str, default: bool) -> bool:
    raw = data.get(key, default)
    if not isinstance(raw, bool):
        raise InvalidCustomRule(
            f"'{key}' må være true eller false, fikk {raw!r}.", context={"spec": dict(data)}
        )
    return raw


def _date_param(data: Mapping[str, Any]) -> str:
    raw = data.get("date")
    if not isinstance(raw, str) or not is_iso_date_text(raw):
        raise InvalidCustomRule(
            f"Predikatet krever en ISO-dato, fikk {raw!r}.", context={"spec": dict(data)}
        )
    return raw[:10]


def _line_date(line: TransactionLine, date: Optional[str]) -> Optional[str]:
    candidate = date or line.effective_date
    if not is_iso_date_text(candidate):
        return None
    return candidate[:10]


@dataclass(frozen=True)
class NonZero:
    """Beholder linjer med beløp ulikt null."""

    type_name: ClassVar[str] = "nonZero"

    def evaluate(self, line: TransactionLine, date: Optional[str] = None) -> bool:
        return line.amount != 0

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_name}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NonZero":
        return cls()


@dataclass(frozen=True)
class MinAmount:
    """Beholder linjer med beløp på minst ``value`` (absoluttverdi som standard)."""

    value: Decimal
    absolute: bool = True
    type_name: ClassVar[str] = "minAmount"

    def evaluate(self, line: TransactionLine, date: Optional[str] = None) -> bool:
        amount = abs(line.amount) if self.absolute else line.amount
        return amount >= self.value

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_name, "value": str(self.value), "absolute": self.absolute}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MinAmount":
        return cls(_decimal_param(data, "value"), _bool_param(data, "absolute", True))


@dataclass(frozen=True)
class MaxAmount:
    """Beholder linjer med beløp på høyst ``value``."""

    value: Decimal
    absolute: bool = True
    type_name: ClassVar[str] = "maxAmount"

    def evaluate(self, line: TransactionLine, date: Optional[str] = None) -> bool:
        amount = abs(line.amount) if self.absolute else line.amount
        return amount <= self.value

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_name, "value": str(self.value), "absolute": self.absolute}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MaxAmount":
        return cls(_decimal_param(data, "value"), _bool_param(data, "absolute", True))


@dataclass(frozen=True)
class DateAfter:
    """Beholder linjer datert etter ``date``; linjer uten gyldig dato faller bort."""

    date: str
    type_name: ClassVar[str] = "dateAfter"

    def evaluate(self, line: TransactionLine, date: Optional[str] = None) -> bool:
        line_date = _line_date(line, date)
        return line_date is not None and line_date > self.date

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_name, "date": self.date}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DateAfter":
        return cls(_date_param(data))


@dataclass(frozen=True)
class DateBefore:
    """Beholder linjer datert før ``date``."""

    date: str
    type_name: ClassVar[str] = "dateBefore"

    def evaluate(self, line: TransactionLine, date: Optional[str] = None) -> bool:
        line_date = _line_date(line, date)
        return line_date is not None and line_date < self.date

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_name, "date": self.date}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DateBefore":
        return cls(_date_param(data))


@dataclass(frozen=True)
class AmountDirection:
    """Beholder bare debet- (``D``) eller kreditlinjer (``C``)."""

    direction: str
    type_name: ClassVar[str] = "amountDirection"

    def evaluate(self, line: TransactionLine, date: Optional[str] = None) -> bool:
        return line.amount_type.upper() == self.direction

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_name, "direction": self.direction}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AmountDirection":
        direction = str(data.get("direction", "")).strip().upper()
        if direction not in {"D", "C"}:
            raise InvalidCustomRule(
                f"Retning må være 'D' eller 'C', fikk {data.get('direction')!r}.",
                context={"spec": dict(data)},
            )
        return cls(direction)


Predicate = Union[NonZero, MinAmount, MaxAmount, DateAfter, DateBefore, AmountDirection]

PREDICATE_TYPES: Dict[str, Any] = {
    cls.type_name: cls
    for cls in (NonZero, MinAmount, MaxAmount, DateAfter, DateBefore, AmountDirection)
}


def predicate_from_dict(data: Any) -> Predicate:
    """Bygger et predikat fra ``{"type": ..., ...}``."""

    if not isinstance(data, Mapping):
        raise InvalidCustomRule("Predikatet må være et objekt med 'type'.", context={"spec": data})
    kind = data.get("type")
    predicate_cls = PREDICATE_TYPES.get(kind) if isinstance(kind, str) else None
    if predicate_cls is None:
        raise InvalidCustomRule(
            f"Ukjent predikattype: {kind!r}",
            context={"type": kind, "known": sorted(PREDICATE_TYPES)},
        )
    return predicate_cls.from_dict(data)


@dataclass(frozen=True)
class CustomRule:
    """Navngitt regel; linjen beholdes bare når predikatet er sant."""

    name: str
    reason: str
    predicate: Predicate

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "reason": self.reason,
            "predicateSpec": self.predicate.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "CustomRule":
        if not isinstance(data, Mapping):
            raise InvalidCustomRule("Egendefinert regel må være et objekt.", context={"rule": data})
        if "predicateSpec" not in data:
            raise InvalidCustomRule(
                f"Regelen '{data.get('name', '')}' mangler predicateSpec.",
                context={"rule": data.get("name")},
            )
        return cls(
            name=str(data.get("name") or ""),
            reason=str(data.get("reason") or ""),
            predicate=predicate_from_dict(data["predicateSpec"]),
        )


def _string_tuple(data: Mapping[str, Any], key: str) -> Tuple[str, ...]:
    raw = data.get(key, [])
    if raw is None:
        return ()
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Iterable):
        raise ConfigurationError(f"'{key}' må være en liste med tekst.", context={"field": key})
    values = list(raw)
    if not all(isinstance(item, str) for item in values):
        raise InvalidPattern(f"'{key}' inneholder verdier som ikke er tekst.", context={"field": key})
    return tuple(values)


@dataclass(frozen=True)
class RuleSet:
    """Uforanderlig regelsett. Lister konverteres til tupler ved opprettelse."""

    include_patterns: Tuple[str, ...]
    exclude_patterns: Tuple[str, ...] = ()
    exclude_specific: Tuple[str, ...] = ()
    custom_rules: Tuple[CustomRule, ...] = ()

    def __post_init__(self) -> None:
        for name in ("include_patterns", "exclude_patterns", "exclude_specific", "custom_rules"):
            value = getattr(self, name)
            if isinstance(value, (str, bytes)):
                raise InvalidPattern(
                    f"'{name}' må være en liste med tekst, ikke én streng.",
                    context={"field": name, "value": value},
                )
            if not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value or ()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "includePatterns": list(self.include_patterns),
            "excludePatterns": list(self.exclude_patterns),
            "excludeSpecific": list(self.exclude_specific),
            "customRules": [rule.to_dict() for rule in self.custom_rules],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "RuleSet":
        if not isinstance(data, Mapping):
            raise ConfigurationError("Regelsettet må være et JSON-objekt.")
        raw_rules = data.get("customRules") or []
        if not isinstance(raw_rules, list):
            raise ConfigurationError("'customRules' må være en liste.", context={"field": "customRules"})
        return cls(
            include_patterns=_string_tuple(data, "includePatterns"),
            exclude_patterns=_string_tuple(data, "excludePatterns"),
            exclude_specific=_string_tuple(data, "excludeSpecific"),
            custom_rules=tuple(CustomRule.from_dict(rule) for rule in raw_rules),
        )

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str) -> "RuleSet":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Ugyldig JSON for regelsett: {exc}") from exc
        return cls.from_dict(data)


def validate_rule_set(rule_set: RuleSet) -> None:
    """Kontrollerer regelsettet én gang før kjøring."""

    if not rule_set.include_patterns:
        raise InvalidRuleSet("Regelsettet må inneholde minst ett inkluderingsmønster.")
    for field_name in ("include_patterns", "exclude_patterns", "exclude_specific"):
        for pattern in getattr(rule_set, field_name):
            if not isinstance(pattern, str) or not pattern:
                raise InvalidPattern(
                    f"Ugyldig mønster: {pattern!r}",
                    context={"field": field_name, "pattern": pattern},
                )
    for rule in rule_set.custom_rules:
        if not isinstance(rule, CustomRule) or not rule.name:
            raise InvalidCustomRule(
                f"Ugyldig egendefinert regel: {getattr(rule, 'name', rule)!r}",
                context={"rule": getattr(rule, "name", None)},
            )
        if not callable(getattr(rule.predicate, "evaluate", None)):
            raise InvalidCustomRule(
                f"Regelen '{rule.name}' mangler et predikat som kan evalueres.",
                context={"rule": rule.name},
            )


@dataclass(frozen=True)
class FilterConfiguration:
    """Navngitt og versjonert regelsett som kan eksporteres og importeres."""

    name: str
    description: str
    rules: RuleSet
    version: str = "1.0.0"
    author: Optional[str] = None

    def validate(self) -> None:
        if not self.name or not self.name.strip():
            raise ConfigurationError("Konfigurasjonen må ha et navn.", context={"field": "name"})
        validate_rule_set(self.rules)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "version": self.version,
            "rules": self.rules.to_dict(),
        }
        if self.author:
            data["author"] = self.author
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str) -> "FilterConfiguration":
        """Importerer en konfigurasjon; mangler versjon settes den til 1.0.0."""

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Ugyldig JSON for konfigurasjon: {exc}") from exc
        if not isinstance(data, Mapping) or not data.get("name") or "rules" not in data:
            raise ConfigurationError(
                "Ugyldig konfigurasjonsformat: mangler 'name' eller 'rules'."
            )
        config = cls(
            name=str(data["name"]),
            description=str(data.get("description") or ""),
            rules=RuleSet.from_dict(data["rules"]),
            version=str(data.get("version") or "1.0.0"),
            author=data.get("author"),
        )
        config.validate()
        return config

    def summary(self) -> Dict[str, Any]:
        rules = self.rules
        return {
            "name": self.name,
            "description": self.description,
            "rule_count": len(rules.include_patterns)
            + len(rules.exclude_patterns)
            + len(rules.exclude_specific)
            + len(rules.custom_rules),
            "include_patterns": len(rules.include_patterns),
            "exclude_patterns": len(rules.exclude_patterns),
            "custom_rules": len(rules.custom_rules),
        }


_ZERO_RULE = CustomRule(
    name="Exclude zero amounts",
    reason="Nul-bedrag transacties zijn niet relevant voor WKR",
    predicate=NonZero(),
)

DEFAULT_WKR_RULES = RuleSet(
    include_patterns=("4*",),
    exclude_patterns=("49*",),
    exclude_specific=("430000", "403130"),
    custom_rules=(_ZERO_RULE,),
)

WKR_2025_CONFIG = FilterConfiguration(
    name="WKR 2025 Standaard",
    description="Standaard filterregels voor WKR analyse 2025",
    rules=DEFAULT_WKR_RULES,
)

PRESETS: Dict[str, FilterConfiguration] = {
    "standaard": WKR_2025_CONFIG,
    "conservatief": FilterConfiguration(
        name="WKR Conservatief",
        description="Conservatieve filterregels - alleen duidelijke omzetrekeningen",
        rules=RuleSet(
            include_patterns=("40*", "41*"),
            exclude_patterns=("49*",),
            exclude_specific=("430000", "403130"),
            custom_rules=(
                CustomRule(
                    name="Minimum bedrag",
                    reason="Alleen significante bedragen (≥ €100)",
                    predicate=MinAmount(Decimal("100")),
                ),
            ),
        ),
    ),
    "uitgebreid": FilterConfiguration(
        name="WKR Uitgebreid",
        description="Uitgebreide filterregels - alle relevante kostenrekeningen",
        rules=RuleSet(
            include_patterns=("4*", "5*"),
            exclude_patterns=("49*", "59*"),
            exclude_specific=("430000", "403130"),
            custom_rules=(_ZERO_RULE,),
        ),
    ),
}

PREDEFINED_CONFIGURATIONS: Tuple[FilterConfiguration, ...] = tuple(PRESETS.values())


def find_configuration(name: str) -> FilterConfiguration:
    """Slår opp en forhåndsdefinert konfigurasjon på kortnavn eller fullt navn."""

    key = name.strip().lower()
    if key in PRESETS:
        return PRESETS[key]
    for config in PREDEFINED_CONFIGURATIONS:
        if config.name.lower() == key:
            return config
    known: List[str] = sorted(PRESETS)
    raise ConfigurationError(
        f"Ukjent konfigurasjon: {name!r}. Gyldige valg: {', '.join(known)}",
        context={"name": name},
    )
