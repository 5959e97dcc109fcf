"""
Value transform rules.
Single responsibility: map a previous-side raw value to the value used for
comparison.

A rule set belongs to one column and maps a trigger value (or the
wildcard ``*``) to a directive:

    Active: "1"       replace "Active" with "1"
    "*": ">>0"        append "0" to any other value
    "*": "<<ID-"      prepend "ID-" to any other value

Transforms only ever change the comparison value; reports always show the
raw value.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional

from ..utils.logger import get_logger
from ..utils.normalizers import is_blank, normalize_header
from .comparer import Comparer
from .errors import InvalidTransformError
from .tally import RunTally


logger = get_logger()

WILDCARD = "*"
APPEND_MARKER = ">>"
PREPEND_MARKER = "<<"


class DirectiveKind(str, Enum):
    REPLACE = "replace"
    PREPEND = "prepend"
    APPEND = "append"


@dataclass(frozen=True)
class TransformRule:
    """A single trigger -> directive rule."""

    trigger: str
    directive: str
    kind: DirectiveKind
    literal: str

    @classmethod
    def parse(cls, column: str, trigger: str, directive: str) -> "TransformRule":
        """
        Parse a directive string.

        Args:
            column: Column the rule belongs to (for error messages)
            trigger: Trigger value or the wildcard
            directive: ``>>text``, ``<<text`` or a replacement literal

        Raises:
            InvalidTransformError: If the trigger or literal is blank
        """
        if trigger is None or is_blank(str(trigger)):
            raise InvalidTransformError(
                f"Transform for column '{column}' has a blank trigger"
            )
        if directive is None:
            directive = ""
        directive = str(directive)

        if directive.startswith(APPEND_MARKER):
            kind, literal = DirectiveKind.APPEND, directive[len(APPEND_MARKER):]
        elif directive.startswith(PREPEND_MARKER):
            kind, literal = DirectiveKind.PREPEND, directive[len(PREPEND_MARKER):]
        else:
            kind, literal = DirectiveKind.REPLACE, directive

        if is_blank(literal):
            raise InvalidTransformError(
                f"Transform '{trigger}' for column '{column}' has a blank value"
            )
        return cls(str(trigger), directive, kind, literal)

    def apply(self, value: str) -> str:
        if self.kind is DirectiveKind.APPEND:
            return value + self.literal
        if self.kind is DirectiveKind.PREPEND:
            return self.literal + value
        return self.literal

    def describe(self) -> str:
        return f"{self.trigger} => {self.directive}"


class TransformRuleSet:
    """
    Rules for one column, keyed by the comparer key of each trigger.
    """

    def __init__(self, column: str, comparer: Comparer):
        self.column = column
        self.comparer = comparer
        self.rules: Dict[str, TransformRule] = {}
        self.wildcard: Optional[TransformRule] = None

    def add(self, rule: TransformRule):
        if rule.trigger == WILDCARD:
            if self.wildcard is not None:
                raise InvalidTransformError(
                    f"Column '{self.column}' has more than one wildcard transform"
                )
            self.wildcard = rule
            return

        key = self.comparer.key(rule.trigger)
        if key in self.rules:
            raise InvalidTransformError(
                f"Column '{self.column}' has duplicate transform triggers "
                f"'{self.rules[key].trigger}' and '{rule.trigger}'"
            )
        self.rules[key] = rule

    def match(self, value: str) -> Optional[TransformRule]:
        rule = self.rules.get(self.comparer.key(value))
        return rule if rule is not None else self.wildcard

    def all_rules(self):
        rules = list(self.rules.values())
        if self.wildcard is not None:
            rules.append(self.wildcard)
        return rules

    def is_mixed(self) -> bool:
        """True when replace directives sit beside prepend/append ones."""
        kinds = {rule.kind for rule in self.all_rules()}
        return DirectiveKind.REPLACE in kinds and len(kinds) > 1

    def __len__(self) -> int:
        return len(self.all_rules())


class TransformEngine:
    """
    Apply per-column rule sets to comparison values.
    """

    def __init__(self, rule_sets: Optional[Dict[str, TransformRuleSet]] = None):
        self.rule_sets: Dict[str, TransformRuleSet] = rule_sets or {}

    @classmethod
    def from_config(cls, transforms: Optional[Mapping[str, Mapping[str, str]]],
                    comparer: Comparer) -> "TransformEngine":
        """
        Build an engine from ``{column: {trigger: directive}}``.

        Column names are normalized like headers. Raises
        InvalidTransformError for malformed rules before any file is read.
        """
        rule_sets: Dict[str, TransformRuleSet] = {}

        for column, rules in (transforms or {}).items():
            if column is None or is_blank(str(column)):
                raise InvalidTransformError("Transform configured for a blank column name")
            normalized = normalize_header(str(column))
            if normalized in rule_sets:
                raise InvalidTransformError(
                    f"Transforms configured twice for column '{column}'"
                )
            if not isinstance(rules, Mapping) or not rules:
                raise InvalidTransformError(
                    f"Transforms for column '{column}' must be a non-empty mapping"
                )

            rule_set = TransformRuleSet(normalized, comparer)
            for trigger, directive in rules.items():
                rule_set.add(TransformRule.parse(normalized, trigger, directive))

            if rule_set.is_mixed():
                logger.warning("transforms.mixed_directives",
                               column=normalized,
                               rules=[r.describe() for r in rule_set.all_rules()])

            rule_sets[normalized] = rule_set

        return cls(rule_sets)

    @property
    def columns(self):
        return sorted(self.rule_sets)

    def has_rules(self, column: str) -> bool:
        return column in self.rule_sets

    def apply(self, column: str, value: str,
              tally: Optional[RunTally] = None) -> str:
        """
        Map a raw value to its comparison value.

        Args:
            column: Normalized column name
            value: Raw value from the previous source
            tally: Run accumulator receiving rule hit counts

        Returns:
            Transformed value, or the raw value when no rule applies
        """
        rule_set = self.rule_sets.get(column)
        if rule_set is None or is_blank(value):
            return value

        rule = rule_set.match(value)
        if rule is None:
            return value

        if tally is not None:
            tally.record_transform(column, rule.trigger)
        return rule.apply(value)

    def digest(self, column: str, tally: RunTally) -> str:
        """
        Human readable summary of the rules of a column and their hit counts.
        """
        rule_set = self.rule_sets.get(column)
        if rule_set is None:
            return ""
        hits = tally.transform_hits_for(column)
        return "; ".join(
            f"{rule.describe()} [{hits.get(rule.trigger, 0)}]"
            for rule in rule_set.all_rules()
        )
