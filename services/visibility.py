"""Conditional block visibility driven by URL parameters and the referrer.

Every unexpected input fails open: missing, disabled or empty rule sets, rule
sets whose conditions are all incomplete, and unknown logic modes all leave
the block visible. A single condition with an unknown operator counts as
not matching.
"""
from enum import Enum
from typing import Mapping, Protocol, Sequence
import logging

logger = logging.getLogger(__name__)


class ConditionField(str, Enum):
    UTM_SOURCE = "utm_source"
    UTM_MEDIUM = "utm_medium"
    UTM_CAMPAIGN = "utm_campaign"
    UTM_TERM = "utm_term"
    UTM_CONTENT = "utm_content"
    GCLID = "gclid"
    FBCLID = "fbclid"
    TTCLID = "ttclid"
    REFERRER = "referrer"
    CUSTOM = "custom"


class ConditionOperator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "starts_with"
    EXISTS = "exists"
    NOT_EXISTS = "not_exists"


class VisibilityLogic(str, Enum):
    SHOW_IF_ANY = "show_if_any"
    SHOW_IF_ALL = "show_if_all"
    HIDE_IF_ANY = "hide_if_any"
    HIDE_IF_ALL = "hide_if_all"


# Fields read straight from the query string under their own name
URL_PARAM_FIELDS = frozenset({
    ConditionField.UTM_SOURCE.value,
    ConditionField.UTM_MEDIUM.value,
    ConditionField.UTM_CAMPAIGN.value,
    ConditionField.UTM_TERM.value,
    ConditionField.UTM_CONTENT.value,
    ConditionField.GCLID.value,
    ConditionField.FBCLID.value,
    ConditionField.TTCLID.value,
})

PRESENCE_OPERATORS = frozenset({ConditionOperator.EXISTS.value, ConditionOperator.NOT_EXISTS.value})


class Condition(Protocol):
    field: str
    custom_field: str | None
    operator: str
    value: str | None


class Rules(Protocol):
    enabled: bool
    logic: str
    conditions: Sequence[Condition]


class Context(Protocol):
    url_params: Mapping[str, str]
    referrer: str


def is_condition_valid(condition: Condition) -> bool:
    if condition.operator not in PRESENCE_OPERATORS and not (condition.value or "").strip():
        return False
    if condition.field == ConditionField.CUSTOM.value and not (condition.custom_field or "").strip():
        return False
    return True


def resolve_field_value(condition: Condition, context: Context) -> str | None:
    if condition.field in URL_PARAM_FIELDS:
        return context.url_params.get(condition.field)
    if condition.field == ConditionField.REFERRER.value:
        return context.referrer
    if condition.field == ConditionField.CUSTOM.value:
        return context.url_params.get(condition.custom_field)
    return None


def evaluate_condition(condition: Condition, context: Context) -> bool:
    field_value = resolve_field_value(condition, context)
    actual = (field_value or "").lower()
    target = (condition.value or "").lower()

    operator = condition.operator
    if operator == ConditionOperator.EQUALS.value:
        return actual == target
    if operator == ConditionOperator.NOT_EQUALS.value:
        return actual != target
    if operator == ConditionOperator.CONTAINS.value:
        return target in actual
    if operator == ConditionOperator.NOT_CONTAINS.value:
        return target not in actual
    if operator == ConditionOperator.STARTS_WITH.value:
        return actual.startswith(target)
    if operator == ConditionOperator.EXISTS.value:
        return bool(field_value)
    if operator == ConditionOperator.NOT_EXISTS.value:
        return not field_value

    logger.warning("unknown visibility operator %r treated as non-matching", condition.operator)
    return False


def is_block_visible(rules: Rules | None, context: Context) -> bool:
    if rules is None or not rules.enabled or not rules.conditions:
        return True

    valid = [c for c in rules.conditions if is_condition_valid(c)]
    if not valid:
        return True

    results = [evaluate_condition(c, context) for c in valid]

    logic = rules.logic
    if logic == VisibilityLogic.SHOW_IF_ANY.value:
        return any(results)
    if logic == VisibilityLogic.SHOW_IF_ALL.value:
        return all(results)
    if logic == VisibilityLogic.HIDE_IF_ANY.value:
        return not any(results)
    if logic == VisibilityLogic.HIDE_IF_ALL.value:
        return not all(results)

    logger.warning("unknown visibility logic %r, showing block", rules.logic)
    return True
