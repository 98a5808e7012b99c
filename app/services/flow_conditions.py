"""Condition evaluation for condition nodes (AND/OR over field comparisons)."""
import logging
import re
from typing import Dict, Any, Iterable

logger = logging.getLogger(__name__)


def _condition_parts(condition) -> tuple:
    # Conditions arrive as pydantic models from the engine and as dicts from callers/tests
    if isinstance(condition, dict):
        return condition.get("field"), condition.get("operator"), condition.get("value")
    return condition.field, condition.operator, condition.value


def evaluate_condition(condition, variables: Dict[str, Any]) -> bool:
    """
    Evaluate one condition against the run's variables.

    Comparison is case-insensitive on the string form of both sides; a missing
    variable compares as "". An invalid regex is a non-match.
    """
    field, operator, value = _condition_parts(condition)
    field_value = variables.get(field)
    field_str = str(field_value if field_value is not None else "").lower()
    value_str = str(value if value is not None else "").lower()

    if operator == "contains":
        return value_str in field_str
    if operator == "not_contains":
        return value_str not in field_str
    if operator == "equals":
        return field_str == value_str
    if operator == "not_equals":
        return field_str != value_str
    if operator == "regex":
        try:
            return re.search(str(value if value is not None else ""), field_str, re.IGNORECASE) is not None
        except re.error as e:
            logger.debug("Invalid regex %r in condition on %s: %s", value, field, e)
            return False

    logger.warning("Unknown condition operator %r on field %s", operator, field)
    return False


def evaluate_conditions(
    conditions: Iterable | None,
    variables: Dict[str, Any],
    logic_operator: str | None = "AND"
) -> bool:
    """AND/OR over a condition list. No conditions always passes."""
    conditions = list(conditions or [])
    if not conditions:
        return True

    if logic_operator == "OR":
        return any(evaluate_condition(cond, variables) for cond in conditions)
    return all(evaluate_condition(cond, variables) for cond in conditions)
