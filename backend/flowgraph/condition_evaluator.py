# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Structured condition evaluator for if/else nodes.

Each condition compares a field (a path into the evaluation scope) with a
literal coerced per its valueType. Results are folded strictly left to right:
the first result seeds the accumulator and every following condition is
combined with its own logicalOp. There is no AND-over-OR precedence.

Example:
    conditions = [
        Condition(field="status", operator="equals", valueType="number", value="200"),
        Condition(field="body.ok", operator="equals", valueType="boolean", value="true",
                  logicalOp="OR"),
    ]
    evaluate_conditions(conditions, {"status": 200}).branch  # "true"
"""

from typing import Any, Dict, List, Sequence, Union

from pydantic import BaseModel, Field

from .core.errors import FlowgraphError
from .expression_resolver import MISSING, resolve_path, to_template_string
from .workflow_nodes import Condition, ConditionOperator


class ConditionEvaluationError(FlowgraphError):
    """A condition literal could not be coerced to its declared type"""

    def __init__(self, message: str, field: str = None):
        super().__init__(message, status_code=400)
        self.field = field


class EvaluatedCondition(BaseModel):
    condition: str
    result: bool


class ConditionResult(BaseModel):
    """Outcome of evaluating an if/else node's conditions"""
    result: bool
    evaluated_conditions: List[EvaluatedCondition] = Field(default_factory=list)
    branch: str

    def to_output(self) -> Dict[str, Any]:
        """Node output shape stored in the execution context."""
        return {
            "result": self.result,
            "evaluatedConditions": [c.model_dump() for c in self.evaluated_conditions],
            "branch": self.branch,
        }


# ============================================================================
# Coercion
# ============================================================================

def coerce_value(value: Any, value_type: str, field: str = None) -> Any:
    """
    Coerce a condition literal per its valueType.

    Raises:
        ConditionEvaluationError: A number literal does not parse
    """
    if value_type == "number":
        if isinstance(value, bool):
            raise ConditionEvaluationError(f"Invalid number for '{field}': {value}", field=field)
        if isinstance(value, (int, float)):
            return value
        try:
            return float(str(value).strip())
        except ValueError:
            raise ConditionEvaluationError(f"Invalid number for '{field}': {value!r}", field=field)

    if value_type == "boolean":
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() == "true"

    if value is None:
        return ""
    return value if isinstance(value, str) else to_template_string(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _strict_equals(actual: Any, expected: Any) -> bool:
    # booleans never equal numbers even though True == 1 in Python
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual == expected
    if _is_number(actual) and _is_number(expected):
        return actual == expected
    if type(actual) is not type(expected):
        return False
    return actual == expected


def _as_number(value: Any):
    if value is None or value is MISSING:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _is_empty(actual: Any) -> bool:
    if actual is None or actual is MISSING:
        return True
    if isinstance(actual, str):
        return actual.strip() == ""
    if isinstance(actual, (list, tuple, dict)):
        return len(actual) == 0
    return False


# ============================================================================
# Evaluation
# ============================================================================

def evaluate_condition(condition: Condition, scope: Dict[str, Any]) -> bool:
    """Evaluate one condition; a missing field resolves to None."""
    actual = resolve_path(scope, condition.field) if condition.field else MISSING
    if actual is MISSING:
        actual = None

    operator = condition.operator
    if operator == ConditionOperator.IS_EMPTY:
        return _is_empty(actual)

    expected = coerce_value(condition.value, condition.value_type, condition.field)

    if operator == ConditionOperator.EQUALS:
        return _strict_equals(actual, expected)
    if operator == ConditionOperator.NOT_EQUALS:
        return not _strict_equals(actual, expected)
    if operator == ConditionOperator.CONTAINS:
        if isinstance(actual, str):
            return to_template_string(expected) in actual
        if isinstance(actual, (list, tuple)):
            return any(_strict_equals(item, expected) for item in actual)
        return False

    left, right = _as_number(actual), _as_number(expected)
    if left is None or right is None:
        return False
    if operator == ConditionOperator.GREATER_THAN:
        return left > right
    if operator == ConditionOperator.LESS_THAN:
        return left < right
    return False


def evaluate_conditions(
    conditions: Sequence[Union[Condition, Dict[str, Any]]],
    scope: Dict[str, Any],
) -> ConditionResult:
    """
    Evaluate conditions against a scope with left-to-right AND/OR folding.

    Zero conditions evaluate to true.

    Raises:
        ConditionEvaluationError: A literal could not be coerced
    """
    evaluated: List[EvaluatedCondition] = []
    accumulator = True

    for index, raw in enumerate(conditions):
        condition = raw if isinstance(raw, Condition) else Condition.model_validate(raw)
        outcome = evaluate_condition(condition, scope)
        evaluated.append(EvaluatedCondition(condition=condition.describe(), result=outcome))

        if index == 0:
            accumulator = outcome
        elif condition.logical_op == "OR":
            accumulator = accumulator or outcome
        else:
            accumulator = accumulator and outcome

    return ConditionResult(
        result=accumulator,
        evaluated_conditions=evaluated,
        branch="true" if accumulator else "false",
    )
