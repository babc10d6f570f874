"""Cross-field rule evaluation over validated input and config."""

import logging
from typing import Any, Callable, Mapping, Sequence

from toolspine.kernel.validation.conditions import evaluate_condition, is_present
from toolspine.kernel.validation.errors import ValidationErrorCode, ValidationErrorDetail
from toolspine.kernel.validation.schema import CrossFieldRule, RuleKind

logger = logging.getLogger(__name__)

CROSS_FIELD_PATH = "cross-field"

CustomRuleHandler = Callable[[CrossFieldRule, Mapping[str, Any]], bool]


class CrossFieldRuleEvaluator:
    """Checks relationships across the ``{input, config}`` namespace.

    A field counts as present when its path resolves to a value other than
    ``None``. ``custom`` rules are delegated to ``custom_handler``; without
    one they always pass.
    """

    def __init__(self, custom_handler: CustomRuleHandler | None = None) -> None:
        """Initialize evaluator.

        Args:
            custom_handler: Decides ``custom`` rules; receives the rule and
                the combined namespace and returns True when satisfied
        """
        self.custom_handler = custom_handler

    def evaluate(
        self, namespace: Mapping[str, Any], rules: Sequence[CrossFieldRule]
    ) -> list[ValidationErrorDetail]:
        """Evaluate every rule; return one error detail per failed rule."""
        errors: list[ValidationErrorDetail] = []
        for rule in rules:
            try:
                satisfied = self.check_rule(namespace, rule)
            except Exception as e:
                logger.warning("Error evaluating %s rule %s: %s", rule.kind.value, rule.name or "", e)
                errors.append(
                    ValidationErrorDetail(
                        path=[CROSS_FIELD_PATH],
                        code=ValidationErrorCode.CROSS_FIELD_EVALUATION_ERROR,
                        message=f"Error evaluating cross-field rule: {e}",
                        context={"rule": _describe(rule), "error": str(e)},
                    )
                )
                continue
            if not satisfied:
                errors.append(
                    ValidationErrorDetail(
                        path=[CROSS_FIELD_PATH],
                        code=ValidationErrorCode.CROSS_FIELD_VALIDATION_FAILED,
                        message=rule.error_message or rule.description or "Cross-field validation failed",
                        context={"rule": _describe(rule)},
                    )
                )
        return errors

    def check_rule(self, namespace: Mapping[str, Any], rule: CrossFieldRule) -> bool:
        """Return True when ``rule`` holds for ``namespace``.

        Raises:
            ConditionEvaluationError: If the rule's condition cannot be evaluated
        """
        if rule.kind == RuleKind.CONDITIONAL:
            if rule.condition is None or not evaluate_condition(rule.condition, namespace):
                return True
            if not all(is_present(namespace, path) for path in rule.requires):
                return False
            return not any(is_present(namespace, path) for path in rule.forbids)

        if rule.kind == RuleKind.MUTUAL_EXCLUSION:
            present = [path for path in rule.fields if is_present(namespace, path)]
            return len(present) <= 1

        if rule.kind == RuleKind.DEPENDENCY:
            if rule.trigger is None or not is_present(namespace, rule.trigger):
                return True
            return all(is_present(namespace, path) for path in rule.requires)

        if self.custom_handler is None:
            return True
        return bool(self.custom_handler(rule, namespace))


def _describe(rule: CrossFieldRule) -> dict[str, Any]:
    return rule.model_dump(mode="json", exclude_defaults=True)
