# kube_balance/rebalancer/selectors.py

from typing import Dict, Optional

from kube_balance.core.errors import InvalidSelectorError
from kube_balance.core.models import LabelSelector, LabelSelectorRequirement

OP_IN = "In"
OP_NOT_IN = "NotIn"
OP_EXISTS = "Exists"
OP_DOES_NOT_EXIST = "DoesNotExist"


def validate_selector(selector: LabelSelector) -> None:
    """Raise InvalidSelectorError if the selector cannot be evaluated."""
    for key in selector.match_labels:
        if not key:
            raise InvalidSelectorError("matchLabels key must not be empty")

    for req in selector.match_expressions:
        if not req.key:
            raise InvalidSelectorError("matchExpressions key must not be empty")
        if req.operator in (OP_IN, OP_NOT_IN):
            if not req.values:
                raise InvalidSelectorError(
                    f"values must be non-empty for operator {req.operator}"
                )
        elif req.operator in (OP_EXISTS, OP_DOES_NOT_EXIST):
            if req.values:
                raise InvalidSelectorError(
                    f"values must be empty for operator {req.operator}"
                )
        else:
            raise InvalidSelectorError(f"{req.operator!r} is not a valid label selector operator")


def _requirement_matches(req: LabelSelectorRequirement, labels: Dict[str, str]) -> bool:
    if req.operator == OP_IN:
        return req.key in labels and labels[req.key] in req.values
    if req.operator == OP_NOT_IN:
        return req.key not in labels or labels[req.key] not in req.values
    if req.operator == OP_EXISTS:
        return req.key in labels
    return req.key not in labels


def selector_matches(selector: Optional[LabelSelector], labels: Dict[str, str]) -> bool:
    """
    Evaluate a label selector.

    A missing selector matches nothing; an empty one matches everything.

    Raises:
        InvalidSelectorError: the selector is malformed
    """
    if selector is None:
        return False

    validate_selector(selector)

    for key, value in selector.match_labels.items():
        if labels.get(key) != value:
            return False

    return all(_requirement_matches(req, labels) for req in selector.match_expressions)
