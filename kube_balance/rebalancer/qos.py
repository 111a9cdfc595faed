# kube_balance/rebalancer/qos.py

import logging
from decimal import Decimal
from typing import Dict, Optional

from kubernetes.utils import parse_quantity

from kube_balance.core.models import ContainerResources, Pod, QoSClass

logger = logging.getLogger(__name__)


EVICTION_RANK = {
    QoSClass.BEST_EFFORT: 3,
    QoSClass.BURSTABLE: 2,
    QoSClass.GUARANTEED: 1,
}

ZERO = Decimal(0)


def _quantity(resources: Optional[Dict[str, str]], name: str) -> Decimal:
    """Parsed quantity, zero when undeclared or unparseable."""
    if not resources:
        return ZERO
    value = resources.get(name)
    if value is None:
        return ZERO
    try:
        return parse_quantity(value)
    except ValueError:
        logger.debug(f"[qos] Unparseable {name} quantity {value!r}, treating as 0")
        return ZERO


def _declares_nothing(container: ContainerResources) -> bool:
    return not container.requests and not container.limits


def _requests_differ_from_limits(container: ContainerResources) -> bool:
    for name in ("cpu", "memory"):
        if _quantity(container.requests, name) != _quantity(container.limits, name):
            return True
    return False


def _has_zero_request(container: ContainerResources) -> bool:
    return (
        _quantity(container.requests, "cpu") == ZERO
        or _quantity(container.requests, "memory") == ZERO
    )


def classify_qos(pod: Pod) -> QoSClass:
    """
    Classify a pod from its containers' requests and limits.

    Scan order is fixed: BestEffort is checked across all containers
    first, then Burstable across all containers, then Guaranteed.
    A pod that is neither Burstable nor fully Guaranteed (requests equal
    limits but some cpu/memory request is zero) falls back to BestEffort.
    """
    containers = pod.containers
    if not containers:
        return QoSClass.BEST_EFFORT

    if any(_declares_nothing(c) for c in containers):
        return QoSClass.BEST_EFFORT

    if any(_requests_differ_from_limits(c) for c in containers):
        return QoSClass.BURSTABLE

    if any(_has_zero_request(c) for c in containers):
        return QoSClass.BEST_EFFORT

    return QoSClass.GUARANTEED


def eviction_rank(qos: Optional[QoSClass]) -> int:
    """Higher rank is evicted first. Unknown classes rank 0."""
    return EVICTION_RANK.get(qos, 0)
