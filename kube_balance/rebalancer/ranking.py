# kube_balance/rebalancer/ranking.py
"""Eviction ordering for pods on a degraded node."""

from typing import Dict, Iterable, List, Optional, Tuple

from kube_balance.core.models import Pod, WorkloadProfile
from kube_balance.rebalancer.qos import classify_qos, eviction_rank

WORKLOAD_TYPE_LABEL = "workload.k8s.io/type"


def profile_for(
    pod: Pod,
    profiles: Dict[str, WorkloadProfile],
    workload_type_label: str = WORKLOAD_TYPE_LABEL,
) -> Optional[WorkloadProfile]:
    workload_type = pod.labels.get(workload_type_label)
    if workload_type is None:
        return None
    return profiles.get(workload_type)


def eviction_sort_key(
    pod: Pod,
    profiles: Dict[str, WorkloadProfile],
    workload_type_label: str = WORKLOAD_TYPE_LABEL,
) -> Tuple[int, int, int]:
    """
    Ascending key: QoS rank first, then profiled before unprofiled,
    then higher evictionPriority first.
    """
    profile = profile_for(pod, profiles, workload_type_label)
    if profile is None:
        return (-eviction_rank(classify_qos(pod)), 1, 0)
    return (-eviction_rank(classify_qos(pod)), 0, -profile.eviction_priority)


def rank_candidates(
    pods: Iterable[Pod],
    profiles: Dict[str, WorkloadProfile],
    workload_type_label: str = WORKLOAD_TYPE_LABEL,
) -> List[Pod]:
    """
    Order pods for eviction, first to evict first.

    Pure and stable: pods with equal keys keep their input order.
    """
    return sorted(
        pods,
        key=lambda pod: eviction_sort_key(pod, profiles, workload_type_label),
    )
