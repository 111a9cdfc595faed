# kube_balance/rebalancer/cycle.py
"""Rebalance cycle - one reconciliation pass over degraded nodes."""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from kube_balance.config import RebalancerConfig
from kube_balance.core.errors import ClusterListError
from kube_balance.core.events import EventRecorder
from kube_balance.core.events_model import RebalanceEvent
from kube_balance.core.models import (
    EvictionOutcome,
    Node,
    Pod,
    ReconcileResult,
    WorkloadProfile,
)
from kube_balance.core.repository import ClusterRepository
from kube_balance.executor.evictor import Evictor
from kube_balance.profiles.store import ProfileStore
from kube_balance.rebalancer.admission import AdmissionGate
from kube_balance.rebalancer.cooldown import CooldownRecorder
from kube_balance.rebalancer.owners import OwnerResolver
from kube_balance.rebalancer.qos import classify_qos
from kube_balance.rebalancer.ranking import profile_for, rank_candidates

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _NodeOutcome:
    evicted: int = 0
    rate_limited: bool = False
    cancelled: bool = False


class PodRebalancer:
    """
    Moves pods off degraded nodes, one cycle at a time.

    Per cycle:
    1. Skip if no profiles are cached or no node is degraded
    2. For each degraded node, rank its running/pending pods
    3. Walk the ranking through the admission gate
    4. Evict admitted pods up to the per-node cap
    5. Put the owner of each evicted pod into cooldown

    Cycles are not run concurrently; the caller serializes them.
    """

    def __init__(
        self,
        *,
        repository: ClusterRepository,
        profiles: ProfileStore,
        recorder: EventRecorder,
        config: Optional[RebalancerConfig] = None,
        evictor: Optional[Evictor] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.config = config or RebalancerConfig()
        self._repo = repository
        self._profiles = profiles
        self._recorder = recorder
        self._clock = clock

        self.evictor = evictor or Evictor(
            repository, grace_period_seconds=self.config.eviction_grace_period_seconds
        )
        self.gate = AdmissionGate(
            repository,
            OwnerResolver(repository),
            recorder,
            cooldown_annotation=self.config.cooldown_annotation,
        )
        self.cooldowns = CooldownRecorder(
            repository,
            recorder,
            self.config.recheck_interval,
            annotation=self.config.cooldown_annotation,
        )

    # -------------------------
    # ENTRY POINT
    # -------------------------

    def reconcile(self, cancel: Optional[threading.Event] = None) -> ReconcileResult:
        """
        Run one rebalance cycle.

        Args:
            cancel: Set to abort; evictions already issued are reported

        Returns:
            ReconcileResult telling the caller when to run again
        """
        profiles = self._profiles.get_all()
        if not profiles:
            logger.info(
                "[rebalancer] No workload profiles found, skipping rebalancing; "
                "ensure WorkloadProfile custom resources are created"
            )
            return self._recheck()

        if self._cancelled(cancel):
            return self._recheck(cancelled=True)

        try:
            nodes = self._repo.list_nodes()
        except ClusterListError as e:
            logger.error(f"[rebalancer] Failed to list nodes: {e}")
            return self._recheck(error=str(e))

        degraded = self._degraded_nodes(nodes)
        if not degraded:
            logger.debug("[rebalancer] No degraded nodes found, skipping rebalancing")
            return self._recheck()

        if self._cancelled(cancel):
            return self._recheck(cancelled=True)

        try:
            pods = self._repo.list_pods()
        except ClusterListError as e:
            logger.error(f"[rebalancer] Failed to list pods: {e}")
            return self._recheck(error=str(e))

        evicted: List[str] = []

        for node in degraded:
            logger.info(f"[rebalancer] Processing degraded node {node.name}")

            candidates = [p for p in pods if p.node_name == node.name and p.is_active()]
            if not candidates:
                logger.debug(f"[rebalancer] No running pods found on degraded node {node.name}")
                continue

            ranked = rank_candidates(candidates, profiles, self.config.workload_type_label)
            outcome = self._process_node(node, ranked, profiles, evicted, cancel)

            if outcome.rate_limited:
                return ReconcileResult(
                    requeue_after=self.config.rate_limited_requeue,
                    evicted=tuple(evicted),
                    rate_limited=True,
                )

            if outcome.cancelled:
                return self._recheck(evicted, cancelled=True)

            if outcome.evicted and self.config.single_eviction_per_cycle:
                return ReconcileResult(
                    requeue_after=self.config.post_eviction_requeue,
                    evicted=tuple(evicted),
                )

        if evicted:
            return ReconcileResult(
                requeue_after=self.config.post_eviction_requeue,
                evicted=tuple(evicted),
            )

        return self._recheck()

    # -------------------------
    # PER NODE
    # -------------------------

    def _process_node(
        self,
        node: Node,
        ranked: List[Pod],
        profiles: Dict[str, WorkloadProfile],
        evicted: List[str],
        cancel: Optional[threading.Event],
    ) -> _NodeOutcome:
        outcome = _NodeOutcome()
        cap = self.config.max_evictions_per_node_per_cycle

        for pod in ranked:
            if outcome.evicted >= cap:
                logger.debug(
                    f"[rebalancer] Reached max evictions for node {node.name} "
                    f"in the current cycle (maxEvictions={cap})"
                )
                break

            if self._cancelled(cancel):
                outcome.cancelled = True
                break

            profile = profile_for(pod, profiles, self.config.workload_type_label)
            if profile is None and not self.config.evict_unprofiled:
                logger.debug(
                    f"[rebalancer] Pod {pod.key} has no defined workload profile, "
                    f"skipping eviction consideration"
                )
                continue

            decision = self.gate.evaluate(pod, self._clock())
            if not decision.admitted:
                continue

            logger.info(
                f"[rebalancer] Attempting to evict pod {pod.key} from degraded node {node.name} "
                f"(workloadType={pod.labels.get(self.config.workload_type_label)}, "
                f"qosClass={classify_qos(pod).value}, "
                f"evictionPriority={profile.eviction_priority if profile else None})"
            )

            result = self.evictor.evict(pod)

            if result.outcome is EvictionOutcome.RATE_LIMITED:
                logger.info(f"[rebalancer] Too many eviction requests, backing off ({pod.key})")
                self._recorder.record(RebalanceEvent.eviction_rate_limited(pod))
                outcome.rate_limited = True
                break

            if result.outcome is EvictionOutcome.FAILED:
                self._recorder.record(RebalanceEvent.eviction_failed(pod, result.error or "unknown error"))
                continue

            logger.info(f"[rebalancer] ✅ Successfully evicted pod {pod.key}")
            self._recorder.record(RebalanceEvent.pod_evicted(pod, node.name))
            outcome.evicted += 1
            evicted.append(pod.key)

            if decision.owner is not None:
                self.cooldowns.record(decision.owner, self._clock())

            if self.config.single_eviction_per_cycle:
                break

        return outcome

    # -------------------------
    # HELPERS
    # -------------------------

    def _degraded_nodes(self, nodes: List[Node]) -> List[Node]:
        degraded = []
        for node in nodes:
            if node.has_annotation(self.config.degraded_annotation):
                logger.debug(f"[rebalancer] Identified degraded node {node.name}")
                self._recorder.record(RebalanceEvent.node_degraded(node))
                degraded.append(node)
        return degraded

    def _recheck(
        self,
        evicted: Optional[List[str]] = None,
        *,
        cancelled: bool = False,
        error: Optional[str] = None,
    ) -> ReconcileResult:
        return ReconcileResult(
            requeue_after=self.config.recheck_interval,
            evicted=tuple(evicted or ()),
            cancelled=cancelled,
            error=error,
        )

    @staticmethod
    def _cancelled(cancel: Optional[threading.Event]) -> bool:
        return cancel is not None and cancel.is_set()
