# kube_balance/rebalancer/admission.py
"""Admission gate - filters ranked candidates by cooldown and disruption budgets."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from kube_balance.core.errors import ClusterListError, InvalidSelectorError, OwnerLookupError
from kube_balance.core.events import EventRecorder
from kube_balance.core.events_model import RebalanceEvent
from kube_balance.core.models import Owner, Pod
from kube_balance.core.repository import ClusterRepository
from kube_balance.rebalancer.cooldown import COOLDOWN_ANNOTATION, active_cooldown, format_deadline
from kube_balance.rebalancer.owners import OwnerResolver
from kube_balance.rebalancer.selectors import selector_matches

logger = logging.getLogger(__name__)


REJECT_COOLDOWN = "cooldown"
REJECT_DISRUPTION_BUDGET = "disruption_budget"


@dataclass(frozen=True)
class AdmissionDecision:
    """Result of running one candidate through the gate."""

    admitted: bool
    owner: Optional[Owner] = None
    rejection: Optional[str] = None
    message: str = ""


class AdmissionGate:
    """
    Two checks, in order, stopping at the first rejection:

    1. Cooldown: the owner's cooldown deadline must have passed.
       Owner lookup failure skips this check (fail-open).
    2. Disruption budget: no matching budget may have zero disruptions
       allowed. Malformed selectors are skipped; a failed budget list
       rejects the candidate.
    """

    def __init__(
        self,
        repository: ClusterRepository,
        owner_resolver: OwnerResolver,
        recorder: EventRecorder,
        cooldown_annotation: str = COOLDOWN_ANNOTATION,
    ):
        self._repo = repository
        self._owners = owner_resolver
        self._recorder = recorder
        self.cooldown_annotation = cooldown_annotation

    def evaluate(self, pod: Pod, now: datetime) -> AdmissionDecision:
        """
        Decide whether the pod may be evicted at `now`.

        Args:
            pod: Ranked candidate
            now: Check time (UTC)

        Returns:
            AdmissionDecision carrying the resolved owner, if any
        """
        owner = self._resolve_owner(pod)

        if owner is not None:
            deadline = active_cooldown(owner, now, self.cooldown_annotation)
            if deadline is not None:
                until = format_deadline(deadline)
                logger.debug(
                    f"[admission] Pod owner is in eviction cooldown period, skipping pod "
                    f"{pod.key} (owner={owner.name}, cooldownUntil={until})"
                )
                self._recorder.record(RebalanceEvent.eviction_skipped(pod, owner, until))
                return AdmissionDecision(
                    admitted=False,
                    owner=owner,
                    rejection=REJECT_COOLDOWN,
                    message=f"owner {owner.name} in cooldown until {until}",
                )

        try:
            violation = self.check_disruption_budgets(pod)
        except ClusterListError as e:
            violation = str(e)
            logger.error(f"[admission] PDB check failed for pod {pod.key}, not evicting: {violation}")
            self._recorder.record(RebalanceEvent.pdb_check_failed(pod, violation))
            return AdmissionDecision(
                admitted=False,
                owner=owner,
                rejection=REJECT_DISRUPTION_BUDGET,
                message=violation,
            )

        if violation is not None:
            logger.debug(f"[admission] Pod {pod.key} cannot be evicted due to PDB violation: {violation}")
            self._recorder.record(RebalanceEvent.pdb_violation(pod, violation))
            return AdmissionDecision(
                admitted=False,
                owner=owner,
                rejection=REJECT_DISRUPTION_BUDGET,
                message=violation,
            )

        return AdmissionDecision(admitted=True, owner=owner)

    def check_disruption_budgets(self, pod: Pod) -> Optional[str]:
        """
        Check PodDisruptionBudgets in the pod's namespace.

        Returns:
            Reason the eviction would be unsafe, or None if it is allowed

        Raises:
            ClusterListError: budgets could not be listed
        """
        budgets = self._repo.list_disruption_budgets(pod.namespace)

        for budget in budgets:
            try:
                matches = selector_matches(budget.selector, pod.labels)
            except InvalidSelectorError as e:
                logger.error(f"[admission] Invalid PDB selector on {budget.namespace}/{budget.name}: {e}")
                continue

            if matches and budget.disruptions_allowed == 0:
                return (
                    f"eviction would violate PodDisruptionBudget {budget.name} "
                    f"(disruptionsAllowed: 0)"
                )

        return None

    def _resolve_owner(self, pod: Pod) -> Optional[Owner]:
        try:
            return self._owners.resolve(pod)
        except OwnerLookupError as e:
            logger.error(
                f"[admission] Failed to get pod owner, skipping cooldown check for {pod.key}: {e}"
            )
            return None
