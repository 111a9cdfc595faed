#tests\test_admission.py

"""Test the admission gate (cooldown then disruption budgets)."""

import pytest

from conftest import make_budget, make_owner, make_pod
from kube_balance.core.events_model import EVENT_NORMAL, EVENT_WARNING
from kube_balance.core.models import LabelSelector, LabelSelectorRequirement, OwnerKind
from kube_balance.rebalancer.admission import (
    REJECT_COOLDOWN,
    REJECT_DISRUPTION_BUDGET,
    AdmissionGate,
)
from kube_balance.rebalancer.cooldown import COOLDOWN_ANNOTATION
from kube_balance.rebalancer.owners import OwnerResolver


@pytest.fixture
def gate(repo, recorder):
    return AdmissionGate(repo, OwnerResolver(repo), recorder)


class TestCooldownCheck:
    """Test cooldown rejection."""

    def test_admits_pod_without_owner(self, gate, now):
        """Test bare pod with no budgets is admitted."""
        decision = gate.evaluate(make_pod("p"), now)

        assert decision.admitted
        assert decision.owner is None

    def test_rejects_owner_in_cooldown(self, repo, recorder, gate, now):
        """Test owner with future deadline rejects and emits EvictionSkipped."""
        owner = repo.add_owner(
            make_owner("web", annotations={COOLDOWN_ANNOTATION: "2024-05-01T12:03:00Z"})
        )

        decision = gate.evaluate(make_pod("web-1", owner=owner), now)

        assert not decision.admitted
        assert decision.rejection == REJECT_COOLDOWN
        assert decision.owner.name == "web"
        assert recorder.reasons() == ["EvictionSkipped"]
        assert "2024-05-01T12:03:00Z" in recorder.events[0].message

    def test_cooldown_rejection_skips_budget_listing(self, repo, gate, now):
        """Test budgets are not listed once cooldown rejects."""
        owner = repo.add_owner(
            make_owner("web", annotations={COOLDOWN_ANNOTATION: "2024-05-01T12:03:00Z"})
        )

        gate.evaluate(make_pod("web-1", owner=owner), now)

        assert repo.calls["list_disruption_budgets"] == 0

    def test_admits_expired_cooldown(self, repo, gate, now):
        """Test past deadline does not reject and returns the owner."""
        owner = repo.add_owner(
            make_owner("web", annotations={COOLDOWN_ANNOTATION: "2024-05-01T11:00:00Z"})
        )

        decision = gate.evaluate(make_pod("web-1", owner=owner), now)

        assert decision.admitted
        assert decision.owner.name == "web"

    def test_owner_lookup_failure_fails_open(self, repo, gate, now):
        """Test unresolvable owner skips only the cooldown check."""
        pod = make_pod("web-1", owner=make_owner("missing"))

        decision = gate.evaluate(pod, now)

        assert decision.admitted
        assert decision.owner is None
        assert repo.calls["list_disruption_budgets"] == 1

    def test_replica_set_cooldown_read_from_deployment(self, repo, gate, now):
        """Test cooldown of the parent Deployment applies to ReplicaSet pods."""
        deployment = repo.add_owner(
            make_owner("web", annotations={COOLDOWN_ANNOTATION: "2024-05-01T12:03:00Z"})
        )
        rs = repo.add_owner(make_owner("web-abc", kind=OwnerKind.REPLICA_SET, parent=deployment))

        decision = gate.evaluate(make_pod("web-abc-1", owner=rs), now)

        assert decision.rejection == REJECT_COOLDOWN


class TestDisruptionBudgetCheck:
    """Test disruption budget rejection."""

    def test_matching_budget_with_zero_allowed_rejects(self, repo, recorder, gate, now):
        """Test zero disruptions allowed rejects with PDBViolation."""
        repo.add_budget(make_budget("web-pdb", match_labels={"app": "web"}))

        decision = gate.evaluate(make_pod("web-1", labels={"app": "web"}), now)

        assert not decision.admitted
        assert decision.rejection == REJECT_DISRUPTION_BUDGET
        assert "web-pdb" in decision.message
        assert recorder.reasons() == ["PDBViolation"]
        assert recorder.events[0].event_type == EVENT_NORMAL

    def test_budget_with_room_admits(self, repo, gate, now):
        """Test positive disruptions allowed admits."""
        repo.add_budget(make_budget("web-pdb", match_labels={"app": "web"}, disruptions_allowed=1))

        assert gate.evaluate(make_pod("web-1", labels={"app": "web"}), now).admitted

    def test_non_matching_budget_admits(self, repo, gate, now):
        """Test budget for other labels is ignored."""
        repo.add_budget(make_budget("db-pdb", match_labels={"app": "db"}))

        assert gate.evaluate(make_pod("web-1", labels={"app": "web"}), now).admitted

    def test_other_namespace_ignored(self, repo, gate, now):
        """Test only budgets in the pod's namespace apply."""
        repo.add_budget(make_budget("web-pdb", namespace="other", match_labels={"app": "web"}))

        assert gate.evaluate(make_pod("web-1", labels={"app": "web"}), now).admitted

    def test_budget_without_selector_ignored(self, repo, gate, now):
        """Test budget without selector matches nothing."""
        repo.add_budget(make_budget("empty"))

        assert gate.evaluate(make_pod("web-1"), now).admitted

    def test_empty_selector_matches_every_pod(self, repo, gate, now):
        """Test empty selector covers the whole namespace."""
        repo.add_budget(make_budget("all", selector=LabelSelector()))

        assert not gate.evaluate(make_pod("web-1"), now).admitted

    def test_malformed_selector_skipped(self, repo, gate, now):
        """Test invalid selector is skipped, not fatal."""
        bad = LabelSelector(
            match_expressions=(LabelSelectorRequirement("app", "Like", ("web",)),)
        )
        repo.add_budget(make_budget("bad", selector=bad))
        repo.add_budget(make_budget("ok", match_labels={"app": "db"}))

        assert gate.evaluate(make_pod("web-1", labels={"app": "web"}), now).admitted

    def test_budget_list_failure_rejects(self, repo, recorder, gate, now):
        """Test failure to list budgets rejects the candidate."""
        repo.list_budgets_errors["default"] = RuntimeError("timeout")

        decision = gate.evaluate(make_pod("web-1"), now)

        assert not decision.admitted
        assert decision.rejection == REJECT_DISRUPTION_BUDGET
        assert "failed to list PodDisruptionBudgets" in decision.message
        assert recorder.reasons() == ["PDBViolation"]
        assert recorder.events[0].event_type == EVENT_WARNING
