#tests\test_events.py

"""Test event models and recorders."""

import logging

import pytest

from conftest import make_node, make_owner, make_pod
from kube_balance.core.events import (
    ALLOWED_REASONS,
    InMemoryEventRecorder,
    LoggingEventRecorder,
    MultiEventRecorder,
)
from kube_balance.core.events_model import EVENT_NORMAL, EVENT_WARNING, RebalanceEvent


class TestRebalanceEvent:
    """Test event factories."""

    def test_factories_use_allowed_reasons(self):
        """Test every factory produces a reason from the closed set."""
        pod = make_pod("web-1")
        owner = make_owner("web")
        events = [
            RebalanceEvent.node_degraded(make_node("node-1", degraded=True)),
            RebalanceEvent.eviction_skipped(pod, owner, "2024-05-01T12:04:00Z"),
            RebalanceEvent.pdb_violation(pod, "no room"),
            RebalanceEvent.pdb_check_failed(pod, "timeout"),
            RebalanceEvent.pod_evicted(pod, "node-1"),
            RebalanceEvent.eviction_rate_limited(pod),
            RebalanceEvent.eviction_failed(pod, "boom"),
            RebalanceEvent.cooldown_set(owner, "2024-05-01T12:04:00Z"),
            RebalanceEvent.cooldown_failed(owner, "conflict"),
        ]

        assert {e.reason for e in events} == ALLOWED_REASONS

    def test_event_types(self):
        """Test decisions and policy rejections are Normal, failures are Warning."""
        pod = make_pod("web-1")
        owner = make_owner("web")

        assert RebalanceEvent.pod_evicted(pod, "node-1").event_type == EVENT_NORMAL
        assert RebalanceEvent.eviction_skipped(pod, owner, "x").event_type == EVENT_NORMAL
        assert RebalanceEvent.pdb_violation(pod, "no room").event_type == EVENT_NORMAL
        assert RebalanceEvent.pdb_check_failed(pod, "timeout").event_type == EVENT_WARNING
        assert RebalanceEvent.eviction_failed(pod, "boom").event_type == EVENT_WARNING

    def test_owner_event_references_apps_group(self):
        """Test owner events point at the apps/v1 object."""
        event = RebalanceEvent.cooldown_set(make_owner("web", namespace="shop"), "x")

        assert event.involved.kind == "Deployment"
        assert event.involved.namespace == "shop"
        assert event.involved.api_version == "apps/v1"


class TestRecorders:
    """Test recorder implementations."""

    def test_in_memory_rejects_unknown_reason(self, recorder):
        """Test reasons outside the closed set raise."""
        event = RebalanceEvent.pod_evicted(make_pod("p"), "node-1")
        event.reason = "Unknown"

        with pytest.raises(ValueError):
            recorder.record(event)

    def test_logging_levels(self, caplog):
        """Test Warning events log at WARNING, Normal at INFO."""
        pod = make_pod("web-1")

        with caplog.at_level(logging.INFO, logger="kube_balance.core.events"):
            LoggingEventRecorder().record(RebalanceEvent.pod_evicted(pod, "node-1"))
            LoggingEventRecorder().record(RebalanceEvent.eviction_rate_limited(pod))

        assert [r.levelno for r in caplog.records] == [logging.INFO, logging.WARNING]
        assert "PodEvicted" in caplog.records[0].getMessage()

    def test_multi_fans_out(self):
        """Test every wrapped recorder receives the event."""
        first, second = InMemoryEventRecorder(), InMemoryEventRecorder()

        MultiEventRecorder([first, second]).record(RebalanceEvent.pod_evicted(make_pod("p"), "node-1"))

        assert first.reasons() == ["PodEvicted"]
        assert second.reasons() == ["PodEvicted"]
