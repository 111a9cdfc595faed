#tests\test_evictor.py

"""Test eviction requests."""

from conftest import make_pod
from kube_balance.core.errors import EvictionFailedError, EvictionRateLimitedError
from kube_balance.core.models import EvictionOutcome
from kube_balance.executor.evictor import GRACE_PERIOD_SECONDS, Evictor


class TestEvictor:
    """Test Evictor.evict outcome classification."""

    def test_success(self, repo):
        """Test accepted eviction with default grace period."""
        pod = repo.add_pod(make_pod("web-1"))

        result = Evictor(repo).evict(pod)

        assert result.succeeded
        assert result.outcome is EvictionOutcome.EVICTED
        assert repo.evicted == [("default/web-1", GRACE_PERIOD_SECONDS)]

    def test_custom_grace_period(self, repo):
        """Test grace period is passed through."""
        pod = repo.add_pod(make_pod("web-1"))

        Evictor(repo, grace_period_seconds=5).evict(pod)

        assert repo.evicted == [("default/web-1", 5)]

    def test_rate_limited(self, repo):
        """Test 429 maps to RATE_LIMITED."""
        pod = repo.add_pod(make_pod("web-1"))
        repo.eviction_errors[pod.key] = EvictionRateLimitedError("429 Too Many Requests")

        result = Evictor(repo).evict(pod)

        assert result.outcome is EvictionOutcome.RATE_LIMITED
        assert not result.succeeded
        assert "429" in result.error

    def test_failure(self, repo):
        """Test any other error maps to FAILED."""
        pod = repo.add_pod(make_pod("web-1"))
        repo.eviction_errors[pod.key] = EvictionFailedError("500 Internal Server Error")

        result = Evictor(repo).evict(pod)

        assert result.outcome is EvictionOutcome.FAILED
        assert repo.evicted == []
