# kube_balance/executor/evictor.py
"""Evictor - issues graceful pod evictions and classifies the result."""

import logging
from dataclasses import dataclass
from typing import Optional

from kube_balance.core.errors import EvictionError, EvictionRateLimitedError
from kube_balance.core.models import EvictionOutcome, Pod
from kube_balance.core.repository import ClusterRepository

logger = logging.getLogger(__name__)

GRACE_PERIOD_SECONDS = 30


@dataclass(frozen=True)
class EvictionResult:
    pod_key: str
    outcome: EvictionOutcome
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is EvictionOutcome.EVICTED


class Evictor:
    """
    Soft-evicts pods through the Eviction API so their owners
    recreate them elsewhere.
    """

    def __init__(
        self,
        repository: ClusterRepository,
        grace_period_seconds: int = GRACE_PERIOD_SECONDS,
    ):
        self._repo = repository
        self.grace_period_seconds = grace_period_seconds

    def evict(self, pod: Pod) -> EvictionResult:
        """
        Request eviction of one pod.

        Args:
            pod: Pod to evict

        Returns:
            EvictionResult - EVICTED, RATE_LIMITED (429) or FAILED
        """
        logger.info(
            f"[evictor] Attempting to evict pod {pod.key} from node {pod.node_name}"
        )

        try:
            self._repo.evict_pod(pod, self.grace_period_seconds)
        except EvictionRateLimitedError as e:
            logger.warning(f"[evictor] Too many eviction requests for {pod.key}: {e}")
            return EvictionResult(pod.key, EvictionOutcome.RATE_LIMITED, str(e))
        except EvictionError as e:
            logger.error(f"[evictor] ❌ Failed to create eviction for pod {pod.key}: {e}")
            return EvictionResult(pod.key, EvictionOutcome.FAILED, str(e))

        logger.info(f"[evictor] ✅ Eviction request sent for pod {pod.key}")
        return EvictionResult(pod.key, EvictionOutcome.EVICTED)
