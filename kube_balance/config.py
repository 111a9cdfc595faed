#kube_balance\config.py

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from kube_balance.executor.evictor import GRACE_PERIOD_SECONDS
from kube_balance.rebalancer.cooldown import COOLDOWN_ANNOTATION
from kube_balance.rebalancer.ranking import WORKLOAD_TYPE_LABEL

DEGRADED_ANNOTATION = "kube-balance.io/degraded-io"


@dataclass(frozen=True)
class RebalancerConfig:
    """What a rebalance cycle needs to know."""

    recheck_interval: timedelta = timedelta(minutes=2)
    max_evictions_per_node_per_cycle: int = 1
    single_eviction_per_cycle: bool = True
    evict_unprofiled: bool = False

    post_eviction_requeue: timedelta = timedelta(seconds=5)
    rate_limited_requeue: timedelta = timedelta(seconds=10)
    eviction_grace_period_seconds: int = GRACE_PERIOD_SECONDS

    degraded_annotation: str = DEGRADED_ANNOTATION
    workload_type_label: str = WORKLOAD_TYPE_LABEL
    cooldown_annotation: str = COOLDOWN_ANNOTATION

    def __post_init__(self):
        if self.max_evictions_per_node_per_cycle < 1:
            raise ValueError("max_evictions_per_node_per_cycle must be at least 1")
        if self.recheck_interval <= timedelta(0):
            raise ValueError("recheck_interval must be positive")


class RebalancerSettings(BaseSettings):
    """Rebalancer configuration from environment variables (KUBE_BALANCE_*)."""

    model_config = SettingsConfigDict(
        env_prefix="KUBE_BALANCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Rebalancing policy
    recheck_interval_seconds: float = Field(default=120.0, gt=0)
    max_evictions_per_node_per_cycle: int = Field(default=1, ge=1)
    single_eviction_per_cycle: bool = True
    evict_unprofiled: bool = False

    # Backoff
    post_eviction_requeue_seconds: float = Field(default=5.0, gt=0)
    rate_limited_requeue_seconds: float = Field(default=10.0, gt=0)
    eviction_grace_period_seconds: int = Field(default=GRACE_PERIOD_SECONDS, ge=0)

    # Markers
    degraded_annotation: str = DEGRADED_ANNOTATION
    workload_type_label: str = WORKLOAD_TYPE_LABEL
    cooldown_annotation: str = COOLDOWN_ANNOTATION

    # Kubernetes client
    kubeconfig: Optional[str] = None
    kube_context: Optional[str] = None
    api_timeout_seconds: int = Field(default=30, gt=0)
    watch_timeout_seconds: int = Field(default=300, gt=0)
    event_source: str = "kube-balance-controller"

    log_level: str = "INFO"

    def to_config(self) -> RebalancerConfig:
        return RebalancerConfig(
            recheck_interval=timedelta(seconds=self.recheck_interval_seconds),
            max_evictions_per_node_per_cycle=self.max_evictions_per_node_per_cycle,
            single_eviction_per_cycle=self.single_eviction_per_cycle,
            evict_unprofiled=self.evict_unprofiled,
            post_eviction_requeue=timedelta(seconds=self.post_eviction_requeue_seconds),
            rate_limited_requeue=timedelta(seconds=self.rate_limited_requeue_seconds),
            eviction_grace_period_seconds=self.eviction_grace_period_seconds,
            degraded_annotation=self.degraded_annotation,
            workload_type_label=self.workload_type_label,
            cooldown_annotation=self.cooldown_annotation,
        )
