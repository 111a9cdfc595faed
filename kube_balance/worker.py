# kube_balance/worker.py
"""
Rebalance Worker - runs rebalance cycles until stopped.

Sleeps between cycles for whatever the last cycle asked for:
the recheck interval, a short delay after an eviction, or a
backoff after the API server rate-limited us.
"""

import logging
import signal
import threading
from datetime import timedelta
from typing import Optional

from kube_balance.core.models import ReconcileResult
from kube_balance.profiles.watcher import ProfileWatcher
from kube_balance.rebalancer.cycle import PodRebalancer

logger = logging.getLogger(__name__)


class RebalanceWorker:
    """
    Background loop around PodRebalancer.

    Cycles run one at a time on the calling thread. The stop event
    doubles as the cancellation token of the running cycle.
    """

    def __init__(
        self,
        rebalancer: PodRebalancer,
        watcher: Optional[ProfileWatcher] = None,
        sync_timeout: float = 30.0,
        error_backoff: Optional[timedelta] = None,
    ):
        self.rebalancer = rebalancer
        self.watcher = watcher
        self.sync_timeout = sync_timeout
        self.error_backoff = error_backoff or rebalancer.config.recheck_interval
        self._stop_event = threading.Event()
        self.cycles = 0

    def start(self, install_signal_handlers: bool = True):
        """Start the worker loop (blocks until stopped)."""
        logger.info("=" * 80)
        logger.info("🚀 KUBE-BALANCE REBALANCER STARTED")
        logger.info("=" * 80)
        logger.info(f"Recheck interval: {self.rebalancer.config.recheck_interval.total_seconds()}s")
        logger.info(f"Max evictions per node per cycle: {self.rebalancer.config.max_evictions_per_node_per_cycle}")
        logger.info(f"Single eviction per cycle: {self.rebalancer.config.single_eviction_per_cycle}")
        logger.info("=" * 80)

        if install_signal_handlers:
            signal.signal(signal.SIGINT, self._signal_handler)
            signal.signal(signal.SIGTERM, self._signal_handler)

        if self.watcher is not None:
            self.watcher.start()
            if not self.watcher.wait_until_synced(self.sync_timeout):
                logger.warning(
                    f"Profile cache not synced after {self.sync_timeout}s, starting anyway"
                )

        while not self._stop_event.is_set():
            delay = self.run_once()
            if not self._stop_event.is_set():
                self._stop_event.wait(delay.total_seconds())

        if self.watcher is not None:
            self.watcher.stop()

        logger.info("Rebalance Worker stopped")

    def stop(self):
        """Request shutdown; the running cycle is cancelled."""
        logger.info("Stopping rebalance worker...")
        self._stop_event.set()

    def run_once(self) -> timedelta:
        """
        Run a single cycle.

        Returns:
            How long to wait before the next cycle
        """
        self.cycles += 1
        try:
            result = self.rebalancer.reconcile(cancel=self._stop_event)
        except Exception as e:
            logger.error(f"Error in rebalance cycle: {e}", exc_info=True)
            return self.error_backoff

        self._log_result(result)
        return result.requeue_after

    def _log_result(self, result: ReconcileResult):
        if result.error:
            logger.warning(f"Cycle {self.cycles} aborted: {result.error}")
        if result.evicted:
            logger.info(f"Cycle {self.cycles} evicted: {', '.join(result.evicted)}")
        if result.rate_limited:
            logger.info(f"Cycle {self.cycles} rate limited, backing off")
        logger.debug(
            f"Cycle {self.cycles} done, next in {result.requeue_after.total_seconds()}s"
        )

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals."""
        logger.info(f"Received signal {signum}, stopping...")
        self.stop()
