#tests\test_worker.py

"""Test the rebalance worker loop."""

import threading
from datetime import timedelta
from unittest.mock import MagicMock

from kube_balance.config import RebalancerConfig
from kube_balance.core.models import ReconcileResult
from kube_balance.worker import RebalanceWorker


def fake_rebalancer(*results):
    rebalancer = MagicMock()
    rebalancer.config = RebalancerConfig()
    rebalancer.reconcile.side_effect = list(results)
    return rebalancer


class TestRunOnce:
    """Test single cycle scheduling."""

    def test_returns_requested_delay(self):
        """Test the cycle's requeue_after is used as the next delay."""
        worker = RebalanceWorker(fake_rebalancer(
            ReconcileResult(requeue_after=timedelta(seconds=5), evicted=("default/a",))
        ))

        assert worker.run_once() == timedelta(seconds=5)
        assert worker.cycles == 1

    def test_passes_stop_event_as_cancel(self):
        """Test the stop event cancels the running cycle."""
        rebalancer = fake_rebalancer(ReconcileResult(requeue_after=timedelta(seconds=1)))
        worker = RebalanceWorker(rebalancer)

        worker.run_once()

        cancel = rebalancer.reconcile.call_args.kwargs["cancel"]
        assert isinstance(cancel, threading.Event)
        assert not cancel.is_set()
        worker.stop()
        assert cancel.is_set()

    def test_unexpected_error_backs_off(self):
        """Test an exception inside a cycle waits the recheck interval."""
        worker = RebalanceWorker(fake_rebalancer(RuntimeError("boom")))

        assert worker.run_once() == timedelta(minutes=2)


class TestStart:
    """Test the blocking loop."""

    def test_loop_stops_on_request(self):
        """Test start() returns once stop() is called and stops the watcher."""
        watcher = MagicMock()
        watcher.wait_until_synced.return_value = True
        rebalancer = MagicMock()
        rebalancer.config = RebalancerConfig()
        worker = RebalanceWorker(rebalancer, watcher=watcher)

        def reconcile(cancel):
            if worker.cycles >= 3:
                worker.stop()
            return ReconcileResult(requeue_after=timedelta(0))

        rebalancer.reconcile.side_effect = reconcile

        thread = threading.Thread(target=worker.start, kwargs={"install_signal_handlers": False})
        thread.start()
        thread.join(timeout=5)

        assert not thread.is_alive()
        assert worker.cycles == 3
        watcher.start.assert_called_once()
        watcher.stop.assert_called_once()
