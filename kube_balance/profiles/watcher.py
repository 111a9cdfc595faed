# kube_balance/profiles/watcher.py
"""Background watch that keeps the profile store in sync with the cluster."""

import logging
import threading
from typing import Any, Callable, Optional

from kubernetes import watch
from kubernetes.client.exceptions import ApiException

from kube_balance.core.schemas import PROFILE_GROUP, PROFILE_PLURAL, PROFILE_VERSION
from kube_balance.profiles.consumer import ProfileEventConsumer

logger = logging.getLogger(__name__)

HTTP_GONE = 410


def _resource_version_of(obj: Any) -> Optional[str]:
    if isinstance(obj, dict):
        metadata = obj.get("metadata") or {}
        return metadata.get("resourceVersion")
    return None


class ProfileWatcher:
    """
    Watches WorkloadProfile custom resources.

    Lists once to seed the store, then streams changes from that
    resource version. A 410 Gone (expired resource version) triggers
    an immediate relist; any other failure relists after retry_delay.
    """

    def __init__(
        self,
        custom_api,
        consumer: ProfileEventConsumer,
        *,
        watch_timeout_seconds: int = 300,
        api_timeout_seconds: int = 30,
        retry_delay: float = 5.0,
        watch_factory: Optional[Callable[[], Any]] = None,
    ):
        self._custom_api = custom_api
        self._consumer = consumer
        self.watch_timeout_seconds = watch_timeout_seconds
        self.api_timeout_seconds = api_timeout_seconds
        self.retry_delay = retry_delay
        self._watch_factory = watch_factory or watch.Watch

        self._stop_event = threading.Event()
        self._synced = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._watch = None

    def start(self):
        """Start the watch loop in a daemon thread."""
        logger.info("[profiles] Starting WorkloadProfile watcher")
        self._thread = threading.Thread(
            target=self._run_loop, name="profile-watcher", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float = 5.0):
        logger.info("[profiles] Stopping WorkloadProfile watcher")
        self._stop_event.set()
        if self._watch is not None:
            self._watch.stop()
        if self._thread:
            self._thread.join(timeout)

    def wait_until_synced(self, timeout: Optional[float] = None) -> bool:
        """Block until the first list has been applied."""
        return self._synced.wait(timeout)

    @property
    def synced(self) -> bool:
        return self._synced.is_set()

    def _run_loop(self):
        while not self._stop_event.is_set():
            try:
                resource_version = self.relist()
                self._synced.set()
                self.watch_from(resource_version)
            except ApiException as e:
                if e.status == HTTP_GONE:
                    logger.info("[profiles] Watch expired, relisting")
                    continue
                logger.error(f"[profiles] Watch failed: {e.status} {e.reason}")
            except Exception as e:
                logger.error(f"[profiles] Error in watch loop: {e}", exc_info=True)

            self._stop_event.wait(self.retry_delay)

        logger.info("[profiles] WorkloadProfile watcher stopped")

    def relist(self) -> Optional[str]:
        """
        List all profiles and replace the cache.

        Returns:
            resourceVersion of the list, to watch from
        """
        response = self._custom_api.list_cluster_custom_object(
            group=PROFILE_GROUP,
            version=PROFILE_VERSION,
            plural=PROFILE_PLURAL,
            _request_timeout=self.api_timeout_seconds,
        )
        self._consumer.resync(response.get("items") or [])
        return (response.get("metadata") or {}).get("resourceVersion")

    def watch_from(self, resource_version: Optional[str]) -> None:
        """Stream events until stopped. Raises ApiException on watch errors."""
        while not self._stop_event.is_set():
            self._watch = self._watch_factory()
            stream = self._watch.stream(
                self._custom_api.list_cluster_custom_object,
                group=PROFILE_GROUP,
                version=PROFILE_VERSION,
                plural=PROFILE_PLURAL,
                resource_version=resource_version,
                timeout_seconds=self.watch_timeout_seconds,
                allow_watch_bookmarks=True,
            )
            for event in stream:
                if self._stop_event.is_set():
                    self._watch.stop()
                    return

                event_type = event.get("type")
                obj = event.get("object")

                if event_type == "ERROR":
                    status = obj if isinstance(obj, dict) else {}
                    raise ApiException(
                        status=status.get("code", 500),
                        reason=status.get("reason") or status.get("message"),
                    )

                self._consumer.apply(event_type, obj)
                resource_version = _resource_version_of(obj) or resource_version
