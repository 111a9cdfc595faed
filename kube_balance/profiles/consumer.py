# kube_balance/profiles/consumer.py
"""Applies WorkloadProfile change events to the profile store."""

import logging
from typing import Any, Iterable, List

from kube_balance.core.errors import MalformedProfileError
from kube_balance.core.models import WorkloadProfile
from kube_balance.core.schemas import decode_profile
from kube_balance.profiles.store import ProfileStore

logger = logging.getLogger(__name__)


EVENT_ADDED = "ADDED"
EVENT_MODIFIED = "MODIFIED"
EVENT_DELETED = "DELETED"
EVENT_BOOKMARK = "BOOKMARK"


class ProfileEventConsumer:
    """
    Message consumer for the profile store.

    Malformed payloads are logged and dropped; nothing here raises
    back into the event source.
    """

    def __init__(self, store: ProfileStore):
        self._store = store

    def apply(self, event_type: str, obj: Any) -> None:
        """Dispatch one watch event."""
        if event_type == EVENT_ADDED:
            self.on_add(obj)
        elif event_type == EVENT_MODIFIED:
            self.on_update(obj)
        elif event_type == EVENT_DELETED:
            self.on_delete(obj)
        elif event_type == EVENT_BOOKMARK:
            pass
        else:
            logger.warning(f"[profiles] Ignoring unknown event type {event_type!r}")

    def on_add(self, obj: Any) -> None:
        profile = self._decode(obj, "add")
        if profile is None:
            return
        self._store.upsert(profile)
        logger.debug(f"[profiles] Added workload profile to cache: {profile.name}")

    def on_update(self, obj: Any) -> None:
        profile = self._decode(obj, "update")
        if profile is None:
            return
        self._store.upsert(profile)
        logger.debug(f"[profiles] Updated workload profile in cache: {profile.name}")

    def on_delete(self, obj: Any) -> None:
        profile = self._decode(obj, "delete")
        if profile is None:
            return
        self._store.remove(profile.name)
        logger.debug(f"[profiles] Deleted workload profile from cache: {profile.name}")

    def resync(self, objs: Iterable[Any]) -> int:
        """
        Replace the cache with the result of a full list.

        Returns:
            Number of profiles now cached
        """
        profiles: List[WorkloadProfile] = []
        for obj in objs:
            profile = self._decode(obj, "list")
            if profile is not None:
                profiles.append(profile)
        self._store.replace_all(profiles)
        logger.info(f"[profiles] Resynced {len(profiles)} workload profile(s)")
        return len(profiles)

    def _decode(self, obj: Any, action: str):
        try:
            return decode_profile(obj)
        except MalformedProfileError as e:
            logger.error(f"[profiles] Failed to decode object for {action} event: {e}")
            return None
