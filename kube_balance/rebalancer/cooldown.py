# kube_balance/rebalancer/cooldown.py
"""Owner cooldown deadlines (stored as an RFC 3339 annotation)."""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from kube_balance.core.errors import OwnerPatchError
from kube_balance.core.events import EventRecorder
from kube_balance.core.events_model import RebalanceEvent
from kube_balance.core.models import Owner
from kube_balance.core.repository import ClusterRepository

logger = logging.getLogger(__name__)

COOLDOWN_ANNOTATION = "kube-balance.io/eviction-cooldown-until"

ONE_SECOND = timedelta(seconds=1)

_FRACTION = re.compile(r"\.(\d+)")


def format_deadline(value: datetime) -> str:
    """RFC 3339, UTC, second precision."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_deadline(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp. Returns None if it cannot be parsed."""
    if not value:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    # fromisoformat on 3.10 only takes 3 or 6 fractional digits
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return None
    return parsed.astimezone(timezone.utc)


def cooldown_deadline(owner: Owner, annotation: str = COOLDOWN_ANNOTATION) -> Optional[datetime]:
    return parse_deadline(owner.annotations.get(annotation))


def active_cooldown(
    owner: Owner,
    now: datetime,
    annotation: str = COOLDOWN_ANNOTATION,
) -> Optional[datetime]:
    """Deadline if the owner is still cooling down at `now`, else None."""
    deadline = cooldown_deadline(owner, annotation)
    if deadline is not None and now < deadline:
        return deadline
    return None


def next_deadline(
    now: datetime,
    recheck_interval: timedelta,
    previous: Optional[datetime] = None,
) -> datetime:
    """
    now + 2x recheck interval, truncated to whole seconds and always
    strictly later than `previous`.
    """
    deadline = (now + 2 * recheck_interval).astimezone(timezone.utc).replace(microsecond=0)
    if previous is not None and deadline <= previous:
        deadline = previous.replace(microsecond=0) + ONE_SECOND
    return deadline


class CooldownRecorder:
    """Writes the cooldown annotation on an owner after an eviction."""

    def __init__(
        self,
        repository: ClusterRepository,
        recorder: EventRecorder,
        recheck_interval: timedelta,
        annotation: str = COOLDOWN_ANNOTATION,
    ):
        self._repo = repository
        self._recorder = recorder
        self.recheck_interval = recheck_interval
        self.annotation = annotation

    def record(self, owner: Owner, now: datetime) -> Optional[datetime]:
        """
        Set the owner's cooldown deadline.

        Failure is logged and reported as an event; it never undoes the
        eviction that triggered it.

        Returns:
            The deadline written, or None if the patch failed
        """
        deadline = next_deadline(
            now,
            self.recheck_interval,
            previous=cooldown_deadline(owner, self.annotation),
        )
        value = format_deadline(deadline)

        try:
            self._repo.patch_owner_annotations(owner, {self.annotation: value})
        except OwnerPatchError as e:
            logger.error(
                f"[cooldown] Failed to add eviction cooldown annotation to owner "
                f"{owner.namespace}/{owner.name}: {e}"
            )
            self._recorder.record(RebalanceEvent.cooldown_failed(owner, str(e)))
            return None

        owner.annotations[self.annotation] = value
        logger.debug(f"[cooldown] Owner {owner.key} cooling down until {value}")
        self._recorder.record(RebalanceEvent.cooldown_set(owner, value))
        return deadline
