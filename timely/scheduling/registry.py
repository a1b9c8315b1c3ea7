"""
Scheduled items and the registry of live trigger registrations.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from threading import Lock
from typing import Any, Callable, Dict, List, Optional

from timely.utils.instants import utc_now
from .builder import Schedule


#######################################################################
## Data Classes
#######################################################################

@dataclass(frozen=True)
class ScheduledItem:
    """A schedule paired with the work it runs.

    id identifies the item across its lifetime. insert_time is a change
    token: resubmitting the same id with a different insert_time is an update.
    """
    id: str
    schedule: Schedule
    work: Callable[[], Any]
    insert_time: Any


@dataclass(frozen=True)
class RegistryEntry:
    """A live registration owned by the lifecycle manager."""
    id: str
    insert_time: Any
    trigger_handle: Any
    cron: str
    registered_at: datetime = field(default_factory=utc_now)


def scheduled_item(
    schedule: Schedule,
    work: Callable[[], Any],
    id: Optional[str] = None,
    insert_time: Any = None,
) -> ScheduledItem:
    """Create a scheduled item.

    Args:
        schedule: Schedule describing when work runs
        work: Zero-argument callable invoked on each fire
        id: Optional stable id, needed to update or remove the item later
            (a random UUID is generated when omitted)
        insert_time: Optional explicit change token (defaults to now)
    """
    return ScheduledItem(
        id=id if id is not None else str(uuid.uuid4()),
        schedule=schedule,
        work=work,
        insert_time=insert_time if insert_time is not None else utc_now(),
    )


#######################################################################
## Registry Implementation
#######################################################################

class ScheduleRegistry:
    """Mapping of schedule id to RegistryEntry with serialized access."""

    def __init__(self):
        self._entries: Dict[str, RegistryEntry] = {}
        self._lock = Lock()

    def get(self, schedule_id: str) -> Optional[RegistryEntry]:
        with self._lock:
            return self._entries.get(schedule_id)

    def put(self, entry: RegistryEntry) -> Optional[RegistryEntry]:
        """Store an entry, returning the one it replaced (if any)."""
        with self._lock:
            previous = self._entries.get(entry.id)
            self._entries[entry.id] = entry
            return previous

    def pop(self, schedule_id: str) -> Optional[RegistryEntry]:
        with self._lock:
            return self._entries.pop(schedule_id, None)

    def pop_if(self, schedule_id: str, trigger_handle: Any) -> Optional[RegistryEntry]:
        """Remove an entry only if it still holds the given trigger handle."""
        with self._lock:
            entry = self._entries.get(schedule_id)
            if entry is None or entry.trigger_handle != trigger_handle:
                return None
            return self._entries.pop(schedule_id)

    def snapshot(self) -> Dict[str, RegistryEntry]:
        """Return a consistent copy of all entries."""
        with self._lock:
            return dict(self._entries)

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def __contains__(self, schedule_id: object) -> bool:
        with self._lock:
            return schedule_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
