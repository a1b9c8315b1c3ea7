"""
Schedule lifecycle management.

ScheduleManager reconciles a desired set of scheduled items against the
triggers currently registered with a trigger engine, and gates every fire
on the schedule's validity window (start inclusive, end exclusive).
"""

import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from timely.constants import END_TIME, START_TIME
from timely.logger import UnifiedLogger
from timely.utils.instants import to_datetime, utc_now
from .cron import compile_schedule
from .exceptions import InvalidFieldValue, SchedulingError
from .registry import RegistryEntry, ScheduledItem, ScheduleRegistry
from .triggers import TriggerEngine

# Create scheduler job management logger
logger = UnifiedLogger(tag="scheduler-jobs")


#######################################################################
## Outcome Types
#######################################################################

class OutcomeStatus(str, Enum):
    STARTED = "started"
    SKIPPED = "skipped"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    REMOVED = "removed"
    FAILED = "failed"


class SkipReason(str, Enum):
    ALREADY_EXPIRED = "already_expired"


@dataclass
class ScheduleOutcome:
    """Result of processing one schedule."""
    schedule_id: str
    status: OutcomeStatus
    cron: Optional[str] = None
    reason: Optional[SkipReason] = None
    error: Optional[str] = None


@dataclass
class RefreshReport:
    """Per-item outcomes of one reconciliation pass."""
    outcomes: List[ScheduleOutcome] = field(default_factory=list)

    def with_status(self, status: OutcomeStatus) -> List[ScheduleOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status == status]

    @property
    def started(self) -> List[ScheduleOutcome]:
        return self.with_status(OutcomeStatus.STARTED)

    @property
    def updated(self) -> List[ScheduleOutcome]:
        return self.with_status(OutcomeStatus.UPDATED)

    @property
    def removed(self) -> List[ScheduleOutcome]:
        return self.with_status(OutcomeStatus.REMOVED)

    @property
    def skipped(self) -> List[ScheduleOutcome]:
        return self.with_status(OutcomeStatus.SKIPPED)

    @property
    def unchanged(self) -> List[ScheduleOutcome]:
        return self.with_status(OutcomeStatus.UNCHANGED)

    @property
    def failed(self) -> List[ScheduleOutcome]:
        return self.with_status(OutcomeStatus.FAILED)

    def to_dict(self) -> Dict[str, int]:
        """Summary counts per status."""
        return {status.value: len(self.with_status(status)) for status in OutcomeStatus}


def _resolve_instant(key: str, value: Any) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return to_datetime(value)
    except ValueError as e:
        raise InvalidFieldValue(f"Invalid {key}: {e}", field=key, value=value) from e


#######################################################################
## Window Gate
#######################################################################

class _WindowGate:
    """Callback registered with the engine; runs work only inside the window."""

    def __init__(self, manager: "ScheduleManager", item: ScheduledItem,
                 start: Optional[datetime], end: Optional[datetime]):
        self.manager = manager
        self.schedule_id = item.id
        self.work = item.work
        self.start = start
        self.end = end
        self.trigger_handle: Any = None

    def __call__(self) -> bool:
        return self.manager.on_fire(
            self.schedule_id,
            self.work,
            self.start,
            self.end,
            trigger_handle=self.trigger_handle,
        )


#######################################################################
## Lifecycle Manager
#######################################################################

class ScheduleManager:
    """Owns the registry of live triggers for one trigger engine.

    All registry mutations go through a single reentrant lock, so a
    reconciliation pass, explicit start/end calls and self-expiry from
    engine threads never interleave.

    Example:
        >>> manager = ScheduleManager(engine)
        >>> manager.start_schedule(scheduled_item(daily(), work, id="report"))
        >>> manager.refresh_schedules([...])
        >>> manager.end_schedule("report")
    """

    def __init__(self, engine: TriggerEngine, clock: Optional[Callable[[], datetime]] = None,
                 registry: Optional[ScheduleRegistry] = None):
        self.engine = engine
        self.clock = clock or utc_now
        self.registry = registry if registry is not None else ScheduleRegistry()
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self.registry)

    def __contains__(self, schedule_id: object) -> bool:
        return schedule_id in self.registry

    def registered_ids(self) -> List[str]:
        return self.registry.ids()

    def get_entry(self, schedule_id: str) -> Optional[RegistryEntry]:
        return self.registry.get(schedule_id)

    def start_schedule(self, item: ScheduledItem) -> ScheduleOutcome:
        """Register a scheduled item with the trigger engine.

        Items whose end time has already passed are not registered and are
        reported as skipped. An existing registration for the same id is
        replaced.

        Returns:
            ScheduleOutcome with status STARTED or SKIPPED

        Raises:
            CronRenderError: If the schedule cannot be compiled
            RegistrationError: If the engine rejects the trigger (registry unchanged)
            InvalidFieldValue: If the start or end time cannot be resolved
        """
        cron = compile_schedule(item.schedule)
        start = _resolve_instant(START_TIME, item.schedule.start_time)
        end = _resolve_instant(END_TIME, item.schedule.end_time)

        if end is not None and self.clock() >= end:
            logger.activity(
                "End time is before current time, not scheduling",
                schedule_id=item.id,
                metadata={"cron": cron, "end_time": end.isoformat()},
            )
            return ScheduleOutcome(item.id, OutcomeStatus.SKIPPED, cron=cron, reason=SkipReason.ALREADY_EXPIRED)

        with self._lock:
            gate = _WindowGate(self, item, start, end)
            handle = self.engine.register(cron, gate, name=f"schedule: {item.id}")
            gate.trigger_handle = handle

            previous = self.registry.put(
                RegistryEntry(id=item.id, insert_time=item.insert_time, trigger_handle=handle, cron=cron)
            )
            if previous is not None:
                self.engine.deregister(previous.trigger_handle)
                logger.debug(f"Replaced existing trigger for schedule {item.id}")

        logger.activity("Starting schedule", schedule_id=item.id, metadata={"cron": cron})
        return ScheduleOutcome(item.id, OutcomeStatus.STARTED, cron=cron)

    def end_schedule(self, schedule_id: str) -> bool:
        """Deregister a schedule. Returns False if it was not registered."""
        with self._lock:
            entry = self.registry.pop(schedule_id)
            if entry is None:
                return False
            self.engine.deregister(entry.trigger_handle)

        logger.activity("Removing schedule", schedule_id=schedule_id, metadata={"cron": entry.cron})
        return True

    def end_all_schedules(self) -> int:
        """Deregister every tracked schedule and return how many were removed."""
        with self._lock:
            return sum(1 for schedule_id in self.registry.ids() if self.end_schedule(schedule_id))

    @logger.trace("refresh_schedules")
    def refresh_schedules(self, items: Iterable[ScheduledItem]) -> RefreshReport:
        """Make the registered set match the desired items.

        - New ids are started
        - Ids whose insert_time changed are ended and started again
        - Ids with an unchanged insert_time are left alone
        - Registered ids missing from items are ended

        A failure for one item is recorded in the report and does not stop
        the remaining items. If an id appears more than once, the last
        occurrence wins.

        Returns:
            RefreshReport with one outcome per processed id
        """
        desired: Dict[str, ScheduledItem] = {}
        for item in items:
            desired[item.id] = item

        report = RefreshReport()

        with self._lock:
            snapshot = self.registry.snapshot()

            for schedule_id, item in desired.items():
                entry = snapshot.get(schedule_id)
                try:
                    if entry is None:
                        outcome = self.start_schedule(item)
                    elif entry.insert_time != item.insert_time:
                        logger.activity(
                            "Updating schedule that changed",
                            schedule_id=schedule_id,
                            metadata={"previous_insert_time": str(entry.insert_time),
                                      "insert_time": str(item.insert_time)},
                        )
                        self.end_schedule(schedule_id)
                        outcome = self.start_schedule(item)
                        if outcome.status == OutcomeStatus.STARTED:
                            outcome = replace(outcome, status=OutcomeStatus.UPDATED)
                    else:
                        outcome = ScheduleOutcome(schedule_id, OutcomeStatus.UNCHANGED, cron=entry.cron)
                except SchedulingError as e:
                    logger.activity(
                        "Failed to start schedule",
                        schedule_id=schedule_id,
                        level="error",
                        metadata={"error": str(e)},
                    )
                    outcome = ScheduleOutcome(schedule_id, OutcomeStatus.FAILED, error=str(e))
                report.outcomes.append(outcome)

            for schedule_id, entry in snapshot.items():
                if schedule_id in desired:
                    continue
                if self.end_schedule(schedule_id):
                    report.outcomes.append(ScheduleOutcome(schedule_id, OutcomeStatus.REMOVED, cron=entry.cron))

        logger.info("Schedules refreshed", **report.to_dict())
        return report

    def on_fire(self, schedule_id: str, work: Callable[[], Any], start_time: Any = None,
                end_time: Any = None, *, trigger_handle: Any = None) -> bool:
        """Run work for a fired trigger if now is inside the validity window.

        - now >= end_time: the schedule has expired; deregister it, skip work
        - now < start_time: not yet valid; skip work, stay registered
        - otherwise: invoke work on the calling thread

        When trigger_handle is given, expiry only removes that registration,
        leaving a newer registration of the same id in place.

        Returns:
            True if work was invoked
        """
        now = self.clock()

        if end_time is not None and now >= to_datetime(end_time):
            self._expire(schedule_id, trigger_handle)
            return False

        if start_time is not None and now < to_datetime(start_time):
            logger.debug(f"Waiting to start schedule {schedule_id}")
            return False

        work()
        return True

    def _expire(self, schedule_id: str, trigger_handle: Any) -> None:
        if trigger_handle is None:
            self.end_schedule(schedule_id)
            return

        with self._lock:
            entry = self.registry.pop_if(schedule_id, trigger_handle)
            if entry is None:
                return
            self.engine.deregister(entry.trigger_handle)

        logger.activity("Schedule expired, removing", schedule_id=schedule_id, metadata={"cron": entry.cron})
