"""
Routine Registry: trigger-condition-action automations.

Routines are created by the `routine_create` action and by price alerts.
The registry stores and schedules them; running a routine's actions is the
caller's job.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from uuid import uuid4

from croniter import croniter

from action_kernel.errors import RoutineError
from action_kernel.models.routine import Routine, RoutineTrigger, TriggerType

logger = logging.getLogger(__name__)


def _normalize_trigger(trigger: Union[str, Dict[str, Any], RoutineTrigger]) -> RoutineTrigger:
    """Accept "manual", {"type": ..., "config": ...} or a RoutineTrigger."""
    if isinstance(trigger, RoutineTrigger):
        normalized = trigger
    elif isinstance(trigger, str):
        try:
            normalized = RoutineTrigger(type=TriggerType(trigger))
        except ValueError:
            raise RoutineError(f"Unknown trigger type: {trigger}")
    elif isinstance(trigger, dict):
        try:
            normalized = RoutineTrigger.model_validate(trigger)
        except ValueError as e:
            raise RoutineError(f"Invalid trigger: {e}")
    else:
        raise RoutineError(f"Invalid trigger: {trigger!r}")

    if normalized.type == TriggerType.TIME:
        schedule = normalized.config.get("schedule")
        if not schedule or not croniter.is_valid(schedule):
            raise RoutineError(f"Time trigger needs a valid cron schedule, got {schedule!r}")
    return normalized


class RoutineRegistry:
    """In-memory routine registry."""

    def __init__(self):
        self._routines: Dict[str, Routine] = {}

    def create_routine(
        self,
        name: str,
        trigger: Union[str, Dict[str, Any], RoutineTrigger],
        actions: List[Dict[str, Any]],
        description: str = "Auto-generated routine",
        conditions: Optional[List[Dict[str, Any]]] = None,
        tags: Optional[List[str]] = None,
    ) -> Routine:
        """Validate and register a new routine."""
        if not name:
            raise RoutineError("Routine name is required")
        if not isinstance(actions, list):
            raise RoutineError("Routine actions must be a list")

        routine = Routine(
            id=f"routine_{uuid4().hex[:12]}",
            name=name,
            description=description,
            trigger=_normalize_trigger(trigger),
            conditions=conditions or [],
            actions=actions,
            tags=tags if tags is not None else ["auto-generated"],
            created_at=datetime.utcnow(),
        )
        self._routines[routine.id] = routine
        logger.info("Created routine %s (%s, trigger=%s)", routine.name, routine.id, routine.trigger.type.value)
        return routine

    def get(self, routine_id: str) -> Optional[Routine]:
        return self._routines.get(routine_id)

    def list_routines(self, enabled_only: bool = False) -> List[Routine]:
        routines = list(self._routines.values())
        if enabled_only:
            routines = [r for r in routines if r.enabled]
        return routines

    def set_enabled(self, routine_id: str, enabled: bool) -> Optional[Routine]:
        routine = self._routines.get(routine_id)
        if routine:
            routine.enabled = enabled
        return routine

    def delete(self, routine_id: str) -> bool:
        return self._routines.pop(routine_id, None) is not None

    def due_routines(self, now: Optional[datetime] = None) -> List[Routine]:
        """Enabled time-triggered routines whose schedule matches `now` (minute resolution)."""
        if now is None:
            now = datetime.utcnow()
        due = []
        for routine in self._routines.values():
            if not routine.enabled or routine.trigger.type != TriggerType.TIME:
                continue
            if croniter.match(routine.trigger.config["schedule"], now):
                due.append(routine)
        return due

    def record_execution(self, routine_id: str, at: Optional[datetime] = None) -> Optional[Routine]:
        routine = self._routines.get(routine_id)
        if routine:
            routine.last_executed = at or datetime.utcnow()
            routine.execution_count += 1
        return routine

    def count(self) -> int:
        return len(self._routines)
