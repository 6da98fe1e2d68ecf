"""Routine: a trigger-condition-action automation."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class TriggerType(str, Enum):
    MANUAL = "manual"
    TIME = "time"                   # config.schedule is a cron expression
    EVENT = "event"
    STATE_CHANGE = "state_change"
    USER_ACTION = "user_action"
    COMPLETION = "completion"
    PRICE_ALERT = "price_alert"


class RoutineTrigger(BaseModel):
    type: TriggerType
    config: Dict[str, Any] = {}


class Routine(BaseModel):
    """A registered automation. Execution of its actions belongs to the caller."""

    id: str
    name: str
    description: str = "Auto-generated routine"
    trigger: RoutineTrigger
    conditions: List[Dict[str, Any]] = []
    actions: List[Dict[str, Any]]
    tags: List[str] = []
    enabled: bool = True
    created_at: datetime
    last_executed: Optional[datetime] = None
    execution_count: int = 0
