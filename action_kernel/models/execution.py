"""Execution records: the audit log and pending confirmations."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from action_kernel.models.tools import ToolResult


class ExecutionLogEntry(BaseModel):
    """One handler execution. Append-only; never mutated after creation."""

    model_config = ConfigDict(frozen=True)

    tool_id: str
    tool_name: str
    parameters: Dict[str, Any]
    result: ToolResult
    timestamp: datetime
    actor_id: str
    user_id: Optional[str] = None
    confirmed: bool = False
    execution_time_ms: float = Field(ge=0.0)


class PendingConfirmation(BaseModel):
    """A sensitive call parked until the caller confirms it."""

    confirm_id: str
    tool_id: str
    parameters: Dict[str, Any]
    actor_id: str
    user_id: Optional[str] = None
    created_at: datetime
    expires_at: Optional[datetime] = None   # None = never expires

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now >= self.expires_at
