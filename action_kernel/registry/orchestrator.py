"""
Tool Orchestrator: capability registry, confirmation gate, and audit log.

Every external effect of the pipeline goes through execute_tool().

Behavioral Contract:
- Unknown tool ids and invalid parameters fail fast and are never logged.
- A tool that requires confirmation never runs until re-invoked with
  confirmed=True; the unconfirmed call parks a PendingConfirmation and is
  not logged.
- Handler exceptions never escape: they become failed ToolResults.
- Exactly one ExecutionLogEntry is appended per handler execution.
- Statistics are derived from the log alone.
"""

import json
import logging
import time
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from uuid import uuid4

from action_kernel.errors import HandlerExecutionError, UnknownCapability, ValidationError
from action_kernel.models.execution import ExecutionLogEntry, PendingConfirmation
from action_kernel.models.tools import (
    ParameterType,
    ToolCategory,
    ToolDescriptor,
    ToolResult,
)

logger = logging.getLogger(__name__)


def _runtime_type(value: Any) -> str:
    """Name a Python value in the tool schema's type vocabulary."""
    if isinstance(value, (list, tuple)):
        return ParameterType.ARRAY.value
    if isinstance(value, bool):
        return ParameterType.BOOLEAN.value
    if isinstance(value, (int, float)):
        return ParameterType.NUMBER.value
    if isinstance(value, str):
        return ParameterType.STRING.value
    if isinstance(value, dict):
        return ParameterType.OBJECT.value
    if value is None:
        return "null"
    return type(value).__name__


def validate_parameters(tool: ToolDescriptor, parameters: Dict[str, Any]) -> None:
    """Raise ValidationError listing every missing or mistyped parameter."""
    errors = []
    for param in tool.parameters:
        if param.required and param.name not in parameters:
            errors.append(f"Missing required parameter: {param.name}")
            continue
        if param.name in parameters:
            actual = _runtime_type(parameters[param.name])
            if actual != param.type.value:
                errors.append(
                    f"Parameter {param.name} must be of type {param.type.value}, got {actual}"
                )
    if errors:
        raise ValidationError(errors)


def _same_call(pending: PendingConfirmation, tool_id: str, parameters: dict, actor_id: str) -> bool:
    return (
        pending.tool_id == tool_id
        and pending.actor_id == actor_id
        and pending.parameters == parameters
    )


class ToolOrchestrator:
    """
    Process-wide tool registry and dispatcher. One instance per AgentPipeline;
    all state is owned here and mutated only from the event loop.
    """

    def __init__(self, confirmation_ttl_seconds: Optional[int] = 600):
        self.confirmation_ttl_seconds = confirmation_ttl_seconds
        self._tools: Dict[str, ToolDescriptor] = {}
        self._execution_logs: List[ExecutionLogEntry] = []
        self._pending_confirmations: Dict[str, PendingConfirmation] = {}

    # --- Registry ---

    def register_tool(self, tool: ToolDescriptor) -> None:
        """Register a tool. Registering an existing id replaces it."""
        if tool.id in self._tools:
            logger.warning("Replacing registered tool %s", tool.id)
        self._tools[tool.id] = tool
        logger.info("Registered tool: %s (%s)", tool.name, tool.id)

    def get_tool(self, tool_id: str) -> Optional[ToolDescriptor]:
        return self._tools.get(tool_id)

    def get_available_tools(self, category: Optional[str] = None) -> List[ToolDescriptor]:
        """All tools, or those of one category."""
        tools = list(self._tools.values())
        if category:
            tools = [t for t in tools if t.category == category]
        return tools

    def get_all_tools(self) -> List[ToolDescriptor]:
        return list(self._tools.values())

    def get_tools_for_connector(self, connector_id: str) -> List[str]:
        """Display names of the tools that need a connector."""
        names = []
        for tool in self._tools.values():
            if tool.required_connectors is not None:
                if connector_id in tool.required_connectors:
                    names.append(tool.name)
            # Legacy tools registered without connector metadata
            elif tool.category == ToolCategory.FINANCIAL and "financial" in connector_id:
                names.append(tool.name)
        return names

    # --- Execution ---

    async def execute_tool(
        self,
        tool_id: str,
        parameters: Dict[str, Any],
        actor_id: str,
        user_id: Optional[str] = None,
        confirmed: bool = False,
    ) -> ToolResult:
        """
        Validate, gate, execute and log one tool call.

        Returns a ToolResult in every case; never raises for tool failures.
        """
        start = time.monotonic()
        tool = self._tools.get(tool_id)
        if tool is None:
            error = UnknownCapability(f"Tool not found: {tool_id}")
            logger.warning("%s", error)
            return ToolResult(success=False, error=str(error))

        try:
            validate_parameters(tool, parameters)
        except ValidationError as e:
            logger.info("Rejected %s: %s", tool_id, e)
            return ToolResult(success=False, error=str(e))

        self._purge_expired()

        if tool.requires_confirmation and not confirmed:
            pending = self._park(tool, parameters, actor_id, user_id)
            return ToolResult(
                success=False,
                requires_confirmation=True,
                confirmation_id=pending.confirm_id,
                confirmation_message=(
                    f"{tool.name} requires user confirmation. Confirm to proceed "
                    f"with parameters: {json.dumps(parameters, default=str)}"
                ),
            )

        if confirmed:
            self._consume_matching(tool_id, parameters, actor_id)

        try:
            result = await tool.handler(parameters)
            if not isinstance(result, ToolResult):
                result = ToolResult.model_validate(result)
        except Exception as e:
            error = HandlerExecutionError(tool_id, e)
            logger.error("Tool %s failed: %s", tool_id, error)
            result = ToolResult(success=False, error=str(error))

        elapsed_ms = (time.monotonic() - start) * 1000
        self._execution_logs.append(ExecutionLogEntry(
            tool_id=tool_id,
            tool_name=tool.name,
            parameters=parameters,
            result=result,
            timestamp=datetime.utcnow(),
            actor_id=actor_id,
            user_id=user_id,
            confirmed=confirmed,
            execution_time_ms=round(elapsed_ms, 3),
        ))
        return result

    # --- Confirmations ---

    def _park(
        self,
        tool: ToolDescriptor,
        parameters: Dict[str, Any],
        actor_id: str,
        user_id: Optional[str],
    ) -> PendingConfirmation:
        now = datetime.utcnow()
        expires_at = None
        if self.confirmation_ttl_seconds is not None:
            expires_at = now + timedelta(seconds=self.confirmation_ttl_seconds)
        pending = PendingConfirmation(
            confirm_id=f"confirm_{uuid4().hex[:12]}",
            tool_id=tool.id,
            parameters=dict(parameters),
            actor_id=actor_id,
            user_id=user_id,
            created_at=now,
            expires_at=expires_at,
        )
        self._pending_confirmations[pending.confirm_id] = pending
        logger.info("Tool %s awaiting confirmation %s", tool.id, pending.confirm_id)
        return pending

    def _consume_matching(self, tool_id: str, parameters: dict, actor_id: str) -> None:
        matching = [
            cid for cid, p in self._pending_confirmations.items()
            if _same_call(p, tool_id, parameters, actor_id)
        ]
        for cid in matching:
            del self._pending_confirmations[cid]

    def _purge_expired(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.utcnow()
        expired = [
            cid for cid, p in self._pending_confirmations.items() if p.is_expired(now)
        ]
        for cid in expired:
            del self._pending_confirmations[cid]
        if expired:
            logger.debug("Expired %d pending confirmations", len(expired))
        return len(expired)

    def get_pending_confirmations(self, actor_id: Optional[str] = None) -> List[PendingConfirmation]:
        self._purge_expired()
        pending = list(self._pending_confirmations.values())
        if actor_id:
            pending = [p for p in pending if p.actor_id == actor_id]
        return pending

    def get_pending_confirmation(self, confirm_id: str) -> Optional[PendingConfirmation]:
        self._purge_expired()
        return self._pending_confirmations.get(confirm_id)

    async def confirm(self, confirm_id: str) -> ToolResult:
        """Run a parked call as confirmed, consuming the confirmation."""
        pending = self.get_pending_confirmation(confirm_id)
        if pending is None:
            return ToolResult(
                success=False,
                error=f"Confirmation not found or expired: {confirm_id}",
            )
        return await self.execute_tool(
            pending.tool_id,
            pending.parameters,
            pending.actor_id,
            user_id=pending.user_id,
            confirmed=True,
        )

    def cancel_confirmation(self, confirm_id: str) -> bool:
        return self._pending_confirmations.pop(confirm_id, None) is not None

    # --- Audit ---

    def get_execution_logs(
        self, limit: Optional[int] = None, actor_id: Optional[str] = None
    ) -> List[ExecutionLogEntry]:
        """Most recent entries first. A limit of 0 or less returns nothing."""
        logs = self._execution_logs
        if actor_id:
            logs = [entry for entry in logs if entry.actor_id == actor_id]
        if limit is not None:
            logs = logs[-limit:] if limit > 0 else []
        return list(reversed(logs))

    def get_statistics(self, actor_id: Optional[str] = None) -> dict:
        logs = self._execution_logs
        if actor_id:
            logs = [entry for entry in logs if entry.actor_id == actor_id]

        total = len(logs)
        successful = sum(1 for entry in logs if entry.result.success)
        avg_time = sum(entry.execution_time_ms for entry in logs) / total if total else 0

        tool_usage: Dict[str, int] = {}
        for entry in logs:
            tool_usage[entry.tool_name] = tool_usage.get(entry.tool_name, 0) + 1

        return {
            "total_executions": total,
            "successful_executions": successful,
            "failed_executions": total - successful,
            "success_rate": (successful / total) * 100 if total else 0,
            "avg_execution_time": round(avg_time),
            "tool_usage": tool_usage,
        }
