"""
Action Dispatcher: runs a plan's actions through the tool registry.

Behavioral Contract:
- Actions run strictly in plan order, each awaited before the next starts.
- Each action is isolated: a failure (failed result or raised exception) is
  recorded under that action's type and later actions still run.
- Every canonical action type resolves to exactly one registry tool through
  ACTION_ROUTES, so confirmation, validation and audit logging apply to plans
  exactly as they do to direct tool calls.
"""

import logging
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple

from action_kernel.errors import UnknownCapability
from action_kernel.models.actor import ActorProfile
from action_kernel.models.plan import ActionDescriptor
from action_kernel.models.tools import ToolResult
from action_kernel.registry.orchestrator import ToolOrchestrator

logger = logging.getLogger(__name__)


class ActionRoute(NamedTuple):
    """How one action type reaches the registry."""

    tool_id: str
    adapt: Callable[[Dict[str, Any]], Dict[str, Any]]
    connectors: Tuple[str, ...]


def _telephony_call(p: Dict[str, Any]) -> Dict[str, Any]:
    return {"to": p.get("phoneNumber"), "personaVoice": p.get("personaVoice")}


def _telephony_sms(p: Dict[str, Any]) -> Dict[str, Any]:
    return {"to": p.get("phoneNumber"), "message": p.get("message")}


def _email_send(p: Dict[str, Any]) -> Dict[str, Any]:
    return {key: p.get(key) for key in ("to", "subject", "body", "cc", "bcc")}


def _store_memory(p: Dict[str, Any]) -> Dict[str, Any]:
    return {"content": p.get("content"), "type": p.get("type"), "metadata": p.get("metadata")}


def _create_task(p: Dict[str, Any]) -> Dict[str, Any]:
    return {"content": p.get("content"), "priority": p.get("priority")}


def _calendar_event(p: Dict[str, Any]) -> Dict[str, Any]:
    return {key: p.get(key) for key in ("summary", "start", "end", "description")}


def _web_search(p: Dict[str, Any]) -> Dict[str, Any]:
    return {"query": p.get("query")}


def _routine_create(p: Dict[str, Any]) -> Dict[str, Any]:
    trigger = p.get("trigger")
    if isinstance(trigger, str):
        trigger = {"type": trigger}
    return {
        "name": p.get("name"),
        "trigger": trigger,
        "actions": p.get("actions"),
        "description": p.get("description"),
        "conditions": p.get("conditions"),
        "tags": p.get("tags"),
    }


ACTION_ROUTES: Dict[str, ActionRoute] = {
    "telephony_call": ActionRoute("make_call", _telephony_call, ("twilio",)),
    "telephony_sms": ActionRoute("send_sms", _telephony_sms, ("twilio",)),
    "email_send": ActionRoute("send_gmail", _email_send, ("gmail",)),
    "store_memory": ActionRoute("store_memory", _store_memory, ()),
    "create_task": ActionRoute("create_task", _create_task, ()),
    "calendar_event": ActionRoute("create_calendar_event", _calendar_event, ("calendar",)),
    "web_search": ActionRoute("web_search", _web_search, ()),
    "routine_create": ActionRoute("create_routine", _routine_create, ()),
}

CANONICAL_ACTION_TYPES: List[str] = list(ACTION_ROUTES)


def default_connectors(action_type: str) -> List[str]:
    """Connectors an action type needs when the plan does not say."""
    route = ACTION_ROUTES.get(action_type)
    return list(route.connectors) if route else []


class ActionDispatcher:
    """Executes ActionDescriptors via the ToolOrchestrator."""

    def __init__(self, orchestrator: ToolOrchestrator):
        self.orchestrator = orchestrator

    async def execute_action(
        self,
        action: ActionDescriptor,
        actor: ActorProfile,
        user_id: Optional[str] = None,
        confirmed: bool = False,
    ) -> ToolResult:
        """Dispatch a single action to its registry tool."""
        route = ACTION_ROUTES.get(action.type)
        if route is None:
            return ToolResult(
                success=False, error=str(UnknownCapability(f"Unknown action type: {action.type}"))
            )

        parameters = {
            key: value
            for key, value in route.adapt(action.parameters).items()
            if value is not None
        }
        return await self.orchestrator.execute_tool(
            route.tool_id,
            parameters,
            actor.id,
            user_id=user_id,
            confirmed=confirmed,
        )

    async def execute_actions(
        self,
        actions: List[ActionDescriptor],
        actor: ActorProfile,
        user_id: Optional[str] = None,
        confirmed: bool = False,
    ) -> Dict[str, ToolResult]:
        """
        Execute actions sequentially with per-action failure isolation.

        Results are keyed by action type; a repeated type keeps the last result.
        """
        results: Dict[str, ToolResult] = {}
        for action in actions:
            try:
                result = await self.execute_action(
                    action, actor, user_id=user_id, confirmed=confirmed
                )
            except Exception as e:
                logger.error("Action execution failed for %s: %s", action.type, e)
                result = ToolResult(success=False, error=str(e) or "Unknown error")
            if not result.success and not result.requires_confirmation:
                logger.warning("Action %s failed: %s", action.type, result.error)
            results[action.type] = result
        return results
