"""
Planning Stage: Perception in, Plan out.

Two paths, tried in order:
  1. Model path: the LLM writes a plan as one JSON object, restricted to the
     canonical action types.
  2. Template path: a static intent → actions table.

After either path, actions whose connectors are not all enabled for the
actor are dropped from the executable set and reported as prerequisites.

Behavioral Contract:
- create_plan() never raises.
- The model path is attempted once; any failure falls through to templates.
- Actions keep the order the plan gave them; priority is carried, not used.
"""

import json
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from action_kernel.connectors.directory import ActorConnectorDirectory, ConnectorDirectory
from action_kernel.errors import ConnectorUnavailable, ProviderError
from action_kernel.execution.dispatcher import CANONICAL_ACTION_TYPES, default_connectors
from action_kernel.models.actor import ActorProfile
from action_kernel.models.config import PipelineConfig
from action_kernel.models.perception import Perception
from action_kernel.models.plan import ActionDescriptor, Plan, PlanSource
from action_kernel.providers.llm import LLMProvider, extract_json_object
from action_kernel.registry.orchestrator import ToolOrchestrator
from action_kernel.result import Result

logger = logging.getLogger(__name__)

GOALS: Dict[str, str] = {
    "call": "Initiate voice communication",
    "sms": "Send text message",
    "email": "Send email communication",
    "note": "Create memory record",
    "task": "Add to task list",
    "search": "Retrieve information",
    "analyze": "Understand and explain",
    "create": "Generate new content",
    "schedule": "Organize calendar event",
    "summarize": "Condense information",
    "routine": "Automate workflow",
    "suggestion": "Provide recommendations",
}
DEFAULT_GOAL = "Assist user"

STEPS: Dict[str, List[str]] = {
    "call": ["Extract phone number from input", "Initiate call", "Log call to memory"],
    "sms": ["Extract phone number and message", "Send SMS", "Log to memory"],
    "email": ["Extract recipient and message", "Send email"],
    "note": ["Extract note content", "Store in long-term memory"],
    "task": ["Extract task content", "Add pending task"],
    "schedule": ["Extract event details", "Create calendar event"],
    "search": ["Extract search query", "Queue web search"],
    "routine": ["Extract trigger and actions", "Create routine definition", "Suggest activation"],
}
DEFAULT_STEPS = ["Understand query", "Process request", "Formulate response"]

ALTERNATIVES: Dict[str, List[str]] = {
    "call": ["Send SMS instead for quick message", "Schedule call for later"],
    "sms": ["Make voice call for complex discussion", "Send email with more details"],
    "email": ["Send SMS for urgent communication"],
}

PLANNING_SYSTEM_PROMPT = """You are a planning assistant. Given a user's intent and entities, create an actionable plan.

Available tools: {tools}
Available connectors: {connectors}

Return ONLY valid JSON in this format:
{{
  "goal": "brief description",
  "steps": ["step 1", "step 2"],
  "actions": [
    {{
      "type": "action_type",
      "parameters": {{"key": "value"}},
      "priority": 1
    }}
  ],
  "prerequisites": ["requirement 1"],
  "confidence": 0.0-1.0
}}

Action types: {action_types}"""


def _first(values: Any) -> Optional[Any]:
    if isinstance(values, list) and values:
        return values[0]
    return None


def _call_template(p: Perception) -> List[ActionDescriptor]:
    return [ActionDescriptor(
        type="telephony_call",
        parameters={"phoneNumber": _first(p.entities.get("phones"))},
        required_connectors=["twilio"],
        priority=1,
    )]


def _sms_template(p: Perception) -> List[ActionDescriptor]:
    return [ActionDescriptor(
        type="telephony_sms",
        parameters={
            "phoneNumber": _first(p.entities.get("phones")),
            "message": p.context.get("message") or "Message from AI assistant",
        },
        required_connectors=["twilio"],
        priority=1,
    )]


def _email_template(p: Perception) -> List[ActionDescriptor]:
    return [ActionDescriptor(
        type="email_send",
        parameters={
            "to": _first(p.entities.get("emails")),
            "subject": p.context.get("subject") or "Message from AI Assistant",
            "body": p.context.get("message") or p.input,
        },
        required_connectors=["gmail"],
        priority=1,
    )]


def _note_template(p: Perception) -> List[ActionDescriptor]:
    return [ActionDescriptor(
        type="store_memory",
        parameters={"content": p.context.get("note_content") or p.input, "type": "note"},
        priority=2,
    )]


def _task_template(p: Perception) -> List[ActionDescriptor]:
    return [ActionDescriptor(
        type="create_task",
        parameters={"content": p.context.get("task_content") or p.input, "priority": "P3"},
        priority=1,
    )]


def _schedule_template(p: Perception) -> List[ActionDescriptor]:
    start = _first(p.entities.get("dates")) or p.entities.get("time_reference")
    time_of_day = _first(p.entities.get("times"))
    if start and time_of_day:
        start = f"{start} {time_of_day}"
    return [ActionDescriptor(
        type="calendar_event",
        parameters={"summary": p.context.get("summary") or p.input, "start": start},
        required_connectors=["calendar"],
        priority=1,
    )]


def _search_template(p: Perception) -> List[ActionDescriptor]:
    return [ActionDescriptor(
        type="web_search",
        parameters={"query": p.context.get("search_query") or p.input},
        priority=2,
    )]


def _routine_template(p: Perception) -> List[ActionDescriptor]:
    return [ActionDescriptor(
        type="routine_create",
        parameters={
            "name": p.context.get("routine_name") or f"Routine: {p.input[:40]}",
            "trigger": p.context.get("trigger") or "manual",
            "actions": p.context.get("actions") or [],
        },
        priority=2,
    )]


TEMPLATE_BUILDERS: Dict[str, Callable[[Perception], List[ActionDescriptor]]] = {
    "call": _call_template,
    "sms": _sms_template,
    "email": _email_template,
    "note": _note_template,
    "task": _task_template,
    "schedule": _schedule_template,
    "search": _search_template,
    "routine": _routine_template,
}


def template_actions(perception: Perception) -> List[ActionDescriptor]:
    """Look up the intent's template and fill it from the perception."""
    builder = TEMPLATE_BUILDERS.get(perception.intent)
    return builder(perception) if builder else []


def _parse_action(raw: Any) -> Optional[ActionDescriptor]:
    if not isinstance(raw, dict) or raw.get("type") not in CANONICAL_ACTION_TYPES:
        return None
    connectors = raw.get("requiredConnectors", raw.get("required_connectors"))
    priority = raw.get("priority", 1)
    return ActionDescriptor(
        type=raw["type"],
        parameters=raw.get("parameters") if isinstance(raw.get("parameters"), dict) else {},
        required_connectors=[str(c) for c in connectors] if isinstance(connectors, list) else None,
        priority=priority if isinstance(priority, int) else 1,
    )


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value]


class PlanningStage:
    """Turns Perceptions into Plans."""

    def __init__(
        self,
        orchestrator: ToolOrchestrator,
        connectors: Optional[ConnectorDirectory] = None,
        llm: Optional[LLMProvider] = None,
        config: Optional[PipelineConfig] = None,
    ):
        self.orchestrator = orchestrator
        self.connectors = connectors or ActorConnectorDirectory()
        self.llm = llm
        self.config = config or PipelineConfig()

    async def create_plan(self, perception: Perception, actor: ActorProfile) -> Plan:
        """Plan for a perception. Never raises."""
        draft = (await self._try_model_path(perception, actor)).or_else(
            lambda error: self._template_plan(perception, error)
        )
        actions, missing = self.validate_actions(draft.actions, actor)

        prerequisites = list(draft.prerequisites)
        for connector_id in missing:
            note = str(ConnectorUnavailable(connector_id))
            if note not in prerequisites:
                prerequisites.append(note)

        return draft.model_copy(update={"actions": actions, "prerequisites": prerequisites})

    def available_tools(self, actor: ActorProfile) -> List[str]:
        """Tool ids the actor may use: enabled tools whose connectors are all enabled."""
        available = []
        for tool in self.orchestrator.get_all_tools():
            if actor.enabled_tools and tool.id not in actor.enabled_tools:
                continue
            if all(
                self.connectors.is_connector_enabled(actor, c)
                for c in (tool.required_connectors or [])
            ):
                available.append(tool.id)
        return available

    def validate_actions(
        self, actions: List[ActionDescriptor], actor: ActorProfile
    ) -> Tuple[List[ActionDescriptor], List[str]]:
        """Split actions into executable ones and the connector ids that block the rest."""
        executable: List[ActionDescriptor] = []
        missing: List[str] = []
        for action in actions:
            required = (
                action.required_connectors
                if action.required_connectors is not None
                else default_connectors(action.type)
            )
            absent = [c for c in required if not self.connectors.is_connector_enabled(actor, c)]
            if absent:
                logger.info("Dropping %s: connectors not enabled %s", action.type, absent)
                missing.extend(c for c in absent if c not in missing)
            else:
                executable.append(action)
        return executable, missing

    async def _try_model_path(self, perception: Perception, actor: ActorProfile) -> Result[Plan]:
        if self.llm is None:
            return Result.fail(ProviderError("No model provider configured"))
        if not actor.model:
            return Result.fail(ProviderError(f"No model configured for {actor.name}"))

        system_prompt = PLANNING_SYSTEM_PROMPT.format(
            tools=", ".join(self.available_tools(actor)) or "none",
            connectors=", ".join(actor.enabled_connectors) or "none",
            action_types=", ".join(CANONICAL_ACTION_TYPES),
        )
        context = {k: v for k, v in perception.context.items() if k != "memories"}
        user_prompt = (
            f"Intent: {perception.intent}\n"
            f"Entities: {json.dumps(perception.entities, default=str)}\n"
            f"Context: {json.dumps(context, default=str)}\n\n"
            "Create a plan to fulfill this intent."
        )
        try:
            reply = await self.llm.send_message([
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ])
            parsed = extract_json_object(reply or "")
        except ProviderError as e:
            return Result.fail(e)
        except Exception as e:
            return Result.fail(ProviderError(f"Model planning failed: {e}"))

        raw_actions = parsed.get("actions") if isinstance(parsed.get("actions"), list) else []
        actions = [a for a in (_parse_action(raw) for raw in raw_actions) if a is not None]
        if len(actions) < len(raw_actions):
            logger.info("Discarded %d non-canonical model actions", len(raw_actions) - len(actions))

        confidence = parsed.get("confidence")
        if not isinstance(confidence, (int, float)) or isinstance(confidence, bool):
            confidence = self.config.default_model_confidence

        return Result.ok(Plan(
            goal=str(parsed.get("goal") or DEFAULT_GOAL),
            steps=_string_list(parsed.get("steps")),
            actions=actions,
            prerequisites=_string_list(parsed.get("prerequisites")),
            confidence=min(max(float(confidence), 0.0), 1.0),
            alternatives=list(ALTERNATIVES.get(perception.intent, [])),
            source=PlanSource.MODEL,
        ))

    def _template_plan(self, perception: Perception, error: ProviderError) -> Plan:
        logger.warning("Model planning unavailable, using templates: %s", error)
        return Plan(
            goal=GOALS.get(perception.intent, DEFAULT_GOAL),
            steps=list(STEPS.get(perception.intent, DEFAULT_STEPS)),
            actions=template_actions(perception),
            prerequisites=[],
            confidence=self.config.template_confidence,
            alternatives=list(ALTERNATIVES.get(perception.intent, [])),
            source=PlanSource.TEMPLATE,
        )
