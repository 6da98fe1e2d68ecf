"""Tests for the Action Dispatcher."""

import pytest

from action_kernel.execution.dispatcher import (
    ACTION_ROUTES,
    CANONICAL_ACTION_TYPES,
    ActionDispatcher,
    default_connectors,
)
from action_kernel.models.actor import ActorProfile
from action_kernel.models.plan import ActionDescriptor
from action_kernel.models.tools import (
    ParameterType,
    ToolCategory,
    ToolDescriptor,
    ToolParameter,
    ToolResult,
)
from action_kernel.registry.orchestrator import ToolOrchestrator


def _make_actor() -> ActorProfile:
    return ActorProfile(id="actor_1", name="Ada", enabled_connectors=["twilio", "gmail"])


def _make_tool(tool_id: str, handler, required=("content",)) -> ToolDescriptor:
    return ToolDescriptor(
        id=tool_id,
        name=tool_id,
        description="test",
        category=ToolCategory.DATA,
        parameters=[
            ToolParameter(name=name, type=ParameterType.STRING, description=name, required=True)
            for name in required
        ],
        handler=handler,
    )


def _ok(label):
    async def handler(params):
        return ToolResult(success=True, data={"label": label, "params": params})
    return handler


async def _boom(params):
    raise RuntimeError("handler exploded")


class TestRoutes:
    def test_eight_canonical_types(self):
        assert set(CANONICAL_ACTION_TYPES) == {
            "telephony_call", "telephony_sms", "email_send", "store_memory",
            "create_task", "calendar_event", "web_search", "routine_create",
        }

    def test_default_connectors(self):
        assert default_connectors("telephony_sms") == ["twilio"]
        assert default_connectors("calendar_event") == ["calendar"]
        assert default_connectors("store_memory") == []
        assert default_connectors("unknown") == []

    def test_sms_parameters_translated(self):
        adapted = ACTION_ROUTES["telephony_sms"].adapt({"phoneNumber": "+1555", "message": "hi"})
        assert adapted == {"to": "+1555", "message": "hi"}

    def test_string_trigger_becomes_object(self):
        adapted = ACTION_ROUTES["routine_create"].adapt(
            {"name": "r", "trigger": "manual", "actions": []}
        )
        assert adapted["trigger"] == {"type": "manual"}


class TestActionDispatcher:
    async def test_unknown_action_type(self):
        dispatcher = ActionDispatcher(ToolOrchestrator())
        result = await dispatcher.execute_action(
            ActionDescriptor(type="teleport", parameters={}), _make_actor()
        )
        assert result.success is False
        assert result.error == "Unknown action type: teleport"

    async def test_none_parameters_dropped(self):
        received = {}

        async def handler(params):
            received.update(params)
            return ToolResult(success=True)

        orch = ToolOrchestrator()
        orch.register_tool(_make_tool("store_memory", handler))
        dispatcher = ActionDispatcher(orch)

        result = await dispatcher.execute_action(
            ActionDescriptor(type="store_memory", parameters={"content": "milk", "type": None}),
            _make_actor(),
        )
        assert result.success is True
        assert received == {"content": "milk"}

    async def test_failure_isolation(self):
        orch = ToolOrchestrator()
        orch.register_tool(_make_tool("store_memory", _ok("first")))
        orch.register_tool(_make_tool("create_task", _boom))
        orch.register_tool(_make_tool("web_search", _ok("third"), required=("query",)))
        dispatcher = ActionDispatcher(orch)

        results = await dispatcher.execute_actions(
            [
                ActionDescriptor(type="store_memory", parameters={"content": "a"}),
                ActionDescriptor(type="create_task", parameters={"content": "b"}),
                ActionDescriptor(type="web_search", parameters={"query": "c"}),
            ],
            _make_actor(),
        )

        assert results["store_memory"].success is True
        assert results["create_task"].success is False
        assert results["create_task"].error == "handler exploded"
        assert results["web_search"].success is True
        assert len(orch.get_execution_logs()) == 3

    async def test_raising_dispatch_is_isolated(self):
        class ExplodingOrchestrator(ToolOrchestrator):
            async def execute_tool(self, tool_id, parameters, actor_id, user_id=None, confirmed=False):
                if tool_id == "create_task":
                    raise RuntimeError("registry offline")
                return ToolResult(success=True)

        dispatcher = ActionDispatcher(ExplodingOrchestrator())
        results = await dispatcher.execute_actions(
            [
                ActionDescriptor(type="store_memory", parameters={"content": "a"}),
                ActionDescriptor(type="create_task", parameters={"content": "b"}),
                ActionDescriptor(type="web_search", parameters={"query": "c"}),
            ],
            _make_actor(),
        )
        assert results["create_task"].error == "registry offline"
        assert results["store_memory"].success and results["web_search"].success

    async def test_actions_run_in_order(self):
        order = []

        def track(label):
            async def handler(params):
                order.append(label)
                return ToolResult(success=True)
            return handler

        orch = ToolOrchestrator()
        orch.register_tool(_make_tool("web_search", track("search"), required=("query",)))
        orch.register_tool(_make_tool("store_memory", track("memory")))
        dispatcher = ActionDispatcher(orch)

        await dispatcher.execute_actions(
            [
                ActionDescriptor(type="web_search", parameters={"query": "x"}, priority=3),
                ActionDescriptor(type="store_memory", parameters={"content": "y"}, priority=1),
            ],
            _make_actor(),
        )
        assert order == ["search", "memory"]
