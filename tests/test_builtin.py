"""Tests for the built-in tools."""

import json

import httpx
import pytest

from action_kernel.connectors.gateway import BackendGateway
from action_kernel.memory.store import InMemoryMemoryStore
from action_kernel.models.routine import TriggerType
from action_kernel.registry.builtin import BuiltinTools, register_builtin_tools
from action_kernel.registry.orchestrator import ToolOrchestrator
from action_kernel.routines.registry import RoutineRegistry


def _make_orchestrator(handler=None):
    requests = []

    def record(request):
        requests.append(request)
        if handler:
            return handler(request)
        return httpx.Response(200, json={"success": True, "data": {"path": request.url.path}})

    gateway = BackendGateway("http://backend.test", transport=httpx.MockTransport(record))
    memory = InMemoryMemoryStore()
    routines = RoutineRegistry()
    orch = ToolOrchestrator()
    register_builtin_tools(orch, BuiltinTools(gateway, memory, routines))
    return orch, memory, routines, requests


class TestBuiltinRegistration:
    def test_all_tools_registered(self):
        orch, _, _, _ = _make_orchestrator()
        assert {t.id for t in orch.get_all_tools()} == {
            "make_call", "send_sms", "send_gmail", "search_gmail", "create_calendar_event",
            "store_memory", "create_task", "web_search", "create_routine",
            "get_crypto_price", "get_stock_price", "get_market_news", "set_price_alert",
        }

    def test_sensitive_tools_need_confirmation(self):
        orch, _, _, _ = _make_orchestrator()
        gated = {t.id for t in orch.get_all_tools() if t.requires_confirmation}
        assert gated == {"make_call", "send_sms", "send_gmail"}

    def test_connector_lookup(self):
        orch, _, _, _ = _make_orchestrator()
        assert orch.get_tools_for_connector("gmail") == ["Send Gmail", "Search Gmail"]
        assert "Get Stock Price" in orch.get_tools_for_connector("financial_data")


class TestBuiltinHandlers:
    async def test_confirmed_sms_reaches_backend(self):
        orch, _, _, requests = _make_orchestrator()

        result = await orch.execute_tool(
            "send_sms", {"to": "+15551234567", "message": "hi"}, "actor_1", confirmed=True
        )

        assert result.success is True
        assert requests[0].url.path == "/api/telephony/sms"
        assert json.loads(requests[0].content) == {"to": "+15551234567", "message": "hi"}

    async def test_backend_failure_is_logged_result(self):
        orch, _, _, _ = _make_orchestrator(lambda r: httpx.Response(500))
        result = await orch.execute_tool("get_stock_price", {"symbol": "AAPL"}, "actor_1")
        assert result.success is False
        assert len(orch.get_execution_logs()) == 1

    async def test_store_memory(self):
        orch, memory, _, _ = _make_orchestrator()
        result = await orch.execute_tool("store_memory", {"content": "wifi is foo123"}, "actor_1")
        assert result.success is True
        assert result.data == {"stored": True, "type": "note"}
        assert memory.count() == 1

    async def test_create_task_defaults(self):
        orch, memory, _, _ = _make_orchestrator()
        await orch.execute_tool("create_task", {"content": "buy milk"}, "actor_1")
        task = memory.all(type="task")[0]
        assert task.metadata["priority"] == "P3"
        assert task.metadata["status"] == "pending"

    async def test_web_search_is_queued(self):
        orch, _, _, requests = _make_orchestrator()
        result = await orch.execute_tool("web_search", {"query": "weather"}, "actor_1")
        assert result.data["status"] == "queued"
        assert requests == []

    async def test_create_routine(self):
        orch, _, routines, _ = _make_orchestrator()
        result = await orch.execute_tool(
            "create_routine",
            {"name": "Morning", "trigger": {"type": "manual"}, "actions": [{"type": "send_sms"}]},
            "actor_1",
        )
        assert result.success is True
        assert routines.get(result.data["routine_id"]).name == "Morning"

    async def test_invalid_routine_is_handler_failure(self):
        orch, _, routines, _ = _make_orchestrator()
        result = await orch.execute_tool(
            "create_routine",
            {"name": "Bad", "trigger": {"type": "time", "config": {"schedule": "soon"}}, "actions": []},
            "actor_1",
        )
        assert result.success is False
        assert "cron" in result.error
        assert routines.count() == 0

    async def test_price_alert_creates_routine(self):
        orch, _, routines, _ = _make_orchestrator()
        result = await orch.execute_tool(
            "set_price_alert",
            {
                "symbol": "BTC", "type": "crypto", "targetPrice": 70000,
                "condition": "above", "action": "sms", "phoneNumber": "+15551234567",
            },
            "actor_1",
        )
        assert result.success is True
        routine = routines.get(result.data["alert_id"])
        assert routine.trigger.type == TriggerType.PRICE_ALERT
        assert routine.actions[0]["type"] == "send_sms"
        assert "price-alert" in routine.tags
