"""Tests for core data models."""

from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from action_kernel.models import (
    ActionDescriptor,
    ActorProfile,
    ExecutionLogEntry,
    PendingConfirmation,
    Perception,
    PipelineConfig,
    Plan,
    PlanSource,
    Sentiment,
    ToolCategory,
    ToolDescriptor,
    ToolResult,
)


async def _noop(params):
    return ToolResult(success=True)


class TestPerception:
    def test_defaults(self):
        perception = Perception(input="hello", timestamp=datetime.utcnow())
        assert perception.intent == "conversation"
        assert perception.sentiment == Sentiment.NEUTRAL
        assert perception.confidence == 0.6

    def test_frozen(self):
        perception = Perception(input="hello", timestamp=datetime.utcnow())
        with pytest.raises(ValidationError):
            perception.intent = "call"

    def test_confidence_bounds(self):
        with pytest.raises(ValidationError):
            Perception(input="hello", confidence=1.5, timestamp=datetime.utcnow())


class TestPlan:
    def test_plan_defaults(self):
        plan = Plan(goal="Assist user", confidence=0.8)
        assert plan.source == PlanSource.TEMPLATE
        assert plan.actions == []

    def test_confidence_must_be_bounded(self):
        with pytest.raises(ValidationError):
            Plan(goal="x", confidence=-0.1)

    def test_action_defaults(self):
        action = ActionDescriptor(type="web_search", parameters={"query": "x"})
        assert action.required_connectors is None
        assert action.priority == 1


class TestToolModels:
    def test_handler_excluded_from_dump(self):
        tool = ToolDescriptor(
            id="noop", name="Noop", description="does nothing",
            category=ToolCategory.DATA, handler=_noop,
        )
        dumped = tool.model_dump(mode="json")
        assert "handler" not in dumped
        assert dumped["category"] == "data"

    def test_log_entry_is_frozen(self):
        entry = ExecutionLogEntry(
            tool_id="noop", tool_name="Noop", parameters={},
            result=ToolResult(success=True), timestamp=datetime.utcnow(),
            actor_id="actor_1", execution_time_ms=0.5,
        )
        with pytest.raises(ValidationError):
            entry.confirmed = True

    def test_negative_execution_time_rejected(self):
        with pytest.raises(ValidationError):
            ExecutionLogEntry(
                tool_id="noop", tool_name="Noop", parameters={},
                result=ToolResult(success=True), timestamp=datetime.utcnow(),
                actor_id="actor_1", execution_time_ms=-1,
            )


class TestPendingConfirmation:
    def test_expiry(self):
        now = datetime.utcnow()
        pending = PendingConfirmation(
            confirm_id="confirm_1", tool_id="send_sms", parameters={},
            actor_id="actor_1", created_at=now, expires_at=now + timedelta(seconds=10),
        )
        assert pending.is_expired(now) is False
        assert pending.is_expired(now + timedelta(seconds=10)) is True

    def test_no_expiry(self):
        pending = PendingConfirmation(
            confirm_id="confirm_1", tool_id="send_sms", parameters={},
            actor_id="actor_1", created_at=datetime.utcnow(),
        )
        assert pending.is_expired(datetime.utcnow() + timedelta(days=30)) is False


class TestConfig:
    def test_defaults(self):
        config = PipelineConfig()
        assert config.memory_query_limit == 5
        assert config.confirmation_ttl_seconds == 600

    def test_actor_defaults(self):
        actor = ActorProfile(id="a", name="Ada")
        assert actor.enabled_connectors == []
        assert actor.model is None
