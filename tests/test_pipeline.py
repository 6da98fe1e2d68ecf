"""End-to-end tests for the Agent Pipeline."""

import pytest

from action_kernel.errors import ProviderError
from action_kernel.memory.store import InMemoryMemoryStore
from action_kernel.models.actor import ActorProfile
from action_kernel.models.plan import PlanSource
from action_kernel.persistence.store import InMemoryPatternStore
from action_kernel.pipeline import AgentPipeline, TurnResult


class _FailingLLM:
    async def send_message(self, messages):
        raise ProviderError("upstream 503")


def _make_actor(connectors=None) -> ActorProfile:
    return ActorProfile(
        id="actor_1",
        name="Ada",
        enabled_connectors=["twilio", "gmail"] if connectors is None else connectors,
        model="gpt-4o-mini",
    )


def _make_pipeline(**kwargs) -> AgentPipeline:
    kwargs.setdefault("llm", _FailingLLM())
    return AgentPipeline(**kwargs)


class TestModelFailureFallback:
    async def test_perception_and_plan_survive_model_failure(self):
        pipeline = _make_pipeline()
        actor = _make_actor()

        perception = await pipeline.perceive("please call my mom", actor)
        plan = await pipeline.plan(perception, actor)

        assert perception.intent == "call"
        assert plan is not None
        assert plan.source == PlanSource.TEMPLATE


class TestSmsScenario:
    async def test_sms_is_parked_for_confirmation(self):
        pipeline = _make_pipeline()

        turn = await pipeline.handle_turn("text +15551234567 saying I'll be late", _make_actor())

        assert isinstance(turn, TurnResult)
        assert turn.perception.intent == "sms"
        assert turn.perception.entities["phones"] == ["+15551234567"]
        sms_actions = [a for a in turn.plan.actions if a.type == "telephony_sms"]
        assert len(sms_actions) == 1
        assert sms_actions[0].parameters["phoneNumber"] == "+15551234567"
        assert sms_actions[0].parameters["message"] == "I'll be late"

        result = turn.results["telephony_sms"]
        assert result.requires_confirmation is True
        assert pipeline.orchestrator.get_execution_logs() == []

        pending = pipeline.orchestrator.get_pending_confirmations("actor_1")
        assert len(pending) == 1
        assert pending[0].parameters == {"to": "+15551234567", "message": "I'll be late"}


class TestNoteScenario:
    async def test_note_is_stored(self):
        memory = InMemoryMemoryStore()
        pipeline = _make_pipeline(memory=memory)

        turn = await pipeline.handle_turn("remember that my wifi password is foo123", _make_actor())

        assert turn.perception.intent == "note"
        assert [a.type for a in turn.plan.actions] == ["store_memory"]
        assert turn.results["store_memory"].success is True
        notes = memory.all(type="note")
        assert len(notes) == 1
        assert notes[0].content == "my wifi password is foo123"
        assert pipeline.learner.get_frequency("action_store_memory") == 1


class TestMissingConnectorScenario:
    async def test_calendar_action_excluded(self):
        pipeline = _make_pipeline()

        turn = await pipeline.handle_turn(
            "schedule a meeting with Sam tomorrow", _make_actor(connectors=["twilio"])
        )

        assert turn.perception.intent == "schedule"
        assert all(a.type != "calendar_event" for a in turn.plan.actions)
        assert "Connector required: calendar" in turn.plan.prerequisites
        assert turn.results == {}


class TestPipelineWiring:
    async def test_patterns_persist_through_store(self):
        store = InMemoryPatternStore()
        pipeline = _make_pipeline(pattern_store=store)

        await pipeline.handle_turn("please call my mom", _make_actor())
        await pipeline.handle_turn("call my dad", _make_actor())

        assert store.load()["intent_call"] == 2

    def test_pipelines_are_isolated(self):
        first = _make_pipeline()
        second = _make_pipeline()
        first.learner.record_pattern("intent_call")
        assert second.learner.get_frequency("intent_call") == 0
        assert first.orchestrator is not second.orchestrator

    def test_builtins_optional(self):
        assert _make_pipeline(register_builtins=False).orchestrator.get_all_tools() == []
