"""
Agent Pipeline: the context object that wires every stage together.

One AgentPipeline owns the tool registry, execution log, pending
confirmations, pattern counters and routines for its lifetime. Nothing is
held at module level, so tests build as many isolated pipelines as they need.

A turn runs: utterance → Perception → Plan → ActionDispatcher → results,
with the pattern learner updated along the way.
"""

import logging
from typing import Dict, Optional

from pydantic import BaseModel

from action_kernel.config import Settings, configure_logging
from action_kernel.connectors.directory import ActorConnectorDirectory, ConnectorDirectory
from action_kernel.connectors.gateway import BackendGateway
from action_kernel.execution.dispatcher import ActionDispatcher
from action_kernel.learning.patterns import PatternLearner
from action_kernel.memory.store import InMemoryMemoryStore, MemoryStore
from action_kernel.models.actor import ActorProfile
from action_kernel.models.config import PipelineConfig
from action_kernel.models.perception import Perception
from action_kernel.models.plan import Plan
from action_kernel.models.tools import ToolResult
from action_kernel.perception.stage import PerceptionStage
from action_kernel.persistence.store import InMemoryPatternStore, PatternStore, SQLitePatternStore
from action_kernel.planning.planner import PlanningStage
from action_kernel.providers.llm import ChatCompletionsProvider, LLMProvider
from action_kernel.registry.builtin import BuiltinTools, register_builtin_tools
from action_kernel.registry.orchestrator import ToolOrchestrator
from action_kernel.routines.registry import RoutineRegistry

logger = logging.getLogger(__name__)


class TurnResult(BaseModel):
    """Everything one handled utterance produced."""

    perception: Perception
    plan: Plan
    results: Dict[str, ToolResult] = {}


class AgentPipeline:
    """Holds the pipeline's components and runs turns through them."""

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        gateway: Optional[BackendGateway] = None,
        memory: Optional[MemoryStore] = None,
        pattern_store: Optional[PatternStore] = None,
        connectors: Optional[ConnectorDirectory] = None,
        llm: Optional[LLMProvider] = None,
        register_builtins: bool = True,
    ):
        self.config = config or PipelineConfig()
        self.gateway = gateway or BackendGateway("http://localhost:5000")
        self.memory = memory if memory is not None else InMemoryMemoryStore()
        self.connectors = connectors or ActorConnectorDirectory()
        self.llm = llm

        self.learner = PatternLearner(
            pattern_store or InMemoryPatternStore(),
            insight_limit=self.config.pattern_insight_limit,
        )
        self.routines = RoutineRegistry()
        self.orchestrator = ToolOrchestrator(
            confirmation_ttl_seconds=self.config.confirmation_ttl_seconds
        )
        if register_builtins:
            register_builtin_tools(
                self.orchestrator,
                BuiltinTools(self.gateway, self.memory, self.routines),
            )

        self.dispatcher = ActionDispatcher(self.orchestrator)
        self.perception = PerceptionStage(
            self.learner, memory=self.memory, llm=self.llm, config=self.config
        )
        self.planner = PlanningStage(
            self.orchestrator, connectors=self.connectors, llm=self.llm, config=self.config
        )

    async def perceive(self, utterance: str, actor: ActorProfile) -> Perception:
        return await self.perception.perceive(utterance, actor)

    async def plan(self, perception: Perception, actor: ActorProfile) -> Plan:
        return await self.planner.create_plan(perception, actor)

    async def handle_turn(
        self,
        utterance: str,
        actor: ActorProfile,
        user_id: Optional[str] = None,
        confirmed: bool = False,
    ) -> TurnResult:
        """
        Perceive, plan and execute one utterance.

        Tools that need confirmation come back with requires_confirmation set;
        the caller resolves them through the orchestrator's confirm().
        """
        perception = await self.perceive(utterance, actor)
        plan = await self.plan(perception, actor)
        results = await self.dispatcher.execute_actions(
            plan.actions, actor, user_id=user_id, confirmed=confirmed
        )
        for action_type, result in results.items():
            if result.success:
                self.learner.record_pattern(f"action_{action_type}")
        logger.info(
            "Turn for %s: intent=%s actions=%d prerequisites=%d",
            actor.id, perception.intent, len(plan.actions), len(plan.prerequisites),
        )
        return TurnResult(perception=perception, plan=plan, results=results)


def build_pipeline(settings: Optional[Settings] = None) -> AgentPipeline:
    """Build a pipeline from deployment settings."""
    settings = settings or Settings()
    configure_logging(settings.log_level)
    llm = None
    if settings.llm_api_key:
        llm = ChatCompletionsProvider(
            settings.llm_base_url, settings.llm_api_key, settings.llm_model
        )
    return AgentPipeline(
        config=settings.pipeline_config(),
        gateway=BackendGateway(settings.backend_url, timeout=settings.backend_timeout),
        pattern_store=SQLitePatternStore(settings.pattern_db_path),
        llm=llm,
    )
