"""
Action Kernel API: FastAPI endpoints.

Exposes the pipeline over REST for:
- Turn handling (perceive, plan, execute)
- Tool registry inspection and direct execution
- Confirmation resolution
- Audit log and statistics
- Pattern insights and suggestions
- Routine management
"""

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from action_kernel.models.actor import ActorProfile
from action_kernel.models.perception import Perception
from action_kernel.pipeline import AgentPipeline, build_pipeline


# --- Request/Response Models ---

class TurnRequest(BaseModel):
    utterance: str
    actor: ActorProfile
    user_id: Optional[str] = None
    confirmed: bool = False


class PerceiveRequest(BaseModel):
    utterance: str
    actor: ActorProfile


class PlanRequest(BaseModel):
    perception: Perception
    actor: ActorProfile


class ToolExecuteRequest(BaseModel):
    parameters: Dict[str, Any] = {}
    actor_id: str
    user_id: Optional[str] = None
    confirmed: bool = False


class RoutineEnabledRequest(BaseModel):
    enabled: bool


# --- Application Factory ---

def create_app(pipeline: Optional[AgentPipeline] = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Action Kernel API",
        description="Agentic action pipeline: perception, planning and tool dispatch",
        version="0.1.0",
    )

    pipe = pipeline or build_pipeline()
    orchestrator = pipe.orchestrator

    app.state.pipeline = pipe

    # === TURNS ===

    @app.post("/turns")
    async def handle_turn(req: TurnRequest):
        """Run one utterance through perception, planning and execution."""
        turn = await pipe.handle_turn(
            req.utterance, req.actor, user_id=req.user_id, confirmed=req.confirmed
        )
        return turn.model_dump(mode="json")

    @app.post("/perceive")
    async def perceive(req: PerceiveRequest):
        perception = await pipe.perceive(req.utterance, req.actor)
        return perception.model_dump(mode="json")

    @app.post("/plan")
    async def plan(req: PlanRequest):
        result = await pipe.plan(req.perception, req.actor)
        return result.model_dump(mode="json")

    # === TOOLS ===

    @app.get("/tools")
    def list_tools(category: Optional[str] = None):
        return [t.model_dump(mode="json") for t in orchestrator.get_available_tools(category)]

    @app.get("/tools/{tool_id}")
    def get_tool(tool_id: str):
        tool = orchestrator.get_tool(tool_id)
        if tool is None:
            raise HTTPException(404, "Tool not found")
        return tool.model_dump(mode="json")

    @app.post("/tools/{tool_id}/execute")
    async def execute_tool(tool_id: str, req: ToolExecuteRequest):
        if orchestrator.get_tool(tool_id) is None:
            raise HTTPException(404, "Tool not found")
        result = await orchestrator.execute_tool(
            tool_id,
            req.parameters,
            req.actor_id,
            user_id=req.user_id,
            confirmed=req.confirmed,
        )
        return result.model_dump(mode="json")

    # === CONFIRMATIONS ===

    @app.get("/confirmations")
    def list_confirmations(actor_id: Optional[str] = None):
        return [
            p.model_dump(mode="json")
            for p in orchestrator.get_pending_confirmations(actor_id)
        ]

    @app.post("/confirmations/{confirm_id}/confirm")
    async def confirm(confirm_id: str):
        if orchestrator.get_pending_confirmation(confirm_id) is None:
            raise HTTPException(404, "Confirmation not found")
        result = await orchestrator.confirm(confirm_id)
        return result.model_dump(mode="json")

    @app.delete("/confirmations/{confirm_id}")
    def cancel_confirmation(confirm_id: str):
        if not orchestrator.cancel_confirmation(confirm_id):
            raise HTTPException(404, "Confirmation not found")
        return {"status": "cancelled", "confirm_id": confirm_id}

    # === AUDIT ===

    @app.get("/logs")
    def get_logs(limit: Optional[int] = None, actor_id: Optional[str] = None):
        return [
            entry.model_dump(mode="json")
            for entry in orchestrator.get_execution_logs(limit=limit, actor_id=actor_id)
        ]

    @app.get("/statistics")
    def get_statistics(actor_id: Optional[str] = None):
        return orchestrator.get_statistics(actor_id)

    @app.get("/connectors/{connector_id}/tools")
    def connector_tools(connector_id: str):
        return {
            "connector_id": connector_id,
            "tools": orchestrator.get_tools_for_connector(connector_id),
        }

    # === PATTERNS ===

    @app.get("/patterns")
    def get_patterns(limit: Optional[int] = None):
        return pipe.learner.get_pattern_insights(limit)

    @app.get("/patterns/suggestions")
    def get_suggestions():
        return {"suggestions": pipe.learner.suggest_based_on_patterns()}

    # === ROUTINES ===

    @app.get("/routines")
    def list_routines(enabled_only: bool = False):
        return [r.model_dump(mode="json") for r in pipe.routines.list_routines(enabled_only)]

    @app.get("/routines/due")
    def due_routines(at: Optional[datetime] = None):
        return [r.model_dump(mode="json") for r in pipe.routines.due_routines(at)]

    @app.put("/routines/{routine_id}/enabled")
    def set_routine_enabled(routine_id: str, req: RoutineEnabledRequest):
        routine = pipe.routines.set_enabled(routine_id, req.enabled)
        if routine is None:
            raise HTTPException(404, "Routine not found")
        return routine.model_dump(mode="json")

    return app


# Default app instance for uvicorn
app = create_app()
