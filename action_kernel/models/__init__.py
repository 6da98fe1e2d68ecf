"""Action Kernel data models."""

from action_kernel.models.actor import ActorProfile
from action_kernel.models.config import PipelineConfig
from action_kernel.models.execution import ExecutionLogEntry, PendingConfirmation
from action_kernel.models.memory import MemoryHit
from action_kernel.models.perception import Perception, Sentiment
from action_kernel.models.plan import ActionDescriptor, Plan, PlanSource
from action_kernel.models.routine import Routine, RoutineTrigger, TriggerType
from action_kernel.models.tools import (
    ParameterType,
    ToolCategory,
    ToolDescriptor,
    ToolHandler,
    ToolParameter,
    ToolResult,
)

__all__ = [
    "ActionDescriptor",
    "ActorProfile",
    "ExecutionLogEntry",
    "MemoryHit",
    "ParameterType",
    "PendingConfirmation",
    "Perception",
    "PipelineConfig",
    "Plan",
    "PlanSource",
    "Routine",
    "RoutineTrigger",
    "Sentiment",
    "ToolCategory",
    "ToolDescriptor",
    "ToolHandler",
    "ToolParameter",
    "ToolResult",
    "TriggerType",
]
