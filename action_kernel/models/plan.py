"""Plan: the ordered actions proposed to satisfy a perceived intent."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class PlanSource(str, Enum):
    MODEL = "model"         # Produced by the LLM planner
    TEMPLATE = "template"   # Produced by the intent → action table


class ActionDescriptor(BaseModel):
    """A single executable step of a plan."""

    type: str                                       # e.g., "telephony_sms", "store_memory"
    parameters: Dict[str, Any] = {}
    required_connectors: Optional[List[str]] = None  # None = use the type's defaults
    priority: int = 1                               # Carried, not used for ordering


class Plan(BaseModel):
    """A goal, human-readable steps, and the executable action list."""

    goal: str
    steps: List[str] = []
    actions: List[ActionDescriptor] = []
    prerequisites: List[str] = []
    confidence: float = Field(ge=0.0, le=1.0)
    alternatives: List[str] = []
    source: PlanSource = PlanSource.TEMPLATE
