"""Pipeline configuration: tunable constants shared by every stage."""

from typing import Optional

from pydantic import BaseModel, Field


class PipelineConfig(BaseModel):
    """Configuration for one AgentPipeline."""

    memory_query_limit: int = 5
    recent_pattern_count: int = 10
    heuristic_confidence: float = Field(ge=0.0, le=1.0, default=0.6)
    default_model_confidence: float = Field(ge=0.0, le=1.0, default=0.7)
    template_confidence: float = Field(ge=0.0, le=1.0, default=0.8)
    confirmation_ttl_seconds: Optional[int] = 600   # None = confirmations never expire
    pattern_insight_limit: int = 20
    persist_model_perceptions: bool = True
