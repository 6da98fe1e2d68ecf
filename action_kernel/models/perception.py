"""Perception: the structured reading of one user utterance."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class Perception(BaseModel):
    """Intent, entities, sentiment and ambient context for an utterance.

    Produced once per utterance by the Perception Stage and never mutated.
    """

    model_config = ConfigDict(frozen=True)

    input: str
    intent: str = "conversation"
    entities: Dict[str, Any] = {}
    sentiment: Sentiment = Sentiment.NEUTRAL
    context: Dict[str, Any] = {}
    confidence: float = Field(ge=0.0, le=1.0, default=0.6)
    timestamp: datetime
