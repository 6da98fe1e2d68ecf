"""Memory hit: one result of a semantic memory query."""

from typing import Any, Dict, Optional

from pydantic import BaseModel


class MemoryHit(BaseModel):
    id: str
    content: str
    type: str = "note"
    actor: str = "agent"
    subject: Optional[str] = None
    importance: Optional[int] = None
    score: float = 0.0
    metadata: Dict[str, Any] = {}
