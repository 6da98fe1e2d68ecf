"""
Memory store port.

The long-term vector memory lives outside this package. The pipeline needs
only two calls: a relevance query and an append.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable
from uuid import uuid4

from action_kernel.models.memory import MemoryHit

_TOKEN = re.compile(r"[a-z0-9]+")


@runtime_checkable
class MemoryStore(Protocol):
    async def query_memories(self, text: str, limit: int) -> List[MemoryHit]: ...

    async def add_memory(
        self,
        content: str,
        actor: str,
        type: str,
        subject: Optional[str] = None,
        importance: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None: ...


class InMemoryMemoryStore:
    """
    Process-local memory store for tests and single-user deployments.
    Relevance is token overlap, not embeddings.
    """

    def __init__(self):
        self._memories: List[MemoryHit] = []

    async def query_memories(self, text: str, limit: int) -> List[MemoryHit]:
        query = set(_TOKEN.findall(text.lower()))
        if not query:
            return []
        scored = []
        for memory in self._memories:
            tokens = set(_TOKEN.findall(memory.content.lower()))
            overlap = len(query & tokens)
            if overlap:
                score = overlap / len(query)
                scored.append(memory.model_copy(update={"score": round(score, 3)}))
        scored.sort(key=lambda m: m.score, reverse=True)
        return scored[:limit]

    async def add_memory(
        self,
        content: str,
        actor: str,
        type: str,
        subject: Optional[str] = None,
        importance: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        meta = dict(metadata or {})
        meta.setdefault("created_at", datetime.utcnow().isoformat())
        self._memories.append(MemoryHit(
            id=f"mem_{uuid4().hex[:12]}",
            content=content,
            type=type,
            actor=actor,
            subject=subject,
            importance=importance,
            metadata=meta,
        ))

    def all(self, type: Optional[str] = None) -> List[MemoryHit]:
        """Every stored memory, optionally of one type, oldest first."""
        if type is None:
            return list(self._memories)
        return [m for m in self._memories if m.type == type]

    def count(self) -> int:
        return len(self._memories)
