"""Actor profile: the persona a pipeline run acts on behalf of."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class ActorProfile(BaseModel):
    """Persona configuration: enabled connectors, tools and model."""

    id: str
    name: str
    enabled_connectors: List[str] = []      # e.g., ["twilio", "gmail", "google_calendar"]
    enabled_tools: List[str] = []           # Tool ids; empty = every registered tool
    model: Optional[str] = None             # None disables the model-backed paths
    user_profile: Dict[str, Any] = {}
