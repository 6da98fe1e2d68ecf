"""Tool models: capability registrations and their results."""

from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import BaseModel, Field


class ToolCategory(str, Enum):
    FINANCIAL = "financial"
    COMMUNICATION = "communication"
    AUTOMATION = "automation"
    DATA = "data"


class ParameterType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


class ToolParameter(BaseModel):
    """Declared schema entry for one tool parameter."""

    name: str
    type: ParameterType
    description: str = ""
    required: bool = False
    default: Optional[Any] = None


class ToolResult(BaseModel):
    """Outcome of a tool invocation, successful or not."""

    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    requires_confirmation: Optional[bool] = None
    confirmation_message: Optional[str] = None
    confirmation_id: Optional[str] = None


ToolHandler = Callable[[Dict[str, Any]], Awaitable[ToolResult]]


class ToolDescriptor(BaseModel):
    """
    Capability registration, one independently invocable unit of external effect.

    The handler is the only path to the outside world; it is excluded from
    serialization so descriptors can be listed over the API.
    """

    id: str
    name: str
    description: str
    category: ToolCategory
    parameters: List[ToolParameter] = []
    requires_confirmation: bool = False
    required_connectors: Optional[List[str]] = None
    handler: ToolHandler = Field(exclude=True)
