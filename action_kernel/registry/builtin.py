"""
Built-in tools: the capabilities every pipeline starts with.

Communication, calendar and market-data tools reach their integrations
through the BackendGateway; memory, task and routine tools write to the
in-process collaborators.
"""

import logging
from typing import Any, Dict, List

from action_kernel.connectors.gateway import BackendGateway
from action_kernel.memory.store import MemoryStore
from action_kernel.models.tools import (
    ParameterType,
    ToolCategory,
    ToolDescriptor,
    ToolParameter,
    ToolResult,
)
from action_kernel.registry.orchestrator import ToolOrchestrator
from action_kernel.routines.registry import RoutineRegistry

logger = logging.getLogger(__name__)

STRING = ParameterType.STRING
NUMBER = ParameterType.NUMBER
ARRAY = ParameterType.ARRAY
OBJECT = ParameterType.OBJECT


def _param(name: str, type: ParameterType, description: str, required: bool = False, default: Any = None) -> ToolParameter:
    return ToolParameter(
        name=name, type=type, description=description, required=required, default=default
    )


class BuiltinTools:
    """Handlers for the built-in tools, bound to their collaborators."""

    def __init__(
        self,
        gateway: BackendGateway,
        memory: MemoryStore,
        routines: RoutineRegistry,
        memory_actor: str = "agent",
    ):
        self.gateway = gateway
        self.memory = memory
        self.routines = routines
        self.memory_actor = memory_actor

    # --- Communication ---

    async def make_call(self, params: Dict[str, Any]) -> ToolResult:
        return await self.gateway.post("/api/telephony/call", {
            "to": params["to"],
            "personaVoice": params.get("personaVoice"),
        })

    async def send_sms(self, params: Dict[str, Any]) -> ToolResult:
        return await self.gateway.post("/api/telephony/sms", {
            "to": params["to"],
            "message": params["message"],
        })

    async def send_gmail(self, params: Dict[str, Any]) -> ToolResult:
        return await self.gateway.post("/api/connectors/gmail/send", {
            "to": params["to"],
            "subject": params["subject"],
            "body": params["body"],
            "cc": params.get("cc"),
            "bcc": params.get("bcc"),
        })

    async def search_gmail(self, params: Dict[str, Any]) -> ToolResult:
        return await self.gateway.post("/api/connectors/gmail/search", {
            "query": params["query"],
            "maxResults": params.get("maxResults", 10),
        })

    async def create_calendar_event(self, params: Dict[str, Any]) -> ToolResult:
        return await self.gateway.post("/api/connectors/calendar/events", {
            "summary": params["summary"],
            "start": params["start"],
            "end": params.get("end"),
            "description": params.get("description"),
        })

    # --- Data ---

    async def store_memory(self, params: Dict[str, Any]) -> ToolResult:
        memory_type = params.get("type", "note")
        await self.memory.add_memory(
            params["content"],
            self.memory_actor,
            memory_type,
            metadata=params.get("metadata", {}),
        )
        return ToolResult(success=True, data={"stored": True, "type": memory_type})

    async def create_task(self, params: Dict[str, Any]) -> ToolResult:
        priority = params.get("priority", "P3")
        await self.memory.add_memory(
            params["content"],
            self.memory_actor,
            "task",
            metadata={"priority": priority, "status": "pending", "source": "agent"},
        )
        return ToolResult(success=True, data={
            "content": params["content"],
            "priority": priority,
            "status": "pending",
        })

    async def web_search(self, params: Dict[str, Any]) -> ToolResult:
        # Searching is done by the caller that owns the conversational turn
        return ToolResult(success=True, data={
            "status": "queued",
            "message": "Web search queued",
            "query": params["query"],
        })

    # --- Automation ---

    async def create_routine(self, params: Dict[str, Any]) -> ToolResult:
        routine = self.routines.create_routine(
            name=params["name"],
            trigger=params["trigger"],
            actions=list(params["actions"]),
            description=params.get("description", "Auto-generated routine"),
            conditions=params.get("conditions"),
            tags=params.get("tags"),
        )
        return ToolResult(success=True, data={"routine_id": routine.id, "name": routine.name})

    # --- Financial ---

    async def get_crypto_price(self, params: Dict[str, Any]) -> ToolResult:
        return await self.gateway.post("/api/financial/crypto", {
            "symbols": list(params["symbols"]),
            "source": params.get("source", "coingecko"),
        })

    async def get_stock_price(self, params: Dict[str, Any]) -> ToolResult:
        return await self.gateway.post("/api/financial/stocks", {"symbol": params["symbol"]})

    async def get_market_news(self, params: Dict[str, Any]) -> ToolResult:
        return await self.gateway.get("/api/financial/news", params={
            "symbol": params.get("symbol", ""),
            "category": params.get("category", "general"),
            "limit": params.get("limit", 10),
        })

    async def set_price_alert(self, params: Dict[str, Any]) -> ToolResult:
        symbol = params["symbol"]
        condition = params["condition"]
        target = params["targetPrice"]
        message = f"Price alert: {symbol} is now {condition} ${target}"

        trigger = {
            "type": "price_alert",
            "config": {
                "symbol": symbol,
                "asset_type": params["type"],
                "condition": condition,
                "target_price": target,
                "data_source": "coingecko" if params["type"] == "crypto" else "alphavantage",
                "check_interval_ms": 60000,
            },
        }

        action = params["action"]
        if action == "sms" and params.get("phoneNumber"):
            actions = [{"type": "send_sms", "to": params["phoneNumber"], "message": message}]
        elif action == "call" and params.get("phoneNumber"):
            actions = [{"type": "make_call", "to": params["phoneNumber"], "message": message}]
        elif action == "email" and params.get("email"):
            actions = [{
                "type": "send_email",
                "to": params["email"],
                "subject": f"Price Alert: {symbol}",
                "body": message,
            }]
        else:
            actions = [{"type": "notification", "message": message}]

        routine = self.routines.create_routine(
            name=f"Price Alert: {symbol} {condition} ${target}",
            description=f"Alert when {symbol} goes {condition} ${target}",
            trigger=trigger,
            actions=actions,
            tags=["price-alert", "financial", params["type"]],
        )
        logger.info("Price alert %s armed: %s %s %s", routine.id, symbol, condition, target)
        return ToolResult(success=True, data={
            "alert_id": routine.id,
            "routine_name": routine.name,
            "symbol": symbol,
            "target_price": target,
            "condition": condition,
            "action": actions[0]["type"],
            "status": "active",
        })

    def descriptors(self) -> List[ToolDescriptor]:
        """Descriptors for every built-in tool, bound to this instance."""
        return [
            ToolDescriptor(
                id="make_call",
                name="Make Phone Call",
                description="Initiate an outbound phone call",
                category=ToolCategory.COMMUNICATION,
                requires_confirmation=True,
                required_connectors=["twilio"],
                parameters=[
                    _param("to", STRING, "Phone number to call (E.164 format)", required=True),
                    _param("personaVoice", STRING, "Persona voice to use"),
                ],
                handler=self.make_call,
            ),
            ToolDescriptor(
                id="send_sms",
                name="Send SMS",
                description="Send an SMS message",
                category=ToolCategory.COMMUNICATION,
                requires_confirmation=True,
                required_connectors=["twilio"],
                parameters=[
                    _param("to", STRING, "Phone number to send to (E.164 format)", required=True),
                    _param("message", STRING, "Message content (up to 1600 characters)", required=True),
                ],
                handler=self.send_sms,
            ),
            ToolDescriptor(
                id="send_gmail",
                name="Send Gmail",
                description="Send an email via Gmail",
                category=ToolCategory.COMMUNICATION,
                requires_confirmation=True,
                required_connectors=["gmail"],
                parameters=[
                    _param("to", STRING, "Recipient email address", required=True),
                    _param("subject", STRING, "Email subject line", required=True),
                    _param("body", STRING, "Email body content", required=True),
                    _param("cc", STRING, "CC addresses (comma-separated)"),
                    _param("bcc", STRING, "BCC addresses (comma-separated)"),
                ],
                handler=self.send_gmail,
            ),
            ToolDescriptor(
                id="search_gmail",
                name="Search Gmail",
                description="Search for emails in the Gmail inbox",
                category=ToolCategory.COMMUNICATION,
                required_connectors=["gmail"],
                parameters=[
                    _param("query", STRING, "Gmail search query", required=True),
                    _param("maxResults", NUMBER, "Maximum number of results", default=10),
                ],
                handler=self.search_gmail,
            ),
            ToolDescriptor(
                id="create_calendar_event",
                name="Create Calendar Event",
                description="Create an event in the user's calendar",
                category=ToolCategory.AUTOMATION,
                required_connectors=["calendar"],
                parameters=[
                    _param("summary", STRING, "Event title", required=True),
                    _param("start", STRING, "Start time (ISO 8601)", required=True),
                    _param("end", STRING, "End time (ISO 8601)"),
                    _param("description", STRING, "Event description"),
                ],
                handler=self.create_calendar_event,
            ),
            ToolDescriptor(
                id="store_memory",
                name="Store Memory",
                description="Write a fact or note into long-term memory",
                category=ToolCategory.DATA,
                required_connectors=[],
                parameters=[
                    _param("content", STRING, "Text to remember", required=True),
                    _param("type", STRING, "Memory type", default="note"),
                    _param("metadata", OBJECT, "Extra metadata"),
                ],
                handler=self.store_memory,
            ),
            ToolDescriptor(
                id="create_task",
                name="Create Task",
                description="Add a pending task to the task list",
                category=ToolCategory.DATA,
                required_connectors=[],
                parameters=[
                    _param("content", STRING, "Task description", required=True),
                    _param("priority", STRING, "Priority P1-P5", default="P3"),
                ],
                handler=self.create_task,
            ),
            ToolDescriptor(
                id="web_search",
                name="Web Search",
                description="Queue a web search for the caller to run",
                category=ToolCategory.DATA,
                required_connectors=[],
                parameters=[_param("query", STRING, "Search query", required=True)],
                handler=self.web_search,
            ),
            ToolDescriptor(
                id="create_routine",
                name="Create Routine",
                description="Register a trigger-condition-action automation",
                category=ToolCategory.AUTOMATION,
                required_connectors=[],
                parameters=[
                    _param("name", STRING, "Routine name", required=True),
                    _param("trigger", OBJECT, "Trigger: {type, config}", required=True),
                    _param("actions", ARRAY, "Actions to run", required=True),
                    _param("description", STRING, "Routine description"),
                    _param("conditions", ARRAY, "Conditions to check"),
                    _param("tags", ARRAY, "Tags"),
                ],
                handler=self.create_routine,
            ),
            ToolDescriptor(
                id="get_crypto_price",
                name="Get Cryptocurrency Price",
                description="Get current price and market data for cryptocurrencies",
                category=ToolCategory.FINANCIAL,
                parameters=[
                    _param("symbols", ARRAY, 'Crypto symbols (e.g., ["BTC", "ETH"])', required=True),
                    _param("source", STRING, "coingecko or coinmarketcap", default="coingecko"),
                ],
                handler=self.get_crypto_price,
            ),
            ToolDescriptor(
                id="get_stock_price",
                name="Get Stock Price",
                description="Get current stock quote and market data",
                category=ToolCategory.FINANCIAL,
                parameters=[_param("symbol", STRING, 'Stock symbol (e.g., "AAPL")', required=True)],
                handler=self.get_stock_price,
            ),
            ToolDescriptor(
                id="get_market_news",
                name="Get Market News",
                description="Get latest financial market news",
                category=ToolCategory.FINANCIAL,
                parameters=[
                    _param("symbol", STRING, "Stock symbol for company news"),
                    _param("category", STRING, "general, forex, crypto or merger", default="general"),
                    _param("limit", NUMBER, "Number of articles", default=10),
                ],
                handler=self.get_market_news,
            ),
            ToolDescriptor(
                id="set_price_alert",
                name="Set Price Alert",
                description="Create a price alert routine for a crypto or stock symbol",
                category=ToolCategory.FINANCIAL,
                parameters=[
                    _param("symbol", STRING, "Asset symbol", required=True),
                    _param("type", STRING, "crypto or stock", required=True),
                    _param("targetPrice", NUMBER, "Target price", required=True),
                    _param("condition", STRING, "above, below or crosses", required=True),
                    _param("action", STRING, "notify, sms, call or email", required=True),
                    _param("phoneNumber", STRING, "Phone number for sms/call alerts"),
                    _param("email", STRING, "Address for email alerts"),
                ],
                handler=self.set_price_alert,
            ),
        ]


def register_builtin_tools(orchestrator: ToolOrchestrator, tools: BuiltinTools) -> None:
    """Register every built-in tool with an orchestrator."""
    for descriptor in tools.descriptors():
        orchestrator.register_tool(descriptor)
