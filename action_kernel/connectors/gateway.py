"""
Backend Gateway: HTTP bridge to the connector backend.

Telephony, mail, calendar and market-data integrations live behind a backend
service. Built-in tool handlers reach them only through this gateway, which
turns every failure mode into a failed ToolResult instead of raising.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from action_kernel.models.tools import ToolResult

logger = logging.getLogger(__name__)

_TIMEOUT = 15.0


class BackendGateway:
    """Thin async client for the connector backend REST API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = _TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> ToolResult:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, payload: Optional[Dict[str, Any]] = None) -> ToolResult:
        return await self._request("POST", path, json=payload or {})

    async def _request(self, method: str, path: str, **kwargs: Any) -> ToolResult:
        url = f"{self._base_url}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.request(method, url, **kwargs)
                if resp.status_code == 401:
                    return ToolResult(success=False, error="Connector credentials rejected (401).")
                if resp.status_code == 404:
                    return ToolResult(success=False, error=f"Connector endpoint not found: {path} (404).")
                resp.raise_for_status()
                data = resp.json()
        except httpx.TimeoutException:
            logger.warning("%s %s timed out after %ss", method, path, self._timeout)
            return ToolResult(success=False, error=f"Connector backend timed out ({self._timeout}s).")
        except httpx.ConnectError:
            logger.warning("Could not reach connector backend at %s", self._base_url)
            return ToolResult(success=False, error=f"Could not reach connector backend at {self._base_url}.")
        except httpx.HTTPStatusError as e:
            return ToolResult(success=False, error=f"Connector backend error: HTTP {e.response.status_code}.")
        except (httpx.HTTPError, ValueError) as e:
            return ToolResult(success=False, error=f"Connector backend error: {e}")

        return _to_tool_result(data)


def _to_tool_result(data: Any) -> ToolResult:
    """Map a backend JSON payload onto a ToolResult."""
    if not isinstance(data, dict):
        return ToolResult(success=True, data=data)

    if data.get("requiresSetup"):
        return ToolResult(
            success=False,
            error="Connector not configured",
            confirmation_message=data.get(
                "setupInstructions", "Configure the connector credentials in the backend settings."
            ),
        )

    success = data.get("success", True)
    payload = data.get("data", {k: v for k, v in data.items() if k not in ("success", "error")})
    return ToolResult(
        success=bool(success),
        data=payload if success else None,
        error=None if success else data.get("error", "Connector call failed"),
    )
