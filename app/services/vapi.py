"""
Vapi Service — thin async client for the Vapi voice-AI REST API.

Authenticates with the account's private key. Returns raw provider dicts;
normalization happens in the analytics layer.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class VapiError(Exception):
    """Vapi request failed (non-2xx response or transport error)."""

    def __init__(self, status_code: int | None, message: str) -> None:
        super().__init__(f"Vapi API error: {status_code} - {message}")
        self.status_code = status_code
        self.message = message


class VapiAuthError(VapiError):
    """Vapi rejected the API key."""


def _unwrap_list(payload: Any) -> list[dict[str, Any]]:
    """List endpoints return either a bare array or {"data": [...]}."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        return payload.get("data") or []
    return []


class VapiClient:
    """Read-only client for calls and assistants."""

    def __init__(self, base_url: str, api_key: str, timeout: float = 30.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    async def _request(
        self, method: str, path: str, params: dict[str, Any] | None = None
    ) -> httpx.Response:
        url = f"{self.base_url}{path}"
        start = time.perf_counter()

        try:
            async with httpx.AsyncClient() as client:
                resp = await client.request(
                    method,
                    url,
                    params=params,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    timeout=self.timeout,
                )
        except httpx.HTTPError as e:
            logger.error("Vapi request failed (%s %s): %s", method, path, e)
            raise VapiError(None, str(e)) from e

        elapsed = (time.perf_counter() - start) * 1000
        logger.debug("Vapi %s %s -> %d (%.0fms)", method, path, resp.status_code, elapsed)
        return resp

    def _raise_for_status(self, resp: httpx.Response) -> None:
        if resp.status_code < 400:
            return
        body = resp.text
        logger.error("Vapi error response (%d): %s", resp.status_code, body)
        if resp.status_code in (401, 403):
            raise VapiAuthError(resp.status_code, body)
        raise VapiError(resp.status_code, body)

    async def list_calls(
        self,
        assistant_id: str | None = None,
        limit: int | None = 50,
        offset: int | None = None,
        created_after: datetime | None = None,
        created_before: datetime | None = None,
    ) -> list[dict[str, Any]]:
        """GET /call with optional filters."""
        params: dict[str, Any] = {}
        if assistant_id:
            params["assistantId"] = assistant_id
        if limit:
            params["limit"] = limit
        if offset:
            params["offset"] = offset
        if created_after:
            params["createdAtGt"] = created_after.isoformat()
        if created_before:
            params["createdAtLt"] = created_before.isoformat()

        resp = await self._request("GET", "/call", params=params)
        self._raise_for_status(resp)
        calls = _unwrap_list(resp.json())
        logger.info("Fetched %d calls from Vapi", len(calls))
        return calls

    async def get_call(self, call_id: str) -> dict[str, Any] | None:
        """GET /call/{id}. None when the call does not exist."""
        resp = await self._request("GET", f"/call/{call_id}")
        if resp.status_code == 404:
            return None
        self._raise_for_status(resp)
        return resp.json()

    async def list_assistants(self) -> list[dict[str, Any]]:
        """GET /assistant."""
        resp = await self._request("GET", "/assistant")
        self._raise_for_status(resp)
        return _unwrap_list(resp.json())
