"""
JSON-RPC client for the Stitch MCP endpoint.

One POST per call with a fresh bearer token, the billing-project header and a
hard wall-clock timeout. Secondary downloads (code and screenshot URLs found
in screen data) go through the same ``httpx.AsyncClient``.
"""

import asyncio
import json
import logging
import time
from typing import Any, Dict, Optional

import httpx

from .config import BILLING_PROJECT_HEADER, Settings
from .credentials import CredentialSource, get_access_token
from .errors import (
    DownloadError,
    HttpError,
    UpstreamError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)

logger = logging.getLogger(__name__)


def build_request(method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "method": method,
        "params": params if params is not None else {},
        "id": int(time.time() * 1000),
    }


def _error_message(error: Any) -> str:
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return json.dumps(error)


class StitchClient:
    """Sends JSON-RPC requests to Stitch and returns the parsed envelope."""

    def __init__(
        self,
        settings: Settings,
        credentials: CredentialSource,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings
        self.credentials = credentials
        self._http = http_client or httpx.AsyncClient(
            timeout=settings.timeout_s, follow_redirects=True
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "StitchClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _headers(self) -> Dict[str, str]:
        # gcloud is a blocking subprocess call
        token = await asyncio.to_thread(get_access_token, self.credentials)
        return {
            "Authorization": f"Bearer {token}",
            BILLING_PROJECT_HEADER: self.settings.project_id,
            "Content-Type": "application/json",
        }

    async def call(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Send one JSON-RPC request and return the envelope.

        Raises UpstreamTimeoutError, UpstreamUnavailableError, HttpError or
        UpstreamError; a returned envelope always has a non-null ``result``.
        """
        headers = await self._headers()
        body = build_request(method, params)
        logger.info("API: %s", method)

        timeout_s = self.settings.timeout_s
        try:
            response = await asyncio.wait_for(
                self._http.post(self.settings.api_url, json=body, headers=headers),
                timeout=timeout_s,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise UpstreamTimeoutError(f"Request timeout ({timeout_s:g}s)") from exc
        except httpx.HTTPError as exc:
            raise UpstreamUnavailableError(f"Cannot reach {self.settings.api_url}: {exc}") from exc

        if not response.is_success:
            raise HttpError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamError(f"Invalid JSON from upstream: {response.text[:200]}") from exc

        if not isinstance(data, dict):
            raise UpstreamError(f"Malformed JSON-RPC envelope: {json.dumps(data)}")
        # Exactly one of result/error must be present.
        if data.get("error") is not None:
            raise UpstreamError(_error_message(data["error"]), data["error"])
        if data.get("result") is None:
            raise UpstreamError(f"Malformed JSON-RPC envelope: {json.dumps(data)}")
        return data

    async def list_tools(self) -> Dict[str, Any]:
        return await self.call("tools/list", {})

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.call("tools/call", {"name": name, "arguments": arguments or {}})

    async def download(self, url: str, what: str = "content") -> httpx.Response:
        """GET a located download URL; no auth headers are sent."""
        try:
            response = await self._http.get(url)
        except httpx.HTTPError as exc:
            raise DownloadError(f"Failed to download {what}: {exc}") from exc
        if not response.is_success:
            raise DownloadError(
                f"Failed to download {what}: {response.status_code}",
                status_code=response.status_code,
            )
        return response
