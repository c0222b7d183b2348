# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
HTTP and webhook executors built on httpx.
"""

import base64
import json
import time
from typing import Any, Dict, Optional

import httpx

from ..workflow_nodes import AuthApiKey, AuthBasic, HttpActionData, WebhookTriggerData
from .base import ExecutorError, NodeExecutor


def _validate_url(url: str) -> str:
    url = (url or "").strip()
    if not url:
        raise ExecutorError("URL is required")
    if not url.lower().startswith(("http://", "https://")):
        raise ExecutorError(f"Invalid URL: {url}")
    return url


def apply_auth(auth, headers: Dict[str, str], params: Dict[str, str]) -> None:
    """Add basic or api-key credentials to headers / query params in place."""
    if isinstance(auth, AuthBasic) and auth.username and auth.password:
        credentials = base64.b64encode(f"{auth.username}:{auth.password}".encode()).decode()
        headers["Authorization"] = f"Basic {credentials}"
    elif isinstance(auth, AuthApiKey) and auth.key and auth.value:
        if auth.location == "query":
            params[auth.key] = auth.value
        else:
            headers[auth.key] = auth.value


class HttpExecutor(NodeExecutor):
    """
    Executes action:http nodes.

    Output:
        {"status", "statusText", "headers", "data", "duration"}

    Non-2xx responses raise ExecutorError carrying that output, so the
    engine can route the node through its error handle.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        default_timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client = client
        self.default_timeout = default_timeout
        self.transport = transport

    async def execute(self, data: HttpActionData) -> Dict[str, Any]:
        url = _validate_url(data.url)
        headers = {"Content-Type": "application/json"}
        headers.update(data.headers or {})
        params: Dict[str, str] = {}
        apply_auth(data.auth, headers, params)

        kwargs: Dict[str, Any] = {"headers": headers, "params": params or None}
        if data.method in ("POST", "PUT", "PATCH") and data.body:
            kwargs.update(self._encode_body(data))

        timeout = data.timeout or self.default_timeout
        return await self.send(data.method, url, timeout, **kwargs)

    def _encode_body(self, data: HttpActionData) -> Dict[str, Any]:
        if data.body_type == "json":
            try:
                return {"json": json.loads(data.body)}
            except json.JSONDecodeError as e:
                raise ExecutorError(f"Invalid JSON body: {e}")
        return {"content": data.body}

    async def send(self, method: str, url: str, timeout: float, **kwargs) -> Dict[str, Any]:
        """Perform the request and shape the output."""
        started = time.monotonic()
        try:
            if self.client is not None:
                response = await self.client.request(method, url, timeout=timeout, **kwargs)
            else:
                async with httpx.AsyncClient(transport=self.transport, timeout=timeout) as client:
                    response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException:
            raise ExecutorError(f"Request timed out after {timeout:g}s")
        except httpx.HTTPError as e:
            raise ExecutorError(f"Request failed: {e}")

        output = {
            "status": response.status_code,
            "statusText": response.reason_phrase,
            "headers": dict(response.headers),
            "data": self._parse_body(response),
            "duration": round((time.monotonic() - started) * 1000),
        }

        if not response.is_success:
            raise ExecutorError(f"HTTP {response.status_code}: {response.reason_phrase}", output=output)
        return output

    @staticmethod
    def _parse_body(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text


class WebhookExecutor(NodeExecutor):
    """Executes trigger:webhook nodes by calling the configured webhook URL."""

    def __init__(self, http: HttpExecutor):
        self.http = http

    async def execute(self, data: WebhookTriggerData) -> Dict[str, Any]:
        url = _validate_url(data.webhook_url)
        headers = {"Content-Type": "application/json"}
        params: Dict[str, str] = {}
        apply_auth(data.auth, headers, params)
        return await self.http.send(
            data.method,
            url,
            self.http.default_timeout,
            headers=headers,
            params=params or None,
        )
