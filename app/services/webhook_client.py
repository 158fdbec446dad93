from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from app.services.errors import UpstreamUnavailableError

logger = logging.getLogger(__name__)


class WebhookClientError(UpstreamUnavailableError):
    """
    Raised when a workflow webhook call fails: connection errors, timeouts
    and non-2xx responses.
    """


class WebhookClient:
    """
    Minimal JSON client for the workflow-automation webhooks.

    Responsibilities
    ----------------
    - Issue GET/POST calls with a fixed timeout.
    - Decode JSON replies, falling back to the raw text when the body is not
      JSON (some workflow configurations answer with plain text).
    - Convert every transport failure into WebhookClientError so callers only
      deal with one exception type.
    """

    def __init__(self, timeout_seconds: float = 10.0) -> None:
        self._timeout_seconds = timeout_seconds

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        timeout_seconds: Optional[float] = None,
    ) -> httpx.Response:
        """
        Low-level helper for issuing a request to a webhook URL.

        Non-2xx responses are returned as-is; only transport errors raise.
        """
        if not url:
            raise WebhookClientError("Webhook URL not configured")

        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        timeout = timeout_seconds or self._timeout_seconds

        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                resp = await client.request(
                    method=method.upper(),
                    url=url,
                    headers=headers,
                    params=params,
                    json=json,
                )
        except httpx.TimeoutException as exc:
            raise WebhookClientError(f"Webhook {method.upper()} timed out after {timeout}s") from exc
        except httpx.HTTPError as exc:
            raise WebhookClientError(f"Webhook {method.upper()} failed: {exc}") from exc

        logger.info("Webhook %s %s -> %s", method.upper(), url, resp.status_code)
        return resp

    @staticmethod
    def _decode(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError:
            return resp.text

    async def send(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        timeout_seconds: Optional[float] = None,
    ) -> Any:
        """
        Call a webhook and return its decoded body.

        Raises WebhookClientError on transport failures and non-2xx responses.
        """
        resp = await self._request(
            method,
            url,
            params=params,
            json=json,
            timeout_seconds=timeout_seconds,
        )
        if resp.status_code // 100 != 2:
            raise WebhookClientError(
                f"Webhook {method.upper()} failed (status={resp.status_code}): {resp.text}",
                status_code=resp.status_code,
            )
        return self._decode(resp)

    async def get_json(
        self,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        timeout_seconds: Optional[float] = None,
    ) -> Any:
        return await self.send("GET", url, params=params, timeout_seconds=timeout_seconds)

    async def post_json(
        self,
        url: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        timeout_seconds: Optional[float] = None,
    ) -> Any:
        return await self.send(
            "POST", url, params=params, json=json, timeout_seconds=timeout_seconds
        )
