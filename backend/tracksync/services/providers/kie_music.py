"""Kie.ai music (Suno) provider.

Async task pattern:
1. POST /api/v1/generate (or one of the variant routes) → returns taskId
2. GET  /api/v1/generate/record-info?taskId=... → poll status + sunoData

HTTP-level failures (transport errors, non-2xx) raise UpstreamError.
Application-level failures (e.g. SENSITIVE_WORD_ERROR) arrive as a normal
payload and are left to the normalizer.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

# Client route name -> Kie.ai path
SUBMIT_ROUTES: dict[str, str] = {
    "generate": "/api/v1/generate",
    "extend": "/api/v1/generate/extend",
    "upload-cover": "/api/v1/generate/upload-cover",
    "add-instrumental": "/api/v1/generate/add-instrumental",
    "add-vocals": "/api/v1/generate/add-vocals",
    "generate-lyrics": "/api/v1/lyrics",
}

RECORD_INFO_PATH = "/api/v1/generate/record-info"


class UpstreamError(Exception):
    """The upstream API could not be reached or answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None, payload: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


def extract_task_id(response: Any) -> str | None:
    """Pull the task id out of a submission response (data.taskId or taskId)."""
    if not isinstance(response, dict):
        return None
    data = response.get("data")
    task_id = data.get("taskId") if isinstance(data, dict) else None
    task_id = task_id or response.get("taskId")
    return str(task_id) if task_id else None


class KieMusicClient:
    """Thin async client for the Kie.ai Suno endpoints."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.kie.ai",
        *,
        timeout: float = 20.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._own_client = http_client is None

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def submit(self, route: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Forward a generation request; returns the upstream body verbatim."""
        path = SUBMIT_ROUTES.get(route)
        if path is None:
            raise ValueError(f"Unknown submit route: {route}")
        data = await self._request("POST", path, json=payload)
        logger.info("Kie %s submitted: taskId=%s", route, extract_task_id(data))
        return data

    async def query_status(self, task_id: str) -> dict[str, Any]:
        """Fetch the raw record-info payload for a task."""
        return await self._request("GET", RECORD_INFO_PATH, params={"taskId": task_id})

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            resp = await self._client.request(
                method, url, headers=self._headers(), timeout=self.timeout, **kwargs
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UpstreamError(
                f"Kie {method} {path} returned {e.response.status_code}",
                status_code=e.response.status_code,
                payload=_safe_json(e.response),
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"Kie {method} {path} failed: {e}") from e

        data = _safe_json(resp)
        if not isinstance(data, dict):
            raise UpstreamError(
                f"Kie {method} {path} returned a non-object body",
                status_code=resp.status_code,
                payload=data,
            )
        return data

    async def aclose(self) -> None:
        if self._own_client:
            await self._client.aclose()


def _safe_json(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text
