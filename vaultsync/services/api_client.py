"""HTTP adapter for the storage backend's REST API."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class APIError(RuntimeError):
    """Raised for non-2xx responses and unparseable bodies."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthenticationError(APIError):
    """The backend rejected the session (HTTP 401)."""


class VaultAPIClient:
    """
    HTTP client adapter for API calls.

    Implements IAPIClient protocol. Every response body is parsed as JSON (an
    empty body is ``{}``); non-2xx statuses raise APIError carrying the
    server's ``message`` field and the status code. Only GET requests are
    retried; uploads and mutations go out exactly once.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 60,
        max_retries: int = 3,
        retry_delay: float = 0.5,
    ):
        self._base_url = base_url
        self._token = token
        self._timeout = timeout
        self._max_retries = max(1, max_retries)
        self._retry_delay = retry_delay
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._client = httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout)
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def base_url(self) -> str:
        return self._base_url

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    @staticmethod
    def _parse_body(response: httpx.Response) -> Any:
        text = response.text
        if not text.strip():
            return {}
        try:
            return response.json()
        except ValueError:
            logger.error("Server returned non-JSON response: %s", text[:200])
            raise APIError("Server error: Invalid JSON response", response.status_code)

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        *,
        json: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        if not self._client:
            raise RuntimeError("VaultAPIClient not initialized. Use 'async with' context.")

        response = await self._client.request(
            method,
            endpoint,
            json=json,
            files=files,
            data=data,
            params=params,
            headers=self._headers(),
        )
        result = self._parse_body(response)

        if not response.is_success:
            message = None
            if isinstance(result, dict):
                message = result.get("message")
            message = message or "Something went wrong"
            if response.status_code == 401:
                raise AuthenticationError(message, response.status_code)
            raise APIError(message, response.status_code)

        return result

    async def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        last_attempt = self._max_retries - 1

        for attempt in range(self._max_retries):
            try:
                return await self.request(endpoint, "GET", params=params)
            except APIError as exc:
                if exc.status_code is None or exc.status_code < 500 or attempt == last_attempt:
                    raise
                logger.debug(f"GET {endpoint} returned {exc.status_code}, retrying")
            except httpx.TransportError as exc:
                if attempt == last_attempt:
                    raise
                logger.debug(f"GET {endpoint} transport error ({exc}), retrying")
            await asyncio.sleep(self._retry_delay * (attempt + 1))

        raise RuntimeError(f"Failed to GET {endpoint} after {self._max_retries} attempts")

    async def post(self, endpoint: str, json: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request(endpoint, "POST", json=json)

    async def delete(self, endpoint: str, json: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request(endpoint, "DELETE", json=json)

    async def upload(
        self,
        endpoint: str,
        files: Dict[str, Any],
        data: Optional[Dict[str, str]] = None,
    ) -> Any:
        return await self.request(endpoint, "POST", files=files, data=data)
