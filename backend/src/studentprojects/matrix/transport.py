"""Authenticated JSON transport for the Matrix client-server API."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)


class MatrixClientError(Exception):
    """Base exception for Matrix client errors."""
    pass


class MatrixConnectionError(MatrixClientError):
    """Raised when the homeserver cannot be reached or the request times out."""
    pass


class MatrixRequestError(MatrixClientError):
    """Raised when the homeserver answers with an error status."""
    def __init__(self, message: str, status_code: int, errcode: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.errcode = errcode


def encode_path_segment(value: str) -> str:
    """Percent-encode an id or event type for use inside a URL path."""
    return quote(value, safe="")


class MatrixTransport:
    """Thin wrapper around an ``httpx.AsyncClient`` bound to one homeserver.

    The client is owned by the caller so a single connection pool can be
    shared between the room graph and message history clients.
    """

    def __init__(self, client: httpx.AsyncClient, base_url: str, access_token: str):
        self._client = client
        self.base_url = base_url.rstrip("/")
        self._access_token = access_token

    def _get_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._access_token}"}

    async def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET ``path`` and return the decoded JSON body.

        Raises:
            MatrixConnectionError: If the request could not be completed.
            MatrixRequestError: If the homeserver returned an error status.
        """
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.get(url, params=params, headers=self._get_headers())
        except httpx.TimeoutException as exc:
            raise MatrixConnectionError(f"Request to {path} timed out: {exc}") from exc
        except httpx.TransportError as exc:
            raise MatrixConnectionError(
                f"Unable to connect to homeserver at {self.base_url}: {exc}"
            ) from exc

        if response.status_code >= 400:
            errcode = None
            error = None
            try:
                payload = response.json()
                errcode = payload.get("errcode")
                error = payload.get("error")
            except Exception:
                pass
            raise MatrixRequestError(
                f"GET {path} failed: HTTP {response.status_code}" + (f" ({error})" if error else ""),
                status_code=response.status_code,
                errcode=errcode,
            )

        return response.json()
