from __future__ import annotations

import logging
from typing import Any

import httpx

_LOG = logging.getLogger("clientdesk.ui.api")

CLIENTS_PATH = "/api/client"


class ApiClientError(Exception):
    def __init__(self, message: str, *, status_code: int | None = None, details: list[dict] | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or []


def _error_message(response: httpx.Response) -> tuple[str, list[dict]]:
    try:
        body = response.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        return f"Server error: {response.status_code} {response.reason_phrase}", []
    details = body.get("details") or []
    if details:
        joined = ", ".join(f"{d.get('field')}: {d.get('message')}" for d in details)
        return joined, details
    if body.get("error"):
        return str(body["error"]), []
    if body.get("message"):
        return str(body["message"]), []
    return f"Server error: {response.status_code} {response.reason_phrase}", []


def _require_id(client_id: str | None) -> str:
    value = str(client_id or "").strip()
    if not value:
        raise ApiClientError("Client ID is required")
    return value


class ClientApi:
    """Thin wrapper over the client REST endpoints.

    ``http`` is any ``httpx.Client`` already pointed at the service (tests pass a
    ``TestClient``). The bearer token is added to every request when set.
    """

    def __init__(self, http: httpx.Client, token: str | None = None):
        self.http = http
        self.token = token

    def _headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def _request(self, method: str, url: str, **kwargs) -> Any:
        try:
            response = self.http.request(method, url, headers=self._headers(), **kwargs)
        except httpx.TransportError as exc:
            _LOG.error("Client-side error: %s", exc)
            raise ApiClientError(f"Network error: {exc}") from exc
        if response.is_error:
            message, details = _error_message(response)
            _LOG.error("Backend error: %s %s", response.status_code, message)
            raise ApiClientError(message, status_code=response.status_code, details=details)
        return response.json()

    def list(self, page: int = 1, limit: int = 10) -> dict[str, Any]:
        return self._request("GET", CLIENTS_PATH, params={"page": str(page), "limit": str(limit)})

    def get(self, client_id: str) -> dict[str, Any]:
        return self._request("GET", f"{CLIENTS_PATH}/{_require_id(client_id)}")

    def create(self, payload: dict[str, Any]) -> dict[str, Any]:
        return self._request("POST", CLIENTS_PATH, json=payload)

    def update(self, client_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return self._request("PUT", f"{CLIENTS_PATH}/{_require_id(client_id)}", json=payload)

    def delete(self, client_id: str) -> dict[str, Any]:
        return self._request("DELETE", f"{CLIENTS_PATH}/{_require_id(client_id)}")
