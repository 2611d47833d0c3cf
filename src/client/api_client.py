"""HTTP client for the auth API.

Protected calls carry ``Authorization: Bearer <token>``. Error statuses are
raised as the matching domain errors.
"""

import logging
from typing import Any

import httpx

from domain.model.errors import (
    CredentialError,
    DomainError,
    DuplicateError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

API_TIMEOUT_SECONDS = 10.0


class AuthApiClient:
    def __init__(self, base_url: str = "", http: httpx.Client | None = None):
        self._http = http or httpx.Client(base_url=base_url, timeout=API_TIMEOUT_SECONDS)

    def close(self) -> None:
        self._http.close()

    # ── protected ────────────────────────────────────────────

    def get_profile(self, token: str) -> dict[str, Any]:
        return self._request("GET", "/auth/profile", token=token)

    def update_profile(
        self, token: str, full_name: str | None = None, avatar: str | None = None,
    ) -> dict[str, Any]:
        body = {}
        if full_name is not None:
            body["fullName"] = full_name
        if avatar is not None:
            body["avatar"] = avatar
        return self._request("PUT", "/auth/profile", token=token, json=body)

    def complete_profile(self, token: str) -> dict[str, Any]:
        return self._request("POST", "/auth/profile/complete", token=token)

    # ── local accounts ───────────────────────────────────────

    def register(self, email: str, password: str, name: str) -> dict[str, Any]:
        return self._request("POST", "/auth/register", json={
            "email": email, "password": password, "name": name,
        })

    def login(self, email: str, password: str) -> dict[str, Any]:
        return self._request("POST", "/auth/login", json={"email": email, "password": password})

    def _request(
        self, method: str, path: str, token: str | None = None, json: dict | None = None,
    ) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        response = self._http.request(method, path, headers=headers, json=json)

        if response.is_success:
            return response.json()

        detail = _detail(response)
        logger.debug("Auth API call failed", extra={"path": path, "status": response.status_code})
        if response.status_code == 401:
            raise CredentialError(detail)
        if response.status_code == 404:
            raise NotFoundError(detail)
        if response.status_code == 409:
            raise DuplicateError(detail)
        if response.status_code in (400, 422):
            raise ValidationError(detail)
        raise DomainError(f"Auth API error {response.status_code}: {detail}")


def _detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    detail = body.get("detail") if isinstance(body, dict) else body
    return detail if isinstance(detail, str) else str(detail)
