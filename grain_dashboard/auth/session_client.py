# This file implements the client for the hosted authentication/session provider.
# It exists so routes can turn a bearer credential into a caller identity without knowing provider URLs.
# The same client lists and deletes directory users for the administrator role-management endpoint.
# Transport failures and server errors are converted into one clear exception type.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import requests


class AuthServiceError(RuntimeError):
    """Raised when the session provider cannot be reached or responds with server errors."""


@dataclass(frozen=True)
class CallerIdentity:
    user_id: str
    email: str | None = None


@dataclass(frozen=True)
class DirectoryUser:
    id: str
    email: str
    created_at: str | None = None


def bearer_token(authorization: str | None) -> str | None:
    """Extract the credential from an `Authorization: Bearer <token>` header."""

    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class SupabaseAuthClient:
    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        service_role_key: str | None = None,
        timeout_seconds: int = 8,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.service_role_key = service_role_key or api_key
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    def get_user(self, token: str) -> CallerIdentity | None:
        """Resolve a session token; returns None when the provider does not recognize it."""

        response = self._request("GET", "/auth/v1/user", token=token)
        if response.status_code in (401, 403, 404):
            return None
        payload = self._payload(response)
        user_id = payload.get("id")
        if not user_id:
            return None
        return CallerIdentity(user_id=str(user_id), email=payload.get("email"))

    def list_users(self, *, per_page: int = 1000) -> list[DirectoryUser]:
        response = self._request(
            "GET",
            "/auth/v1/admin/users",
            token=self.service_role_key,
            params={"page": 1, "per_page": per_page},
        )
        payload = self._payload(response)
        users = payload.get("users", [])
        if not isinstance(users, list):
            raise AuthServiceError("Unexpected user directory payload shape.")
        return [
            DirectoryUser(
                id=str(user["id"]),
                email=str(user.get("email") or ""),
                created_at=user.get("created_at"),
            )
            for user in users
        ]

    def delete_user(self, user_id: str) -> None:
        response = self._request(
            "DELETE", f"/auth/v1/admin/users/{user_id}", token=self.service_role_key
        )
        if response.status_code == 404:
            raise AuthServiceError(f"User {user_id} was not found.")
        if response.status_code >= 400:
            raise AuthServiceError(
                f"User deletion was rejected with status {response.status_code}."
            )

    def _request(
        self,
        method: str,
        path: str,
        *,
        token: str,
        params: dict[str, Any] | None = None,
    ) -> requests.Response:
        url = f"{self.base_url}{path}"
        headers = {"apikey": self.api_key, "Authorization": f"Bearer {token}"}
        try:
            response = self.session.request(
                method, url, params=params, headers=headers, timeout=self.timeout_seconds
            )
        except requests.RequestException as exc:
            raise AuthServiceError(f"Session provider request failed for {url}: {exc}") from exc

        if response.status_code >= 500:
            raise AuthServiceError(
                f"Session provider failed with status {response.status_code} for {url}"
            )
        return response

    @staticmethod
    def _payload(response: requests.Response) -> dict[str, Any]:
        if response.status_code >= 400:
            raise AuthServiceError(
                f"Session provider rejected the request with status {response.status_code}"
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise AuthServiceError("Session provider did not return valid JSON") from exc
        if not isinstance(payload, dict):
            raise AuthServiceError("Unexpected payload shape from session provider")
        return payload
