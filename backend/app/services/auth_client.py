"""Thin wrapper over the hosted auth (GoTrue) REST API."""

import logging
import re
from functools import lru_cache
from typing import Any, Optional

import requests

from app.config import settings

logger = logging.getLogger(__name__)

EMAIL_REGEX = re.compile(r"^[a-zA-Z0-9._-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,6}$")


class AuthServiceError(RuntimeError):
    def __init__(self, status: int, message: str, body: Optional[str] = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body or message


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and EMAIL_REGEX.match(email.strip()) is not None


def _error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason
    if isinstance(payload, dict):
        for key in ("error_description", "msg", "message", "error"):
            if payload.get(key):
                return str(payload[key])
    return response.text or response.reason


class AuthClient:
    def __init__(self, *, base_url: str, anon_key: str, request_timeout: float = 15.0) -> None:
        self._base_url = f"{base_url.rstrip('/')}/auth/v1"
        self._anon_key = anon_key
        self._timeout = request_timeout

    def _post(self, path: str, *, json: dict, params: Optional[dict] = None, token: Optional[str] = None) -> Any:
        headers = {"apikey": self._anon_key, "Content-Type": "application/json"}
        headers["Authorization"] = f"Bearer {token or self._anon_key}"
        try:
            response = requests.post(
                f"{self._base_url}{path}",
                json=json,
                params=params,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise AuthServiceError(502, f"Auth service unreachable: {exc}") from exc
        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning("Auth request %s failed with %s: %s", path, response.status_code, message)
            raise AuthServiceError(response.status_code, message, response.text)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {}

    def sign_up(self, email: str, password: str, username: str, redirect_to: Optional[str] = None) -> dict:
        params = {"redirect_to": redirect_to} if redirect_to else None
        return self._post(
            "/signup",
            json={"email": email.strip(), "password": password, "data": {"username": username}},
            params=params,
        )

    def sign_in_with_password(self, email: str, password: str) -> dict:
        return self._post(
            "/token",
            json={"email": email.strip(), "password": password},
            params={"grant_type": "password"},
        )

    def recover_password(self, email: str, redirect_to: Optional[str] = None) -> None:
        params = {"redirect_to": redirect_to} if redirect_to else None
        self._post("/recover", json={"email": email.strip()}, params=params)

    def sign_out(self, access_token: str) -> None:
        self._post("/logout", json={}, token=access_token)


@lru_cache(maxsize=1)
def get_auth_client() -> AuthClient:
    return AuthClient(
        base_url=settings.supabase_url,
        anon_key=settings.supabase_anon_key or "",
    )
