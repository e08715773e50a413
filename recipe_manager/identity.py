from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import requests

from .models import User
from .storage import RecipeStorage

logger = logging.getLogger(__name__)

CONNECTION_ERROR = "Unable to connect to server. Please check if the server is running."
TIMEOUT_ERROR = "The server took too long to respond."
INVALID_RESPONSE = "Invalid response from server"


class AuthBackend(Protocol):
    """Protocol describing the remote login/register pair."""

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """Return ``{"success": True, "user": {...}}`` or ``{"success": False, "error": ...}``."""

    def register(self, name: str, email: str, password: str) -> Dict[str, Any]:
        """Create an account; same response shape as :meth:`login`."""


class AuthClient(AuthBackend):
    """HTTP client for the auth server's JSON endpoints."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()

    def login(self, email: str, password: str) -> Dict[str, Any]:
        return self._post("login", {"email": email, "password": password})

    def register(self, name: str, email: str, password: str) -> Dict[str, Any]:
        return self._post("register", {"name": name, "email": email, "password": password})

    def _post(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self._base_url}/{endpoint}"
        try:
            response = self._session.post(url, json=payload, timeout=self._timeout)
        except requests.exceptions.Timeout:
            logger.error("API request timed out (%s)", endpoint)
            return _failure(TIMEOUT_ERROR)
        except requests.exceptions.ConnectionError:
            logger.error("Could not connect to %s", url)
            return _failure(CONNECTION_ERROR)
        except requests.exceptions.RequestException as exc:
            logger.error("API request error (%s): %s", endpoint, exc)
            return _failure(str(exc) or "An unexpected error occurred")

        try:
            body = response.json()
        except ValueError:
            body = None

        if not response.ok:
            logger.error("API request error (%s): HTTP %s", endpoint, response.status_code)
            if isinstance(body, dict) and body.get("error"):
                return _failure(str(body["error"]))
            return _failure(f"HTTP error! status: {response.status_code}")

        if not isinstance(body, dict) or "success" not in body:
            logger.error("API request error (%s): malformed response", endpoint)
            return _failure(INVALID_RESPONSE)

        return body


class IdentityContext:
    """Holds the currently authenticated user.

    The user is loaded once from storage when the context is built and is the
    only source of identity consulted for authorization afterwards. There is
    no expiry or server-side revalidation.
    """

    def __init__(self, storage: RecipeStorage, auth: AuthBackend) -> None:
        self._storage = storage
        self._auth = auth
        self._current_user = storage.get_current_user()

    @property
    def current_user(self) -> Optional[User]:
        return self._current_user

    def get_current_user(self) -> Optional[User]:
        return self._current_user

    def is_authenticated(self) -> bool:
        return self._current_user is not None

    def login(self, email: str, password: str) -> Dict[str, Any]:
        return self._adopt(self._auth.login(email, password))

    def register(self, name: str, email: str, password: str) -> Dict[str, Any]:
        return self._adopt(self._auth.register(name, email, password))

    def logout(self) -> Dict[str, Any]:
        self._current_user = None
        self._storage.clear_current_user()
        return {"success": True}

    def update_current_user(self, **fields: Any) -> Optional[User]:
        if self._current_user is None:
            return None
        merged = {**self._current_user.to_dict(), **fields}
        self._current_user = User.from_dict(merged)
        self._storage.save_current_user(self._current_user)
        return self._current_user

    def validate_session(self) -> Dict[str, Any]:
        if self._current_user is None:
            return _failure("No user session found")
        return {"success": True, "user": self._current_user.to_dict()}

    def _adopt(self, result: Dict[str, Any]) -> Dict[str, Any]:
        if not result.get("success"):
            return result

        try:
            user = User.from_dict(result.get("user"))
        except ValueError:
            logger.error("Auth server returned a success without a usable user: %r", result)
            return _failure(INVALID_RESPONSE)

        self._current_user = user
        self._storage.save_current_user(user)
        logger.info("Signed in as %s", user.email)
        return result


def _failure(message: str) -> Dict[str, Any]:
    return {"success": False, "error": message}


__all__ = ["AuthBackend", "AuthClient", "IdentityContext"]
