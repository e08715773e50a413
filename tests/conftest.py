from __future__ import annotations

import json
from pathlib import Path
import sys
from typing import Any, Dict, List, Optional

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from recipe_manager.models import User
from recipe_manager.recipes import RecipeService
from recipe_manager.storage import RecipeStorage


class InMemoryStore:
    """Key-value store used for tests.

    Values are kept as JSON text so stored data behaves like a real
    persisted copy rather than a shared Python object.
    """

    def __init__(self) -> None:
        self.data: Dict[str, str] = {}
        self.writes: List[str] = []

    def get(self, key: str) -> Optional[Any]:
        raw = self.data.get(key)
        return None if raw is None else json.loads(raw)

    def exists(self, key: str) -> bool:
        return key in self.data

    def set(self, key: str, value: Any) -> None:
        self.data[key] = json.dumps(value)
        self.writes.append(key)

    def remove(self, key: str) -> None:
        self.data.pop(key, None)

    def clear(self) -> None:
        self.data.clear()


class FakeAuth:
    """Stands in for the auth server; remembers registered accounts."""

    def __init__(self) -> None:
        self.accounts: Dict[str, Dict[str, Any]] = {}
        self.calls: List[str] = []

    def login(self, email: str, password: str) -> Dict[str, Any]:
        self.calls.append("login")
        account = self.accounts.get(email)
        if account is None or account["password"] != password:
            return {"success": False, "error": "Invalid credentials"}
        return {"success": True, "user": account["user"]}

    def register(self, name: str, email: str, password: str) -> Dict[str, Any]:
        self.calls.append("register")
        if email in self.accounts:
            return {"success": False, "error": "Email is already registered"}
        user = {"id": len(self.accounts) + 1, "name": name, "email": email}
        self.accounts[email] = {"password": password, "user": user}
        return {"success": True, "user": user}


@pytest.fixture()
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture()
def storage(store: InMemoryStore) -> RecipeStorage:
    return RecipeStorage(store)


@pytest.fixture()
def service(storage: RecipeStorage) -> RecipeService:
    return RecipeService(storage)


@pytest.fixture()
def fake_auth() -> FakeAuth:
    return FakeAuth()


@pytest.fixture()
def alice() -> User:
    return User(id=1, name="Alice", email="alice@example.com")
