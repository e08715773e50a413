from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol

from .helpers import now_iso
from .models import Recipe, User

logger = logging.getLogger(__name__)

RECIPES_KEY = "recipes"
CATEGORIES_KEY = "categories"
USERS_KEY = "users"
CURRENT_USER_KEY = "currentUser"

DEFAULT_CATEGORIES = [
    "Breakfast",
    "Lunch",
    "Dinner",
    "Dessert",
    "Snack",
    "Vegetarian",
    "Quick & Easy",
]


class KeyValueStore(Protocol):
    """Protocol describing a persistent key-value namespace.

    Implementations never raise: failures are logged and reported as an
    absent value (``get``) or a dropped effect (``set``/``remove``/``clear``).
    """

    def get(self, key: str) -> Optional[Any]:
        """Return the stored JSON-compatible value or ``None`` if unset."""

    def exists(self, key: str) -> bool:
        """Whether anything is stored under ``key``, readable or not."""

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    def remove(self, key: str) -> None:
        """Forget ``key``."""

    def clear(self) -> None:
        """Forget every key in the namespace."""


class JsonFileStore(KeyValueStore):
    """Key-value store keeping one JSON document per key inside a directory."""

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def get(self, key: str) -> Optional[Any]:
        try:
            with self._path(key).open("r", encoding="utf-8") as fh:
                return json.load(fh)
        except FileNotFoundError:
            return None
        except (OSError, ValueError):
            logger.exception("Error reading %r from %s", key, self._directory)
            return None

    def exists(self, key: str) -> bool:
        try:
            return self._path(key).exists()
        except (OSError, ValueError):
            logger.exception("Error checking %r in %s", key, self._directory)
            return False

    def set(self, key: str, value: Any) -> None:
        try:
            target = self._path(key)
            payload = json.dumps(value, ensure_ascii=False, indent=2)
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp_name, target)
            except BaseException:
                _unlink_quietly(Path(tmp_name))
                raise
        except (OSError, TypeError, ValueError):
            logger.exception("Error saving %r to %s", key, self._directory)

    def remove(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except (OSError, ValueError):
            logger.exception("Error removing %r from %s", key, self._directory)

    def clear(self) -> None:
        if not self._directory.exists():
            return
        try:
            for path in self._directory.glob("*.json"):
                path.unlink(missing_ok=True)
        except OSError:
            logger.exception("Error clearing %s", self._directory)

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._directory / f"{key}.json"


class RecipeStorage:
    """Typed accessors for the named collections kept in a :class:`KeyValueStore`."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    @property
    def store(self) -> KeyValueStore:
        return self._store

    def get_recipes(self) -> List[Recipe]:
        raw = self._store.get(RECIPES_KEY)
        if not isinstance(raw, list):
            return []

        recipes: List[Recipe] = []
        for entry in raw:
            try:
                recipes.append(Recipe.from_dict(entry))
            except ValueError:
                logger.warning("Skipping malformed recipe entry: %r", entry)
        return recipes

    def save_recipes(self, recipes: Iterable[Recipe]) -> None:
        self._store.set(RECIPES_KEY, [recipe.to_dict() for recipe in recipes])

    def get_categories(self) -> List[str]:
        raw = self._store.get(CATEGORIES_KEY)
        if not isinstance(raw, list):
            return list(DEFAULT_CATEGORIES)
        return [str(category) for category in raw]

    def save_categories(self, categories: Iterable[str]) -> None:
        self._store.set(CATEGORIES_KEY, list(categories))

    def get_current_user(self) -> Optional[User]:
        raw = self._store.get(CURRENT_USER_KEY)
        if raw is None:
            return None
        try:
            return User.from_dict(raw)
        except ValueError:
            logger.warning("Ignoring malformed current user: %r", raw)
            return None

    def save_current_user(self, user: User) -> None:
        self._store.set(CURRENT_USER_KEY, user.to_dict())

    def clear_current_user(self) -> None:
        self._store.remove(CURRENT_USER_KEY)

    def get_users(self) -> List[Dict[str, Any]]:
        raw = self._store.get(USERS_KEY)
        return list(raw) if isinstance(raw, list) else []

    def save_users(self, users: Iterable[Dict[str, Any]]) -> None:
        self._store.set(USERS_KEY, list(users))

    def initialize_data(self) -> None:
        """Seed the default collections.

        Only missing keys are seeded. A key that exists but cannot be read is
        left untouched so a damaged file is never replaced by sample data.
        """

        if self._needs_seed(CATEGORIES_KEY):
            self.save_categories(DEFAULT_CATEGORIES)

        if self._needs_seed(USERS_KEY):
            self.save_users([])

        if self._needs_seed(RECIPES_KEY):
            self.save_recipes([_sample_recipe()])

    def _needs_seed(self, key: str) -> bool:
        if not self._store.exists(key):
            return True
        if self._store.get(key) is None:
            logger.warning("Not seeding %r: stored value exists but could not be read", key)
        return False


def _sample_recipe() -> Recipe:
    return Recipe(
        id="1",
        title="Classic Pancakes",
        description="Fluffy and delicious pancakes perfect for breakfast",
        category="Breakfast",
        prep_time="10",
        cook_time="15",
        servings="4",
        ingredients=[
            "2 cups all-purpose flour",
            "2 tablespoons sugar",
            "2 teaspoons baking powder",
            "1/2 teaspoon salt",
            "2 eggs",
            "1 1/2 cups milk",
            "1/4 cup melted butter",
        ],
        instructions=[
            "Mix dry ingredients in a large bowl",
            "Whisk eggs, milk, and melted butter in another bowl",
            "Combine wet and dry ingredients until just mixed",
            "Heat a lightly oiled griddle over medium-high heat",
            "Pour batter onto the griddle and cook until bubbles form",
            "Flip and cook until golden brown",
        ],
        created_by="demo",
        created_at=now_iso(),
    )


def _unlink_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError:
        logger.warning("Could not remove temporary file %s", path)


__all__ = [
    "DEFAULT_CATEGORIES",
    "JsonFileStore",
    "KeyValueStore",
    "RecipeStorage",
]
