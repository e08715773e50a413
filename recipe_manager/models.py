from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

UserId = Union[int, str]


@dataclass
class Recipe:
    """Domain object representing a stored recipe.

    Numeric fields are kept as text, exactly as entered. The persisted
    representation uses camelCase keys (see :meth:`to_dict`).
    """

    id: str
    title: str
    category: str
    ingredients: List[str]
    instructions: List[str]
    created_by: Optional[UserId]
    created_at: str
    description: str = ""
    prep_time: str = "0"
    cook_time: str = "0"
    servings: str = "1"
    updated_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "prepTime": self.prep_time,
            "cookTime": self.cook_time,
            "servings": self.servings,
            "ingredients": list(self.ingredients),
            "instructions": list(self.instructions),
            "createdBy": self.created_by,
            "createdAt": self.created_at,
        }
        if self.updated_at is not None:
            data["updatedAt"] = self.updated_at
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Recipe":
        if not isinstance(data, dict) or not data.get("id"):
            raise ValueError("recipe entry must be an object with an id")

        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            category=str(data.get("category") or ""),
            prep_time=_text(data.get("prepTime"), "0"),
            cook_time=_text(data.get("cookTime"), "0"),
            servings=_text(data.get("servings"), "1"),
            ingredients=[str(item) for item in data.get("ingredients") or []],
            instructions=[str(item) for item in data.get("instructions") or []],
            created_by=data.get("createdBy"),
            created_at=str(data.get("createdAt") or ""),
            updated_at=data.get("updatedAt"),
        )


@dataclass
class User:
    """The authenticated identity returned by the auth server."""

    id: UserId
    name: str
    email: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "email": self.email}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        if not isinstance(data, dict) or data.get("id") is None:
            raise ValueError("user entry must be an object with an id")
        return cls(id=data["id"], name=str(data.get("name") or ""), email=str(data.get("email") or ""))


@dataclass
class RecipeResult:
    """Outcome of a repository mutation."""

    success: bool
    recipe: Optional[Recipe] = None
    errors: List[str] = field(default_factory=list)

    @property
    def error(self) -> Optional[str]:
        return self.errors[0] if self.errors else None

    @classmethod
    def ok(cls, recipe: Optional[Recipe] = None) -> "RecipeResult":
        return cls(success=True, recipe=recipe)

    @classmethod
    def failed(cls, *errors: str) -> "RecipeResult":
        return cls(success=False, errors=list(errors))


@dataclass
class RecipeStats:
    total_recipes: int = 0
    categories_used: int = 0
    category_breakdown: List[Tuple[str, int]] = field(default_factory=list)
    average_prep_time: int = 0


def _text(value: Any, default: str) -> str:
    if value is None:
        return default
    return str(value)


__all__ = ["Recipe", "RecipeResult", "RecipeStats", "User", "UserId"]
