from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from .helpers import (
    clean_lines,
    filter_recipes,
    generate_id,
    now_iso,
    parse_int,
    round_half_up,
    sort_recipes,
    validate_recipe,
)
from .models import Recipe, RecipeResult, RecipeStats, UserId
from .storage import RecipeStorage

logger = logging.getLogger(__name__)

RECIPE_NOT_FOUND = "Recipe not found"
EDIT_FORBIDDEN = "You can only edit your own recipes"
DELETE_FORBIDDEN = "You can only delete your own recipes"


class RecipeService:
    """CRUD and query operations over the recipe collection.

    Every mutation reads the whole collection, changes it in memory and
    persists it again. Failed lookups, ownership mismatches and validation
    errors are reported through :class:`RecipeResult` before anything is
    written.
    """

    def __init__(self, storage: RecipeStorage) -> None:
        self._storage = storage

    def get_all_recipes(self, search_term: str = "", category: str = "", sort_by: str = "newest") -> List[Recipe]:
        try:
            recipes = self._storage.get_recipes()
            return sort_recipes(filter_recipes(recipes, search_term, category), sort_by)
        except Exception:
            logger.exception("Error getting recipes")
            return []

    def get_recipe_by_id(self, recipe_id: str) -> Optional[Recipe]:
        try:
            return next((recipe for recipe in self._storage.get_recipes() if recipe.id == recipe_id), None)
        except Exception:
            logger.exception("Error getting recipe %s", recipe_id)
            return None

    def create_recipe(self, data: Mapping[str, Any], user_id: UserId) -> RecipeResult:
        try:
            errors = validate_recipe(data)
            if errors:
                return RecipeResult.failed(*errors)

            recipes = self._storage.get_recipes()
            timestamp = now_iso()
            recipe = Recipe(
                id=generate_id(),
                created_by=user_id,
                created_at=timestamp,
                updated_at=timestamp,
                **_recipe_fields(data),
            )
            recipes.append(recipe)
            self._storage.save_recipes(recipes)
        except Exception:
            logger.exception("Error creating recipe")
            return RecipeResult.failed("Failed to create recipe. Please try again.")

        logger.info("Created recipe %s for user %s", recipe.id, user_id)
        return RecipeResult.ok(recipe)

    def update_recipe(self, recipe_id: str, data: Mapping[str, Any], user_id: UserId) -> RecipeResult:
        try:
            recipes = self._storage.get_recipes()
            index = _find_index(recipes, recipe_id)
            if index is None:
                return RecipeResult.failed(RECIPE_NOT_FOUND)

            existing = recipes[index]
            if existing.created_by != user_id:
                return RecipeResult.failed(EDIT_FORBIDDEN)

            errors = validate_recipe(data)
            if errors:
                return RecipeResult.failed(*errors)

            updated = Recipe(
                id=existing.id,
                created_by=existing.created_by,
                created_at=existing.created_at,
                updated_at=now_iso(),
                **_recipe_fields(data),
            )
            recipes[index] = updated
            self._storage.save_recipes(recipes)
        except Exception:
            logger.exception("Error updating recipe %s", recipe_id)
            return RecipeResult.failed("Failed to update recipe. Please try again.")

        logger.info("Updated recipe %s", recipe_id)
        return RecipeResult.ok(updated)

    def delete_recipe(self, recipe_id: str, user_id: UserId) -> RecipeResult:
        try:
            recipes = self._storage.get_recipes()
            index = _find_index(recipes, recipe_id)
            if index is None:
                return RecipeResult.failed(RECIPE_NOT_FOUND)

            if recipes[index].created_by != user_id:
                return RecipeResult.failed(DELETE_FORBIDDEN)

            del recipes[index]
            self._storage.save_recipes(recipes)
        except Exception:
            logger.exception("Error deleting recipe %s", recipe_id)
            return RecipeResult.failed("Failed to delete recipe. Please try again.")

        logger.info("Deleted recipe %s", recipe_id)
        return RecipeResult.ok()

    def get_recipes_by_user(self, user_id: UserId) -> List[Recipe]:
        return [recipe for recipe in self._load() if recipe.created_by == user_id]

    def get_recipes_by_category(self, category: str) -> List[Recipe]:
        return [recipe for recipe in self._load() if recipe.category == category]

    def search_recipes(self, query: str) -> List[Recipe]:
        needle = (query or "").strip().lower()

        def matches(recipe: Recipe) -> bool:
            return (
                needle in recipe.title.lower()
                or needle in recipe.description.lower()
                or needle in recipe.category.lower()
                or any(needle in ingredient.lower() for ingredient in recipe.ingredients)
            )

        return [recipe for recipe in self._load() if matches(recipe)]

    def get_recipe_stats(self, user_id: UserId) -> RecipeStats:
        try:
            user_recipes = [recipe for recipe in self._storage.get_recipes() if recipe.created_by == user_id]
            breakdown = [
                (category, sum(1 for recipe in user_recipes if recipe.category == category))
                for category in self._storage.get_categories()
            ]
        except Exception:
            logger.exception("Error getting recipe stats for user %s", user_id)
            return RecipeStats()

        average = 0
        if user_recipes:
            total = sum(parse_int(recipe.prep_time) for recipe in user_recipes)
            average = round_half_up(total / len(user_recipes))

        return RecipeStats(
            total_recipes=len(user_recipes),
            categories_used=sum(1 for _, count in breakdown if count > 0),
            category_breakdown=breakdown,
            average_prep_time=average,
        )

    def _load(self) -> List[Recipe]:
        try:
            return self._storage.get_recipes()
        except Exception:
            logger.exception("Error loading recipes")
            return []


def _find_index(recipes: List[Recipe], recipe_id: str) -> Optional[int]:
    for index, recipe in enumerate(recipes):
        if recipe.id == recipe_id:
            return index
    return None


def _recipe_fields(data: Mapping[str, Any]) -> dict:
    description = data.get("description")
    return {
        "title": str(data["title"]).strip(),
        "description": str(description).strip() if description else "",
        "category": str(data["category"]),
        "prep_time": _default_text(_pick(data, "prepTime", "prep_time"), "0"),
        "cook_time": _default_text(_pick(data, "cookTime", "cook_time"), "0"),
        "servings": _default_text(data.get("servings"), "1"),
        "ingredients": clean_lines(data.get("ingredients")),
        "instructions": clean_lines(data.get("instructions")),
    }


def _pick(data: Mapping[str, Any], key: str, alias: str) -> Any:
    value = data.get(key)
    return data.get(alias) if value is None else value


def _default_text(value: Any, default: str) -> str:
    if value is None or value == "":
        return default
    return str(value)


__all__ = ["RecipeService", "RECIPE_NOT_FOUND", "EDIT_FORBIDDEN", "DELETE_FORBIDDEN"]
