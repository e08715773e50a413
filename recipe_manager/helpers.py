"""Pure helpers: validation, filtering, sorting and text formatting for recipes."""

from __future__ import annotations

import math
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from .models import Recipe

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
STEP_NUMBER_RE = re.compile(r"^\d+\.?\s*")

SORT_KEYS = ("newest", "oldest", "title", "category", "prepTime")

_EPOCH_MIN = datetime.min.replace(tzinfo=timezone.utc)


def generate_id() -> str:
    return uuid.uuid4().hex


def now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a ``Z`` suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_int(value: Any, default: int = 0) -> int:
    """Parse the leading integer of ``value``; ``default`` when there is none."""
    parsed = _leading_int(value)
    return default if parsed is None else parsed


def _leading_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = LEADING_INT_RE.match(str(value))
    return int(match.group(1)) if match else None


def clean_lines(items: Any) -> List[str]:
    """Trim entries and drop blank or non-text ones. A string is split into lines first."""
    if not items:
        return []
    if isinstance(items, str):
        items = items.splitlines()
    elif not isinstance(items, (list, tuple)):
        return []
    return [item.strip() for item in items if isinstance(item, str) and item.strip()]


def validate_recipe(data: Mapping[str, Any]) -> List[str]:
    errors: List[str] = []

    title = data.get("title")
    if not title or not str(title).strip():
        errors.append("Title is required")

    if not data.get("category"):
        errors.append("Category is required")

    if not clean_lines(data.get("ingredients")):
        errors.append("At least one ingredient is required")

    if not clean_lines(data.get("instructions")):
        errors.append("At least one instruction is required")

    return errors


def filter_recipes(recipes: Iterable[Recipe], search_term: str = "", category: str = "") -> List[Recipe]:
    needle = (search_term or "").lower()

    def matches(recipe: Recipe) -> bool:
        matches_search = not needle or needle in recipe.title.lower() or needle in recipe.description.lower()
        matches_category = not category or recipe.category == category
        return matches_search and matches_category

    return [recipe for recipe in recipes if matches(recipe)]


def sort_recipes(recipes: Sequence[Recipe], sort_by: str = "newest") -> List[Recipe]:
    """Return a sorted copy of ``recipes``. Unknown keys keep the input order."""

    ordered = list(recipes)

    if sort_by == "title":
        ordered.sort(key=lambda recipe: (recipe.title.casefold(), recipe.title))
    elif sort_by == "newest":
        ordered.sort(key=_created_at, reverse=True)
    elif sort_by == "oldest":
        ordered.sort(key=_created_at)
    elif sort_by == "category":
        ordered.sort(key=lambda recipe: (recipe.category.casefold(), recipe.category))
    elif sort_by == "prepTime":
        ordered.sort(key=lambda recipe: parse_int(recipe.prep_time))

    return ordered


def _created_at(recipe: Recipe) -> datetime:
    return parse_timestamp(recipe.created_at) or _EPOCH_MIN


def parse_ingredients(text: Optional[str]) -> List[str]:
    if not text:
        return []
    return [line.strip() for line in text.split("\n") if line.strip()]


def parse_instructions(text: Optional[str]) -> List[str]:
    return [STEP_NUMBER_RE.sub("", line, count=1) for line in parse_ingredients(text)]


def format_time(minutes: Any) -> str:
    """Human readable duration, e.g. ``25 mins``, ``2 hrs`` or ``1h 30m``."""
    if minutes is None or minutes == "" or minutes == 0:
        return "N/A"
    mins = _leading_int(minutes)
    if mins is None:
        return "N/A"
    if mins < 60:
        return f"{mins} min{'s' if mins != 1 else ''}"
    hours, remaining = divmod(mins, 60)
    if remaining == 0:
        return f"{hours} hr{'s' if hours != 1 else ''}"
    return f"{hours}h {remaining}m"


def format_date(value: Optional[str]) -> str:
    parsed = parse_timestamp(value)
    if parsed is None:
        return ""
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


def get_total_time(prep_time: Any, cook_time: Any) -> int:
    return parse_int(prep_time) + parse_int(cook_time)


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and EMAIL_RE.match(email) is not None


def is_valid_password(password: Optional[str]) -> bool:
    return bool(password) and len(password) >= 6


def capitalize(text: Optional[str]) -> str:
    if not text:
        return ""
    return text[0].upper() + text[1:]


def truncate(text: Optional[str], max_length: int = 100) -> str:
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


__all__ = [
    "SORT_KEYS",
    "capitalize",
    "clean_lines",
    "filter_recipes",
    "format_date",
    "format_time",
    "generate_id",
    "get_total_time",
    "is_valid_email",
    "is_valid_password",
    "now_iso",
    "parse_ingredients",
    "parse_instructions",
    "parse_int",
    "parse_timestamp",
    "round_half_up",
    "sort_recipes",
    "truncate",
    "validate_recipe",
]
