from __future__ import annotations

import argparse
import getpass
import json
import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import Settings
from .errors import NotLoggedInError, RecipeManagerError
from .helpers import (
    SORT_KEYS,
    format_date,
    format_time,
    get_total_time,
    parse_ingredients,
    parse_instructions,
    truncate,
)
from .identity import AuthBackend, AuthClient, IdentityContext
from .models import Recipe, RecipeResult, User
from .recipes import RecipeService
from .storage import JsonFileStore, RecipeStorage

LOG_FORMAT = "%(asctime)s %(levelname)s %(module)s %(message)s"


@dataclass
class Session:
    settings: Settings
    storage: RecipeStorage
    identity: IdentityContext
    recipes: RecipeService

    def require_user(self) -> User:
        user = self.identity.get_current_user()
        if user is None:
            raise NotLoggedInError()
        return user


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    handlers: dict[str, Callable[[argparse.Namespace, Session], int]] = {
        "init": _cmd_init,
        "register": _cmd_register,
        "login": _cmd_login,
        "logout": _cmd_logout,
        "whoami": _cmd_whoami,
        "list": _cmd_list,
        "show": _cmd_show,
        "search": _cmd_search,
        "mine": _cmd_mine,
        "add": _cmd_add,
        "edit": _cmd_edit,
        "delete": _cmd_delete,
        "stats": _cmd_stats,
        "categories": _cmd_categories,
    }

    try:
        settings = Settings.from_env()
        if args.data_dir:
            settings = replace(settings, data_dir=Path(args.data_dir))
        logging.basicConfig(level="DEBUG" if args.verbose else settings.log_level, format=LOG_FORMAT)
        return handlers[args.command](args, open_session(settings))
    except RecipeManagerError as exc:
        print(str(exc), file=sys.stderr)
        return 1


def open_session(settings: Settings) -> Session:
    storage = RecipeStorage(JsonFileStore(settings.data_dir))
    storage.initialize_data()
    identity = IdentityContext(storage, _make_auth(settings))
    return Session(settings=settings, storage=storage, identity=identity, recipes=RecipeService(storage))


def _make_auth(settings: Settings) -> AuthBackend:
    return AuthClient(settings.auth_url, timeout=settings.request_timeout)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="recipe-manager")
    parser.add_argument("--data-dir", help="Directory holding the local recipe data")
    parser.add_argument("--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("init")

    register = sub.add_parser("register")
    register.add_argument("name")
    register.add_argument("email")
    register.add_argument("--password")

    login = sub.add_parser("login")
    login.add_argument("email")
    login.add_argument("--password")

    sub.add_parser("logout")
    sub.add_parser("whoami")

    listing = sub.add_parser("list")
    listing.add_argument("--search", default="")
    listing.add_argument("--category", default="")
    listing.add_argument("--sort", dest="sort_by", choices=SORT_KEYS, default="newest")
    listing.add_argument("--json", action="store_true")

    show = sub.add_parser("show")
    show.add_argument("recipe_id")

    search = sub.add_parser("search")
    search.add_argument("query")

    sub.add_parser("mine")

    add = sub.add_parser("add")
    _add_recipe_fields(add)

    edit = sub.add_parser("edit")
    edit.add_argument("recipe_id")
    _add_recipe_fields(edit)

    delete = sub.add_parser("delete")
    delete.add_argument("recipe_id")

    sub.add_parser("stats")
    sub.add_parser("categories")

    return parser


def _add_recipe_fields(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--title")
    parser.add_argument("--description")
    parser.add_argument("--category")
    parser.add_argument("--prep-time", dest="prepTime")
    parser.add_argument("--cook-time", dest="cookTime")
    parser.add_argument("--servings")
    ingredients = parser.add_mutually_exclusive_group()
    ingredients.add_argument("--ingredients", help="One ingredient per line")
    ingredients.add_argument("--ingredients-file")
    instructions = parser.add_mutually_exclusive_group()
    instructions.add_argument("--instructions", help="One step per line, numbering is stripped")
    instructions.add_argument("--instructions-file")


def _cmd_init(args: argparse.Namespace, session: Session) -> int:
    print(f"Recipe data ready in {session.settings.data_dir}")
    return 0


def _cmd_register(args: argparse.Namespace, session: Session) -> int:
    password = args.password or getpass.getpass("Password: ")
    result = session.identity.register(args.name, args.email, password)
    return _report_auth(result, "Account created. Welcome, {name}!")


def _cmd_login(args: argparse.Namespace, session: Session) -> int:
    password = args.password or getpass.getpass("Password: ")
    result = session.identity.login(args.email, password)
    return _report_auth(result, "Welcome back, {name}!")


def _report_auth(result: Dict[str, Any], message: str) -> int:
    if not result.get("success"):
        print(result.get("error") or "An unexpected error occurred", file=sys.stderr)
        return 1
    print(message.format(name=result["user"].get("name", "")))
    return 0


def _cmd_logout(args: argparse.Namespace, session: Session) -> int:
    session.identity.logout()
    print("Logged out.")
    return 0


def _cmd_whoami(args: argparse.Namespace, session: Session) -> int:
    user = session.require_user()
    print(f"{user.name} <{user.email}> (id {user.id})")
    return 0


def _cmd_list(args: argparse.Namespace, session: Session) -> int:
    recipes = session.recipes.get_all_recipes(args.search, args.category, args.sort_by)
    if args.json:
        print(json.dumps([recipe.to_dict() for recipe in recipes], indent=2))
    else:
        _print_recipes(recipes)
    return 0


def _cmd_show(args: argparse.Namespace, session: Session) -> int:
    recipe = session.recipes.get_recipe_by_id(args.recipe_id)
    if recipe is None:
        print("Recipe not found", file=sys.stderr)
        return 1

    print(recipe.title)
    print("=" * len(recipe.title))
    if recipe.description:
        print(recipe.description)
    print()
    print(f"Category: {recipe.category}")
    print(
        f"Prep: {format_time(recipe.prep_time)}  Cook: {format_time(recipe.cook_time)}  "
        f"Total: {format_time(get_total_time(recipe.prep_time, recipe.cook_time))}  Serves: {recipe.servings}"
    )
    print(f"Added: {format_date(recipe.created_at)}")
    print()
    print("Ingredients:")
    for ingredient in recipe.ingredients:
        print(f"  - {ingredient}")
    print()
    print("Instructions:")
    for number, step in enumerate(recipe.instructions, start=1):
        print(f"  {number}. {step}")
    return 0


def _cmd_search(args: argparse.Namespace, session: Session) -> int:
    _print_recipes(session.recipes.search_recipes(args.query))
    return 0


def _cmd_mine(args: argparse.Namespace, session: Session) -> int:
    user = session.require_user()
    _print_recipes(session.recipes.get_recipes_by_user(user.id))
    return 0


def _cmd_add(args: argparse.Namespace, session: Session) -> int:
    user = session.require_user()
    data = _recipe_data(args, {})
    return _report_result(session.recipes.create_recipe(data, user.id), "Recipe '{title}' saved.")


def _cmd_edit(args: argparse.Namespace, session: Session) -> int:
    user = session.require_user()
    existing = session.recipes.get_recipe_by_id(args.recipe_id)
    base = _draft_from(existing) if existing is not None else {}
    data = _recipe_data(args, base)
    result = session.recipes.update_recipe(args.recipe_id, data, user.id)
    return _report_result(result, "Recipe '{title}' updated.")


def _cmd_delete(args: argparse.Namespace, session: Session) -> int:
    user = session.require_user()
    result = session.recipes.delete_recipe(args.recipe_id, user.id)
    if not result.success:
        print(result.error, file=sys.stderr)
        return 1
    print("Recipe deleted.")
    return 0


def _cmd_stats(args: argparse.Namespace, session: Session) -> int:
    user = session.require_user()
    stats = session.recipes.get_recipe_stats(user.id)
    print(f"Total recipes: {stats.total_recipes}")
    print(f"Categories used: {stats.categories_used}")
    print(f"Average prep time: {format_time(stats.average_prep_time)}")
    for category, count in stats.category_breakdown:
        print(f"  {category}: {count}")
    return 0


def _cmd_categories(args: argparse.Namespace, session: Session) -> int:
    for category in session.storage.get_categories():
        count = len(session.recipes.get_recipes_by_category(category))
        print(f"{category} ({count})")
    return 0


def _recipe_data(args: argparse.Namespace, base: Dict[str, Any]) -> Dict[str, Any]:
    data = dict(base)
    for field in ("title", "description", "category", "prepTime", "cookTime", "servings"):
        value = getattr(args, field)
        if value is not None:
            data[field] = value

    ingredients = _bulk_text(args.ingredients, args.ingredients_file)
    if ingredients is not None:
        data["ingredients"] = parse_ingredients(ingredients)

    instructions = _bulk_text(args.instructions, args.instructions_file)
    if instructions is not None:
        data["instructions"] = parse_instructions(instructions)

    return data


def _bulk_text(text: Optional[str], path: Optional[str]) -> Optional[str]:
    if path is None:
        return text
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise RecipeManagerError(f"Could not read {path}: {exc.strerror}") from exc


def _draft_from(recipe: Recipe) -> Dict[str, Any]:
    return {
        "title": recipe.title,
        "description": recipe.description,
        "category": recipe.category,
        "prepTime": recipe.prep_time,
        "cookTime": recipe.cook_time,
        "servings": recipe.servings,
        "ingredients": list(recipe.ingredients),
        "instructions": list(recipe.instructions),
    }


def _report_result(result: RecipeResult, message: str) -> int:
    if not result.success:
        for error in result.errors:
            print(error, file=sys.stderr)
        return 1
    print(message.format(title=result.recipe.title))
    print(result.recipe.id)
    return 0


def _print_recipes(recipes: List[Recipe]) -> None:
    if not recipes:
        print("No recipes found.")
        return
    for recipe in recipes:
        total = format_time(get_total_time(recipe.prep_time, recipe.cook_time))
        line = f"{recipe.id}: {recipe.title} [{recipe.category}] {total}"
        if recipe.description:
            line += f" - {truncate(recipe.description, 60)}"
        print(line)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
