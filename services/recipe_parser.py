"""Normalize recipe JSON documents from mod archives into one flat record.

Every recipe type has its own schema. The dispatch table below maps each known
type identifier (bare and ``minecraft:`` namespaced) to the fields holding its
ingredients. Types that are not in the table go through ``_best_effort_ingredients``,
which guesses at the common field names modded recipe types use.

Ingredient alternatives ("any of these items") are flattened into the same list
as everything else, so OR-groups are not preserved. Tag references keep a
leading ``#`` so they never collide with a concrete item of the same name.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable


TAG_PREFIX = "#"
UNKNOWN_TYPE = "unknown"
DEFAULT_NAMESPACE = "minecraft"


class ParseError(ValueError):
    """Raised when recipe text is not well-formed JSON."""


@dataclass(slots=True)
class ParsedRecipe:
    recipe_type: str
    result_item: str | None = None
    result_count: int | None = None
    ingredients: list[str] = field(default_factory=list)


def parse_recipe(text: str) -> ParsedRecipe:
    """Parse one recipe document.

    Only malformed JSON raises; missing or oddly shaped fields degrade to an
    ``unknown`` type, no result, or no ingredients.
    """

    try:
        doc = json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as exc:
        raise ParseError(f"Invalid JSON: {exc}") from exc

    if not isinstance(doc, dict):
        doc = {}

    recipe_type = doc.get("type")
    if not isinstance(recipe_type, str):
        recipe_type = UNKNOWN_TYPE

    if "special" in recipe_type:
        # Hardcoded recipes (firework rockets, map cloning, ...) carry nothing useful.
        return ParsedRecipe(recipe_type=recipe_type)

    result_item, result_count = (None, None)
    if "result" in doc:
        result_item, result_count = extract_result(doc["result"])

    strategy = _INGREDIENT_STRATEGIES.get(recipe_type, _best_effort_ingredients)
    ingredients: list[str] = []
    strategy(doc, ingredients)

    return ParsedRecipe(
        recipe_type=recipe_type,
        result_item=result_item,
        result_count=result_count,
        ingredients=sorted(set(ingredients)),
    )


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard constant {name}")


def extract_result(value: Any) -> tuple[str | None, int | None]:
    if isinstance(value, str):
        return value, 1
    if isinstance(value, dict):
        raw_item = value["item"] if "item" in value else value.get("id")
        item = raw_item if isinstance(raw_item, str) else None
        count = value.get("count")
        if not isinstance(count, int) or isinstance(count, bool):
            count = 1
        return item, count
    return None, None


def extract_ingredients(value: Any, out: list[str]) -> None:
    """Append every item/tag found in ``value`` to ``out``, descending into arrays."""
    pending = [value]
    while pending:
        current = pending.pop()
        if isinstance(current, str):
            out.append(current)
        elif isinstance(current, dict):
            item = current.get("item")
            if isinstance(item, str):
                out.append(item)
                continue
            tag = current.get("tag")
            if isinstance(tag, str):
                out.append(f"{TAG_PREFIX}{tag}")
        elif isinstance(current, list):
            pending.extend(reversed(current))


def _key_ingredients(doc: dict[str, Any], out: list[str]) -> None:
    key = doc.get("key")
    if isinstance(key, dict):
        for ingredient in key.values():
            extract_ingredients(ingredient, out)


def _list_ingredients(doc: dict[str, Any], out: list[str]) -> None:
    entries = doc.get("ingredients")
    if isinstance(entries, list):
        for entry in entries:
            extract_ingredients(entry, out)


def _fields(*names: str) -> Callable[[dict[str, Any], list[str]], None]:
    def collect(doc: dict[str, Any], out: list[str]) -> None:
        for name in names:
            if name in doc:
                extract_ingredients(doc[name], out)

    return collect


def _first_present(doc: dict[str, Any], *names: str) -> Any:
    for name in names:
        if name in doc:
            return doc[name]
    return None


def _best_effort_ingredients(doc: dict[str, Any], out: list[str]) -> None:
    # Approximate: unknown schemas may use these names for something else entirely.
    extract_ingredients(_first_present(doc, "ingredients", "ingredient"), out)
    _key_ingredients(doc, out)
    extract_ingredients(_first_present(doc, "input", "inputs"), out)


def _namespaced(table: dict[str, Callable[[dict[str, Any], list[str]], None]]):
    expanded = {}
    for name, strategy in table.items():
        expanded[name] = strategy
        expanded[f"{DEFAULT_NAMESPACE}:{name}"] = strategy
    return expanded


_INGREDIENT_STRATEGIES = _namespaced(
    {
        "crafting_shaped": _key_ingredients,
        "crafting_shapeless": _list_ingredients,
        "smelting": _fields("ingredient"),
        "blasting": _fields("ingredient"),
        "smoking": _fields("ingredient"),
        "campfire_cooking": _fields("ingredient"),
        "stonecutting": _fields("ingredient"),
        "smithing_transform": _fields("template", "base", "addition"),
        "smithing_trim": _fields("template", "base", "addition"),
        "smithing": _fields("base", "addition"),
    }
)
