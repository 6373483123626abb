#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from services.db import DEFAULT_DB_PATH, connect
from services.extraction import ExtractionProgress, extract_recipes
from services.mod_scanner import ModScanError, read_jar_contents, scan_directory
from services.recipe_store import RecipeStore, RecipeView


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Extract and search crafting recipes from mod jars.")
    parser.add_argument("--db", default=str(DEFAULT_DB_PATH), help=f"Path to recipe DB (default: {DEFAULT_DB_PATH})")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    extract = sub.add_parser("extract", help="Clear the DB and extract recipes from every jar in a folder")
    extract.add_argument("mods_dir", help="Folder containing mod .jar files")

    by_output = sub.add_parser("search-output", help="Find recipes whose output contains TEXT")
    by_output.add_argument("text")

    by_ingredient = sub.add_parser("search-ingredient", help="Find recipes using an ingredient containing TEXT")
    by_ingredient.add_argument("text")

    list_cmd = sub.add_parser("list", help="List stored recipes ordered by mod and path")
    list_cmd.add_argument("--offset", type=int, default=0)
    list_cmd.add_argument("--limit", type=int, default=50)

    sub.add_parser("count", help="Print the number of stored recipes")
    sub.add_parser("mods", help="List stored mods with their recipe counts")

    entries = sub.add_parser("entries", help="List the recipe-folder entries of one jar")
    entries.add_argument("jar", help="Path to a mod .jar file")
    return parser.parse_args(argv)


def format_recipe_line(recipe: RecipeView) -> str:
    result = recipe.result_item or "(no result)"
    if recipe.result_count is not None:
        result = f"{result} x{recipe.result_count}"
    return f"{result} [{recipe.mod_name}] {recipe.path}"


def print_recipes(recipes: list[RecipeView]) -> None:
    for recipe in recipes:
        print(format_recipe_line(recipe))
        for item in recipe.ingredients:
            print(f"    {item}")
    print(f"{len(recipes)} recipe(s)")


def _print_progress(event: ExtractionProgress) -> None:
    print(f"[{event.current}/{event.total}] {event.current_mod}", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    conn = connect(Path(args.db))
    try:
        store = RecipeStore(conn)
        if args.command == "extract":
            try:
                mod_files = scan_directory(args.mods_dir)
            except ModScanError as exc:
                print(f"error: {exc}", file=sys.stderr)
                return 1
            result = extract_recipes(store, [mod.path for mod in mod_files], progress=_print_progress)
            print(f"Mods processed: {result.mods_processed}")
            print(f"Recipes extracted: {result.recipes_extracted}")
            for error in result.errors:
                print(f"error: {error}", file=sys.stderr)
        elif args.command == "search-output":
            print_recipes(store.search_by_output(args.text))
        elif args.command == "search-ingredient":
            print_recipes(store.search_by_ingredient(args.text))
        elif args.command == "list":
            print_recipes(store.list_recipes(offset=args.offset, limit=args.limit))
        elif args.command == "count":
            print(store.count())
        elif args.command == "mods":
            mods = store.list_mods()
            for mod in mods:
                print(f"{mod['name']} ({mod['recipe_count']} recipe(s)) {mod['path']}")
            print(f"{len(mods)} mod(s)")
        elif args.command == "entries":
            try:
                jar_entries = read_jar_contents(args.jar)
            except ModScanError as exc:
                print(f"error: {exc}", file=sys.stderr)
                return 1
            for entry in jar_entries:
                print(f"{entry.name} (dir)" if entry.is_dir else entry.name)
            print(f"{len(jar_entries)} entry(ies)")
    finally:
        conn.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
