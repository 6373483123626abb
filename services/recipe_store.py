from __future__ import annotations

import logging
import sqlite3
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable

_LOGGER = logging.getLogger(__name__)

_LIKE_ESCAPE = "\\"

_RECIPE_VIEW_SELECT = """
    SELECT r.id, m.name AS mod_name, r.path, r.recipe_type, r.result_item, r.result_count, r.raw_json
    FROM recipes r
    JOIN mods m ON m.id = r.mod_id
"""


@dataclass(frozen=True, slots=True)
class RecipeView:
    """A stored recipe joined with its mod name and ingredient list."""

    id: int
    mod_name: str
    path: str
    recipe_type: str
    result_item: str | None
    result_count: int | None
    raw_json: str
    ingredients: list[str] = field(default_factory=list)


def like_pattern(text: str) -> str:
    """Build an unanchored LIKE pattern that matches ``text`` literally."""
    escaped = (
        text.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", f"{_LIKE_ESCAPE}%")
        .replace("_", f"{_LIKE_ESCAPE}_")
    )
    return f"%{escaped}%"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class RecipeStore:
    """Mods, recipes and ingredients in one SQLite connection.

    Every public method holds the store lock for its whole duration, so a
    search issued while an extraction is writing waits instead of interleaving.
    Writes are committed before the method returns.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self._lock = threading.RLock()

    def reset(self) -> None:
        with self._lock, self.conn:
            self.conn.execute("DELETE FROM recipe_ingredients")
            self.conn.execute("DELETE FROM recipes")
            self.conn.execute("DELETE FROM mods")
        _LOGGER.info("Cleared all mods, recipes and ingredients")

    def upsert_mod(self, name: str, path: str) -> int:
        with self._lock, self.conn:
            self.conn.execute(
                """
                INSERT INTO mods(name, path, scanned_at)
                VALUES(?, ?, ?)
                ON CONFLICT(path)
                DO UPDATE SET
                  name=excluded.name,
                  scanned_at=excluded.scanned_at
                """,
                (name, path, _utc_now()),
            )
            row = self.conn.execute("SELECT id FROM mods WHERE path=?", (path,)).fetchone()
        return int(row["id"])

    def upsert_recipe(
        self,
        mod_id: int,
        path: str,
        recipe_type: str,
        result_item: str | None,
        result_count: int | None,
        raw_json: str,
        ingredients: Iterable[str],
    ) -> int:
        """Insert or replace the recipe at ``(mod_id, path)`` and its ingredient rows.

        The recipe row and its ingredients are written in one transaction, so a
        failure part way leaves the previous version untouched.
        """

        with self._lock, self.conn:
            self.conn.execute(
                """
                INSERT INTO recipes(mod_id, path, recipe_type, result_item, result_count, raw_json)
                VALUES(?, ?, ?, ?, ?, ?)
                ON CONFLICT(mod_id, path)
                DO UPDATE SET
                  recipe_type=excluded.recipe_type,
                  result_item=excluded.result_item,
                  result_count=excluded.result_count,
                  raw_json=excluded.raw_json
                """,
                (mod_id, path, recipe_type, result_item, result_count, raw_json),
            )
            row = self.conn.execute(
                "SELECT id FROM recipes WHERE mod_id=? AND path=?",
                (mod_id, path),
            ).fetchone()
            recipe_id = int(row["id"])
            self.conn.execute("DELETE FROM recipe_ingredients WHERE recipe_id=?", (recipe_id,))
            self.conn.executemany(
                "INSERT INTO recipe_ingredients(recipe_id, item) VALUES(?, ?)",
                [(recipe_id, item) for item in ingredients],
            )
        return recipe_id

    def search_by_output(self, text: str) -> list[RecipeView]:
        sql = (
            _RECIPE_VIEW_SELECT
            + f"WHERE r.result_item LIKE ? ESCAPE '{_LIKE_ESCAPE}' "
            "ORDER BY r.result_item, m.name, r.path"
        )
        with self._lock:
            rows = self.conn.execute(sql, (like_pattern(text),)).fetchall()
            return self._to_views(rows)

    def search_by_ingredient(self, text: str) -> list[RecipeView]:
        sql = (
            _RECIPE_VIEW_SELECT
            + "WHERE r.id IN ("
            "    SELECT ri.recipe_id FROM recipe_ingredients ri "
            f"    WHERE ri.item LIKE ? ESCAPE '{_LIKE_ESCAPE}'"
            ") "
            "ORDER BY r.result_item, m.name, r.path"
        )
        with self._lock:
            rows = self.conn.execute(sql, (like_pattern(text),)).fetchall()
            return self._to_views(rows)

    def list_recipes(self, offset: int = 0, limit: int = 100) -> list[RecipeView]:
        if offset < 0 or limit < 0:
            raise ValueError("offset and limit must be non-negative.")
        sql = _RECIPE_VIEW_SELECT + "ORDER BY m.name, r.path, r.id LIMIT ? OFFSET ?"
        with self._lock:
            rows = self.conn.execute(sql, (limit, offset)).fetchall()
            return self._to_views(rows)

    def count(self) -> int:
        with self._lock:
            row = self.conn.execute("SELECT COUNT(*) AS c FROM recipes").fetchone()
        return int(row["c"] or 0)

    def list_mods(self) -> list[dict[str, Any]]:
        with self._lock:
            rows = self.conn.execute(
                """
                SELECT m.id, m.name, m.path, m.scanned_at, COUNT(r.id) AS recipe_count
                FROM mods m
                LEFT JOIN recipes r ON r.mod_id = m.id
                GROUP BY m.id
                ORDER BY LOWER(m.name), m.id
                """
            ).fetchall()
        return [dict(row) for row in rows]

    def stats(self) -> dict[str, int]:
        with self._lock:
            row = self.conn.execute(
                """
                SELECT
                  (SELECT COUNT(*) FROM mods) AS mods,
                  (SELECT COUNT(*) FROM recipes) AS recipes,
                  (SELECT COUNT(*) FROM recipe_ingredients) AS ingredients
                """
            ).fetchone()
        return {key: int(row[key] or 0) for key in ("mods", "recipes", "ingredients")}

    def _ingredients_for(self, recipe_id: int) -> list[str]:
        rows = self.conn.execute(
            "SELECT DISTINCT item FROM recipe_ingredients WHERE recipe_id=? ORDER BY item",
            (recipe_id,),
        ).fetchall()
        return [row["item"] for row in rows]

    def _to_views(self, rows: list[sqlite3.Row]) -> list[RecipeView]:
        return [
            RecipeView(
                id=int(row["id"]),
                mod_name=row["mod_name"],
                path=row["path"],
                recipe_type=row["recipe_type"],
                result_item=row["result_item"],
                result_count=row["result_count"],
                raw_json=row["raw_json"],
                ingredients=self._ingredients_for(int(row["id"])),
            )
            for row in rows
        ]
