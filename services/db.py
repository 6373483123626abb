#!/usr/bin/env python3
import sqlite3
from pathlib import Path

DEFAULT_DB_PATH = Path("recipes.db")


def connect(db_path: Path | str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Connect to a recipe DB, creating it (and its folder) when missing.

    Schema migrations are applied on every open so older DB files stay readable.
    Connections may be handed to a worker thread; callers serialize access.
    """
    if str(db_path) != ":memory:":
        db_path = Path(db_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON")
    ensure_schema(conn)
    return conn


def ensure_schema(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
    CREATE TABLE IF NOT EXISTS app_settings (
        key TEXT PRIMARY KEY,
        value TEXT
    )
    """
    )

    conn.execute(
        """
    CREATE TABLE IF NOT EXISTS mods (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        path TEXT NOT NULL UNIQUE,
        scanned_at TEXT NOT NULL
    )
    """
    )

    conn.execute(
        """
    CREATE TABLE IF NOT EXISTS recipes (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        mod_id INTEGER NOT NULL,
        path TEXT NOT NULL,

        -- Recipe "type" exactly as written in the JSON ('unknown' when absent)
        recipe_type TEXT NOT NULL,

        -- Both NULL for special recipes
        result_item TEXT,
        result_count INTEGER,

        raw_json TEXT NOT NULL,
        UNIQUE(mod_id, path),
        FOREIGN KEY(mod_id) REFERENCES mods(id) ON DELETE CASCADE
    )
    """
    )

    # Tag references are stored with their leading '#'.
    conn.execute(
        """
    CREATE TABLE IF NOT EXISTS recipe_ingredients (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        recipe_id INTEGER NOT NULL,
        item TEXT NOT NULL,
        FOREIGN KEY(recipe_id) REFERENCES recipes(id) ON DELETE CASCADE
    )
    """
    )

    conn.execute("CREATE INDEX IF NOT EXISTS idx_recipes_result ON recipes(result_item)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_recipes_mod ON recipes(mod_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_ingredients_item ON recipe_ingredients(item)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_ingredients_recipe ON recipe_ingredients(recipe_id)")

    conn.commit()


def get_setting(conn: sqlite3.Connection, key: str, default: str | None = None) -> str | None:
    row = conn.execute("SELECT value FROM app_settings WHERE key=?", (key,)).fetchone()
    return row["value"] if row else default


def set_setting(conn: sqlite3.Connection, key: str, value: str) -> None:
    conn.execute(
        "INSERT INTO app_settings(key, value) VALUES(?, ?) "
        "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
        (key, value),
    )
    conn.commit()


def export_db(conn: sqlite3.Connection, dest_path: Path | str) -> None:
    """Create a safe copy of the current DB to dest_path.

    Uses SQLite's backup API which is safe even if the DB is in WAL mode.
    """
    dest_path = Path(dest_path)
    dest_path.parent.mkdir(parents=True, exist_ok=True)
    dst = sqlite3.connect(str(dest_path))
    try:
        conn.backup(dst)
    finally:
        dst.close()
