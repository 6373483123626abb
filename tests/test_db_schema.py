import sqlite3

from services import db


def _table_columns(conn: sqlite3.Connection, table: str) -> set[str]:
    rows = conn.execute(f"PRAGMA table_info({table})").fetchall()
    return {row["name"] for row in rows}


def test_ensure_schema_creates_tables_and_indexes():
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row

    db.ensure_schema(conn)
    db.ensure_schema(conn)

    tables = {
        row["name"]
        for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    }
    assert {"app_settings", "mods", "recipes", "recipe_ingredients"} <= tables

    assert _table_columns(conn, "mods") == {"id", "name", "path", "scanned_at"}
    assert _table_columns(conn, "recipes") == {
        "id",
        "mod_id",
        "path",
        "recipe_type",
        "result_item",
        "result_count",
        "raw_json",
    }
    assert _table_columns(conn, "recipe_ingredients") == {"id", "recipe_id", "item"}

    indexes = {
        row["name"]
        for row in conn.execute("SELECT name FROM sqlite_master WHERE type='index'")
    }
    for name in (
        "idx_recipes_result",
        "idx_recipes_mod",
        "idx_ingredients_item",
        "idx_ingredients_recipe",
    ):
        assert name in indexes


def test_connect_creates_parent_folder_and_enables_foreign_keys(tmp_path):
    db_path = tmp_path / "nested" / "dir" / "recipes.db"

    conn = db.connect(db_path)
    try:
        assert db_path.exists()
        assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
        assert "mods" in {
            row["name"] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        }
    finally:
        conn.close()


def test_export_db_copies_contents(tmp_path):
    conn = db.connect(tmp_path / "recipes.db")
    try:
        conn.execute(
            "INSERT INTO mods(name, path, scanned_at) VALUES('a.jar', '/mods/a.jar', '2024-01-01T00:00:00+00:00')"
        )
        conn.commit()

        target = tmp_path / "out" / "copy.db"
        db.export_db(conn, target)
    finally:
        conn.close()

    copy = sqlite3.connect(target)
    try:
        assert copy.execute("SELECT name FROM mods").fetchall() == [("a.jar",)]
    finally:
        copy.close()
