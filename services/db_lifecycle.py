"""Database lifecycle helpers for the recipe DB."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path

from services.db import DEFAULT_DB_PATH, connect, export_db, get_setting, set_setting
from services.recipe_store import RecipeStore
from ui_constants import SEARCH_MODES, SETTINGS_MODS_DIR, SETTINGS_SEARCH_MODE

_LOGGER = logging.getLogger(__name__)


@dataclass
class DbLifecycle:
    """Owns the recipe DB connection and the store built on top of it.

    Opening is the one fatal step: if the DB cannot be opened the error is
    raised to the caller, since nothing else can run without it.
    """

    db_path: Path = DEFAULT_DB_PATH
    conn: sqlite3.Connection | None = field(init=False, default=None)
    store: RecipeStore | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        self.db_path = Path(self.db_path)
        self._open(self.db_path)

    def close(self) -> None:
        try:
            if self.conn is not None:
                self.conn.commit()
                self.conn.close()
        except sqlite3.Error:
            _LOGGER.exception("Failed to close recipe DB %s", self.db_path)
        finally:
            self.conn = None
            self.store = None

    def switch_db(self, new_path: Path) -> None:
        self.close()
        self.db_path = Path(new_path)
        self._open(self.db_path)

    def export_db(self, target: Path) -> None:
        export_db(self.conn, target)

    def get_mods_dir(self) -> str:
        return (get_setting(self.conn, SETTINGS_MODS_DIR, "") or "").strip()

    def set_mods_dir(self, path: str) -> None:
        set_setting(self.conn, SETTINGS_MODS_DIR, path.strip())

    def get_search_mode(self) -> str:
        raw = (get_setting(self.conn, SETTINGS_SEARCH_MODE, "output") or "output").strip().lower()
        return raw if raw in SEARCH_MODES else "output"

    def set_search_mode(self, mode: str) -> None:
        value = mode.strip().lower()
        if value not in SEARCH_MODES:
            raise ValueError(f"Unknown search mode: {mode!r}")
        set_setting(self.conn, SETTINGS_SEARCH_MODE, value)

    def _open(self, path: Path) -> None:
        self.conn = connect(path)
        self.store = RecipeStore(self.conn)
        _LOGGER.info("Opened recipe DB %s", path)
