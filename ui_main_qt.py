#!/usr/bin/env python3
from __future__ import annotations

import logging
import sqlite3
import sys
from pathlib import Path

from PySide6 import QtWidgets

from services.db import DEFAULT_DB_PATH
from services.db_lifecycle import DbLifecycle
from ui_constants import DARK_STYLESHEET, LOG_FILENAME
from ui_tabs.recipes_tab_qt import RecipesTab

_LOGGER = logging.getLogger(__name__)


def configure_logging(log_dir: Path | None = None) -> None:
    root = logging.getLogger()
    if root.handlers:
        return
    log_dir = log_dir or Path(__file__).resolve().parent
    handler = logging.FileHandler(log_dir / LOG_FILENAME, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    root.addHandler(handler)
    root.setLevel(logging.INFO)


class AppQt(QtWidgets.QMainWindow):
    def __init__(self, db_path: Path | str = DEFAULT_DB_PATH):
        super().__init__()
        self.setWindowTitle("Mod Recipe Extractor")
        self.resize(1100, 700)

        self.db = DbLifecycle(db_path=db_path)
        self.status_bar = self.statusBar()

        self._build_menu()

        self.tabs = QtWidgets.QTabWidget(self)
        self.setCentralWidget(self.tabs)

        self.recipes_tab = RecipesTab(self)
        self.tabs.addTab(self.recipes_tab, "Recipes")

        self.recipes_tab.refresh_page()
        self.show_stats()

    def _build_menu(self) -> None:
        file_menu = self.menuBar().addMenu("File")
        file_menu.addAction("Open DB…", self.open_db)
        file_menu.addAction("Export DB…", self.export_db)
        file_menu.addSeparator()
        file_menu.addAction("Quit", self.close)

    def show_stats(self) -> None:
        stats = self.db.store.stats()
        self.status_bar.showMessage(
            f"{stats['mods']} mod(s), {stats['recipes']} recipe(s), {stats['ingredients']} ingredient row(s)"
        )

    def open_db(self) -> None:
        path, _ = QtWidgets.QFileDialog.getOpenFileName(
            self, "Open Recipe DB", str(self.db.db_path), "SQLite DB (*.db);;All files (*)"
        )
        if not path:
            return
        old_path = self.db.db_path
        try:
            self.db.switch_db(Path(path))
        except sqlite3.Error as exc:
            QtWidgets.QMessageBox.critical(self, "Open failed", f"Could not open {path}.\n\nDetails: {exc}")
            self.db.switch_db(old_path)
        self.recipes_tab.mods_dir_edit.setText(self.db.get_mods_dir())
        self.recipes_tab.page = 0
        self.recipes_tab.refresh_page()
        self.show_stats()

    def export_db(self) -> None:
        path, _ = QtWidgets.QFileDialog.getSaveFileName(
            self, "Export Recipe DB", "recipes_export.db", "SQLite DB (*.db)"
        )
        if not path:
            return
        self.db.export_db(Path(path))
        self.status_bar.showMessage(f"Exported DB to {path}")

    def closeEvent(self, event) -> None:
        self.db.close()
        super().closeEvent(event)


def main() -> int:
    configure_logging()
    app = QtWidgets.QApplication(sys.argv)
    app.setStyle("Fusion")
    app.setStyleSheet(DARK_STYLESHEET)
    try:
        window = AppQt()
    except (OSError, sqlite3.Error) as exc:
        _LOGGER.exception("Failed to open recipe DB")
        QtWidgets.QMessageBox.critical(None, "Database error", f"Could not open the recipe DB.\n\nDetails: {exc}")
        return 1
    window.show()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
