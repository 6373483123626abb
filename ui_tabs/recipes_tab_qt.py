from __future__ import annotations

import json
import logging
import math

from PySide6 import QtCore, QtWidgets

from services.db import connect
from services.extraction import ExtractionProgress, extract_recipes
from services.mod_scanner import scan_directory
from services.recipe_store import RecipeStore, RecipeView
from ui_constants import RECIPES_PAGE_SIZE

_LOGGER = logging.getLogger(__name__)


def format_recipe_details(recipe: RecipeView) -> str:
    lines = [
        f"Type: {recipe.recipe_type}",
        f"Mod: {recipe.mod_name}",
        f"Path: {recipe.path}",
    ]
    if recipe.result_item:
        lines.append(f"Result: {recipe.result_item} x{recipe.result_count or 1}")
    else:
        lines.append("Result: (none)")
    lines.append("")
    lines.append("Ingredients:")
    if recipe.ingredients:
        lines.extend(f"  - {item}" for item in recipe.ingredients)
    else:
        lines.append("  (none)")
    lines.append("")
    try:
        raw = json.dumps(json.loads(recipe.raw_json), indent=2)
    except ValueError:
        raw = recipe.raw_json
    lines.append(raw)
    return "\n".join(lines)


class ExtractionWorker(QtCore.QObject):
    progress = QtCore.Signal(int, int, str)
    finished = QtCore.Signal(object, object)

    def __init__(self, *, db_path, mods_dir: str) -> None:
        super().__init__()
        self._db_path = db_path
        self._mods_dir = mods_dir

    @QtCore.Slot()
    def run(self) -> None:
        conn = None
        try:
            conn = connect(self._db_path)
            mod_files = scan_directory(self._mods_dir)
            result = extract_recipes(
                RecipeStore(conn),
                [mod.path for mod in mod_files],
                progress=self._emit_progress,
            )
            self.finished.emit(result, None)
        except Exception as exc:
            _LOGGER.exception("Extraction failed for %s", self._mods_dir)
            self.finished.emit(None, exc)
        finally:
            if conn is not None:
                conn.close()

    def _emit_progress(self, event: ExtractionProgress) -> None:
        self.progress.emit(event.current, event.total, event.current_mod)


class RecipesTab(QtWidgets.QWidget):
    def __init__(self, app, parent=None):
        super().__init__(parent)
        self.app = app
        self.recipes: list[RecipeView] = []
        self.page = 0
        self.search_active = False
        self._extract_thread: QtCore.QThread | None = None
        self._extract_worker: ExtractionWorker | None = None

        root_layout = QtWidgets.QVBoxLayout(self)
        root_layout.setContentsMargins(8, 8, 8, 8)

        extract_row = QtWidgets.QHBoxLayout()
        root_layout.addLayout(extract_row)
        extract_row.addWidget(QtWidgets.QLabel("Mods Folder:"))
        self.mods_dir_edit = QtWidgets.QLineEdit(self.app.db.get_mods_dir())
        extract_row.addWidget(self.mods_dir_edit, stretch=1)
        self.btn_browse = QtWidgets.QPushButton("Browse…")
        self.btn_browse.clicked.connect(self.browse_mods_dir)
        extract_row.addWidget(self.btn_browse)
        self.btn_extract = QtWidgets.QPushButton("Extract Recipes")
        self.btn_extract.clicked.connect(self.start_extraction)
        extract_row.addWidget(self.btn_extract)

        self.progress_bar = QtWidgets.QProgressBar()
        self.progress_bar.setRange(0, 1)
        self.progress_bar.setValue(0)
        root_layout.addWidget(self.progress_bar)

        search_row = QtWidgets.QHBoxLayout()
        root_layout.addLayout(search_row)
        self.search_edit = QtWidgets.QLineEdit()
        self.search_edit.setPlaceholderText("Search item id, e.g. iron or #forge:ingots")
        self.search_edit.returnPressed.connect(self.run_search)
        search_row.addWidget(self.search_edit, stretch=1)
        self.mode_combo = QtWidgets.QComboBox()
        self.mode_combo.addItem("By Output", "output")
        self.mode_combo.addItem("By Ingredient", "ingredient")
        mode_index = self.mode_combo.findData(self.app.db.get_search_mode())
        self.mode_combo.setCurrentIndex(max(0, mode_index))
        self.mode_combo.currentIndexChanged.connect(self._on_mode_changed)
        search_row.addWidget(self.mode_combo)
        self.btn_search = QtWidgets.QPushButton("Search")
        self.btn_search.clicked.connect(self.run_search)
        search_row.addWidget(self.btn_search)
        self.btn_clear_search = QtWidgets.QPushButton("Clear")
        self.btn_clear_search.clicked.connect(self.clear_search)
        search_row.addWidget(self.btn_clear_search)

        body = QtWidgets.QHBoxLayout()
        root_layout.addLayout(body, stretch=1)

        left = QtWidgets.QVBoxLayout()
        body.addLayout(left, stretch=3)
        self.recipe_table = QtWidgets.QTableWidget(0, 4)
        self.recipe_table.setHorizontalHeaderLabels(["Output", "Count", "Mod", "Type"])
        self.recipe_table.setSelectionBehavior(QtWidgets.QAbstractItemView.SelectionBehavior.SelectRows)
        self.recipe_table.setSelectionMode(QtWidgets.QAbstractItemView.SelectionMode.SingleSelection)
        self.recipe_table.setEditTriggers(QtWidgets.QAbstractItemView.EditTrigger.NoEditTriggers)
        self.recipe_table.setAlternatingRowColors(True)
        self.recipe_table.horizontalHeader().setStretchLastSection(True)
        self.recipe_table.currentCellChanged.connect(lambda row, *_: self.on_recipe_select(row))
        left.addWidget(self.recipe_table, stretch=1)

        pager = QtWidgets.QHBoxLayout()
        left.addLayout(pager)
        self.btn_prev = QtWidgets.QPushButton("Prev")
        self.btn_prev.clicked.connect(self.prev_page)
        self.btn_next = QtWidgets.QPushButton("Next")
        self.btn_next.clicked.connect(self.next_page)
        self.page_label = QtWidgets.QLabel("")
        pager.addWidget(self.btn_prev)
        pager.addWidget(self.page_label)
        pager.addWidget(self.btn_next)
        pager.addStretch(1)

        self.recipe_details = QtWidgets.QPlainTextEdit()
        self.recipe_details.setReadOnly(True)
        body.addWidget(self.recipe_details, stretch=2)

    @property
    def store(self) -> RecipeStore:
        return self.app.db.store

    def page_count(self) -> int:
        return max(1, math.ceil(self.store.count() / RECIPES_PAGE_SIZE))

    def refresh_page(self) -> None:
        self.search_active = False
        self.page = min(max(0, self.page), self.page_count() - 1)
        recipes = self.store.list_recipes(offset=self.page * RECIPES_PAGE_SIZE, limit=RECIPES_PAGE_SIZE)
        self.render_recipes(recipes)

    def next_page(self) -> None:
        if self.page + 1 < self.page_count():
            self.page += 1
            self.refresh_page()

    def prev_page(self) -> None:
        if self.page > 0:
            self.page -= 1
            self.refresh_page()

    def run_search(self) -> None:
        text = self.search_edit.text().strip()
        if not text:
            self.clear_search()
            return
        mode = self.mode_combo.currentData()
        if mode == "ingredient":
            recipes = self.store.search_by_ingredient(text)
        else:
            recipes = self.store.search_by_output(text)
        self.search_active = True
        self.render_recipes(recipes)
        self.app.status_bar.showMessage(f"{len(recipes)} recipe(s) match '{text}'")

    def clear_search(self) -> None:
        self.search_edit.clear()
        self.page = 0
        self.refresh_page()

    def render_recipes(self, recipes: list[RecipeView]) -> None:
        self.recipes = list(recipes)
        self.recipe_table.setRowCount(len(self.recipes))
        for row, recipe in enumerate(self.recipes):
            count = "" if recipe.result_count is None else str(recipe.result_count)
            values = (recipe.result_item or "(none)", count, recipe.mod_name, recipe.recipe_type)
            for col, value in enumerate(values):
                self.recipe_table.setItem(row, col, QtWidgets.QTableWidgetItem(value))

        paged = not self.search_active
        self.btn_prev.setEnabled(paged and self.page > 0)
        self.btn_next.setEnabled(paged and self.page + 1 < self.page_count())
        if paged:
            self.page_label.setText(f"Page {self.page + 1} of {self.page_count()}")
        else:
            self.page_label.setText(f"{len(self.recipes)} result(s)")

        if self.recipes:
            self.recipe_table.setCurrentCell(0, 0)
            self.on_recipe_select(0)
        else:
            self.recipe_details.setPlainText("")

    def on_recipe_select(self, row: int) -> None:
        if row < 0 or row >= len(self.recipes):
            self.recipe_details.setPlainText("")
            return
        self.recipe_details.setPlainText(format_recipe_details(self.recipes[row]))

    def browse_mods_dir(self) -> None:
        path = QtWidgets.QFileDialog.getExistingDirectory(self, "Select Mods Folder", self.mods_dir_edit.text())
        if path:
            self.mods_dir_edit.setText(path)

    def start_extraction(self) -> None:
        if self._extract_thread is not None:
            return
        mods_dir = self.mods_dir_edit.text().strip()
        if not mods_dir:
            QtWidgets.QMessageBox.warning(self, "No folder", "Choose a mods folder first.")
            return
        self.app.db.set_mods_dir(mods_dir)
        self._set_extracting_state(True)

        self._extract_thread = QtCore.QThread(self)
        self._extract_worker = ExtractionWorker(db_path=self.app.db.db_path, mods_dir=mods_dir)
        self._extract_worker.moveToThread(self._extract_thread)
        self._extract_thread.started.connect(self._extract_worker.run)
        self._extract_worker.progress.connect(
            self._on_extraction_progress,
            QtCore.Qt.ConnectionType.QueuedConnection,
        )
        self._extract_worker.finished.connect(
            self._on_extraction_finished,
            QtCore.Qt.ConnectionType.QueuedConnection,
        )
        self._extract_worker.finished.connect(self._extract_thread.quit)
        self._extract_thread.finished.connect(self._extract_thread.deleteLater)
        self._extract_thread.finished.connect(self._cleanup_extract_worker)
        self._extract_thread.start()

    def _cleanup_extract_worker(self) -> None:
        if self._extract_worker is not None:
            self._extract_worker.deleteLater()
        self._extract_worker = None
        self._extract_thread = None

    def _set_extracting_state(self, active: bool) -> None:
        for btn in (self.btn_extract, self.btn_browse):
            btn.setEnabled(not active)
        if active:
            self.progress_bar.setRange(0, 0)
            self.app.status_bar.showMessage("Extracting recipes...")

    def _on_extraction_progress(self, current: int, total: int, mod_name: str) -> None:
        self.progress_bar.setRange(0, max(1, total))
        self.progress_bar.setValue(current)
        self.app.status_bar.showMessage(f"Extracting {current}/{total}: {mod_name}")

    def _on_extraction_finished(self, result, error) -> None:
        self._set_extracting_state(False)
        self.progress_bar.setRange(0, 1)
        self.progress_bar.setValue(1 if error is None else 0)
        if error is not None:
            QtWidgets.QMessageBox.critical(
                self,
                "Extraction error",
                f"Recipe extraction failed.\n\nDetails: {error}",
            )
            self.app.status_bar.showMessage("Extraction failed")
            return

        self.page = 0
        self.refresh_page()
        summary = (
            f"Extracted {result.recipes_extracted} recipe(s) from {result.mods_processed} mod(s)"
        )
        if result.errors:
            summary += f", {len(result.errors)} error(s)"
            QtWidgets.QMessageBox.warning(
                self,
                "Extraction finished with errors",
                summary + ".\n\n" + "\n".join(result.errors[:50]),
            )
        self.app.status_bar.showMessage(summary)

    def _on_mode_changed(self, _index: int) -> None:
        mode = self.mode_combo.currentData()
        if mode:
            self.app.db.set_search_mode(mode)
        if self.search_edit.text().strip():
            self.run_search()
