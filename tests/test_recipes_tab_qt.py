import json
import os
import zipfile

import pytest

QtWidgets = pytest.importorskip("PySide6.QtWidgets", exc_type=ImportError)

from services.db_lifecycle import DbLifecycle
from services.recipe_store import RecipeView
from ui_constants import RECIPES_PAGE_SIZE
from ui_tabs.recipes_tab_qt import ExtractionWorker, RecipesTab, format_recipe_details


def _get_app() -> QtWidgets.QApplication:
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    app = QtWidgets.QApplication.instance()
    if app is None:
        app = QtWidgets.QApplication([])
    return app


class _DummyStatusBar:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def showMessage(self, message: str) -> None:
        self.messages.append(message)


class _DummyApp:
    def __init__(self, db: DbLifecycle) -> None:
        self.db = db
        self.status_bar = _DummyStatusBar()


def _seed(db: DbLifecycle, count: int) -> None:
    mod_id = db.store.upsert_mod("alpha.jar", "/mods/alpha.jar")
    for n in range(count):
        db.store.upsert_recipe(
            mod_id,
            f"data/alpha/recipes/r{n:04d}.json",
            "minecraft:crafting_shapeless",
            f"alpha:item_{n}",
            1,
            json.dumps({"type": "minecraft:crafting_shapeless"}),
            ["minecraft:stick"] if n % 2 == 0 else ["minecraft:coal"],
        )


def test_recipes_tab_pages_through_recipes(tmp_path) -> None:
    _get_app()
    db = DbLifecycle(db_path=tmp_path / "recipes.db")
    try:
        _seed(db, RECIPES_PAGE_SIZE + 5)
        tab = RecipesTab(_DummyApp(db))

        tab.refresh_page()
        assert tab.recipe_table.rowCount() == RECIPES_PAGE_SIZE
        assert tab.page_label.text() == "Page 1 of 2"
        assert not tab.btn_prev.isEnabled()
        assert tab.btn_next.isEnabled()

        tab.next_page()
        assert tab.recipe_table.rowCount() == 5
        assert tab.page_label.text() == "Page 2 of 2"
        assert not tab.btn_next.isEnabled()

        tab.prev_page()
        assert tab.page == 0
        assert tab.recipe_table.item(0, 0).text() == "alpha:item_0"
    finally:
        db.close()


def test_recipes_tab_search_modes(tmp_path) -> None:
    _get_app()
    db = DbLifecycle(db_path=tmp_path / "recipes.db")
    try:
        _seed(db, 6)
        app = _DummyApp(db)
        tab = RecipesTab(app)

        tab.search_edit.setText("item_1")
        tab.run_search()
        assert [r.result_item for r in tab.recipes] == ["alpha:item_1"]
        assert tab.page_label.text() == "1 result(s)"
        assert "Ingredients:" in tab.recipe_details.toPlainText()

        tab.mode_combo.setCurrentIndex(tab.mode_combo.findData("ingredient"))
        tab.search_edit.setText("coal")
        tab.run_search()
        assert len(tab.recipes) == 3
        assert db.get_search_mode() == "ingredient"
        assert app.status_bar.messages[-1] == "3 recipe(s) match 'coal'"

        tab.clear_search()
        assert tab.search_edit.text() == ""
        assert len(tab.recipes) == 6
    finally:
        db.close()


def test_extraction_worker_emits_progress_and_result(tmp_path) -> None:
    _get_app()
    mods_dir = tmp_path / "mods"
    mods_dir.mkdir()
    with zipfile.ZipFile(mods_dir / "alpha.jar", "w") as archive:
        archive.writestr(
            "data/alpha/recipes/torch.json",
            json.dumps(
                {
                    "type": "minecraft:crafting_shaped",
                    "key": {"#": {"item": "minecraft:coal"}, "|": {"item": "minecraft:stick"}},
                    "result": {"item": "minecraft:torch", "count": 4},
                }
            ),
        )

    db_path = tmp_path / "recipes.db"
    worker = ExtractionWorker(db_path=db_path, mods_dir=str(mods_dir))
    progress: list[tuple[int, int, str]] = []
    finished: list[tuple[object, object]] = []
    worker.progress.connect(lambda current, total, name: progress.append((current, total, name)))
    worker.finished.connect(lambda result, error: finished.append((result, error)))

    worker.run()

    assert progress == [(1, 1, "alpha.jar")]
    result, error = finished[0]
    assert error is None
    assert result.recipes_extracted == 1

    db = DbLifecycle(db_path=db_path)
    try:
        assert db.store.search_by_output("torch")[0].ingredients == ["minecraft:coal", "minecraft:stick"]
    finally:
        db.close()


def test_extraction_worker_reports_scan_failure(tmp_path) -> None:
    _get_app()
    worker = ExtractionWorker(db_path=tmp_path / "recipes.db", mods_dir=str(tmp_path / "missing"))
    finished: list[tuple[object, object]] = []
    worker.finished.connect(lambda result, error: finished.append((result, error)))

    worker.run()

    result, error = finished[0]
    assert result is None
    assert "Directory does not exist" in str(error)


def test_format_recipe_details_for_special_recipe() -> None:
    recipe = RecipeView(
        id=1,
        mod_name="vanilla.jar",
        path="data/minecraft/recipes/firework_rocket.json",
        recipe_type="minecraft:crafting_special_firework_rocket",
        result_item=None,
        result_count=None,
        raw_json='{"type": "minecraft:crafting_special_firework_rocket"}',
        ingredients=[],
    )

    text = format_recipe_details(recipe)

    assert "Result: (none)" in text
    assert "  (none)" in text
    assert '"type": "minecraft:crafting_special_firework_rocket"' in text
