from __future__ import annotations

import logging
import sqlite3
import zipfile
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable

from services.mod_scanner import RECIPE_DIR_NAMES
from services.recipe_parser import ParseError, parse_recipe
from services.recipe_store import RecipeStore

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ExtractionProgress:
    current: int
    total: int
    current_mod: str


@dataclass(slots=True)
class ExtractionResult:
    """Summary of one extraction run. ``errors`` holds every non-fatal failure in order."""

    mods_processed: int = 0
    recipes_extracted: int = 0
    errors: list[str] = field(default_factory=list)


ProgressSink = Callable[[ExtractionProgress], None]


def is_recipe_entry(name: str) -> bool:
    parts = name.split("/")
    if len(parts) < 4 or parts[0] != "data":
        return False
    if parts[2] not in RECIPE_DIR_NAMES:
        return False
    return name.endswith(".json")


def mod_name_from_path(path: str) -> str:
    return Path(path).name or path


def _notify(progress: ProgressSink | None, event: ExtractionProgress) -> None:
    if progress is None:
        return
    try:
        progress(event)
    except Exception:
        _LOGGER.exception("Progress sink failed for %s", event.current_mod)


def _read_entry(archive: zipfile.ZipFile, name: str) -> str:
    return archive.read(name).decode("utf-8-sig")


def extract_recipes(
    store: RecipeStore,
    archive_paths: Iterable[str],
    progress: ProgressSink | None = None,
) -> ExtractionResult:
    """Clear the store and re-import every recipe file from ``archive_paths``.

    Archives are processed in the given order, entries in archive order. Failures
    for one archive or one entry are recorded in the result and the run goes on.
    Only a failure to clear the store aborts the run.
    """

    paths = [str(path) for path in archive_paths]
    store.reset()

    result = ExtractionResult()
    total = len(paths)
    _LOGGER.info("Extracting recipes from %d archive(s)", total)

    for index, jar_path in enumerate(paths):
        mod_name = mod_name_from_path(jar_path)
        _notify(progress, ExtractionProgress(current=index + 1, total=total, current_mod=mod_name))

        try:
            archive = zipfile.ZipFile(jar_path)
        except (OSError, zipfile.BadZipFile) as exc:
            _LOGGER.warning("Skipping %s: %s", jar_path, exc)
            result.errors.append(f"{jar_path}: {exc}")
            continue

        with archive:
            try:
                mod_id = store.upsert_mod(mod_name, jar_path)
            except sqlite3.Error as exc:
                _LOGGER.warning("Failed to insert mod %s: %s", mod_name, exc)
                result.errors.append(f"{mod_name}: Failed to insert mod: {exc}")
                continue
            result.mods_processed += 1

            stored = 0
            # A name repeated in the central directory resolves to its last entry.
            for entry_name in dict.fromkeys(archive.namelist()):
                if not is_recipe_entry(entry_name):
                    continue
                try:
                    text = _read_entry(archive, entry_name)
                    parsed = parse_recipe(text)
                    store.upsert_recipe(
                        mod_id,
                        entry_name,
                        parsed.recipe_type,
                        parsed.result_item,
                        parsed.result_count,
                        text,
                        parsed.ingredients,
                    )
                except (
                    ParseError,
                    UnicodeDecodeError,
                    OSError,
                    RuntimeError,
                    EOFError,
                    zlib.error,
                    zipfile.BadZipFile,
                    sqlite3.Error,
                ) as exc:
                    _LOGGER.warning("%s:%s: %s", mod_name, entry_name, exc)
                    result.errors.append(f"{mod_name}:{entry_name}: {exc}")
                    continue
                stored += 1

            result.recipes_extracted += stored
            _LOGGER.debug("%s: stored %d recipe(s)", mod_name, stored)

    _LOGGER.info(
        "Extraction finished: %d mod(s), %d recipe(s), %d error(s)",
        result.mods_processed,
        result.recipes_extracted,
        len(result.errors),
    )
    return result
