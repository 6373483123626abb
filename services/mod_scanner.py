from __future__ import annotations

import zipfile
from dataclasses import dataclass
from pathlib import Path


MOD_ARCHIVE_SUFFIX = ".jar"
RECIPE_DIR_NAMES = ("recipe", "recipes")


class ModScanError(OSError):
    """Raised when a mods folder or a mod archive cannot be listed."""


@dataclass(frozen=True, slots=True)
class ModFile:
    name: str
    path: str


@dataclass(frozen=True, slots=True)
class JarEntry:
    name: str
    is_dir: bool


def scan_directory(path: str | Path) -> list[ModFile]:
    """List the mod archives directly inside ``path``, sorted by name (case-insensitive)."""

    dir_path = Path(path)
    if not dir_path.exists():
        raise ModScanError(f"Directory does not exist: {path}")
    if not dir_path.is_dir():
        raise ModScanError(f"Path is not a directory: {path}")

    try:
        children = list(dir_path.iterdir())
    except OSError as exc:
        raise ModScanError(f"Failed to read directory: {exc}") from exc

    files = [
        ModFile(name=child.name, path=str(child))
        for child in children
        if child.is_file() and child.name.lower().endswith(MOD_ARCHIVE_SUFFIX)
    ]
    files.sort(key=lambda mod: mod.name.lower())
    return files


def is_recipe_dir_entry(name: str) -> bool:
    parts = name.split("/")
    return len(parts) >= 3 and parts[0] == "data" and parts[2] in RECIPE_DIR_NAMES


def read_jar_contents(path: str | Path) -> list[JarEntry]:
    """List the entries of one archive that live under ``data/<namespace>/recipe(s)/``."""

    try:
        with zipfile.ZipFile(path) as archive:
            infos = archive.infolist()
    except (OSError, zipfile.BadZipFile) as exc:
        raise ModScanError(f"Failed to read jar {path}: {exc}") from exc

    entries = [
        JarEntry(name=info.filename, is_dir=info.is_dir())
        for info in infos
        if is_recipe_dir_entry(info.filename)
    ]
    entries.sort(key=lambda entry: entry.name.lower())
    return entries
