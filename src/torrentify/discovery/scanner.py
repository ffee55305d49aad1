"""Work item discovery for each media category."""

import logging
from collections.abc import Iterable
from pathlib import Path

from ..config import TorrentifyConfig
from ..models import ItemKind, MediaCategory, WorkItem, safe_name

logger = logging.getLogger(__name__)


def _has_extension(path: Path, extensions: Iterable[str]) -> bool:
    return path.suffix.lower().lstrip(".") in extensions


def list_files(root: Path, extensions: Iterable[str]) -> list[Path]:
    """Recursively list files under ``root`` with one of ``extensions``, sorted."""
    exts = {e.lower().lstrip(".") for e in extensions}
    if root.is_file():
        return [root] if _has_extension(root, exts) else []
    if not root.is_dir():
        return []
    return sorted(p for p in root.rglob("*") if p.is_file() and _has_extension(p, exts))


def list_entries(root: Path) -> list[Path]:
    """Direct children of ``root``, sorted by name."""
    if not root.is_dir():
        logger.warning(f"Source directory not found: {root}")
        return []
    return sorted(root.iterdir(), key=lambda p: p.name)


def has_partial_files(root: Path, extensions: Iterable[str]) -> bool:
    """True if any in-progress transfer marker exists below ``root``."""
    if not root.is_dir():
        return False
    exts = {e.lower().lstrip(".") for e in extensions}
    return any(p.is_file() and _has_extension(p, exts) for p in root.rglob("*"))


def _single_file_item(
    path: Path,
    category: MediaCategory,
    destination: Path,
) -> WorkItem:
    name = safe_name(path.stem)
    return WorkItem(
        name=name,
        release_name=path.stem,
        kind=ItemKind.SINGLE_FILE,
        category=category,
        source=path,
        files=(path,),
        output_dir=destination / name,
    )


def _folder_item(
    folder: Path,
    files: list[Path],
    category: MediaCategory,
    destination: Path,
) -> WorkItem:
    name = safe_name(folder.name)
    return WorkItem(
        name=name,
        release_name=folder.name,
        kind=ItemKind.FOLDER,
        category=category,
        source=folder,
        files=tuple(files),
        output_dir=destination / name,
    )


def _discover_films(config: TorrentifyConfig, source: Path, dest: Path) -> list[WorkItem]:
    return [
        _single_file_item(f, MediaCategory.FILMS, dest)
        for f in list_files(source, config.video_extensions)
    ]


def _discover_entries(
    source: Path,
    dest: Path,
    category: MediaCategory,
    extensions: list[str],
) -> list[WorkItem]:
    items = []
    for entry in list_entries(source):
        if entry.is_file():
            if _has_extension(entry, extensions):
                items.append(_single_file_item(entry, category, dest))
        elif entry.is_dir():
            files = list_files(entry, extensions)
            if not files:
                logger.debug(f"No media files in {entry}, skipping")
                continue
            items.append(_folder_item(entry, files, category, dest))
    return items


def discover(config: TorrentifyConfig, category: MediaCategory) -> list[WorkItem]:
    """Enumerate the work items of one category in stable order.

    Films are every video file below the source root. Series and music treat
    each direct child of the source root as one item: a media file on its
    own, or a folder packaged as a whole.
    """
    settings = config.category_settings(category)
    dest = config.destination(category)

    if category == MediaCategory.FILMS:
        items = _discover_films(config, settings.source, dest)
    elif category == MediaCategory.SERIES:
        items = _discover_entries(settings.source, dest, category, config.video_extensions)
    else:
        items = _discover_entries(settings.source, dest, category, config.audio_extensions)

    # Output directories must stay disjoint between items
    unique: dict[str, WorkItem] = {}
    for item in items:
        if item.name in unique:
            logger.warning(
                "Duplicate release name %s: %s ignored, %s kept",
                item.name,
                item.source,
                unique[item.name].source,
            )
            continue
        unique[item.name] = item

    logger.debug(f"Discovered {len(unique)} {category.value} items in {settings.source}")
    return list(unique.values())
