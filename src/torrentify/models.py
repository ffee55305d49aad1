"""Work item and artifact models shared across torrentify."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class MediaCategory(Enum):
    """Media categories torrentify knows how to process."""

    FILMS = "films"
    SERIES = "series"
    MUSIC = "musiques"

    @property
    def label(self) -> str:
        return {
            MediaCategory.FILMS: "Film",
            MediaCategory.SERIES: "Series",
            MediaCategory.MUSIC: "Music",
        }[self]


class ItemKind(Enum):
    """Shape of a discovered media unit."""

    SINGLE_FILE = "single_file"
    FOLDER = "folder"


def safe_name(name: str) -> str:
    """Normalize a release name for use in output paths and cache keys."""
    return name.replace(" ", ".")


@dataclass(frozen=True)
class OutputArtifacts:
    """The three artifacts produced for every work item."""

    nfo: Path
    torrent: Path
    tag: Path

    @classmethod
    def for_item(cls, output_dir: Path, name: str) -> OutputArtifacts:
        return cls(
            nfo=output_dir / f"{name}.nfo",
            torrent=output_dir / f"{name}.torrent",
            tag=output_dir / f"{name}.txt",
        )


@dataclass(frozen=True)
class WorkItem:
    """A discovered media unit to be turned into a release folder.

    ``source`` is what gets packaged (a single file or a whole directory),
    ``files`` holds the media files found for it in stable order.
    """

    name: str
    release_name: str
    kind: ItemKind
    category: MediaCategory
    source: Path
    files: tuple[Path, ...]
    output_dir: Path
    artifacts: OutputArtifacts = field(init=False)

    def __post_init__(self) -> None:
        if not self.files:
            msg = f"Work item {self.name} has no media files"
            raise ValueError(msg)
        object.__setattr__(
            self,
            "artifacts",
            OutputArtifacts.for_item(self.output_dir, self.name),
        )

    @property
    def reference_file(self) -> Path:
        """Representative media file used for inspection and guessing."""
        return self.files[0]

    @property
    def is_folder(self) -> bool:
        return self.kind == ItemKind.FOLDER

    def __str__(self) -> str:
        return f"{self.category.label} {self.name}"


__all__ = [
    "ItemKind",
    "MediaCategory",
    "OutputArtifacts",
    "WorkItem",
    "safe_name",
]
