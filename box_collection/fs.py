"""Directory listing used by collection enumeration.

Enumeration only needs to know which children are files and which are
directories, whether a given file exists, and the text of the small
metadata_url file. Keeping that behind a small interface lets tests drive
`BoxCollection.all` and `find` without touching disk.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol


class EntryKind(Enum):
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class DirEntry:
    """One child of a directory."""

    path: Path
    kind: EntryKind

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    @property
    def is_hidden(self) -> bool:
        return self.name.startswith(".")


class Filesystem(Protocol):
    def entries(self, path: Path) -> list[DirEntry]: ...

    def is_dir(self, path: Path) -> bool: ...

    def is_file(self, path: Path) -> bool: ...

    def read_text(self, path: Path) -> str: ...


class LocalFilesystem:
    """Filesystem backed by the real disk."""

    def entries(self, path: Path) -> list[DirEntry]:
        """List children of path sorted by name; anything not a directory is a file."""
        result = []
        for child in sorted(Path(path).iterdir()):
            kind = EntryKind.DIRECTORY if child.is_dir() else EntryKind.FILE
            result.append(DirEntry(child, kind))
        return result

    def is_dir(self, path: Path) -> bool:
        return Path(path).is_dir()

    def is_file(self, path: Path) -> bool:
        return Path(path).is_file()

    def read_text(self, path: Path) -> str:
        return Path(path).read_text(encoding="utf-8")
