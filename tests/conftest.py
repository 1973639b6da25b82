"""Shared fixtures for box collection tests."""

import io
import json
import tarfile
from pathlib import Path

import pytest

from box_collection.collection import BoxCollection
from box_collection.fs import DirEntry
from box_collection.fs import EntryKind
from box_collection.layout import dir_name


def tar_unpacker(archive: Path, target: Path) -> None:
    """Stand-in for bsdtar: extract with the stdlib tarfile module."""
    with tarfile.open(archive) as tar:
        tar.extractall(target, filter="data")


@pytest.fixture
def unpacker():
    return tar_unpacker


@pytest.fixture
def host_arch(monkeypatch):
    """Pin the host architecture to amd64."""
    monkeypatch.setattr("box_collection.collection.host_architecture", lambda: "amd64")
    return "amd64"


@pytest.fixture
def make_box_archive(tmp_path):
    """Build a tar archive from a {relative path: content} mapping."""
    counter = {"n": 0}

    def _make(files: dict[str, str] | None = None, provider: str | None = "virtualbox") -> Path:
        files = dict(files or {})
        if provider is not None and "metadata.json" not in files:
            files["metadata.json"] = json.dumps({"provider": provider})

        counter["n"] += 1
        archive = tmp_path / "archives" / f"box-{counter['n']}.box"
        archive.parent.mkdir(parents=True, exist_ok=True)
        with tarfile.open(archive, "w") as tar:
            for name, content in files.items():
                data = content.encode("utf-8")
                info = tarfile.TarInfo(name)
                info.size = len(data)
                tar.addfile(info, io.BytesIO(data))
        return archive

    return _make


@pytest.fixture
def temp_root(tmp_path):
    path = tmp_path / "tmp"
    path.mkdir()
    return path


@pytest.fixture
def collection(tmp_path, temp_root, host_arch):
    root = tmp_path / "boxes"
    root.mkdir()
    return BoxCollection(root, temp_dir_root=temp_root, unpacker=tar_unpacker)


@pytest.fixture
def install_box():
    """Create an installed box directly on disk."""

    def _install(
        root: Path,
        name: str,
        version: str,
        provider: str,
        architecture: str | None = None,
        metadata: dict | None = None,
    ) -> Path:
        path = root / dir_name(name) / version
        if architecture:
            path = path / architecture
        path = path / provider
        path.mkdir(parents=True)
        (path / "metadata.json").write_text(json.dumps(metadata or {"provider": provider}))
        return path

    return _install


class FakeFilesystem:
    """In-memory directory tree built from file paths."""

    def __init__(self, files: list[str], root: Path = Path("/boxes"), contents: dict[str, str] | None = None):
        self.root = root
        self.files: set[Path] = set()
        self.dirs: set[Path] = {root}
        self.contents = {root / rel: text for rel, text in (contents or {}).items()}
        for rel in [*files, *(contents or {})]:
            path = root / rel
            self.files.add(path)
            for parent in path.parents:
                self.dirs.add(parent)

    def add_dir(self, rel: str) -> None:
        path = self.root / rel
        self.dirs.add(path)
        for parent in path.parents:
            self.dirs.add(parent)

    def entries(self, path: Path) -> list[DirEntry]:
        children = []
        for d in self.dirs:
            if d.parent == path and d != path:
                children.append(DirEntry(d, EntryKind.DIRECTORY))
        for f in self.files:
            if f.parent == path:
                children.append(DirEntry(f, EntryKind.FILE))
        return sorted(children, key=lambda e: e.name)

    def is_dir(self, path: Path) -> bool:
        return path in self.dirs

    def is_file(self, path: Path) -> bool:
        return path in self.files

    def read_text(self, path: Path) -> str:
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.contents.get(path, "")


@pytest.fixture
def fake_fs():
    return FakeFilesystem
