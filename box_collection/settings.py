"""Settings for the box collection.

A single YAML file, all keys optional:

    collection_root: ~/.vagrant.d/boxes
    temp_dir_root: ~/.vagrant.d/tmp
    unpack_command: bsdtar
    log_path: ./box-collection.log.jsonl
    log_level: INFO

The file lives at $BOX_COLLECTION_CONFIG, else ~/.vagrant.d/box-collection.yaml.
A missing file means defaults.
"""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel
from pydantic import Field

from .collection import BoxCollection
from .collection import BoxUrlHook
from .unpack import BsdtarUnpacker


def vagrant_home() -> Path:
    home = os.environ.get("VAGRANT_HOME")
    return Path(home).expanduser() if home else Path.home() / ".vagrant.d"


def default_config_path() -> Path:
    override = os.environ.get("BOX_COLLECTION_CONFIG")
    return Path(override).expanduser() if override else vagrant_home() / "box-collection.yaml"


class CollectionSettings(BaseModel):
    """Resolved configuration for a box collection."""

    collection_root: Path = Field(default_factory=lambda: vagrant_home() / "boxes")
    temp_dir_root: Path | None = Field(None, description="Parent for temporary directories")
    unpack_command: str = Field("bsdtar", description="Archive extraction tool")
    log_path: str | None = Field(None, description="JSONL log file (env default if unset)")
    log_level: str | None = Field(None, description="Log level name (env default if unset)")

    @classmethod
    def load(cls, path: Path | None = None) -> CollectionSettings:
        """Load settings from YAML, falling back to defaults when the file is absent."""
        path = path or default_config_path()
        if not path.exists():
            return cls()

        with open(path, encoding="utf-8") as f:
            content = yaml.safe_load(f) or {}

        if not isinstance(content, dict):
            raise ValueError(f"Settings file must contain a mapping: {path}")

        settings = cls.model_validate(content)
        settings.collection_root = settings.collection_root.expanduser()
        if settings.temp_dir_root is not None:
            settings.temp_dir_root = settings.temp_dir_root.expanduser()
        return settings


def build_collection(settings: CollectionSettings, hook: BoxUrlHook | None = None) -> BoxCollection:
    """Create a BoxCollection wired to the configured root and tools."""
    return BoxCollection(
        settings.collection_root,
        hook=hook,
        temp_dir_root=settings.temp_dir_root,
        unpacker=BsdtarUnpacker(settings.unpack_command),
    )
