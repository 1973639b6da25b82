"""A single installed (or staged) box."""

import json
import logging
import shutil
from functools import total_ordering
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .errors import BoxMetadataCorrupted
from .errors import BoxMetadataFileNotFound
from .layout import METADATA_FILE
from .models import BoxMetadata
from .version import Version

logger = logging.getLogger(__name__)


@total_ordering
class Box:
    """
    Handle to one box: a name, version, provider and optional architecture
    backed by a directory holding the unpacked contents.

    Handles are cheap and never persisted. The directory (and its
    metadata.json) is the only source of truth.
    """

    def __init__(
        self,
        name: str,
        provider: str | None,
        version: str | None,
        directory: Path,
        architecture: str | None = None,
        metadata_url: str | None = None,
    ):
        self.name = name
        self.provider = str(provider) if provider is not None else None
        self.version = version
        self.directory = Path(directory)
        self.architecture = architecture
        self.metadata_url = metadata_url
        self._metadata: dict[str, Any] | None = None

    @property
    def metadata_path(self) -> Path:
        return self.directory / METADATA_FILE

    @property
    def metadata(self) -> dict[str, Any]:
        """Parsed metadata.json, loaded on first access."""
        if self._metadata is None:
            self._metadata = self.load_metadata()
        return self._metadata

    def load_metadata(self) -> dict[str, Any]:
        path = self.metadata_path
        if not path.is_file():
            raise BoxMetadataFileNotFound(path)

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise BoxMetadataCorrupted(path, str(e)) from e

        try:
            return BoxMetadata.model_validate(data).model_dump()
        except ValidationError as e:
            raise BoxMetadataCorrupted(path, "missing or invalid 'provider'") from e

    def destroy(self) -> bool:
        """Remove this box's provider directory."""
        logger.debug(f"Destroying box directory: {self.directory}")
        shutil.rmtree(self.directory)
        return True

    def _sort_key(self):
        return (self.name, Version(self.version or "0"), self.provider or "")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Box):
            return NotImplemented
        return (
            self.name == other.name
            and self.version == other.version
            and self.provider == other.provider
            and self.architecture == other.architecture
        )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Box):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __hash__(self) -> int:
        return hash((self.name, self.version, self.provider, self.architecture))

    def __repr__(self) -> str:
        arch = f", architecture={self.architecture!r}" if self.architecture else ""
        return f"Box({self.name!r}, {self.provider!r}, {self.version!r}{arch})"
