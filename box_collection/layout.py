"""On-disk layout of a box collection.

    COLLECTION_ROOT/BOX_NAME/VERSION/[ARCHITECTURE/]PROVIDER/metadata.json
    COLLECTION_ROOT/BOX_NAME/metadata_url

BOX_NAME is the logical name with "/" (and ":" on Windows) replaced by
reserved tokens. The architecture segment is optional; boxes added before
architecture support keep their provider directory directly under the
version directory.
"""

import platform
import sys
from pathlib import Path

from .errors import InvalidBoxName

TEMP_PREFIX = "vagrant-box-add-temp-"
VAGRANT_SLASH = "-VAGRANTSLASH-"
VAGRANT_COLON = "-VAGRANTCOLON-"

METADATA_FILE = "metadata.json"
METADATA_URL_FILE = "metadata_url"
# Legacy boxes shipped a bare OVF at their root and no metadata.json
V1_DESCRIPTOR_FILE = "box.ovf"
V1_DEFAULT_PROVIDER = "virtualbox"
V1_UPGRADE_VERSION = "0"

_ARCHITECTURE_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "aarch64": "arm64",
    "arm64": "arm64",
}


def is_windows() -> bool:
    return sys.platform.startswith("win") or platform.system() == "Windows"


def host_architecture() -> str:
    """Return the host CPU architecture using box architecture names."""
    machine = platform.machine().lower()
    return _ARCHITECTURE_ALIASES.get(machine, machine)


def dir_name(name: str, windows: bool | None = None) -> str:
    """Encode a logical box name as a single directory name.

    Raises:
        InvalidBoxName: The name is blank, "." or "..", or would still span
            more than one path component once encoded.
    """
    if windows is None:
        windows = is_windows()
    encoded = name
    if windows:
        encoded = encoded.replace(":", VAGRANT_COLON)
    encoded = encoded.replace("/", VAGRANT_SLASH)

    if not encoded.strip() or encoded in (".", "..") or "\x00" in encoded or (windows and "\\" in encoded):
        raise InvalidBoxName(name)
    return encoded


def undir_name(name: str) -> str:
    """Decode a directory name back to the logical box name."""
    return name.replace(VAGRANT_COLON, ":").replace(VAGRANT_SLASH, "/")


def provider_path(
    root: Path,
    name: str,
    version: str,
    provider: str,
    architecture: str | None = None,
) -> Path:
    """Return ROOT/BOX_NAME/VERSION/[ARCHITECTURE/]PROVIDER."""
    path = root / dir_name(name) / version
    if architecture:
        path = path / architecture
    return path / provider
