"""Upgrading legacy (V1) box layouts.

A V1 box is a single-provider VirtualBox export: the unpacked tree has a
box.ovf at its root and no metadata.json. Collections from that era also
had no version directories, so BOX_NAME held provider directories (or a V1
tree) directly.
"""

import json
import logging
import shutil
import tempfile
from pathlib import Path

from .layout import METADATA_FILE
from .layout import TEMP_PREFIX
from .layout import V1_DEFAULT_PROVIDER
from .layout import V1_DESCRIPTOR_FILE
from .layout import V1_UPGRADE_VERSION
from .layout import dir_name

logger = logging.getLogger(__name__)


def is_v1_box(directory: Path) -> bool:
    """Check whether an unpacked tree is a V1 box."""
    return (Path(directory) / V1_DESCRIPTOR_FILE).is_file()


def v1_upgrade(directory: Path, temp_root: Path | None = None) -> Path:
    """
    Move a V1 box into a fresh temporary directory and give it metadata.

    This is destructive to `directory`: all of its children are moved out.
    The returned directory is owned by the caller, who must remove it.

    Args:
        directory: Directory holding an unpacked V1 box (see is_v1_box)
        temp_root: Where to create the temporary directory

    Returns:
        Path to the upgraded tree, usable as a provider directory payload
    """
    directory = Path(directory)
    logger.debug(f"Upgrading box in directory: {directory}")

    temp_dir = Path(tempfile.mkdtemp(prefix=TEMP_PREFIX, dir=temp_root))
    logger.debug(f"Temporary directory for upgrading: {temp_dir}")

    try:
        for child in sorted(directory.iterdir()):
            if child == temp_dir:
                continue
            logger.debug(f"Moving to upgrade directory: {child}")
            shutil.move(str(child), str(temp_dir / child.name))

        # metadata.json is what marks a box as current-format
        metadata_file = temp_dir / METADATA_FILE
        if not metadata_file.is_file():
            metadata_file.write_text(json.dumps({"provider": V1_DEFAULT_PROVIDER}), encoding="utf-8")
    except Exception:
        logger.debug(f"Upgrade failed, removing {temp_dir}")
        shutil.rmtree(temp_dir, ignore_errors=True)
        raise

    return temp_dir


def rehome_v1_collection(root: Path, staging: Path, temp_root: Path | None = None) -> None:
    """
    Rebuild a pre-versioning collection under `staging`.

    Every box directory under `root` becomes STAGING/BOX_NAME/0/PROVIDER.
    V1 trees are first upgraded into a "virtualbox" provider directory in
    place. `root` itself is left for the caller to swap out.
    """
    root = Path(root)
    staging = Path(staging)

    for box_dir in sorted(root.iterdir()):
        if not box_dir.is_dir():
            continue

        box_name = box_dir.name

        if is_v1_box(box_dir):
            upgrade_dir = v1_upgrade(box_dir, temp_root)
            shutil.move(str(upgrade_dir), str(box_dir / V1_DEFAULT_PROVIDER))

        new_box_dir = staging / dir_name(box_name) / V1_UPGRADE_VERSION
        new_box_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Re-homing box {box_name} into {new_box_dir}")

        for provider_dir in sorted(box_dir.iterdir()):
            target = new_box_dir / provider_dir.name
            if provider_dir.is_dir():
                shutil.copytree(provider_dir, target, symlinks=True)
            else:
                shutil.copy2(provider_dir, target)
