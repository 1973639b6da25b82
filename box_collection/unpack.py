"""Unpacking box archives with an external tool."""

import logging
import subprocess
from pathlib import Path

from .errors import BoxUnpackageFailure

logger = logging.getLogger(__name__)


class BsdtarUnpacker:
    """
    Extract a box archive into a directory by running bsdtar.

    Only content matters: ownership and permission bits are not kept, and
    backslashes in member names are rewritten to slashes.

    Raises:
        BoxUnpackageFailure: The tool exited non-zero; carries its stderr.
    """

    def __init__(self, command: str = "bsdtar"):
        self.command = command

    def build_command(self, archive: Path, target: Path) -> list[str]:
        return [
            self.command,
            "--no-same-owner",
            "--no-same-permissions",
            "-v",
            "-x",
            "-m",
            "-S",
            "-s",
            "|\\\\|/|",
            "-C",
            str(target),
            "-f",
            str(archive),
        ]

    def __call__(self, archive: Path, target: Path) -> None:
        cmd = self.build_command(archive, target)
        logger.debug(f"Unpacking {archive} into {target}")

        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
        )

        if result.returncode != 0:
            logger.debug(f"Unpack failed with exit code {result.returncode}")
            raise BoxUnpackageFailure(output=result.stderr)
