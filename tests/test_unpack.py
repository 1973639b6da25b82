"""Tests for the bsdtar unpack collaborator."""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from box_collection.errors import BoxUnpackageFailure
from box_collection.unpack import BsdtarUnpacker


def test_command_line():
    cmd = BsdtarUnpacker().build_command(Path("/a/box.box"), Path("/tmp/x"))
    assert cmd[0] == "bsdtar"
    assert "--no-same-owner" in cmd
    assert "--no-same-permissions" in cmd
    assert cmd[cmd.index("-s") + 1] == "|\\\\|/|"
    assert cmd[-4:] == ["-C", "/tmp/x", "-f", "/a/box.box"]


def test_custom_command():
    assert BsdtarUnpacker("/opt/bin/bsdtar").build_command(Path("a"), Path("b"))[0] == "/opt/bin/bsdtar"


def test_success():
    completed = subprocess.CompletedProcess(args=[], returncode=0, stdout="x metadata.json", stderr="")
    with patch("box_collection.unpack.subprocess.run", return_value=completed) as mock_run:
        BsdtarUnpacker()(Path("box.box"), Path("/tmp/x"))
    assert mock_run.call_args.kwargs["capture_output"] is True


def test_failure_carries_stderr():
    completed = subprocess.CompletedProcess(args=[], returncode=1, stdout="", stderr="bsdtar: Error opening archive")
    with patch("box_collection.unpack.subprocess.run", return_value=completed):
        with pytest.raises(BoxUnpackageFailure) as exc_info:
            BsdtarUnpacker()(Path("box.box"), Path("/tmp/x"))
    assert exc_info.value.output == "bsdtar: Error opening archive"
    assert "Error opening archive" in str(exc_info.value)
