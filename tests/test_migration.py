"""Tests for legacy (V1) box upgrades."""

import json

import pytest

from box_collection.migration import is_v1_box
from box_collection.migration import rehome_v1_collection
from box_collection.migration import v1_upgrade


def _v1_tree(path):
    path.mkdir(parents=True)
    (path / "box.ovf").write_text("<ovf/>")
    (path / "box-disk1.vmdk").write_text("disk")
    (path / "include").mkdir()
    (path / "include" / "_Vagrantfile").write_text("# config")
    return path


def test_is_v1_box(tmp_path):
    assert is_v1_box(_v1_tree(tmp_path / "old"))
    assert not is_v1_box(tmp_path)


def test_v1_upgrade_synthesizes_metadata_and_preserves_files(tmp_path):
    source = _v1_tree(tmp_path / "old")
    temp_root = tmp_path / "tmp"
    temp_root.mkdir()

    upgraded = v1_upgrade(source, temp_root)

    assert upgraded.parent == temp_root
    assert json.loads((upgraded / "metadata.json").read_text()) == {"provider": "virtualbox"}
    assert (upgraded / "box.ovf").read_text() == "<ovf/>"
    assert (upgraded / "box-disk1.vmdk").read_text() == "disk"
    assert (upgraded / "include" / "_Vagrantfile").read_text() == "# config"
    assert list(source.iterdir()) == []


def test_v1_upgrade_keeps_existing_metadata(tmp_path):
    source = _v1_tree(tmp_path / "old")
    (source / "metadata.json").write_text(json.dumps({"provider": "vmware_desktop"}))

    upgraded = v1_upgrade(source, tmp_path)

    assert json.loads((upgraded / "metadata.json").read_text())["provider"] == "vmware_desktop"


def test_v1_upgrade_removes_temp_dir_when_move_fails(tmp_path, monkeypatch):
    source = _v1_tree(tmp_path / "old")
    temp_root = tmp_path / "tmp"
    temp_root.mkdir()

    def failing_move(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("box_collection.migration.shutil.move", failing_move)

    with pytest.raises(OSError, match="disk full"):
        v1_upgrade(source, temp_root)

    assert list(temp_root.iterdir()) == []
    assert (source / "box.ovf").is_file()


def test_rehome_v1_collection(tmp_path):
    root = tmp_path / "boxes"
    _v1_tree(root / "precise64")
    vmware = root / "other" / "vmware_fusion"
    vmware.mkdir(parents=True)
    (vmware / "metadata.json").write_text(json.dumps({"provider": "vmware_fusion"}))
    (root / "stray.txt").write_text("not a box")

    staging = tmp_path / "staging"
    staging.mkdir()
    rehome_v1_collection(root, staging, tmp_path)

    assert json.loads((staging / "precise64" / "0" / "virtualbox" / "metadata.json").read_text()) == {
        "provider": "virtualbox"
    }
    assert (staging / "precise64" / "0" / "virtualbox" / "box.ovf").is_file()
    assert (staging / "other" / "0" / "vmware_fusion" / "metadata.json").is_file()
    assert not (staging / "stray.txt").exists()
