"""Tests for the collection lock."""

import threading
from concurrent.futures import ThreadPoolExecutor

from box_collection.collection import BoxCollection
from box_collection.models import AddOptions


def test_concurrent_adds_and_finds(collection, make_box_archive):
    archives = {f"1.{i}.0": make_box_archive({"n.txt": str(i)}) for i in range(8)}

    def add(version):
        return collection.add(archives[version], "pkg", version, AddOptions(providers=["virtualbox"]))

    def find(_):
        return collection.find("pkg", ["virtualbox"], "")

    with ThreadPoolExecutor(max_workers=8) as pool:
        added = list(pool.map(add, archives))
        list(pool.map(find, range(16)))

    assert all(box is not None for box in added)
    assert [e.version for e in collection.all()] == [f"1.{i}.0" for i in range(8)]
    assert collection.find("pkg", ["virtualbox"], "").version == "1.7.0"


def test_lock_is_reentrant(tmp_path, host_arch, install_box):
    root = tmp_path / "boxes"
    install_box(root, "pkg", "1.0.0", "virtualbox")
    (root / "pkg" / "metadata_url").write_text("https://example.com/pkg.json")

    seen = []

    def hook(urls):
        # Called while find holds the lock
        seen.append(len(collection.all()))
        return urls

    collection = BoxCollection(root, hook=hook)
    result = []
    worker = threading.Thread(target=lambda: result.append(collection.find("pkg", "virtualbox")))
    worker.start()
    worker.join(timeout=10)

    assert not worker.is_alive()
    assert result[0] is not None
    assert seen == [1]


def test_operations_serialized(collection, install_box):
    install_box(collection.directory, "pkg", "1.0.0", "virtualbox")
    entered = threading.Event()
    release = threading.Event()
    order = []

    def hold_lock():
        with collection._lock:
            entered.set()
            release.wait(timeout=10)
            order.append("holder")

    holder = threading.Thread(target=hold_lock)
    holder.start()
    entered.wait(timeout=10)

    reader = threading.Thread(target=lambda: order.append(("all", len(collection.all()))))
    reader.start()
    reader.join(timeout=0.2)
    assert reader.is_alive()

    release.set()
    holder.join(timeout=10)
    reader.join(timeout=10)
    assert order == ["holder", ("all", 1)]
