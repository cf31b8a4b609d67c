"""Tests for the key-value stores."""

import tempfile
import threading
from pathlib import Path

import pytest

from rolapet.storage import JsonFileStore, MemoryStore


def test_json_store_roundtrip_and_remove():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonFileStore(tmpdir)
        assert store.get("users") is None

        store.set("users", [{"id": "1", "name": "Ana"}])
        assert store.get("users") == [{"id": "1", "name": "Ana"}]
        assert (Path(tmpdir) / "rolapet_users.json").exists()

        store.remove("users")
        assert store.get("users") is None


def test_json_store_keeps_non_ascii_text():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonFileStore(tmpdir)
        store.set("bannedWords", ["discriminación"])
        assert "discriminación" in (Path(tmpdir) / "rolapet_bannedWords.json").read_text(encoding="utf-8")
        assert JsonFileStore(tmpdir).get("bannedWords") == ["discriminación"]


def test_json_store_corrupt_file_reads_as_missing():
    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / "rolapet_ratings.json").write_text("{not json")
        store = JsonFileStore(tmpdir)
        assert store.get("ratings") is None


def test_clear_only_touches_own_prefix():
    with tempfile.TemporaryDirectory() as tmpdir:
        ours = JsonFileStore(tmpdir)
        theirs = JsonFileStore(tmpdir, prefix="other_")
        ours.set("posts", [1])
        theirs.set("posts", [2])

        ours.clear()
        assert ours.get("posts") is None
        assert theirs.get("posts") == [2]


def test_collection_writes_back_on_success():
    store = MemoryStore()
    with store.collection("cart") as cart:
        cart.append({"id": "c1"})
    assert store.get("cart") == [{"id": "c1"}]


def test_collection_discards_changes_on_error():
    store = MemoryStore()
    store.set("cart", [{"id": "c1"}])
    with pytest.raises(RuntimeError):
        with store.collection("cart") as cart:
            cart.append({"id": "c2"})
            raise RuntimeError("boom")
    assert store.get("cart") == [{"id": "c1"}]


def test_collection_uses_given_default():
    store = MemoryStore()
    with store.collection("ratingLikes", {}) as likes:
        likes["r1"] = ["u1"]
    assert store.get("ratingLikes") == {"r1": ["u1"]}


def test_memory_store_does_not_share_state_with_callers():
    store = MemoryStore()
    words = ["odio"]
    store.set("bannedWords", words)
    words.append("violencia")
    loaded = store.get("bannedWords")
    loaded.append("amenaza")
    assert store.get("bannedWords") == ["odio"]


def test_collection_serialises_concurrent_writers():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonFileStore(tmpdir)
        store.set("counter", [])
        start = threading.Barrier(20)

        def append(i):
            start.wait()
            with store.collection("counter") as items:
                items.append(i)

        threads = [threading.Thread(target=append, args=(i,)) for i in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(store.get("counter")) == list(range(20))
