from cadence.infrastructure.kv_store import FileKeyValueStore, MemoryKeyValueStore


def test_file_store_round_trip(tmp_path):
    kv = FileKeyValueStore(tmp_path / "data")

    assert kv.load("deck:bio") is None
    kv.save("deck:bio", '[{"term": "é"}]')

    assert kv.load("deck:bio") == '[{"term": "é"}]'
    assert (tmp_path / "data" / "deck" / "bio.json").exists()


def test_file_store_overwrites(tmp_path):
    kv = FileKeyValueStore(tmp_path)
    kv.save("k", "one")
    kv.save("k", "two")
    assert kv.load("k") == "two"
    assert not list(tmp_path.glob(".tmp-*"))


def test_file_store_escapes_unsafe_keys(tmp_path):
    kv = FileKeyValueStore(tmp_path)
    kv.save("deck:../escape", "x")

    assert kv.load("deck:../escape") == "x"
    assert not (tmp_path.parent / "escape.json").exists()
    assert kv.path_for("deck:../escape").parent == tmp_path / "deck"


def test_file_store_delete(tmp_path):
    kv = FileKeyValueStore(tmp_path)
    kv.save("session:bio", "{}")
    kv.delete("session:bio")
    kv.delete("session:bio")
    assert kv.load("session:bio") is None


def test_memory_store():
    kv = MemoryKeyValueStore({"a": "1"})
    assert kv.load("a") == "1"
    kv.save("b", "2")
    kv.delete("a")
    assert kv.data == {"b": "2"}
