import json

from freshguard.storage import JsonStore


def test_creates_empty_file(tmp_path) -> None:
    path = tmp_path / "nested" / "data.json"
    store = JsonStore(str(path))
    assert path.exists()
    assert store.get_list("batches") == []
    assert store.get_obj("settings") == {}


def test_set_obj_and_set_many_persist(tmp_path) -> None:
    path = tmp_path / "data.json"
    store = JsonStore(str(path))
    store.set_obj("settings", {"pushEnabled": True, "digestHour": 7})
    store.set_many({"items": [{"id": "1", "name": "Milk"}], "batches": []})

    reopened = JsonStore(str(path))
    assert reopened.get_obj("settings") == {"pushEnabled": True, "digestHour": 7}
    assert reopened.get_list("items") == [{"id": "1", "name": "Milk"}]
    assert json.loads(path.read_text(encoding="utf-8"))["batches"] == []


def test_wrong_shapes_read_as_empty(tmp_path) -> None:
    path = tmp_path / "data.json"
    path.write_text(json.dumps({"settings": [], "items": {}}), encoding="utf-8")
    store = JsonStore(str(path))
    assert store.get_obj("settings") is None
    assert store.get_list("items") == []
    assert store.get_list("missing") == []
