import pytest

from freshguard.errors import (
    IncompatibleBatches,
    InvalidField,
    InvalidQuantity,
    LocationInUse,
    NotFound,
)
from freshguard.inventory import InventoryStore
from freshguard.services.freshness import Status


@pytest.fixture
def inventory() -> InventoryStore:
    return InventoryStore()


@pytest.fixture
def fridge(inventory):
    return inventory.add_location("Fridge - Kitchen", kind="refrigerated", target_temp="+4°C")


@pytest.fixture
def freezer(inventory):
    return inventory.add_location("Freezer - Drawer", kind="frozen", target_temp="-18°C")


def _assert_valid(inventory: InventoryStore) -> None:
    for batch in inventory.list_batches():
        assert 0 <= batch.opened <= batch.total
        assert batch.total >= 1


def test_add_location_rejects_empty_name(inventory) -> None:
    with pytest.raises(InvalidField):
        inventory.add_location("   ")


def test_add_location_rejects_unknown_kind(inventory) -> None:
    with pytest.raises(InvalidField):
        inventory.add_location("Cellar", kind="cellar")


def test_update_location_renames_and_retargets(inventory, fridge) -> None:
    updated = inventory.update_location(fridge.id, name="Fridge - Garage", target_temp="+2°C")
    assert updated.name == "Fridge - Garage"
    assert updated.target_temp == "+2°C"
    assert updated.kind == "refrigerated"
    assert inventory.get_location(fridge.id) == updated


def test_delete_location_in_use_is_rejected(inventory, fridge) -> None:
    inventory.add_batch("Mozzarella", fridge.id, total=5, nearest_days=3)
    with pytest.raises(LocationInUse):
        inventory.delete_location(fridge.id)
    assert inventory.get_location(fridge.id) == fridge


def test_delete_empty_location(inventory, fridge) -> None:
    inventory.delete_location(fridge.id)
    with pytest.raises(NotFound):
        inventory.get_location(fridge.id)


def test_add_batch_applies_defaults_and_clamps(inventory, fridge, freezer) -> None:
    batch = inventory.add_batch("Strawberries", fridge.id, nearest_days=900, opened=3, total=2)
    assert batch.count_label == "1 unit"
    assert batch.nearest_days == 365
    assert (batch.opened, batch.total) == (3, 3)
    assert batch.window_days == 7

    frozen = inventory.add_batch("Chicken Breast", freezer.id, count_label="4 packs", total=4, nearest_days=14)
    assert frozen.window_days == 30
    assert frozen.progress == pytest.approx(14 / 30)
    assert frozen.status == Status.FRESH


def test_add_batch_validates_fields(inventory, fridge) -> None:
    with pytest.raises(InvalidField):
        inventory.add_batch("", fridge.id)
    with pytest.raises(InvalidField):
        inventory.add_batch("Milk", fridge.id, total=0)
    with pytest.raises(NotFound):
        inventory.add_batch("Milk", "missing")
    assert inventory.list_batches() == []


def test_use_split_scenario(inventory, fridge) -> None:
    batch = inventory.add_batch("Greek Yogurt", fridge.id, count_label="4 packs", total=4, nearest_days=1)
    used = inventory.use_batch(batch.id)
    assert (used.total, used.opened, used.status) == (3, 1, Status.URGENT)

    source, split_off = inventory.split_batch(batch.id, 2)
    assert (split_off.total, split_off.opened) == (2, 1)
    assert (source.total, source.opened) == (1, 0)
    assert [b.id for b in inventory.list_batches()] == [batch.id, split_off.id]
    _assert_valid(inventory)


def test_depleted_batch_is_removed(inventory, fridge, freezer) -> None:
    batch = inventory.add_batch("Milk", fridge.id, total=2, nearest_days=4)
    assert inventory.use_batch(batch.id, 2) is None
    assert inventory.list_batches() == []
    with pytest.raises(NotFound):
        inventory.use_batch(batch.id)
    with pytest.raises(NotFound):
        inventory.split_batch(batch.id, 1)
    with pytest.raises(NotFound):
        inventory.move_batch(batch.id, freezer.id)


def test_failed_operations_leave_state_unchanged(inventory, fridge, freezer) -> None:
    cheese = inventory.add_batch("Mozzarella", fridge.id, total=5, opened=2, nearest_days=3)
    yogurt = inventory.add_batch("Greek Yogurt", fridge.id, total=4, nearest_days=0)
    other = inventory.add_batch("Mozzarella", freezer.id, total=1, nearest_days=40)
    before = inventory.snapshot()

    with pytest.raises(InvalidQuantity):
        inventory.use_batch(cheese.id, 0)
    with pytest.raises(InvalidQuantity):
        inventory.split_batch(cheese.id, 5)
    with pytest.raises(IncompatibleBatches):
        inventory.merge_batches(cheese.id, yogurt.id)
    with pytest.raises(IncompatibleBatches):
        inventory.merge_batches(cheese.id, other.id)
    with pytest.raises(NotFound):
        inventory.move_batch(cheese.id, "missing")

    assert inventory.snapshot() == before
    _assert_valid(inventory)


def test_merge_replaces_both_sources(inventory, fridge) -> None:
    first = inventory.add_batch("Mozzarella", fridge.id, count_label="2 pcs", total=2, nearest_days=6)
    middle = inventory.add_batch("Greek Yogurt", fridge.id, total=1, nearest_days=2)
    second = inventory.add_batch("Mozzarella", fridge.id, count_label="3 pcs", total=3, opened=1, nearest_days=2)

    merged = inventory.merge_batches(first.id, second.id)
    assert [b.id for b in inventory.list_batches()] == [merged.id, middle.id]
    assert (merged.total, merged.opened, merged.nearest_days) == (5, 1, 2)
    assert merged.count_label == "5 pcs"
    assert merged.status == Status.URGENT
    with pytest.raises(NotFound):
        inventory.get_batch(first.id)


def test_move_batch(inventory, fridge, freezer) -> None:
    batch = inventory.add_batch("Chicken Breast", fridge.id, total=4, nearest_days=2)
    moved = inventory.move_batch(batch.id, freezer.id)
    assert moved.location_id == freezer.id
    assert (moved.total, moved.nearest_days, moved.window_days) == (4, 2, batch.window_days)


def test_item_lifecycle(inventory, fridge, freezer) -> None:
    item = inventory.add_item("Milk", fridge.id, quantity=2, days_to_expire=1)
    assert item.status == Status.URGENT
    assert not item.opened

    used = inventory.use_item(item.id)
    assert used.quantity == 1
    assert used.opened

    moved = inventory.move_item(item.id, freezer.id)
    assert moved.location_id == freezer.id

    assert inventory.use_item(item.id) is None
    with pytest.raises(NotFound):
        inventory.use_item(item.id)


def test_item_without_date_keeps_explicit_status(inventory, fridge) -> None:
    plain = inventory.add_item("Rice", fridge.id)
    flagged = inventory.add_item("Leftovers", fridge.id, status=Status.URGENT)
    dated = inventory.add_item("Eggs", fridge.id, days_to_expire=10, status=Status.EXPIRED)
    assert plain.status == Status.FRESH
    assert flagged.status == Status.URGENT
    assert dated.status == Status.FRESH


def test_add_item_validates(inventory, fridge) -> None:
    with pytest.raises(InvalidField):
        inventory.add_item(" ", fridge.id)
    with pytest.raises(InvalidField):
        inventory.add_item("Milk", fridge.id, quantity=0)
    with pytest.raises(InvalidQuantity):
        inventory.use_item(inventory.add_item("Milk", fridge.id).id, 0)


def test_location_summary_counts_stock(inventory, fridge, freezer) -> None:
    inventory.add_item("Milk", fridge.id)
    inventory.add_batch("Yogurt", fridge.id, total=2)
    inventory.add_batch("Peas", freezer.id, total=1)
    summary = {row["location"].id: row for row in inventory.location_summary()}
    assert (summary[fridge.id]["item_count"], summary[fridge.id]["batch_count"]) == (1, 1)
    assert (summary[freezer.id]["item_count"], summary[freezer.id]["batch_count"]) == (0, 1)


def test_change_listener_and_reload(inventory, fridge) -> None:
    calls = []
    inventory.subscribe(lambda changed: calls.append(changed.to_rows()))
    inventory.add_batch("Yogurt", fridge.id, count_label="2 cups", total=2, nearest_days=1)
    assert len(calls) == 1

    restored = InventoryStore()
    restored.load(**calls[-1])
    assert restored.snapshot() == inventory.snapshot()


def test_clear(inventory, fridge) -> None:
    inventory.add_item("Milk", fridge.id)
    inventory.clear()
    assert inventory.snapshot() == ((), (), ())


def test_saved_rows_leave_out_derived_fields(inventory, fridge) -> None:
    inventory.add_item("Milk", fridge.id, days_to_expire=1)
    inventory.add_batch("Yogurt", fridge.id, total=2, nearest_days=1)
    rows = inventory.to_rows()
    assert "status" not in rows["items"][0]
    assert "status" not in rows["batches"][0]
    assert "progress" not in rows["batches"][0]
    assert rows["batches"][0]["nearest_days"] == 1
