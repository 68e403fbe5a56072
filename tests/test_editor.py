import pytest

from planogram_layout.layout import PlanogramEditor
from planogram_layout.models import ItemType, Planogram, PlanogramSettings, ProductPlacement, ShelfType
from planogram_layout.utils.error_handler import CapacityError, ValidationError


@pytest.fixture
def rack_editor(editor):
    rack_id = editor.add_rack(levels=4).item_id
    return editor, editor.planogram.find_rack(rack_id)


def test_add_shelf_defaults(editor):
    result = editor.add_shelf(ShelfType.HOOK)

    shelf = editor.planogram.find_item(result.item_id)
    assert (shelf.x, shelf.y) == (50, 50)
    assert (shelf.width, shelf.height) == (400, 60)
    assert shelf.depth == 400
    assert shelf.max_load == 5
    assert shelf.rack_id is None


def test_add_fixture(editor):
    result = editor.add_fixture("divider")

    fixture = editor.planogram.find_item(result.item_id)
    assert fixture.item_type == ItemType.DIVIDER
    assert (fixture.width, fixture.height) == (5, 100)


def test_rack_shelves_stay_out_of_items(rack_editor):
    editor, rack = rack_editor

    assert editor.planogram.items == []
    assert len(rack.shelves) == 4
    assert editor.add_rack().success
    assert editor.planogram.racks[1].x == 400


def test_place_product_on_rack_shelf(rack_editor, product_factory):
    editor, rack = rack_editor
    shelf = rack.shelves[0]

    result = editor.place_product(shelf.item_id, product_factory(width=400, height=200))

    item = editor.planogram.find_item(result.item_id)
    assert isinstance(item, ProductPlacement)
    assert item.shelf_id == shelf.item_id
    assert item.rack_id == rack.rack_id
    assert item.x == shelf.x
    assert item.bottom == shelf.bottom
    assert editor.products_on_shelf(shelf.item_id) == [item]


def test_placed_product_is_a_snapshot(rack_editor, product_factory):
    editor, rack = rack_editor
    product = product_factory(width=400)

    result = editor.place_product(rack.shelves[0].item_id, product)
    product.width = 10

    assert editor.planogram.find_item(result.item_id).product.width == 400


def test_failed_placement_leaves_model_untouched(rack_editor, product_factory):
    editor, rack = rack_editor
    before = editor.snapshot()

    result = editor.place_product(rack.shelves[0].item_id, product_factory(width=5000))

    assert isinstance(result.error, CapacityError)
    assert editor.planogram.items == before.items


def test_unknown_or_missing_shelf(editor, product_factory):
    assert isinstance(editor.place_product(None, product_factory()).error, ValidationError)
    assert isinstance(editor.place_product("nope", product_factory()).error, ValidationError)


def test_no_overlap_after_filling_a_shelf(rack_editor, product_factory):
    editor, rack = rack_editor
    shelf_id = rack.shelves[1].item_id
    while editor.place_product(shelf_id, product_factory(width=130, spacing=20)):
        pass

    products = sorted(editor.products_on_shelf(shelf_id), key=lambda p: p.x)
    assert len(products) > 1
    for left, right in zip(products, products[1:]):
        assert right.x >= left.right


def test_distribute_evenly_commits_positions(rack_editor, product_factory):
    editor, rack = rack_editor
    shelf = rack.shelves[0]
    for width in (200, 300, 240):
        editor.place_product(shelf.item_id, product_factory(width=width))

    result = editor.distribute_evenly(shelf.item_id)

    products = sorted(editor.products_on_shelf(shelf.item_id), key=lambda p: p.x)
    assert result.success
    assert products[0].x == shelf.x + 10
    assert products[-1].right == pytest.approx(shelf.right - 10)


def test_distribute_on_empty_shelf(rack_editor):
    editor, rack = rack_editor

    result = editor.distribute_evenly(rack.shelves[0].item_id)

    assert result.no_op


def test_resize_levels_through_editor(rack_editor, product_factory):
    editor, rack = rack_editor
    editor.place_product(rack.shelves[3].item_id, product_factory(height=600))

    result = editor.resize_rack_levels(rack.rack_id, 2)

    assert result.success
    assert len(result.removed_ids) == 1
    assert editor.planogram.items == []
    assert editor.planogram.racks[0].levels == 2


def test_invalid_level_count(rack_editor):
    editor, rack = rack_editor

    result = editor.resize_rack_levels(rack.rack_id, 9)

    assert isinstance(result.error, ValidationError)
    assert editor.planogram.racks[0].levels == 4


def test_move_rack_moves_products(rack_editor, product_factory):
    editor, rack = rack_editor
    placed = editor.place_product(rack.shelves[2].item_id, product_factory())
    before = editor.planogram.find_item(placed.item_id)

    editor.move_rack(rack.rack_id, 100, -50)

    after = editor.planogram.find_item(placed.item_id)
    assert (after.x, after.y) == (before.x + 100, before.y - 50)
    assert editor.planogram.racks[0].shelves[2].y == rack.shelves[2].y - 50


def test_delete_rack(rack_editor, product_factory):
    editor, rack = rack_editor
    editor.place_product(rack.shelves[0].item_id, product_factory())
    shelf_result = editor.add_shelf()

    result = editor.delete_rack(rack.rack_id)

    assert result.success
    assert editor.planogram.racks == []
    assert [i.item_id for i in editor.planogram.items] == [shelf_result.item_id]


def test_delete_standalone_shelf_removes_its_products(editor, product_factory):
    shelf_id = editor.add_shelf().item_id
    editor.place_product(shelf_id, product_factory(height=100))

    result = editor.delete_item(shelf_id)

    assert len(result.removed_ids) == 2
    assert editor.planogram.items == []


def test_delete_rack_shelf_through_delete_item(rack_editor):
    editor, rack = rack_editor

    editor.delete_item(rack.shelves[2].item_id)

    assert [s.level for s in editor.planogram.racks[0].shelves] == [0, 1, 3]


def test_move_product_reattaches_it(editor, product_factory):
    first = editor.add_shelf().item_id
    second = editor.add_shelf().item_id
    editor.move_item(second, 50, 300)
    placed = editor.place_product(first, product_factory(height=100))

    editor.move_item(placed.item_id, 50, 310)

    moved = editor.planogram.find_item(placed.item_id)
    assert moved.shelf_id == second
    assert moved.bottom == editor.planogram.find_item(second).bottom


def test_moving_a_shelf_carries_its_products(editor, product_factory):
    shelf_id = editor.add_shelf().item_id
    placed = editor.place_product(shelf_id, product_factory(height=100))
    before = editor.planogram.find_item(placed.item_id)

    editor.move_item(shelf_id, 250, 400)

    after = editor.planogram.find_item(placed.item_id)
    assert (after.x - before.x, after.y - before.y) == (200, 350)


def test_rack_shelves_cannot_be_moved_alone(rack_editor):
    editor, rack = rack_editor

    result = editor.move_item(rack.shelves[0].item_id, 0, 0)

    assert isinstance(result.error, ValidationError)


def test_change_rack_shelf_type(rack_editor):
    editor, rack = rack_editor

    editor.change_shelf_type(rack.shelves[0].item_id, "basket")

    shelf = editor.planogram.racks[0].shelves[0]
    assert shelf.shelf_type == ShelfType.BASKET
    assert shelf.max_load == 10


def test_resize_shelf_realigns_products(editor, product_factory):
    shelf_id = editor.add_shelf().item_id
    placed = editor.place_product(shelf_id, product_factory(height=100))

    editor.resize_shelf(shelf_id, width_mm=1000, height_mm=200)

    shelf = editor.planogram.find_item(shelf_id)
    assert (shelf.width, shelf.height) == (500, 100)
    assert editor.planogram.find_item(placed.item_id).bottom == shelf.bottom


def test_listeners_get_snapshots(editor):
    seen = []
    unsubscribe = editor.subscribe(seen.append)

    editor.add_shelf()
    seen[0].items.clear()
    unsubscribe()
    editor.add_shelf()

    assert len(seen) == 1
    assert len(editor.planogram.items) == 2


def test_rescale_through_settings(rack_editor, product_factory):
    editor, rack = rack_editor
    editor.place_product(rack.shelves[0].item_id, product_factory())

    result = editor.update_settings(pixels_per_mm=1.0, show_grid=False)

    assert result.success
    assert editor.settings.pixels_per_mm == 1.0
    assert editor.settings.show_grid is False
    assert editor.planogram.racks[0].x == rack.x * 2


def test_listener_cannot_reenter_rescale(editor):
    editor.add_rack()
    nested = []

    def listener(snapshot):
        nested.append(editor.rescale(2.0))

    editor.subscribe(listener)
    editor.rescale(1.0)

    assert editor.settings.pixels_per_mm == 1.0
    assert nested[0].no_op


def test_unknown_setting(editor):
    assert isinstance(editor.update_settings(zoom=2).error, ValidationError)


def test_load_does_not_rescale(editor):
    saved = Planogram(name="saved", settings=PlanogramSettings(pixels_per_mm=1.0))
    other = PlanogramEditor(saved)
    other.add_rack()

    editor.load(other.snapshot())

    assert editor.settings.pixels_per_mm == 1.0
    assert editor.planogram.racks[0].shelves[0].height == 450


def test_new_planogram_resets(rack_editor):
    editor, _ = rack_editor

    editor.new_planogram("fresh")

    assert editor.planogram.name == "fresh"
    assert editor.planogram.racks == []


@pytest.mark.parametrize("level", [0, 3])
def test_off_grid_height_sits_on_rack_shelf_bottom(rack_editor, product_factory, level):
    editor, rack = rack_editor
    shelf = rack.shelves[level]

    result = editor.place_product(shelf.item_id, product_factory(height=275))

    item = editor.planogram.find_item(result.item_id)
    assert item.bottom == shelf.bottom
    assert item.shelf_id == shelf.item_id


def test_move_along_own_shelf_keeps_it(rack_editor, product_factory):
    editor, rack = rack_editor
    shelf = rack.shelves[0]
    first = editor.place_product(shelf.item_id, product_factory(height=275))
    item = editor.planogram.find_item(first.item_id)

    editor.move_item(item.item_id, item.x + 25, item.y)

    moved = editor.planogram.find_item(item.item_id)
    assert moved.shelf_id == shelf.item_id
    assert moved.rack_id == rack.rack_id
    assert moved.x == item.x + 25
    assert moved.bottom == shelf.bottom

    second = editor.place_product(shelf.item_id, product_factory())

    placed = editor.planogram.find_item(second.item_id)
    assert placed.x >= moved.right or placed.right <= moved.x
