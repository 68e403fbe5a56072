import pytest

from planogram_layout.layout import PlanogramEditor, rescale_planogram
from planogram_layout.layout.rescale import RescaleEngine
from planogram_layout.models import Planogram, Shelf, ShelfType
from planogram_layout.utils.error_handler import ConfigurationError, ConsistencyWarning


@pytest.fixture
def layout(product_factory):
    """Planogram with a rack, a standalone shelf and products on both"""
    editor = PlanogramEditor()
    rack_id = editor.add_rack(levels=4).item_id
    rack = editor.planogram.find_rack(rack_id)
    editor.change_shelf_type(rack.shelves[1].item_id, ShelfType.WIRE)
    editor.place_product(rack.shelves[0].item_id, product_factory("low", width=200, height=300))
    editor.place_product(rack.shelves[0].item_id, product_factory("low2", width=150, height=250))
    editor.place_product(rack.shelves[3].item_id, product_factory("tall", width=100, height=700))
    shelf_id = editor.add_shelf(ShelfType.BASKET).item_id
    editor.place_product(shelf_id, product_factory("small", width=120, height=70))
    return editor.snapshot()


def geometry(planogram):
    values = {}
    for rack in planogram.racks:
        values[rack.rack_id] = (rack.x, rack.y)
        for shelf in rack.shelves:
            values[shelf.item_id] = (shelf.x, shelf.y, shelf.width, shelf.height)
    for item in planogram.items:
        values[item.item_id] = (item.x, item.y, item.width, item.height)
    return values


def test_doubling_the_scale_doubles_everything(layout):
    rescaled, result = rescale_planogram(layout, 1.0)

    assert result.success and not result.no_op
    assert rescaled.settings.pixels_per_mm == 1.0
    before, after = geometry(layout), geometry(rescaled)
    for key, values in before.items():
        assert after[key] == pytest.approx(tuple(v * 2 for v in values))


def test_sizes_come_from_millimeters(layout):
    rescaled, _ = rescale_planogram(layout, 0.8)

    rack = rescaled.racks[0]
    assert rack.shelves[0].width == pytest.approx(rack.width * 0.8)
    assert rack.shelves[0].height == pytest.approx(rack.height * 0.8 / rack.levels)
    for item in rescaled.products:
        assert item.width == pytest.approx(item.product.width * 0.8)
        assert item.height == pytest.approx(item.product.height * 0.8)


def test_shelf_metadata_is_preserved(layout):
    rescaled, _ = rescale_planogram(layout, 1.0)

    before = layout.racks[0].shelves
    after = rescaled.racks[0].shelves
    assert [s.item_id for s in after] == [s.item_id for s in before]
    assert [s.shelf_type for s in after] == [s.shelf_type for s in before]
    assert after[1].shelf_type == ShelfType.WIRE
    assert [s.max_load for s in after] == [s.max_load for s in before]
    assert rescaled.standalone_shelves[0].shelf_type == ShelfType.BASKET


def test_products_keep_their_shelves(layout):
    rescaled, _ = rescale_planogram(layout, 1.0)

    assert {p.item_id: p.shelf_id for p in rescaled.products} == {p.item_id: p.shelf_id for p in layout.products}
    for product in rescaled.products:
        shelf, _ = rescaled.find_shelf(product.shelf_id)
        assert product.bottom == pytest.approx(shelf.bottom)


@pytest.mark.parametrize("scale", [0.25, 1.0, 1.7])
def test_round_trip_within_one_pixel(layout, scale):
    there, _ = rescale_planogram(layout, scale)
    back, _ = rescale_planogram(there, 0.5)

    before, after = geometry(layout), geometry(back)
    for key, values in before.items():
        for original, restored in zip(values, after[key]):
            assert abs(original - restored) <= 1


def test_same_scale_is_a_no_op(layout):
    rescaled, result = rescale_planogram(layout, 0.5)

    assert result.no_op
    assert geometry(rescaled) == geometry(layout)


def test_input_is_not_mutated(layout):
    before = geometry(layout)

    rescale_planogram(layout, 2.0)

    assert geometry(layout) == before
    assert layout.settings.pixels_per_mm == 0.5


def test_rack_shelves_are_filtered_from_items(layout):
    stray = Shelf(item_id="stray", x=0, y=0, width=100, height=50, rack_id=layout.racks[0].rack_id, level=0)
    layout.items.append(stray)

    rescaled, result = rescale_planogram(layout, 1.0)

    assert rescaled.find_item("stray") is None
    assert "stray" in result.removed_ids
    assert any(isinstance(w, ConsistencyWarning) and w.item_id == "stray" for w in result.warnings)


def test_dangling_shelf_reference_is_reassigned(layout):
    product = next(p for p in layout.products if p.product.name == "small")
    real_shelf_id = product.shelf_id
    product.shelf_id = "deleted-shelf"

    rescaled, result = rescale_planogram(layout, 1.0)

    healed = rescaled.find_item(product.item_id)
    assert healed.shelf_id == real_shelf_id
    assert any(w.item_id == product.item_id for w in result.warnings)


def test_invalid_scale(layout):
    with pytest.raises(ConfigurationError):
        rescale_planogram(layout, 0)


def test_latch_blocks_reentrant_rescale(layout):
    engine = RescaleEngine()
    nested = []

    def commit(planogram, result):
        nested.append(engine.rescale(planogram, 3.0))

    rescaled, result = engine.rescale(layout, 1.0, commit=commit)

    assert rescaled.settings.pixels_per_mm == 1.0
    assert nested[0][1].no_op
    assert not engine.in_progress


def test_empty_planogram(settings):
    rescaled, result = rescale_planogram(Planogram(name="empty", settings=settings), 2.0)

    assert result.success
    assert rescaled.items == [] and rescaled.racks == []
    assert rescaled.settings.pixels_per_mm == 2.0


def test_rescale_is_timed(layout):
    from planogram_layout.utils.monitor import monitor

    before = len(monitor.metrics)
    rescale_planogram(layout, 1.0)

    assert monitor.metrics[before][0] == "rescale_planogram"
