import pytest

from planogram_layout.layout.placement import PlacementEngine
from planogram_layout.models import ProductPlacement, Shelf
from planogram_layout.utils.error_handler import CapacityError, ValidationError


def placed(item_id, product, x, shelf, shelf_id=None, ppm=0.5):
    width, height = product.width * ppm, product.height * ppm
    return ProductPlacement(item_id=item_id, x=x, y=shelf.bottom - height, width=width, height=height,
                            product=product, shelf_id=shelf_id)


def test_first_product_goes_to_the_left_edge(converter, wide_shelf, product_factory):
    engine = PlacementEngine(converter)
    product = product_factory(width=400, height=200, spacing=50)

    result = engine.place_product(wide_shelf, product, [])

    assert result.success
    assert result.x == wide_shelf.x
    assert result.width == 200
    # Bottom of the product on the bottom of the shelf
    assert result.y + result.height == wide_shelf.bottom
    assert result.remaining_mm == 1600


def test_second_product_respects_spacing(exact_converter, wide_shelf, product_factory):
    engine = PlacementEngine(exact_converter)
    existing = placed("p1", product_factory(width=400), 0, wide_shelf, shelf_id="shelf-1")

    result = engine.place_product(wide_shelf, product_factory(width=100, spacing=50), [existing])

    assert result.success
    assert result.x == 225
    assert result.width == 50


def test_snapped_slot_on_default_grid(converter, wide_shelf, product_factory):
    engine = PlacementEngine(converter)
    existing = placed("p1", product_factory(width=400), 0, wide_shelf, shelf_id="shelf-1")

    result = engine.place_product(wide_shelf, product_factory(width=100, spacing=50), [existing])

    # 225 px is already on the 25 px grid
    assert result.x == 225


def test_placement_is_deterministic(converter, wide_shelf, product_factory):
    engine = PlacementEngine(converter)
    existing = [placed("p1", product_factory(width=300), 0, wide_shelf, shelf_id="shelf-1")]
    product = product_factory(width=120)

    first = engine.place_product(wide_shelf, product, existing)
    second = engine.place_product(wide_shelf, product, existing)

    assert (first.x, first.y) == (second.x, second.y)


def test_not_enough_space_reports_shortfall(converter, wide_shelf, product_factory):
    engine = PlacementEngine(converter)

    result = engine.place_product(wide_shelf, product_factory(width=2100), [])

    assert not result.success
    assert isinstance(result.error, CapacityError)
    assert result.error.available_mm == 2000
    assert result.shortfall_mm == 100


def test_too_tall_product_is_rejected(converter, wide_shelf, product_factory):
    engine = PlacementEngine(converter)

    # Shelf is 150 px = 300 mm tall
    result = engine.place_product(wide_shelf, product_factory(height=400), [])

    assert not result.success
    assert isinstance(result.error, ValidationError)
    assert "too tall" in result.message


def test_open_top_shelf_accepts_tall_products(converter, product_factory):
    engine = PlacementEngine(converter)
    top = Shelf(item_id="rack-1-shelf-3", x=0, y=100, width=600, height=100,
                rack_id="rack-1", level=3, is_top_shelf=True, has_height_limit=False)

    result = engine.place_product(top, product_factory(height=600), [])

    assert result.success
    assert result.height == 300
    # Rests on the shelf bottom and rises above the shelf
    assert result.y == top.bottom - 300
    assert result.y < top.y


def test_too_deep_product_is_rejected(converter, wide_shelf, product_factory):
    engine = PlacementEngine(converter)

    result = engine.place_product(wide_shelf, product_factory(depth=500), [])

    assert not result.success
    assert isinstance(result.error, ValidationError)
    assert "too deep" in result.message


def test_no_shelf_selected(converter, product_factory):
    result = PlacementEngine(converter).place_product(None, product_factory(), [])

    assert not result.success
    assert isinstance(result.error, ValidationError)


def test_products_of_other_shelves_are_ignored(converter, wide_shelf, product_factory):
    engine = PlacementEngine(converter)
    other = placed("p1", product_factory(width=400), 0, wide_shelf, shelf_id="shelf-2")

    result = engine.place_product(wide_shelf, product_factory(), [other],
                                  known_shelf_ids={"shelf-1", "shelf-2"})

    assert result.x == 0


def test_legacy_products_are_matched_by_position(converter, wide_shelf, product_factory):
    engine = PlacementEngine(converter)
    legacy = placed("p1", product_factory(width=400), 0, wide_shelf)

    result = engine.place_product(wide_shelf, product_factory(width=100, spacing=50), [legacy])

    assert result.x == 225


def test_first_fit_uses_a_gap_that_fits():
    occupied = [(0, 100), (300, 400)]

    assert PlacementEngine.find_first_fit(0, 100, 0, occupied) == 100
    assert PlacementEngine.find_first_fit(0, 250, 0, occupied) == 400


def test_first_fit_never_moves_left():
    # Second interval lies inside the first one
    occupied = [(0, 300), (50, 100)]

    assert PlacementEngine.find_first_fit(0, 50, 10, occupied) == 310


@pytest.mark.parametrize("width", [0, -10])
def test_invalid_dimensions(converter, wide_shelf, product_factory, width):
    result = PlacementEngine(converter).place_product(wide_shelf, product_factory(width=width), [])

    assert not result.success
    assert isinstance(result.error, ValidationError)


def test_off_grid_height_sits_on_the_shelf_bottom(converter, wide_shelf, product_factory):
    engine = PlacementEngine(converter)

    # 275 mm is 137.5 px, half a grid step off the 25 px grid
    result = engine.place_product(wide_shelf, product_factory(height=275), [])

    assert result.success
    assert result.y + result.height == wide_shelf.bottom


def test_off_grid_height_on_open_top_shelf(converter, product_factory):
    engine = PlacementEngine(converter)
    top = Shelf(item_id="rack-1-shelf-3", x=0, y=100, width=600, height=100,
                rack_id="rack-1", level=3, is_top_shelf=True, has_height_limit=False)

    result = engine.place_product(top, product_factory(height=275), [])

    assert result.success
    assert result.y == top.bottom - 137.5
