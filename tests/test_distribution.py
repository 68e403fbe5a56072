import pytest

from planogram_layout.layout.distribution import DistributionEngine
from planogram_layout.models import ProductPlacement, Shelf
from planogram_layout.utils.error_handler import CapacityError, ValidationError


@pytest.fixture
def shelf():
    return Shelf(item_id="s1", x=50, y=100, width=600, height=200)


def on_shelf(item_id, product_factory, shelf, x, width_px):
    product = product_factory(name=item_id, width=width_px * 2, height=200)
    return ProductPlacement(item_id=item_id, x=x, y=shelf.bottom - 100, width=width_px, height=100,
                            product=product, shelf_id=shelf.item_id)


def test_three_products_get_equal_gaps(converter, shelf, product_factory):
    products = [
        on_shelf("b", product_factory, shelf, 200, 150),
        on_shelf("a", product_factory, shelf, 60, 100),
        on_shelf("c", product_factory, shelf, 400, 120),
    ]

    result = DistributionEngine(converter).distribute_evenly(shelf, products)

    assert result.success
    assert result.positions["a"][0] == shelf.x + 10
    assert result.positions["b"][0] == shelf.x + 10 + 100 + 105
    assert result.positions["c"][0] == shelf.x + 10 + 100 + 105 + 150 + 105
    # Right margin equals the left one
    assert shelf.right - (result.positions["c"][0] + 120) == pytest.approx(10)


def test_positions_are_aligned_to_shelf_bottom(converter, shelf, product_factory):
    products = [on_shelf("a", product_factory, shelf, 60, 100), on_shelf("b", product_factory, shelf, 300, 100)]

    result = DistributionEngine(converter).distribute_evenly(shelf, products)

    for item in products:
        assert result.positions[item.item_id][1] + item.height == shelf.bottom


def test_left_to_right_order_is_kept(converter, shelf, product_factory):
    products = [on_shelf("right", product_factory, shelf, 500, 50), on_shelf("left", product_factory, shelf, 55, 50)]

    result = DistributionEngine(converter).distribute_evenly(shelf, products)

    assert result.positions["left"][0] < result.positions["right"][0]


def test_positions_are_not_snapped(converter, product_factory):
    shelf = Shelf(item_id="s1", x=0, y=0, width=500, height=200)
    products = [on_shelf(str(i), product_factory, shelf, i * 100, 40) for i in range(4)]

    result = DistributionEngine(converter).distribute_evenly(shelf, products)

    gap = (480 - 160) / 3
    xs = sorted(x for x, _ in result.positions.values())
    assert xs[1] == pytest.approx(10 + 40 + gap)
    assert DistributionEngine.gaps([
        ProductPlacement(item_id=k, x=x, y=0, width=40, height=100, product=products[0].product)
        for k, (x, _) in result.positions.items()
    ]) == pytest.approx([gap, gap, gap])


def test_no_products_is_a_no_op(converter, shelf):
    result = DistributionEngine(converter).distribute_evenly(shelf, [])

    assert result.success
    assert result.no_op
    assert result.positions == {}


def test_single_product_is_a_no_op(converter, shelf, product_factory):
    result = DistributionEngine(converter).distribute_evenly(shelf, [on_shelf("a", product_factory, shelf, 60, 100)])

    assert result.no_op
    assert "one product" in result.message


def test_products_too_wide(converter, shelf, product_factory):
    products = [on_shelf("a", product_factory, shelf, 50, 300), on_shelf("b", product_factory, shelf, 350, 300)]

    result = DistributionEngine(converter).distribute_evenly(shelf, products)

    assert not result.success
    assert isinstance(result.error, CapacityError)
    # 600 px of products on 580 px available
    assert result.error.shortfall_mm == 40


def test_no_shelf(converter):
    result = DistributionEngine(converter).distribute_evenly(None, [])

    assert isinstance(result.error, ValidationError)


def test_align_to_bottom_drops_products(converter, shelf, product_factory):
    floating = on_shelf("a", product_factory, shelf, 60, 100)
    floating.y = shelf.y

    result = DistributionEngine(converter).align_to_bottom(shelf, [floating])

    assert result.positions["a"] == (60, 200)


def test_align_keeps_off_grid_heights_on_the_bottom(converter, shelf, product_factory):
    floating = on_shelf("a", product_factory, shelf, 60, 100)
    floating.height = 137.5
    floating.y = shelf.y

    result = DistributionEngine(converter).align_to_bottom(shelf, [floating])

    assert result.positions["a"][1] + 137.5 == shelf.bottom
