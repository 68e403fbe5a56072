from dataclasses import replace

from planogram_layout.data_processing import DataValidator
from planogram_layout.layout import PlanogramEditor
from planogram_layout.models import Product, Shelf


def test_valid_products(sample_products):
    is_valid, issues = DataValidator().validate_products(sample_products)

    assert is_valid
    assert issues == []


def test_product_errors_and_warnings():
    good = Product(name="Tea", width=60, height=120, depth=60)
    twin = Product(name="Tea again", width=60, height=120, depth=60, product_id=good.product_id)
    flat = Product(name="Flat", width=60, height=0, depth=60, spacing=-1, color="blue")

    validator = DataValidator()
    is_valid, issues = validator.validate_products([good, twin, flat])

    assert not is_valid
    assert any("Duplicate" in issue for issue in validator.errors)
    assert any("Invalid dimensions" in issue for issue in validator.errors)
    assert any("Negative spacing" in issue for issue in validator.errors)
    assert any("hex color" in issue for issue in validator.warnings)
    assert len(issues) == len(validator.errors) + len(validator.warnings)


def test_empty_product_list():
    assert DataValidator().validate_products([]) == (False, ["No products provided for validation"])


def layout_with_products(product_factory):
    editor = PlanogramEditor()
    rack = editor.planogram.find_rack(editor.add_rack().item_id)
    for width in (200, 300, 150):
        editor.place_product(rack.shelves[0].item_id, product_factory(width=width))
    return editor.snapshot()


def test_editor_layout_is_valid(product_factory):
    validator = DataValidator()

    is_valid, issues = validator.validate_planogram(layout_with_products(product_factory))

    assert is_valid, issues
    assert "All validations passed" in validator.generate_validation_report()


def test_overlap_is_reported(product_factory):
    planogram = layout_with_products(product_factory)
    first, second = planogram.products[:2]
    planogram.items[1] = replace(second, x=first.x + 10)

    is_valid, issues = DataValidator().validate_planogram(planogram)

    assert not is_valid
    assert any("overlap" in issue for issue in issues)


def test_broken_rack_geometry_and_references(product_factory):
    planogram = layout_with_products(product_factory)
    rack = planogram.racks[0]
    rack.shelves[1] = replace(rack.shelves[1], y=rack.shelves[1].y + 40)
    planogram.items[0] = replace(planogram.items[0], shelf_id="gone")
    planogram.items.append(Shelf(item_id="stray", x=0, y=0, width=10, height=10, rack_id=rack.rack_id))

    validator = DataValidator()
    is_valid, _ = validator.validate_planogram(planogram)

    assert not is_valid
    assert any("does not match level 1" in e for e in validator.errors)
    assert any("missing shelf gone" in e for e in validator.errors)
    assert any("stray" in e for e in validator.errors)
    assert "ERRORS" in validator.generate_validation_report()
