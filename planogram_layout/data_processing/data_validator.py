import re
from collections import Counter
from datetime import datetime
from typing import List, Tuple

from planogram_layout.layout.geometry import products_on_shelf
from planogram_layout.layout.rack_lifecycle import shelf_geometry
from planogram_layout.models.planogram import Planogram
from planogram_layout.models.product import Product
from planogram_layout.models.shelf import ProductPlacement, Shelf

HEX_COLOR = re.compile(r'^#(?:[0-9a-fA-F]{3}){1,2}$')

# Pixel slack for float and grid rounding
GEOMETRY_TOLERANCE_PX = 1.0

class DataValidator:
    """Validate catalog data and saved layouts"""

    def __init__(self):
        self.warnings = []
        self.errors = []

    def _reset(self):
        self.warnings = []
        self.errors = []

    def _result(self) -> Tuple[bool, List[str]]:
        return len(self.errors) == 0, self.errors + self.warnings

    def validate_products(self, products: List[Product]) -> Tuple[bool, List[str]]:
        """Validate product data and return (is_valid, issues)"""
        self._reset()

        if not products:
            self.errors.append("No products provided for validation")
            return False, self.errors

        counts = Counter(p.product_id for p in products)
        duplicates = sorted(pid for pid, count in counts.items() if count > 1)
        if duplicates:
            self.errors.append(f"Duplicate product IDs found: {duplicates}")

        for product in products:
            self._validate_single_product(product)

        return self._result()

    def _validate_single_product(self, product: Product):
        if product.width <= 0 or product.height <= 0 or product.depth <= 0:
            self.errors.append(
                f"{product.name}: Invalid dimensions ({product.width}x{product.height}x{product.depth}mm)")

        if product.spacing is not None and product.spacing < 0:
            self.errors.append(f"{product.name}: Negative spacing ({product.spacing}mm)")

        if product.color and not HEX_COLOR.match(product.color):
            self.warnings.append(f"{product.name}: Color {product.color!r} is not a hex color")

        if not product.name.strip():
            self.warnings.append(f"Product {product.product_id} has no name")

    def validate_planogram(self, planogram: Planogram) -> Tuple[bool, List[str]]:
        """Check layout invariants: no overlaps, rack partition, shelf references"""
        self._reset()

        known_ids = {shelf.item_id for shelf in planogram.all_shelves}
        self._validate_references(planogram, known_ids)
        self._validate_racks(planogram)

        for shelf in planogram.all_shelves:
            self._validate_no_overlap(shelf, products_on_shelf(shelf, planogram.items, known_ids))

        return self._result()

    def _validate_references(self, planogram: Planogram, known_ids):
        rack_shelf_ids = {sid for rack in planogram.racks for sid in rack.shelf_ids}
        for item in planogram.items:
            if isinstance(item, Shelf) and (item.rack_id is not None or item.item_id in rack_shelf_ids):
                self.errors.append(f"Rack shelf {item.item_id} stored among standalone items")
            if isinstance(item, ProductPlacement):
                if item.shelf_id is None:
                    self.warnings.append(f"Product {item.item_id} has no shelf reference")
                elif item.shelf_id not in known_ids:
                    self.errors.append(f"Product {item.item_id} references missing shelf {item.shelf_id}")

    def _validate_racks(self, planogram: Planogram):
        ppm = planogram.settings.pixels_per_mm
        for rack in planogram.racks:
            if len(rack.shelves) != rack.levels:
                # Deleting a single rack shelf leaves a gap
                self.warnings.append(
                    f"Rack {rack.rack_id} has {len(rack.shelves)} shelves for {rack.levels} levels")

            for shelf in rack.shelves:
                x, y, width, height = shelf_geometry(rack, shelf.level or 0, ppm)
                if (abs(shelf.y - y) > GEOMETRY_TOLERANCE_PX
                        or abs(shelf.height - height) > GEOMETRY_TOLERANCE_PX
                        or abs(shelf.width - width) > GEOMETRY_TOLERANCE_PX
                        or abs(shelf.x - x) > GEOMETRY_TOLERANCE_PX):
                    self.errors.append(f"Shelf {shelf.item_id} does not match level {shelf.level} of rack {rack.rack_id}")
                if shelf.depth != rack.depth:
                    self.errors.append(f"Shelf {shelf.item_id} depth {shelf.depth} differs from rack depth {rack.depth}")

    def _validate_no_overlap(self, shelf: Shelf, products: List[ProductPlacement]):
        ordered = sorted(products, key=lambda p: p.x)
        for left, right in zip(ordered, ordered[1:]):
            if right.x < left.right - GEOMETRY_TOLERANCE_PX:
                self.errors.append(
                    f"Products {left.item_id} and {right.item_id} overlap on shelf {shelf.item_id}")

    def generate_validation_report(self) -> str:
        """Generate a validation report"""
        report = []
        report.append("DATA VALIDATION REPORT")
        report.append("=" * 50)
        report.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        report.append("")

        if self.errors:
            report.append(f"ERRORS ({len(self.errors)}):")
            report.append("-" * 30)
            for error in self.errors:
                report.append(f"❌ {error}")
            report.append("")

        if self.warnings:
            report.append(f"WARNINGS ({len(self.warnings)}):")
            report.append("-" * 30)
            for warning in self.warnings:
                report.append(f"⚠️  {warning}")
            report.append("")

        if not self.errors and not self.warnings:
            report.append("✅ All validations passed!")

        return "\n".join(report)
