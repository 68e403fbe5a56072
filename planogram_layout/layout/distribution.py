from typing import Dict, List, Sequence, Tuple

import numpy as np

from planogram_layout.models.shelf import ProductPlacement, Shelf
from planogram_layout.utils.constants import EDGE_MARGIN_PX
from planogram_layout.utils.error_handler import CapacityError, ValidationError
from planogram_layout.utils.logger import get_logger
from .results import LayoutResult
from .units import UnitConverter

class DistributionEngine:
    """Spread the products of one shelf evenly across its width"""

    def __init__(self, converter: UnitConverter, edge_margin: float = EDGE_MARGIN_PX):
        self.converter = converter
        self.edge_margin = edge_margin
        self.logger = get_logger()

    def distribute_evenly(self, shelf: Shelf, products: Sequence[ProductPlacement]) -> LayoutResult:
        """Compute evenly spaced positions; keeps the current left-to-right order"""
        if shelf is None:
            return LayoutResult.fail(ValidationError("Select a shelf to distribute"))

        if not products:
            return LayoutResult.noop("No products on the shelf to distribute")
        if len(products) == 1:
            return LayoutResult.noop("Only one product on the shelf")

        ordered = sorted(products, key=lambda item: item.x)
        widths = np.array([item.width for item in ordered], dtype=float)

        total_width = float(widths.sum())
        available_width = shelf.width - 2 * self.edge_margin

        if total_width > available_width:
            shortfall_mm = self.converter.pixels_to_mm(total_width - available_width)
            return LayoutResult.fail(CapacityError(
                f"Products too wide to distribute ({self.converter.pixels_to_mm(total_width)}mm "
                f"on {self.converter.pixels_to_mm(available_width)}mm)",
                shortfall_mm=shortfall_mm))

        gap = (available_width - total_width) / (len(ordered) - 1)

        # Left edge of each product: margin + widths of the ones before + gaps
        offsets = np.concatenate(([0.0], np.cumsum(widths[:-1] + gap)))
        xs = shelf.x + self.edge_margin + offsets

        # Unsnapped on purpose: snapping would break equal gaps
        positions: Dict[str, Tuple[float, float]] = {
            item.item_id: (float(x), shelf.bottom - item.height)
            for item, x in zip(ordered, xs)
        }

        self.logger.debug(
            f"Distributing {len(ordered)} products on {shelf.item_id}: available {available_width:.1f}px, "
            f"products {total_width:.1f}px, gap {gap:.1f}px")
        return LayoutResult.ok(f"{len(ordered)} products distributed evenly", positions=positions)

    def align_to_bottom(self, shelf: Shelf, products: Sequence[ProductPlacement]) -> LayoutResult:
        """Drop products onto the shelf's bottom edge (after a shelf resize)"""
        if shelf is None:
            return LayoutResult.fail(ValidationError("Select a shelf to align"))
        if not products:
            return LayoutResult.noop("No products on the shelf to align")

        positions = {
            item.item_id: (item.x, shelf.bottom - item.height)
            for item in products
        }
        return LayoutResult.ok(f"{len(positions)} products aligned to shelf bottom", positions=positions)

    @staticmethod
    def gaps(shelf_products: List[ProductPlacement]) -> List[float]:
        """Horizontal gaps between neighbouring products"""
        ordered = sorted(shelf_products, key=lambda item: item.x)
        return [b.x - a.right for a, b in zip(ordered, ordered[1:])]
