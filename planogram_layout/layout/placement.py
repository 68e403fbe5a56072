from typing import Iterable, List, Optional, Set, Tuple

from planogram_layout.models.product import Product
from planogram_layout.models.shelf import CanvasItem, Shelf
from planogram_layout.utils.error_handler import CapacityError, ValidationError
from planogram_layout.utils.logger import get_logger
from .geometry import products_on_shelf
from .results import PlacementResult
from .units import UnitConverter

Interval = Tuple[float, float]

class PlacementEngine:
    """First-fit placement of a product along a shelf.

    The sweep runs left to right over the occupied ``[start, end)`` pixel
    intervals of the shelf and takes the first gap wide enough for the
    product. It is not a best-fit packer: a gap to the left is only used if
    the product fits before the next occupied interval.
    """

    def __init__(self, converter: UnitConverter):
        self.converter = converter
        self.logger = get_logger()

    def place_product(self, shelf: Optional[Shelf], product: Product,
                      existing_items: Iterable[CanvasItem],
                      known_shelf_ids: Optional[Set[str]] = None) -> PlacementResult:
        """Find a slot for ``product`` on ``shelf`` without mutating anything"""
        if shelf is None:
            return PlacementResult.fail(ValidationError("Select a shelf before placing a product"))

        if product.width <= 0 or product.height <= 0 or product.depth <= 0:
            return PlacementResult.fail(ValidationError(
                f"Product {product.name} has invalid dimensions "
                f"({product.width}x{product.height}x{product.depth}mm)"))

        conv = self.converter
        shelf_height_mm = conv.pixels_to_mm(shelf.height)
        shelf_depth_mm = shelf.depth or conv.settings.default_shelf_depth

        # Open top shelves have no height limit
        if shelf.has_height_limit and product.height > shelf_height_mm:
            return PlacementResult.fail(ValidationError(
                f"Product too tall for shelf ({product.height}mm > {shelf_height_mm}mm)"))

        if product.depth > shelf_depth_mm:
            return PlacementResult.fail(ValidationError(
                f"Product too deep for shelf ({product.depth}mm > {shelf_depth_mm}mm)"))

        width_px = conv.mm_to_pixels(product.width)
        height_px = conv.mm_to_pixels(product.height)

        # Shelf height in mm is rounded, so check the exact pixel height too
        if shelf.has_height_limit and height_px > shelf.height:
            return PlacementResult.fail(ValidationError(
                f"Product does not fit shelf height ({product.height}mm > {shelf_height_mm}mm)"))

        # Bottom of the product on the bottom edge of the shelf; y is not snapped
        y = shelf.bottom - height_px

        occupied = self.occupied_intervals(shelf, existing_items, known_shelf_ids)
        spacing_px = conv.mm_to_pixels(product.spacing)
        next_x = self.find_first_fit(shelf.x, width_px, spacing_px, occupied)

        self.logger.debug(
            f"Slot search for {product.name} on {shelf.item_id}: {len(occupied)} occupied, "
            f"width {width_px:.1f}px, spacing {spacing_px:.1f}px -> x={next_x:.1f}")

        if next_x + width_px > shelf.right:
            available_mm = max(0, conv.pixels_to_mm(shelf.right - next_x))
            return PlacementResult.fail(CapacityError(
                f"Not enough space on shelf (need {product.width:g}mm, available {available_mm}mm)",
                shortfall_mm=product.width - available_mm,
                available_mm=available_mm))

        # Snapping must not push the product out of its free slot
        slot_end = next((start for start, _ in occupied if start >= next_x), shelf.right)
        x = conv.snap_to_grid(next_x)
        if x < next_x or x + width_px > min(slot_end, shelf.right):
            x = next_x

        remaining_mm = conv.pixels_to_mm(shelf.right - x - width_px)
        return PlacementResult.ok(
            f"{product.name} placed, {remaining_mm}mm free",
            x=x,
            y=y,
            width=width_px,
            height=height_px,
            remaining_mm=remaining_mm
        )

    def occupied_intervals(self, shelf: Shelf, items: Iterable[CanvasItem],
                           known_shelf_ids: Optional[Set[str]] = None) -> List[Interval]:
        """Occupied pixel intervals on the shelf, sorted by left edge"""
        on_shelf = products_on_shelf(shelf, items, known_shelf_ids)
        return sorted(((item.x, item.right) for item in on_shelf), key=lambda span: span[0])

    @staticmethod
    def find_first_fit(start_x: float, width_px: float, spacing_px: float,
                       occupied: List[Interval]) -> float:
        """Left edge of the first gap that fits, or the position after the last interval"""
        next_x = start_x
        for start, end in occupied:
            if next_x + width_px <= start:
                break
            # Never move left, even past an interval nested in a wider one
            next_x = max(next_x, end + spacing_px)
        return next_x
