from dataclasses import replace
from typing import List, Optional, Set, Tuple
import uuid

from planogram_layout.models.rack import RackSystem, RackType
from planogram_layout.models.shelf import CanvasItem, ProductPlacement, Shelf, ShelfType
from planogram_layout.utils.constants import (
    DEFAULT_RACK_DEPTH_MM, DEFAULT_RACK_HEIGHT_MM, DEFAULT_RACK_LEVELS, DEFAULT_RACK_NAME,
    DEFAULT_RACK_WIDTH_MM, MAX_RACK_LEVELS, MIN_RACK_LEVELS, RACK_OFFSET_X_PX,
    RACK_OFFSET_Y_PX, RACK_ORIGIN_PX, RACKS_PER_ROW
)
from planogram_layout.utils.error_handler import ConsistencyWarning, ValidationError
from planogram_layout.utils.logger import get_logger
from .geometry import find_supporting_shelf, positioned_on_shelf
from .results import LayoutResult
from .units import UnitConverter

RackEdit = Tuple[RackSystem, List[CanvasItem], LayoutResult]

def shelf_geometry(rack: RackSystem, level: int, pixels_per_mm: float,
                   levels: Optional[int] = None) -> Tuple[float, float, float, float]:
    """(x, y, width, height) in pixels of the shelf at ``level``.

    The rack height is split into equal bands stacked bottom-up from the
    rack's own origin, so level 0 sits at the bottom of the rack.
    """
    levels = levels or rack.levels
    width_px = rack.width * pixels_per_mm
    height_px = rack.height * pixels_per_mm
    shelf_height_px = height_px / levels
    y = rack.y + height_px - (level + 1) * shelf_height_px
    return rack.x, y, width_px, shelf_height_px

class RackManager:
    """Create racks and keep their shelves and products consistent"""

    def __init__(self, converter: UnitConverter):
        self.converter = converter
        self.logger = get_logger()

    @staticmethod
    def validate_levels(levels) -> int:
        if isinstance(levels, bool) or not isinstance(levels, int):
            raise ValidationError(f"Rack levels must be an integer, got {levels!r}")
        if not MIN_RACK_LEVELS <= levels <= MAX_RACK_LEVELS:
            raise ValidationError(
                f"Rack levels must be between {MIN_RACK_LEVELS} and {MAX_RACK_LEVELS}, got {levels}")
        return levels

    @staticmethod
    def _validate_dimensions(**dimensions):
        for name, value in dimensions.items():
            if value is not None and value <= 0:
                raise ValidationError(f"Rack {name} must be positive, got {value}")

    def create_rack(self, rack_type=RackType.GONDOLA, existing_count: int = 0,
                    name: str = DEFAULT_RACK_NAME, width: float = DEFAULT_RACK_WIDTH_MM,
                    height: float = DEFAULT_RACK_HEIGHT_MM, depth: float = DEFAULT_RACK_DEPTH_MM,
                    levels: int = DEFAULT_RACK_LEVELS, rack_id: Optional[str] = None) -> RackSystem:
        """New rack tiled next to the existing ones, with its shelves generated"""
        self.validate_levels(levels)
        self._validate_dimensions(width=width, height=height, depth=depth)

        # Three racks per row, then a new row
        offset_x = (existing_count % RACKS_PER_ROW) * RACK_OFFSET_X_PX
        offset_y = (existing_count // RACKS_PER_ROW) * RACK_OFFSET_Y_PX

        rack = RackSystem(
            rack_id=rack_id or f"rack-{uuid.uuid4().hex[:8]}",
            name=name,
            rack_type=RackType(rack_type) if isinstance(rack_type, str) else rack_type,
            x=self.converter.snap_to_grid(RACK_ORIGIN_PX + offset_x),
            y=self.converter.snap_to_grid(RACK_ORIGIN_PX + offset_y),
            width=width,
            height=height,
            depth=depth,
            levels=levels
        )
        rack.shelves = self.create_rack_shelves(rack)

        self.logger.debug(f"Created rack {rack.rack_id} at ({rack.x}, {rack.y}) with {levels} shelves")
        return rack

    def create_rack_shelves(self, rack: RackSystem) -> List[Shelf]:
        """One standard shelf per level, ordered bottom to top"""
        shelves = []
        for level in range(rack.levels):
            x, y, width, height = shelf_geometry(rack, level, self.converter.pixels_per_mm)
            is_top = level == rack.levels - 1
            shelves.append(Shelf(
                item_id=f"{rack.rack_id}-shelf-{level}",
                x=x,
                y=y,
                width=width,
                height=height,
                depth=rack.depth,
                shelf_type=ShelfType.STANDARD,
                rack_id=rack.rack_id,
                level=level,
                is_top_shelf=is_top,
                is_bottom_shelf=level == 0,
                has_height_limit=not is_top
            ))
        return shelves

    def relayout_shelf(self, rack: RackSystem, shelf: Shelf, pixels_per_mm: Optional[float] = None) -> Shelf:
        """Same shelf (id, type, load...) with geometry recomputed from the rack"""
        level = shelf.level if shelf.level is not None else 0
        x, y, width, height = shelf_geometry(rack, level, pixels_per_mm or self.converter.pixels_per_mm)
        return replace(shelf, x=x, y=y, width=width, height=height, depth=rack.depth)

    def _owning_shelf(self, item: ProductPlacement, shelves: List[Shelf],
                      known_shelf_ids: Optional[Set[str]]) -> Optional[Shelf]:
        """Shelf among ``shelves`` that owns the product, if any"""
        if item.shelf_id is not None and (known_shelf_ids is None or item.shelf_id in known_shelf_ids):
            return next((s for s in shelves if s.item_id == item.shelf_id), None)
        return find_supporting_shelf(item, shelves)

    def resize_levels(self, rack: RackSystem, new_levels: int, items: List[CanvasItem],
                      known_shelf_ids: Optional[Set[str]] = None) -> RackEdit:
        """Regenerate the shelves for a new level count.

        Products on removed levels are dropped, as are products that no longer
        fit the height of their (smaller) level. The rest are re-anchored to
        the bottom of the regenerated shelf at the same level.
        """
        self.validate_levels(new_levels)

        new_rack = replace(rack, levels=new_levels, shelves=[])
        new_rack.shelves = self.create_rack_shelves(new_rack)

        new_items: List[CanvasItem] = []
        result = LayoutResult.ok(f"Rack {rack.rack_id} now has {new_levels} levels")
        for item in items:
            # Rack shelves never live in the standalone items
            if isinstance(item, Shelf) and item.rack_id == rack.rack_id:
                continue
            if not isinstance(item, ProductPlacement):
                new_items.append(item)
                continue

            owner = self._owning_shelf(item, rack.shelves, known_shelf_ids)
            if owner is None:
                new_items.append(item)
                continue

            new_shelf = new_rack.shelf_at_level(owner.level)
            if new_shelf is None or (new_shelf.has_height_limit and item.height > new_shelf.height):
                result.removed_ids.append(item.item_id)
                continue

            y = new_shelf.bottom - item.height
            new_items.append(replace(item, y=y, shelf_id=new_shelf.item_id, rack_id=rack.rack_id))
            result.positions[item.item_id] = (item.x, y)

        self.logger.debug(
            f"Rack {rack.rack_id}: {rack.levels} -> {new_levels} levels, "
            f"{len(result.removed_ids)} products removed")
        return new_rack, new_items, result

    def resize_dimensions(self, rack: RackSystem, items: List[CanvasItem], width: Optional[float] = None,
                          height: Optional[float] = None, depth: Optional[float] = None,
                          known_shelf_ids: Optional[Set[str]] = None) -> RackEdit:
        """Recompute existing shelves in place for new rack dimensions"""
        self._validate_dimensions(width=width, height=height, depth=depth)

        new_rack = replace(
            rack,
            width=width if width is not None else rack.width,
            height=height if height is not None else rack.height,
            depth=depth if depth is not None else rack.depth
        )
        new_rack.shelves = [self.relayout_shelf(new_rack, shelf) for shelf in rack.shelves]
        new_by_id = {shelf.item_id: shelf for shelf in new_rack.shelves}

        result = LayoutResult.ok(f"Rack {rack.rack_id} resized to {new_rack.width:g}x{new_rack.height:g}mm")
        new_items: List[CanvasItem] = []
        for item in items:
            owner = None
            if isinstance(item, ProductPlacement):
                owner = self._owning_shelf(item, rack.shelves, known_shelf_ids)
            if owner is None:
                new_items.append(item)
                continue

            new_shelf = new_by_id[owner.item_id]
            y = new_shelf.bottom - item.height
            moved = replace(item, y=y, shelf_id=new_shelf.item_id, rack_id=rack.rack_id)
            new_items.append(moved)
            result.positions[item.item_id] = (item.x, y)

            if moved.right > new_shelf.right:
                result.warnings.append(ConsistencyWarning(
                    f"Product {item.item_id} extends past the right edge of {new_shelf.item_id}", item.item_id))
            if new_shelf.has_height_limit and moved.height > new_shelf.height:
                result.warnings.append(ConsistencyWarning(
                    f"Product {item.item_id} is taller than {new_shelf.item_id}", item.item_id))

        for warning in result.warnings:
            self.logger.warning(str(warning))
        return new_rack, new_items, result

    def move_rack(self, rack: RackSystem, dx: float, dy: float, items: List[CanvasItem]) -> RackEdit:
        """Translate the rack, its shelves and its products by the same delta"""
        new_rack = replace(
            rack,
            x=rack.x + dx,
            y=rack.y + dy,
            shelves=[replace(shelf, x=shelf.x + dx, y=shelf.y + dy) for shelf in rack.shelves]
        )
        shelf_ids = set(rack.shelf_ids)

        result = LayoutResult.ok(f"Rack {rack.rack_id} moved by ({dx:g}, {dy:g})")
        new_items: List[CanvasItem] = []
        for item in items:
            if isinstance(item, ProductPlacement) and (
                    item.rack_id == rack.rack_id or item.shelf_id in shelf_ids):
                moved = replace(item, x=item.x + dx, y=item.y + dy)
                result.positions[item.item_id] = (moved.x, moved.y)
                new_items.append(moved)
            else:
                new_items.append(item)
        return new_rack, new_items, result

    def products_on_rack(self, rack: RackSystem, items: List[CanvasItem],
                         known_shelf_ids: Optional[Set[str]] = None,
                         shelves: Optional[List[Shelf]] = None) -> List[ProductPlacement]:
        """Products owned by the rack (or by some of its shelves)"""
        shelves = rack.shelves if shelves is None else shelves
        shelf_ids = {shelf.item_id for shelf in shelves}
        whole_rack = shelves is rack.shelves
        owned = []
        for item in items:
            if not isinstance(item, ProductPlacement):
                continue
            has_reference = item.shelf_id is not None and (
                known_shelf_ids is None or item.shelf_id in known_shelf_ids)
            if has_reference:
                if item.shelf_id in shelf_ids:
                    owned.append(item)
            elif whole_rack and item.rack_id == rack.rack_id:
                owned.append(item)
            elif any(positioned_on_shelf(item, shelf) for shelf in shelves):
                owned.append(item)
        return owned

    def delete_rack(self, rack: RackSystem, items: List[CanvasItem],
                    known_shelf_ids: Optional[Set[str]] = None) -> Tuple[List[CanvasItem], LayoutResult]:
        """Items left after removing the rack's shelves and products"""
        doomed = {item.item_id for item in self.products_on_rack(rack, items, known_shelf_ids)}
        doomed.update(rack.shelf_ids)

        new_items = [item for item in items if item.item_id not in doomed]
        removed = [item.item_id for item in items if item.item_id in doomed]
        result = LayoutResult.ok(
            f"Rack {rack.rack_id} deleted with {len(rack.shelves)} shelves and "
            f"{len(removed)} products", removed_ids=removed)
        return new_items, result

    def delete_rack_shelf(self, rack: RackSystem, shelf_id: str, items: List[CanvasItem],
                          known_shelf_ids: Optional[Set[str]] = None) -> RackEdit:
        """Remove one shelf and its products; other shelves stay where they are"""
        shelf = rack.get_shelf(shelf_id)
        if shelf is None:
            raise ValidationError(f"Shelf {shelf_id} is not part of rack {rack.rack_id}")

        doomed = {item.item_id for item in self.products_on_rack(rack, items, known_shelf_ids, [shelf])}
        new_rack = replace(rack, shelves=[s for s in rack.shelves if s.item_id != shelf_id])
        new_items = [item for item in items if item.item_id not in doomed]
        result = LayoutResult.ok(
            f"Shelf {shelf_id} deleted with {len(doomed)} products",
            removed_ids=[item.item_id for item in items if item.item_id in doomed])
        return new_rack, new_items, result
