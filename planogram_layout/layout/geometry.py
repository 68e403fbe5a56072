"""Which products belong to which shelf.

A product's ``shelf_id`` is authoritative. Positional tests are used for
products without a (resolvable) shelf reference, e.g. layouts saved before
shelf references existed, and to sweep up products when a shelf is deleted.
"""
from typing import Iterable, List, Optional, Set

from planogram_layout.models.shelf import CanvasItem, ProductPlacement, Shelf, ShelfItem
from planogram_layout.utils.constants import NEARBY_TOLERANCE_PX, SHELF_TOLERANCE_PX

def within_horizontal_bounds(item: ShelfItem, shelf: Shelf, tolerance: float = SHELF_TOLERANCE_PX) -> bool:
    return shelf.x - tolerance <= item.x < shelf.right + tolerance

def rests_on_shelf(item: ShelfItem, shelf: Shelf, tolerance: float = SHELF_TOLERANCE_PX) -> bool:
    """Placement test: inside the shelf band, or standing on the bottom of an open shelf"""
    if not within_horizontal_bounds(item, shelf, tolerance):
        return False
    if not shelf.has_height_limit:
        # Open top shelf: products may rise above it
        return abs(item.bottom - shelf.bottom) <= tolerance
    return item.y >= shelf.y and item.bottom <= shelf.bottom + tolerance

def contained_in_shelf(item: ShelfItem, shelf: Shelf, tolerance: float = SHELF_TOLERANCE_PX) -> bool:
    """Deletion test: horizontal overlap and vertical containment"""
    return (within_horizontal_bounds(item, shelf, tolerance)
            and item.y >= shelf.y
            and item.bottom <= shelf.bottom + tolerance)

def positioned_on_shelf(item: ShelfItem, shelf: Shelf, tolerance: float = SHELF_TOLERANCE_PX) -> bool:
    return contained_in_shelf(item, shelf, tolerance) or rests_on_shelf(item, shelf, tolerance)

def near_shelf(item: ShelfItem, shelf: Shelf, tolerance: float = NEARBY_TOLERANCE_PX) -> bool:
    """Loose test used when re-aligning or distributing"""
    return (within_horizontal_bounds(item, shelf)
            and shelf.y - tolerance <= item.y <= shelf.bottom + tolerance)

def stays_on_shelf(item: ShelfItem, shelf: Shelf, tolerance: float = NEARBY_TOLERANCE_PX) -> bool:
    """A product dragged along its own shelf: still in its x-range, bottom close to the shelf bottom"""
    return (within_horizontal_bounds(item, shelf)
            and abs(item.bottom - shelf.bottom) <= tolerance)

def products_on_shelf(shelf: Shelf, items: Iterable[CanvasItem],
                      known_shelf_ids: Optional[Set[str]] = None,
                      matcher=rests_on_shelf) -> List[ProductPlacement]:
    """Products owned by ``shelf``: by reference, else by position"""
    found = []
    for item in items:
        if not isinstance(item, ProductPlacement):
            continue
        has_reference = item.shelf_id is not None and (
            known_shelf_ids is None or item.shelf_id in known_shelf_ids)
        if has_reference:
            if item.shelf_id == shelf.item_id:
                found.append(item)
        elif matcher(item, shelf):
            found.append(item)
    return found

def find_supporting_shelf(item: ShelfItem, shelves: Iterable[Shelf]) -> Optional[Shelf]:
    """First shelf the item sits on, if any"""
    return next((shelf for shelf in shelves if positioned_on_shelf(item, shelf)), None)
