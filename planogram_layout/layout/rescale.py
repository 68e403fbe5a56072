"""Recompute pixel geometry after a change of the global scale.

Millimeter values are the source of truth: rack shelves and products are
rebuilt from their mm dimensions at the new scale, never by multiplying old
pixel sizes, so repeated rescales do not accumulate rounding error.
Positions are translated by ``new_scale / old_scale``.
"""
from contextlib import contextmanager
from copy import deepcopy
from dataclasses import replace
from typing import Callable, List, Optional, Tuple

from planogram_layout.models.planogram import Planogram
from planogram_layout.models.rack import RackSystem
from planogram_layout.models.shelf import CanvasItem, Fixture, ProductPlacement, Shelf
from planogram_layout.utils.error_handler import ConfigurationError, ConsistencyWarning
from planogram_layout.utils.logger import get_logger
from planogram_layout.utils.monitor import monitor
from .geometry import find_supporting_shelf
from .rack_lifecycle import shelf_geometry
from .results import LayoutResult
from .units import pixels_to_mm

def _rescale_rack(rack: RackSystem, ratio: float, new_scale: float) -> RackSystem:
    new_rack = replace(rack, x=rack.x * ratio, y=rack.y * ratio)
    shelves = []
    for shelf in rack.shelves:
        level = shelf.level if shelf.level is not None else 0
        x, y, width, height = shelf_geometry(new_rack, level, new_scale)
        shelves.append(replace(shelf, x=x, y=y, width=width, height=height, depth=rack.depth))
    new_rack.shelves = shelves
    return new_rack

def _rescale_standalone(item, ratio: float, old_scale: float, new_scale: float):
    """Shelves and fixtures keep their size in mm (rounded at the old scale)"""
    width_mm = pixels_to_mm(item.width, old_scale)
    height_mm = pixels_to_mm(item.height, old_scale)
    return replace(
        item,
        x=item.x * ratio,
        y=item.y * ratio,
        width=width_mm * new_scale,
        height=height_mm * new_scale
    )

def _rescale_product(item: ProductPlacement, ratio: float, new_scale: float) -> ProductPlacement:
    return replace(
        item,
        x=item.x * ratio,
        y=item.y * ratio,
        width=item.product.width * new_scale,
        height=item.product.height * new_scale
    )

@monitor.time_it
def rescale_planogram(planogram: Planogram, new_scale: float,
                      old_scale: Optional[float] = None) -> Tuple[Planogram, LayoutResult]:
    """Return a copy of ``planogram`` laid out at ``new_scale`` px/mm.

    The input is left untouched. Rack shelves found among the standalone
    items are dropped and product shelf references that no longer resolve
    are reassigned by position; both are reported as warnings.
    """
    if new_scale is None or new_scale <= 0:
        raise ConfigurationError(f"pixelsPerMm must be positive, got {new_scale}")
    old_scale = old_scale if old_scale is not None else planogram.settings.pixels_per_mm
    if old_scale is None or old_scale <= 0:
        raise ConfigurationError(f"pixelsPerMm must be positive, got {old_scale}")

    if new_scale == old_scale:
        return deepcopy(planogram), LayoutResult.noop(f"Scale unchanged ({new_scale} px/mm)")

    logger = get_logger()
    ratio = new_scale / old_scale
    result = LayoutResult.ok(f"Rescaled from {old_scale} to {new_scale} px/mm")

    racks = [_rescale_rack(rack, ratio, new_scale) for rack in planogram.racks]
    rack_shelf_ids = {shelf_id for rack in planogram.racks for shelf_id in rack.shelf_ids}

    items: List[CanvasItem] = []
    for item in planogram.items:
        if isinstance(item, Shelf) and (item.rack_id is not None or item.item_id in rack_shelf_ids):
            result.warnings.append(ConsistencyWarning(
                f"Rack shelf {item.item_id} found among standalone items, dropped", item.item_id))
            result.removed_ids.append(item.item_id)
            continue
        if isinstance(item, ProductPlacement):
            items.append(_rescale_product(item, ratio, new_scale))
        elif isinstance(item, (Shelf, Fixture)):
            items.append(_rescale_standalone(item, ratio, old_scale, new_scale))
        else:
            items.append(item)

    # Products must point at a shelf that still exists
    shelves = [item for item in items if isinstance(item, Shelf)]
    for rack in racks:
        shelves.extend(rack.shelves)
    shelves_by_id = {shelf.item_id: shelf for shelf in shelves}

    for index, item in enumerate(items):
        if not isinstance(item, ProductPlacement):
            continue
        if item.shelf_id is not None and item.shelf_id in shelves_by_id:
            continue
        support = find_supporting_shelf(item, shelves)
        if support is not None:
            if item.shelf_id is not None:
                result.warnings.append(ConsistencyWarning(
                    f"Product {item.item_id} referenced missing shelf {item.shelf_id}, "
                    f"reassigned to {support.item_id}", item.item_id))
            items[index] = replace(item, shelf_id=support.item_id, rack_id=support.rack_id)
        elif item.shelf_id is not None:
            result.warnings.append(ConsistencyWarning(
                f"Product {item.item_id} referenced missing shelf {item.shelf_id} "
                f"and rests on no shelf", item.item_id))
            items[index] = replace(item, shelf_id=None, rack_id=None)
        else:
            result.warnings.append(ConsistencyWarning(
                f"Product {item.item_id} is outside any shelf", item.item_id))

    for warning in result.warnings:
        logger.warning(str(warning))

    rescaled = replace(
        planogram,
        items=items,
        racks=racks,
        settings=replace(planogram.settings, pixels_per_mm=new_scale)
    )
    result.positions = {
        item.item_id: (item.x, item.y) for item in items if isinstance(item, ProductPlacement)
    }
    logger.debug(
        f"Rescale x{ratio:.3f}: {len(racks)} racks, {len(items)} items, "
        f"{len(result.warnings)} warnings")
    return rescaled, result

class RescaleEngine:
    """Runs rescales behind an in-progress latch.

    A commit callback that changes the scale again while a rescale is being
    applied gets a no-op instead of re-entering.
    """

    def __init__(self):
        self._in_progress = False
        self.logger = get_logger()

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    @contextmanager
    def latched(self):
        self._in_progress = True
        try:
            yield
        finally:
            self._in_progress = False

    def rescale(self, planogram: Planogram, new_scale: float,
                commit: Optional[Callable[[Planogram, LayoutResult], None]] = None
                ) -> Tuple[Planogram, LayoutResult]:
        if self._in_progress:
            self.logger.debug("Rescale requested while one is in progress, ignored")
            return planogram, LayoutResult.noop("Rescale already in progress")

        with self.latched():
            rescaled, result = rescale_planogram(planogram, new_scale)
            if commit is not None and not result.no_op:
                commit(rescaled, result)
        return rescaled, result
