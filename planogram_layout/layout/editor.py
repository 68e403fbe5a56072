from copy import deepcopy
from dataclasses import fields, replace
from functools import wraps
from typing import Callable, List, Optional, Set
import uuid

from planogram_layout.models.planogram import Planogram, PlanogramSettings
from planogram_layout.models.product import Product
from planogram_layout.models.rack import RackType
from planogram_layout.models.shelf import CanvasItem, Fixture, ItemType, ProductPlacement, Shelf, ShelfType
from planogram_layout.utils.constants import (
    DEFAULT_RACK_DEPTH_MM, DEFAULT_RACK_HEIGHT_MM, DEFAULT_RACK_LEVELS, DEFAULT_RACK_NAME,
    DEFAULT_RACK_WIDTH_MM, DEFAULT_SHELF_HEIGHT_MM, DEFAULT_SHELF_ORIGIN_PX,
    DEFAULT_SHELF_WIDTH_MM, FIXTURE_SIZES_MM
)
from planogram_layout.utils.error_handler import PlanogramError, ValidationError
from planogram_layout.utils.logger import get_logger
from planogram_layout.utils.monitor import monitor
from .distribution import DistributionEngine
from .geometry import find_supporting_shelf, near_shelf, positioned_on_shelf, products_on_shelf, stays_on_shelf
from .placement import PlacementEngine
from .rack_lifecycle import RackManager
from .rescale import RescaleEngine
from .results import LayoutResult, PlacementResult
from .units import UnitConverter

Listener = Callable[[Planogram], None]

def _as_result(func):
    """Turn expected layout errors into a failed LayoutResult"""
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except PlanogramError as e:
            self.logger.warning(f"{func.__name__} rejected: {e}")
            return LayoutResult.fail(e)
    return wrapper

def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"

class PlanogramEditor:
    """Single in-memory planogram and the edits allowed on it.

    Every edit builds new item/rack lists and swaps them in one commit, so a
    failed operation leaves the model untouched and listeners only ever see
    complete states. Listeners receive deep copies.
    """

    def __init__(self, planogram: Optional[Planogram] = None, settings: Optional[PlanogramSettings] = None):
        self.logger = get_logger()
        self._planogram = deepcopy(planogram) if planogram is not None else Planogram(
            name="Untitled", settings=settings or PlanogramSettings())
        self._listeners: List[Listener] = []
        self.rescaler = RescaleEngine()

    # State

    @property
    def planogram(self) -> Planogram:
        return self._planogram

    @property
    def settings(self) -> PlanogramSettings:
        return self._planogram.settings

    @property
    def converter(self) -> UnitConverter:
        return UnitConverter(self._planogram.settings)

    def snapshot(self) -> Planogram:
        return deepcopy(self._planogram)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _known_shelf_ids(self, planogram: Optional[Planogram] = None) -> Set[str]:
        planogram = planogram or self._planogram
        return {shelf.item_id for shelf in planogram.all_shelves}

    def _commit(self, planogram: Planogram, message: str = ""):
        self._planogram = planogram
        if message:
            self.logger.info(message)
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    def _with(self, items=None, racks=None, settings=None) -> Planogram:
        return replace(
            self._planogram,
            items=items if items is not None else list(self._planogram.items),
            racks=racks if racks is not None else list(self._planogram.racks),
            settings=settings if settings is not None else self._planogram.settings
        )

    def _require_shelf(self, shelf_id: Optional[str]):
        if not shelf_id:
            raise ValidationError("Select a shelf first")
        shelf, rack = self._planogram.find_shelf(shelf_id)
        if shelf is None:
            raise ValidationError(f"Shelf {shelf_id} not found")
        return shelf, rack

    def _require_rack(self, rack_id: str):
        rack = self._planogram.find_rack(rack_id)
        if rack is None:
            raise ValidationError(f"Rack {rack_id} not found")
        return rack

    def products_on_shelf(self, shelf_id: str) -> List[ProductPlacement]:
        shelf, _ = self._require_shelf(shelf_id)
        return products_on_shelf(shelf, self._planogram.items, self._known_shelf_ids())

    # Lifecycle

    def load(self, planogram: Planogram):
        """Adopt a saved planogram, settings included, without rescaling it"""
        self._commit(deepcopy(planogram), f"Loaded planogram {planogram.name!r}")

    def new_planogram(self, name: str = "Untitled", settings: Optional[PlanogramSettings] = None):
        self._commit(Planogram(name=name, settings=settings or PlanogramSettings()),
                     f"New planogram {name!r}")

    # Standalone shelves and fixtures

    @_as_result
    def add_shelf(self, shelf_type=ShelfType.STANDARD) -> LayoutResult:
        conv = self.converter
        shelf = Shelf(
            item_id=_new_id("shelf"),
            x=conv.snap_to_grid(DEFAULT_SHELF_ORIGIN_PX),
            y=conv.snap_to_grid(DEFAULT_SHELF_ORIGIN_PX),
            width=conv.mm_to_pixels(DEFAULT_SHELF_WIDTH_MM),
            height=conv.mm_to_pixels(DEFAULT_SHELF_HEIGHT_MM),
            depth=self.settings.default_shelf_depth,
            shelf_type=ShelfType(shelf_type) if isinstance(shelf_type, str) else shelf_type
        )
        self._commit(self._with(items=self._planogram.items + [shelf]),
                     f"Added {shelf.shelf_type.value} shelf {shelf.item_id}")
        return LayoutResult.ok("Shelf added", item_id=shelf.item_id,
                               positions={shelf.item_id: (shelf.x, shelf.y)})

    @_as_result
    def add_fixture(self, kind=ItemType.HOOK) -> LayoutResult:
        kind = ItemType(kind) if isinstance(kind, str) else kind
        if kind.value not in FIXTURE_SIZES_MM:
            raise ValidationError(f"Fixture kind must be hook or divider, got {kind.value}")
        width_mm, height_mm = FIXTURE_SIZES_MM[kind.value]
        conv = self.converter
        fixture = Fixture(
            item_id=_new_id(kind.value),
            x=conv.snap_to_grid(DEFAULT_SHELF_ORIGIN_PX),
            y=conv.snap_to_grid(DEFAULT_SHELF_ORIGIN_PX),
            width=conv.mm_to_pixels(width_mm),
            height=conv.mm_to_pixels(height_mm),
            kind=kind
        )
        self._commit(self._with(items=self._planogram.items + [fixture]),
                     f"Added {kind.value} {fixture.item_id}")
        return LayoutResult.ok(f"{kind.value.capitalize()} added", item_id=fixture.item_id,
                               positions={fixture.item_id: (fixture.x, fixture.y)})

    @_as_result
    def resize_shelf(self, shelf_id: str, width_mm: Optional[float] = None,
                     height_mm: Optional[float] = None, depth_mm: Optional[float] = None) -> LayoutResult:
        """Resize a standalone shelf and drop its products onto the new bottom edge"""
        shelf, rack = self._require_shelf(shelf_id)
        if rack is not None:
            raise ValidationError(f"Shelf {shelf_id} belongs to rack {rack.rack_id}; resize the rack instead")
        if not shelf.resizable:
            raise ValidationError(f"Shelf {shelf_id} is not resizable")
        for name, value in (('width', width_mm), ('height', height_mm), ('depth', depth_mm)):
            if value is not None and value <= 0:
                raise ValidationError(f"Shelf {name} must be positive, got {value}")

        conv = self.converter
        resized = replace(
            shelf,
            width=conv.mm_to_pixels(width_mm) if width_mm is not None else shelf.width,
            height=conv.mm_to_pixels(height_mm) if height_mm is not None else shelf.height,
            depth=depth_mm if depth_mm is not None else shelf.depth
        )
        on_shelf = products_on_shelf(shelf, self._planogram.items, self._known_shelf_ids(), matcher=near_shelf)
        aligned = DistributionEngine(conv).align_to_bottom(resized, on_shelf)

        items = [resized if item.item_id == shelf_id else item for item in self._planogram.items]
        items = self._apply_positions(items, aligned.positions)
        self._commit(self._with(items=items), f"Resized shelf {shelf_id}")
        return LayoutResult.ok(f"Shelf {shelf_id} resized", positions=aligned.positions)

    @_as_result
    def change_shelf_type(self, shelf_id: str, shelf_type, max_load: Optional[float] = None) -> LayoutResult:
        shelf, rack = self._require_shelf(shelf_id)
        shelf_type = ShelfType(shelf_type) if isinstance(shelf_type, str) else shelf_type
        changed = replace(shelf, shelf_type=shelf_type,
                          max_load=max_load if max_load is not None else shelf_type.default_max_load)

        if rack is None:
            planogram = self._with(items=[changed if item.item_id == shelf_id else item
                                          for item in self._planogram.items])
        else:
            new_rack = replace(rack, shelves=[changed if s.item_id == shelf_id else s for s in rack.shelves])
            planogram = self._with(racks=[new_rack if r.rack_id == rack.rack_id else r
                                          for r in self._planogram.racks])
        self._commit(planogram, f"Shelf {shelf_id} is now {shelf_type.value}")
        return LayoutResult.ok(f"Shelf type changed to {shelf_type.value}")

    # Products

    @_as_result
    def place_product(self, shelf_id: Optional[str], product: Product) -> PlacementResult:
        """Place a copy of ``product`` in the first free slot of the shelf"""
        shelf, rack = self._require_shelf(shelf_id)
        result = PlacementEngine(self.converter).place_product(
            shelf, product, self._planogram.items, self._known_shelf_ids())
        if not result:
            self.logger.info(f"Placement of {product.name} on {shelf_id} failed: {result.message}")
            return result

        placement = ProductPlacement(
            item_id=_new_id("product"),
            x=result.x,
            y=result.y,
            width=result.width,
            height=result.height,
            product=deepcopy(product),
            shelf_id=shelf.item_id,
            rack_id=rack.rack_id if rack is not None else None
        )
        self._commit(self._with(items=self._planogram.items + [placement]),
                     f"Placed {product.name} on {shelf.item_id} at x={placement.x:g}")
        result.item_id = placement.item_id
        result.positions = {placement.item_id: (placement.x, placement.y)}
        return result

    @monitor.time_it
    def place_products(self, shelf_id: str, products: List[Product]) -> List[LayoutResult]:
        """Place products one after another; a failed one does not stop the rest"""
        return [self.place_product(shelf_id, product) for product in products]

    @_as_result
    def distribute_evenly(self, shelf_id: Optional[str]) -> LayoutResult:
        shelf, _ = self._require_shelf(shelf_id)
        on_shelf = products_on_shelf(shelf, self._planogram.items, self._known_shelf_ids(), matcher=near_shelf)
        result = DistributionEngine(self.converter).distribute_evenly(shelf, on_shelf)
        if result.success and not result.no_op:
            self._commit(self._with(items=self._apply_positions(self._planogram.items, result.positions)),
                         f"Distributed {len(result.positions)} products on {shelf_id}")
        return result

    @_as_result
    def align_products(self, shelf_id: Optional[str]) -> LayoutResult:
        shelf, _ = self._require_shelf(shelf_id)
        on_shelf = products_on_shelf(shelf, self._planogram.items, self._known_shelf_ids(), matcher=near_shelf)
        result = DistributionEngine(self.converter).align_to_bottom(shelf, on_shelf)
        if result.success and not result.no_op:
            self._commit(self._with(items=self._apply_positions(self._planogram.items, result.positions)),
                         f"Aligned {len(result.positions)} products on {shelf_id}")
        return result

    @staticmethod
    def _apply_positions(items: List[CanvasItem], positions) -> List[CanvasItem]:
        return [replace(item, x=positions[item.item_id][0], y=positions[item.item_id][1])
                if item.item_id in positions else item
                for item in items]

    # Racks

    @_as_result
    def add_rack(self, rack_type=RackType.GONDOLA, name: str = DEFAULT_RACK_NAME,
                 width: float = DEFAULT_RACK_WIDTH_MM, height: float = DEFAULT_RACK_HEIGHT_MM,
                 depth: float = DEFAULT_RACK_DEPTH_MM, levels: int = DEFAULT_RACK_LEVELS) -> LayoutResult:
        rack = RackManager(self.converter).create_rack(
            rack_type, existing_count=len(self._planogram.racks), name=name,
            width=width, height=height, depth=depth, levels=levels)
        self._commit(self._with(racks=self._planogram.racks + [rack]),
                     f"Added rack {rack.rack_id} ({rack.levels} levels)")
        return LayoutResult.ok(f"Rack {rack.name} added", item_id=rack.rack_id,
                               positions={rack.rack_id: (rack.x, rack.y)})

    def _replace_rack(self, new_rack, items, message: str):
        racks = [new_rack if r.rack_id == new_rack.rack_id else r for r in self._planogram.racks]
        self._commit(self._with(items=items, racks=racks), message)

    @_as_result
    def resize_rack_levels(self, rack_id: str, levels: int) -> LayoutResult:
        rack = self._require_rack(rack_id)
        new_rack, items, result = RackManager(self.converter).resize_levels(
            rack, levels, self._planogram.items, self._known_shelf_ids())
        self._replace_rack(new_rack, items, result.message)
        return result

    @_as_result
    def resize_rack_dimensions(self, rack_id: str, width: Optional[float] = None,
                               height: Optional[float] = None, depth: Optional[float] = None) -> LayoutResult:
        rack = self._require_rack(rack_id)
        new_rack, items, result = RackManager(self.converter).resize_dimensions(
            rack, self._planogram.items, width=width, height=height, depth=depth,
            known_shelf_ids=self._known_shelf_ids())
        self._replace_rack(new_rack, items, result.message)
        return result

    @_as_result
    def move_rack(self, rack_id: str, dx: float, dy: float) -> LayoutResult:
        rack = self._require_rack(rack_id)
        new_rack, items, result = RackManager(self.converter).move_rack(rack, dx, dy, self._planogram.items)
        self._replace_rack(new_rack, items, result.message)
        return result

    @_as_result
    def delete_rack(self, rack_id: str) -> LayoutResult:
        rack = self._require_rack(rack_id)
        items, result = RackManager(self.converter).delete_rack(
            rack, self._planogram.items, self._known_shelf_ids())
        racks = [r for r in self._planogram.racks if r.rack_id != rack_id]
        self._commit(self._with(items=items, racks=racks), result.message)
        return result

    # Shelves and items

    @_as_result
    def delete_shelf(self, shelf_id: str) -> LayoutResult:
        """Delete a shelf with the products on it; a rack keeps its other shelves as they are"""
        shelf, rack = self._require_shelf(shelf_id)
        if rack is not None:
            new_rack, items, result = RackManager(self.converter).delete_rack_shelf(
                rack, shelf_id, self._planogram.items, self._known_shelf_ids())
            self._replace_rack(new_rack, items, result.message)
            return result

        doomed = {item.item_id for item in products_on_shelf(
            shelf, self._planogram.items, self._known_shelf_ids(), matcher=positioned_on_shelf)}
        doomed.add(shelf_id)
        removed = [item.item_id for item in self._planogram.items if item.item_id in doomed]
        items = [item for item in self._planogram.items if item.item_id not in doomed]
        self._commit(self._with(items=items), f"Deleted shelf {shelf_id} and {len(removed) - 1} products")
        return LayoutResult.ok(f"Shelf {shelf_id} deleted", removed_ids=removed)

    @_as_result
    def delete_item(self, item_id: str) -> LayoutResult:
        if self._planogram.find_rack(item_id) is not None:
            return self.delete_rack(item_id)
        shelf, _ = self._planogram.find_shelf(item_id)
        if shelf is not None:
            return self.delete_shelf(item_id)
        if self._planogram.find_item(item_id) is None:
            raise ValidationError(f"Item {item_id} not found")

        items = [item for item in self._planogram.items if item.item_id != item_id]
        self._commit(self._with(items=items), f"Deleted item {item_id}")
        return LayoutResult.ok(f"Item {item_id} deleted", removed_ids=[item_id])

    @_as_result
    def move_item(self, item_id: str, x: float, y: float) -> LayoutResult:
        """Move a standalone item to a snapped position.

        A shelf carries its products along. A product keeps its shelf while it
        stays on it, otherwise it is re-attached to the shelf it lands on, and
        its bottom edge is dropped onto that shelf's bottom.
        """
        item = self._planogram.find_item(item_id)
        if item is None:
            _, rack = self._planogram.find_shelf(item_id)
            if rack is not None:
                raise ValidationError(f"Shelf {item_id} belongs to rack {rack.rack_id}; move the rack instead")
            raise ValidationError(f"Item {item_id} not found")

        conv = self.converter
        if isinstance(item, ProductPlacement):
            # The shelf decides a product's y
            return self._move_product(item, conv.snap_to_grid(x), y)

        x, y = conv.snap_to_grid(x), conv.snap_to_grid(y)
        dx, dy = x - item.x, y - item.y

        positions = {item_id: (x, y)}
        if isinstance(item, Shelf):
            for product in products_on_shelf(item, self._planogram.items, self._known_shelf_ids()):
                positions[product.item_id] = (product.x + dx, product.y + dy)
        items = self._apply_positions(self._planogram.items, positions)

        self._commit(self._with(items=items), f"Moved {item_id} to ({x:g}, {y:g})")
        return LayoutResult.ok(f"Item {item_id} moved", positions=positions)

    def _move_product(self, item: ProductPlacement, x: float, y: float) -> LayoutResult:
        moved = replace(item, x=x, y=y)

        current = None
        if item.shelf_id:
            current, _ = self._planogram.find_shelf(item.shelf_id)
        if current is not None and stays_on_shelf(moved, current):
            support = current
        else:
            support = find_supporting_shelf(moved, self._planogram.all_shelves)

        if support is not None:
            moved = replace(moved, y=support.bottom - moved.height,
                            shelf_id=support.item_id, rack_id=support.rack_id)
        else:
            moved = replace(moved, shelf_id=None, rack_id=None)

        items = [moved if i.item_id == item.item_id else i for i in self._planogram.items]
        self._commit(self._with(items=items), f"Moved {item.item_id} to ({moved.x:g}, {moved.y:g})")
        return LayoutResult.ok(f"Item {item.item_id} moved", item_id=item.item_id,
                               positions={item.item_id: (moved.x, moved.y)})

    # Settings

    @_as_result
    def update_settings(self, **changes) -> LayoutResult:
        """Change settings; a new pixels_per_mm rescales the whole layout"""
        known = {f.name for f in fields(PlanogramSettings)}
        unknown = set(changes) - known
        if unknown:
            raise ValidationError(f"Unknown settings: {', '.join(sorted(unknown))}")

        new_scale = changes.pop('pixels_per_mm', None)
        staged = self._with(settings=replace(self.settings, **changes))
        if new_scale is not None and new_scale != staged.settings.pixels_per_mm:
            return self._rescale(staged, new_scale)

        self._commit(staged, "Settings updated")
        return LayoutResult.ok("Settings updated")

    @_as_result
    def rescale(self, new_pixels_per_mm: float) -> LayoutResult:
        return self._rescale(self._planogram, new_pixels_per_mm)

    def _rescale(self, planogram: Planogram, new_scale: float) -> LayoutResult:
        # Listeners are notified while the latch is held
        _, result = self.rescaler.rescale(
            planogram, new_scale, commit=lambda rescaled, res: self._commit(rescaled, res.message))
        return result
