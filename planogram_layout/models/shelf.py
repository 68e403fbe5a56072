from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from planogram_layout.utils.constants import (
    DEFAULT_SHELF_DEPTH_MM, DEFAULT_SHELF_MAX_LOAD, SHELF_MAX_LOAD
)
from planogram_layout.utils.error_handler import ValidationError
from .product import Product

class ItemType(Enum):
    SHELF = "shelf"
    PRODUCT = "product"
    HOOK = "hook"
    DIVIDER = "divider"
    RACK = "rack"

class ShelfType(Enum):
    STANDARD = "standard"
    HOOK = "hook"
    BASKET = "basket"
    DIVIDER = "divider"
    SLANTED = "slanted"
    WIRE = "wire"
    BOTTLE = "bottle"
    PEGBOARD = "pegboard"

    @property
    def default_max_load(self) -> float:
        return SHELF_MAX_LOAD.get(self.value, DEFAULT_SHELF_MAX_LOAD)

@dataclass
class ShelfItem:
    """Axis-aligned rectangle on the canvas (pixels, top-left origin)"""
    item_id: str
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def _geometry_dict(self) -> Dict[str, Any]:
        return {
            'id': self.item_id,
            'type': self.item_type.value,
            'x': self.x,
            'y': self.y,
            'width': self.width,
            'height': self.height
        }

@dataclass
class Shelf(ShelfItem):
    """Shelf, either standalone or owned by a rack"""
    depth: float = DEFAULT_SHELF_DEPTH_MM  # mm
    shelf_type: ShelfType = ShelfType.STANDARD
    max_load: Optional[float] = None  # kg, advisory
    resizable: bool = True

    # Rack metadata
    rack_id: Optional[str] = None
    level: Optional[int] = None  # 0 = bottom
    is_top_shelf: bool = False
    is_bottom_shelf: bool = False

    # False for the open top level of a rack
    has_height_limit: bool = True

    def __post_init__(self):
        if isinstance(self.shelf_type, str):
            self.shelf_type = ShelfType(self.shelf_type)
        if self.max_load is None:
            self.max_load = self.shelf_type.default_max_load

    @property
    def item_type(self) -> ItemType:
        return ItemType.SHELF

    @property
    def is_rack_shelf(self) -> bool:
        return self.rack_id is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert shelf to dictionary for export"""
        data = self._geometry_dict()
        data.update({
            'depth': self.depth,
            'shelfType': self.shelf_type.value,
            'maxLoad': self.max_load,
            'resizable': self.resizable,
            'hasHeightLimit': self.has_height_limit
        })
        if self.rack_id is not None:
            data.update({
                'rackId': self.rack_id,
                'level': self.level,
                'isTopShelf': self.is_top_shelf,
                'isBottomShelf': self.is_bottom_shelf
            })
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_depth: float = DEFAULT_SHELF_DEPTH_MM) -> 'Shelf':
        is_top = bool(data.get('isTopShelf', False))
        has_limit = data.get('hasHeightLimit')
        if has_limit is None:
            # Older layouts only flagged the top shelf
            has_limit = not (is_top and data.get('rackId'))
        level = data.get('level')
        return cls(
            item_id=str(data['id']),
            x=float(data['x']),
            y=float(data['y']),
            width=float(data['width']),
            height=float(data['height']),
            depth=float(data.get('depth') or default_depth),
            shelf_type=ShelfType(data.get('shelfType') or 'standard'),
            max_load=data.get('maxLoad'),
            resizable=bool(data.get('resizable', True)),
            rack_id=data.get('rackId'),
            level=int(level) if level is not None else None,
            is_top_shelf=is_top,
            is_bottom_shelf=bool(data.get('isBottomShelf', False)),
            has_height_limit=bool(has_limit)
        )

@dataclass
class ProductPlacement(ShelfItem):
    """A product instance resting on a shelf"""
    product: Product
    shelf_id: Optional[str] = None
    rack_id: Optional[str] = None

    @property
    def item_type(self) -> ItemType:
        return ItemType.PRODUCT

    @property
    def depth(self) -> float:
        return self.product.depth

    def to_dict(self) -> Dict[str, Any]:
        data = self._geometry_dict()
        data.update({
            'depth': self.product.depth,
            'product': self.product.to_dict(),
            'shelfId': self.shelf_id,
            'rackId': self.rack_id
        })
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProductPlacement':
        if not data.get('product'):
            raise ValidationError(f"Product item {data.get('id')} carries no product snapshot")
        return cls(
            item_id=str(data['id']),
            x=float(data['x']),
            y=float(data['y']),
            width=float(data['width']),
            height=float(data['height']),
            product=Product.from_dict(data['product']),
            shelf_id=data.get('shelfId'),
            rack_id=data.get('rackId')
        )

@dataclass
class Fixture(ShelfItem):
    """Hook or divider accessory"""
    kind: ItemType = ItemType.HOOK
    depth: Optional[float] = None

    def __post_init__(self):
        if isinstance(self.kind, str):
            self.kind = ItemType(self.kind)
        if self.kind not in (ItemType.HOOK, ItemType.DIVIDER):
            raise ValidationError(f"Fixture kind must be hook or divider, got {self.kind.value}")

    @property
    def item_type(self) -> ItemType:
        return self.kind

    def to_dict(self) -> Dict[str, Any]:
        data = self._geometry_dict()
        data['depth'] = self.depth
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Fixture':
        depth = data.get('depth')
        return cls(
            item_id=str(data['id']),
            x=float(data['x']),
            y=float(data['y']),
            width=float(data['width']),
            height=float(data['height']),
            kind=ItemType(data['type']),
            depth=float(depth) if depth is not None else None
        )

CanvasItem = Union[Shelf, ProductPlacement, Fixture]

def item_from_dict(data: Dict[str, Any], default_depth: float = DEFAULT_SHELF_DEPTH_MM) -> CanvasItem:
    """Build the right item class from its type discriminator"""
    try:
        item_type = ItemType(data.get('type'))
    except ValueError:
        raise ValidationError(f"Unknown item type: {data.get('type')!r}")

    if item_type == ItemType.SHELF:
        return Shelf.from_dict(data, default_depth)
    if item_type == ItemType.PRODUCT:
        return ProductPlacement.from_dict(data)
    if item_type in (ItemType.HOOK, ItemType.DIVIDER):
        return Fixture.from_dict(data)
    raise ValidationError("Racks are stored in the racks collection, not as items")
