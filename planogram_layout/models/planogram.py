from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from planogram_layout.utils.constants import (
    DEFAULT_CANVAS_HEIGHT, DEFAULT_CANVAS_WIDTH, DEFAULT_GRID_SIZE_MM,
    DEFAULT_PIXELS_PER_MM, DEFAULT_SHELF_DEPTH_MM
)
from planogram_layout.utils.error_handler import ConfigurationError
from .rack import RackSystem
from .shelf import CanvasItem, ProductPlacement, Shelf, item_from_dict

# Persisted (camelCase) key for each settings field
_SETTINGS_KEYS = {
    'grid_size_mm': 'gridSizeMm',
    'pixels_per_mm': 'pixelsPerMm',
    'show_grid': 'showGrid',
    'snap_to_grid': 'snapToGrid',
    'canvas_width': 'canvasWidth',
    'canvas_height': 'canvasHeight',
    'show_dimensions': 'showDimensions',
    'show_3d': 'show3D',
    'default_shelf_depth': 'defaultShelfDepth'
}

@dataclass
class PlanogramSettings:
    """Editor settings; pixels_per_mm is the global scale"""
    grid_size_mm: float = DEFAULT_GRID_SIZE_MM
    pixels_per_mm: float = DEFAULT_PIXELS_PER_MM
    show_grid: bool = True
    snap_to_grid: bool = True
    canvas_width: int = DEFAULT_CANVAS_WIDTH
    canvas_height: int = DEFAULT_CANVAS_HEIGHT
    show_dimensions: bool = True
    show_3d: bool = True
    default_shelf_depth: float = DEFAULT_SHELF_DEPTH_MM

    def __post_init__(self):
        self.validate()

    def validate(self):
        if self.pixels_per_mm is None or self.pixels_per_mm <= 0:
            raise ConfigurationError(f"pixelsPerMm must be positive, got {self.pixels_per_mm}")
        if self.grid_size_mm is None or self.grid_size_mm <= 0:
            raise ConfigurationError(f"gridSizeMm must be positive, got {self.grid_size_mm}")
        if self.default_shelf_depth <= 0:
            raise ConfigurationError(f"defaultShelfDepth must be positive, got {self.default_shelf_depth}")

    def to_dict(self) -> Dict[str, Any]:
        return {_SETTINGS_KEYS[name]: value for name, value in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'PlanogramSettings':
        """Build settings, keeping defaults for missing keys"""
        kwargs = {}
        for name, key in _SETTINGS_KEYS.items():
            if data and key in data and data[key] is not None:
                kwargs[name] = data[key]
            elif data and name in data and data[name] is not None:
                kwargs[name] = data[name]
        return cls(**kwargs)

@dataclass
class Planogram:
    """Persisted aggregate: standalone items, racks and settings"""
    name: str
    items: List[CanvasItem] = field(default_factory=list)
    racks: List[RackSystem] = field(default_factory=list)
    settings: PlanogramSettings = field(default_factory=PlanogramSettings)
    category: Optional[str] = None

    planogram_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def touch(self):
        """Stamp creation/update times"""
        now = datetime.now().isoformat()
        if not self.created_at:
            self.created_at = now
        self.updated_at = now

    # Lookups

    def find_item(self, item_id: str) -> Optional[CanvasItem]:
        return next((item for item in self.items if item.item_id == item_id), None)

    def find_rack(self, rack_id: str) -> Optional[RackSystem]:
        return next((rack for rack in self.racks if rack.rack_id == rack_id), None)

    def find_shelf(self, shelf_id: str) -> Tuple[Optional[Shelf], Optional[RackSystem]]:
        """Find a shelf among standalone items first, then rack shelves"""
        for item in self.items:
            if isinstance(item, Shelf) and item.item_id == shelf_id:
                return item, None
        for rack in self.racks:
            shelf = rack.get_shelf(shelf_id)
            if shelf is not None:
                return shelf, rack
        return None, None

    @property
    def standalone_shelves(self) -> List[Shelf]:
        return [item for item in self.items if isinstance(item, Shelf)]

    @property
    def all_shelves(self) -> List[Shelf]:
        shelves = list(self.standalone_shelves)
        for rack in self.racks:
            shelves.extend(rack.shelves)
        return shelves

    @property
    def products(self) -> List[ProductPlacement]:
        return [item for item in self.items if isinstance(item, ProductPlacement)]

    # Serialization

    def to_payload(self) -> Dict[str, Any]:
        """The opaque blob handed to the persistence layer"""
        return {
            'items': [item.to_dict() for item in self.items],
            'racks': [rack.to_dict() for rack in self.racks],
            'settings': self.settings.to_dict()
        }

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.planogram_id,
            'name': self.name,
            'category': self.category,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at
        }
        data.update(self.to_payload())
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Planogram':
        """Load a planogram; the payload may be flat or nested under 'data'"""
        payload = data.get('data') or data
        settings = PlanogramSettings.from_dict(payload.get('settings'))
        items = [item_from_dict(item, default_depth=settings.default_shelf_depth)
                 for item in payload.get('items') or []]
        racks = [RackSystem.from_dict(rack) for rack in payload.get('racks') or []]
        return cls(
            planogram_id=data.get('id'),
            name=data.get('name') or payload.get('name') or '',
            category=data.get('category') or payload.get('category'),
            items=items,
            racks=racks,
            settings=settings,
            created_at=data.get('createdAt'),
            updated_at=data.get('updatedAt')
        )
