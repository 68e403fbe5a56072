from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from planogram_layout.utils.constants import (
    DEFAULT_RACK_DEPTH_MM, DEFAULT_RACK_HEIGHT_MM, DEFAULT_RACK_LEVELS,
    DEFAULT_RACK_NAME, DEFAULT_RACK_WIDTH_MM
)
from .shelf import ItemType, Shelf

class RackType(Enum):
    GONDOLA = "gondola"
    WALL = "wall"
    ENDCAP = "endcap"
    ISLAND = "island"

@dataclass
class RackSystem:
    """Multi-level fixture; position in pixels, dimensions in mm"""
    rack_id: str
    name: str = DEFAULT_RACK_NAME
    rack_type: RackType = RackType.GONDOLA
    x: float = 0.0
    y: float = 0.0
    width: float = DEFAULT_RACK_WIDTH_MM
    height: float = DEFAULT_RACK_HEIGHT_MM
    depth: float = DEFAULT_RACK_DEPTH_MM
    levels: int = DEFAULT_RACK_LEVELS

    # One shelf per level, ordered by level ascending
    shelves: List[Shelf] = field(default_factory=list)

    def __post_init__(self):
        if isinstance(self.rack_type, str):
            self.rack_type = RackType(self.rack_type)

    @property
    def item_type(self) -> ItemType:
        return ItemType.RACK

    @property
    def shelf_ids(self) -> List[str]:
        return [shelf.item_id for shelf in self.shelves]

    @property
    def top_shelf(self) -> Optional[Shelf]:
        return self.shelves[-1] if self.shelves else None

    def get_shelf(self, shelf_id: str) -> Optional[Shelf]:
        return next((s for s in self.shelves if s.item_id == shelf_id), None)

    def shelf_at_level(self, level: int) -> Optional[Shelf]:
        return next((s for s in self.shelves if s.level == level), None)

    def width_px(self, pixels_per_mm: float) -> float:
        return self.width * pixels_per_mm

    def height_px(self, pixels_per_mm: float) -> float:
        return self.height * pixels_per_mm

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.rack_id,
            'name': self.name,
            'type': self.rack_type.value,
            'x': self.x,
            'y': self.y,
            'width': self.width,
            'height': self.height,
            'depth': self.depth,
            'levels': self.levels,
            'shelves': [shelf.to_dict() for shelf in self.shelves]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RackSystem':
        rack = cls(
            rack_id=str(data['id']),
            name=data.get('name') or DEFAULT_RACK_NAME,
            rack_type=RackType(data.get('type') or 'gondola'),
            x=float(data.get('x', 0)),
            y=float(data.get('y', 0)),
            width=float(data['width']),
            height=float(data['height']),
            depth=float(data['depth']),
            levels=int(data['levels'])
        )
        shelves = []
        for index, shelf_data in enumerate(data.get('shelves', [])):
            shelf_data = dict(shelf_data)
            shelf_data.setdefault('rackId', rack.rack_id)
            shelf_data.setdefault('level', index)
            # Shelves regenerated by older level edits carry no top/bottom flags
            shelf_data.setdefault('isTopShelf', shelf_data['level'] == rack.levels - 1)
            shelf_data.setdefault('isBottomShelf', shelf_data['level'] == 0)
            shelves.append(Shelf.from_dict(shelf_data, default_depth=rack.depth))
        rack.shelves = sorted(shelves, key=lambda s: s.level)
        return rack
