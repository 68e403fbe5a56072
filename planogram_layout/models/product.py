from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
import uuid

from planogram_layout.utils.constants import DEFAULT_PRODUCT_COLOR, DEFAULT_PRODUCT_SPACING_MM

@dataclass
class Product:
    """Catalog product (dimensions in mm)"""
    name: str
    width: float
    height: float
    depth: float

    # Minimum horizontal gap to neighbours when auto-placed
    spacing: float = DEFAULT_PRODUCT_SPACING_MM

    color: str = DEFAULT_PRODUCT_COLOR
    category: Optional[str] = None
    barcode: Optional[str] = None
    image_url: Optional[str] = None

    product_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def __post_init__(self):
        """Fill generated fields"""
        if not self.product_id:
            self.product_id = uuid.uuid4().hex[:12]

        now = datetime.now().isoformat()
        if not self.created_at:
            self.created_at = now
        if not self.updated_at:
            self.updated_at = self.created_at

        if self.spacing is None:
            self.spacing = DEFAULT_PRODUCT_SPACING_MM

    @property
    def footprint(self) -> float:
        """Front-facing area in mm^2"""
        return self.width * self.height

    def to_dict(self) -> Dict[str, Any]:
        """Convert product to the persisted JSON shape"""
        return {
            'id': self.product_id,
            'name': self.name,
            'width': self.width,
            'height': self.height,
            'depth': self.depth,
            'color': self.color,
            'category': self.category,
            'barcode': self.barcode,
            'imageUrl': self.image_url,
            'spacing': self.spacing,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Product':
        spacing = data.get('spacing')
        return cls(
            product_id=data.get('id'),
            name=str(data.get('name', '')),
            width=float(data['width']),
            height=float(data['height']),
            depth=float(data['depth']),
            color=data.get('color') or DEFAULT_PRODUCT_COLOR,
            category=data.get('category'),
            barcode=data.get('barcode'),
            image_url=data.get('imageUrl'),
            spacing=float(spacing) if spacing is not None else DEFAULT_PRODUCT_SPACING_MM,
            created_at=data.get('createdAt'),
            updated_at=data.get('updatedAt')
        )
