from .product import Product
from .shelf import ItemType, ShelfType, ShelfItem, Shelf, ProductPlacement, Fixture, CanvasItem, item_from_dict
from .rack import RackType, RackSystem
from .planogram import PlanogramSettings, Planogram

__all__ = ['Product', 'ItemType', 'ShelfType', 'ShelfItem', 'Shelf', 'ProductPlacement', 'Fixture',
           'CanvasItem', 'item_from_dict', 'RackType', 'RackSystem', 'PlanogramSettings', 'Planogram']
