import json
from abc import ABC, abstractmethod
from copy import deepcopy
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional
import uuid

from planogram_layout.models.planogram import Planogram
from planogram_layout.models.product import Product
from planogram_layout.utils.error_handler import DataLoadError, PlanogramError, ValidationError, handle_errors
from planogram_layout.utils.logger import get_logger

class PlanogramRepository(ABC):
    """Key/value store of planograms keyed by an opaque string id"""

    @abstractmethod
    def load(self, planogram_id: str) -> Planogram:
        pass

    @abstractmethod
    def save(self, planogram: Planogram) -> Planogram:
        """Create (assigning an id) or replace the whole planogram"""
        pass

    @abstractmethod
    def delete(self, planogram_id: str) -> bool:
        pass

    @abstractmethod
    def list_planograms(self) -> List[Planogram]:
        pass

    @staticmethod
    def _stamp(planogram: Planogram) -> Planogram:
        stamped = deepcopy(planogram)
        if not stamped.planogram_id:
            stamped.planogram_id = uuid.uuid4().hex
        stamped.touch()
        return stamped

class InMemoryPlanogramRepository(PlanogramRepository):

    def __init__(self):
        self._records: Dict[str, Dict] = {}
        self.logger = get_logger()

    def load(self, planogram_id: str) -> Planogram:
        if planogram_id not in self._records:
            raise ValidationError(f"Planogram {planogram_id} not found")
        return Planogram.from_dict(self._records[planogram_id])

    def save(self, planogram: Planogram) -> Planogram:
        stamped = self._stamp(planogram)
        self._records[stamped.planogram_id] = _record(stamped)
        self.logger.debug(f"Saved planogram {stamped.planogram_id} in memory")
        return stamped

    def delete(self, planogram_id: str) -> bool:
        return self._records.pop(planogram_id, None) is not None

    def list_planograms(self) -> List[Planogram]:
        return [Planogram.from_dict(record) for record in self._records.values()]

def _record(planogram: Planogram) -> Dict:
    """Stored shape: metadata plus the layout as an opaque 'data' blob"""
    return {
        'id': planogram.planogram_id,
        'name': planogram.name,
        'category': planogram.category,
        'data': planogram.to_payload(),
        'createdAt': planogram.created_at,
        'updatedAt': planogram.updated_at
    }

class JsonFilePlanogramRepository(PlanogramRepository):
    """One JSON file per planogram in a directory"""

    def __init__(self, directory: str = "planograms"):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.logger = get_logger()

    def _path(self, planogram_id: str) -> Path:
        return self.directory / f"{planogram_id}.json"

    @handle_errors()
    def load(self, planogram_id: str) -> Planogram:
        path = self._path(planogram_id)
        if not path.exists():
            raise ValidationError(f"Planogram {planogram_id} not found")
        try:
            with open(path, 'r') as f:
                record = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise DataLoadError(f"Cannot read planogram file {path}: {e}") from e
        return Planogram.from_dict(record)

    @handle_errors()
    def save(self, planogram: Planogram) -> Planogram:
        stamped = self._stamp(planogram)
        path = self._path(stamped.planogram_id)
        with open(path, 'w') as f:
            json.dump(_record(stamped), f, indent=2)
        self.logger.info(f"Saved planogram {stamped.name!r} to {path}")
        return stamped

    @handle_errors()
    def delete(self, planogram_id: str) -> bool:
        path = self._path(planogram_id)
        if not path.exists():
            return False
        path.unlink()
        self.logger.info(f"Deleted planogram {planogram_id}")
        return True

    @handle_errors(default_return=[], raise_on_error=False)
    def list_planograms(self) -> List[Planogram]:
        planograms = []
        for path in sorted(self.directory.glob("*.json")):
            try:
                planograms.append(self.load(path.stem))
            except PlanogramError as e:
                self.logger.warning(f"Skipping unreadable planogram file: {e}")
        return planograms

class ProductCatalog(ABC):
    """Read-only product source for placement"""

    @abstractmethod
    def list_products(self) -> List[Product]:
        pass

    def get(self, product_id: str) -> Optional[Product]:
        return next((p for p in self.list_products() if p.product_id == product_id), None)

class InMemoryProductCatalog(ProductCatalog):
    """Editable catalog keyed by product id"""

    def __init__(self, products: Optional[List[Product]] = None):
        self._products: Dict[str, Product] = {}
        for product in products or []:
            self.add(product)

    def list_products(self) -> List[Product]:
        return list(self._products.values())

    def get(self, product_id: str) -> Optional[Product]:
        return self._products.get(product_id)

    def add(self, product: Product) -> Product:
        if product.product_id in self._products:
            raise ValidationError(f"Product {product.product_id} already exists")
        self._products[product.product_id] = product
        return product

    def update(self, product_id: str, **changes) -> Product:
        product = self._products.get(product_id)
        if product is None:
            raise ValidationError(f"Product {product_id} not found")
        for name, value in changes.items():
            if not hasattr(product, name) or name == 'product_id':
                raise ValidationError(f"Unknown product field: {name}")
            setattr(product, name, value)
        product.updated_at = datetime.now().isoformat()
        return product

    def delete(self, product_id: str) -> bool:
        return self._products.pop(product_id, None) is not None
