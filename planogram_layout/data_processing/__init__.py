from .data_loader import DataLoader, TabularProductCatalog
from .data_validator import DataValidator

__all__ = ['DataLoader', 'TabularProductCatalog', 'DataValidator']
