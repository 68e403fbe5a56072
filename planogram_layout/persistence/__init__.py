from .repository import (
    PlanogramRepository, InMemoryPlanogramRepository, JsonFilePlanogramRepository,
    ProductCatalog, InMemoryProductCatalog
)

__all__ = ['PlanogramRepository', 'InMemoryPlanogramRepository', 'JsonFilePlanogramRepository',
           'ProductCatalog', 'InMemoryProductCatalog']
