from .units import UnitConverter, mm_to_pixels, pixels_to_mm, snap_to_grid, round_half_up
from .results import LayoutResult, PlacementResult
from .placement import PlacementEngine
from .distribution import DistributionEngine
from .rack_lifecycle import RackManager, shelf_geometry
from .rescale import RescaleEngine, rescale_planogram
from .editor import PlanogramEditor

__all__ = ['UnitConverter', 'mm_to_pixels', 'pixels_to_mm', 'snap_to_grid', 'round_half_up',
           'LayoutResult', 'PlacementResult', 'PlacementEngine', 'DistributionEngine',
           'RackManager', 'shelf_geometry', 'RescaleEngine', 'rescale_planogram', 'PlanogramEditor']
