"""Millimeter/pixel conversion and grid snapping"""
import math

from planogram_layout.models.planogram import PlanogramSettings
from planogram_layout.utils.error_handler import ConfigurationError

def round_half_up(value: float) -> int:
    """Round halves toward positive infinity (canvas rounding)"""
    return int(math.floor(value + 0.5))

def _check_scale(pixels_per_mm: float):
    if pixels_per_mm is None or pixels_per_mm <= 0:
        raise ConfigurationError(f"pixelsPerMm must be positive, got {pixels_per_mm}")

def mm_to_pixels(mm: float, pixels_per_mm: float) -> float:
    _check_scale(pixels_per_mm)
    return mm * pixels_per_mm

def pixels_to_mm(px: float, pixels_per_mm: float) -> int:
    _check_scale(pixels_per_mm)
    return round_half_up(px / pixels_per_mm)

def snap_to_grid(px: float, grid_size_mm: float, pixels_per_mm: float, enabled: bool = True) -> float:
    if not enabled:
        return px
    grid_size_px = mm_to_pixels(grid_size_mm, pixels_per_mm)
    if grid_size_px <= 0:
        raise ConfigurationError(f"gridSizeMm must be positive, got {grid_size_mm}")
    return round_half_up(px / grid_size_px) * grid_size_px

class UnitConverter:
    """Conversions bound to one settings snapshot"""

    def __init__(self, settings: PlanogramSettings):
        _check_scale(settings.pixels_per_mm)
        self.settings = settings

    @property
    def pixels_per_mm(self) -> float:
        return self.settings.pixels_per_mm

    @property
    def grid_size_px(self) -> float:
        return self.mm_to_pixels(self.settings.grid_size_mm)

    def mm_to_pixels(self, mm: float) -> float:
        return mm_to_pixels(mm, self.settings.pixels_per_mm)

    def pixels_to_mm(self, px: float) -> int:
        return pixels_to_mm(px, self.settings.pixels_per_mm)

    def snap_to_grid(self, px: float) -> float:
        return snap_to_grid(px, self.settings.grid_size_mm, self.settings.pixels_per_mm,
                            enabled=self.settings.snap_to_grid)
