from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from planogram_layout.utils.error_handler import CapacityError, ConsistencyWarning, PlanogramError

@dataclass
class LayoutResult:
    """Outcome of a layout operation: success with data, or failure with a reason"""
    success: bool
    message: str = ""
    error: Optional[PlanogramError] = None

    # New (x, y) per item id
    positions: Dict[str, Tuple[float, float]] = field(default_factory=dict)

    # Item ids removed as a side effect
    removed_ids: List[str] = field(default_factory=list)

    warnings: List[ConsistencyWarning] = field(default_factory=list)

    # True when nothing needed to change
    no_op: bool = False

    # Id of the item created by the operation
    item_id: Optional[str] = None

    @classmethod
    def ok(cls, message: str = "", **kwargs) -> 'LayoutResult':
        return cls(success=True, message=message, **kwargs)

    @classmethod
    def noop(cls, message: str) -> 'LayoutResult':
        return cls(success=True, message=message, no_op=True)

    @classmethod
    def fail(cls, error: PlanogramError) -> 'LayoutResult':
        return cls(success=False, message=str(error), error=error)

    def __bool__(self) -> bool:
        return self.success

    def get_summary(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'message': self.message,
            'moved': len(self.positions),
            'removed': len(self.removed_ids),
            'warnings': len(self.warnings)
        }

@dataclass
class PlacementResult(LayoutResult):
    """Slot found for a product, in pixels"""
    x: Optional[float] = None
    y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    remaining_mm: Optional[int] = None

    @property
    def shortfall_mm(self) -> Optional[float]:
        if isinstance(self.error, CapacityError):
            return self.error.shortfall_mm
        return None
