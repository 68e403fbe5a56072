from functools import wraps
from typing import Callable, Any, Optional

class PlanogramError(Exception):
    """Base exception for planogram layout engine"""
    pass

class DataLoadError(PlanogramError):
    """Error loading catalog or planogram data"""
    pass

class ValidationError(PlanogramError):
    """Input rejected before any mutation (too tall, too deep, unknown shelf...)"""
    pass

class CapacityError(PlanogramError):
    """Not enough horizontal space on a shelf"""

    def __init__(self, message: str, shortfall_mm: float = 0.0, available_mm: Optional[float] = None):
        super().__init__(message)
        self.shortfall_mm = shortfall_mm
        self.available_mm = available_mm

class ConfigurationError(PlanogramError):
    """Configuration error"""
    pass

class ConsistencyWarning(UserWarning):
    """Model inconsistency that the engine repaired on its own"""

    def __init__(self, message: str, item_id: Optional[str] = None):
        super().__init__(message)
        self.item_id = item_id

def handle_errors(default_return=None, raise_on_error=True):
    """Decorator for error handling"""
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            try:
                return func(*args, **kwargs)
            except PlanogramError:
                if raise_on_error:
                    raise
                return default_return
            except Exception as e:
                if raise_on_error:
                    raise PlanogramError(f"Unexpected error in {func.__name__}: {str(e)}") from e
                return default_return
        return wrapper
    return decorator
