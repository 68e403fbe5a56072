from .logger import get_logger
from .error_handler import (
    PlanogramError, DataLoadError, ValidationError, CapacityError,
    ConfigurationError, ConsistencyWarning, handle_errors
)

__all__ = ['get_logger', 'PlanogramError', 'DataLoadError', 'ValidationError', 'CapacityError',
           'ConfigurationError', 'ConsistencyWarning', 'handle_errors']
