import time
from functools import wraps

from .logger import get_logger

class PerformanceMonitor:
    """Monitor layout operation timings"""

    def __init__(self):
        self.metrics = []

    def time_it(self, func):
        """Decorator to time function execution"""
        @wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            result = func(*args, **kwargs)
            duration = time.perf_counter() - start
            self.metrics.append((func.__name__, duration))
            get_logger().debug(f"{func.__name__} took {duration * 1000:.2f}ms")
            return result
        return wrapper

monitor = PerformanceMonitor()
