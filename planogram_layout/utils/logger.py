import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

class PlanogramLogger:
    """Centralized logging system for the planogram layout engine"""

    def __init__(self, log_dir: Optional[str] = "logs", console_level: str = "INFO", file_level: str = "DEBUG"):
        # Create logger
        self.logger = logging.getLogger('planogram_layout')
        self.logger.setLevel(logging.DEBUG)

        # Remove existing handlers
        self.logger.handlers = []

        # Console handler
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, console_level))
        console_format = logging.Formatter(
            '%(asctime)s | %(levelname)-8s | %(message)s',
            datefmt='%H:%M:%S'
        )
        console_handler.setFormatter(console_format)
        self.logger.addHandler(console_handler)

        # File handler (disabled with an empty log dir)
        if log_dir:
            self.log_dir = Path(log_dir)
            self.log_dir.mkdir(exist_ok=True)
            log_file = self.log_dir / f"planogram_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(getattr(logging, file_level))
            file_format = logging.Formatter(
                '%(asctime)s | %(levelname)-8s | %(module)-15s | %(funcName)-20s | %(message)s'
            )
            file_handler.setFormatter(file_format)
            self.logger.addHandler(file_handler)
            self.logger.debug(f"Logging initialized. Log file: {log_file}")
        else:
            self.log_dir = None

    def get_logger(self):
        return self.logger

# Global logger instance
_logger_instance = None

def get_logger():
    """Get or create logger instance"""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = PlanogramLogger(
            log_dir=os.environ.get('PLANOGRAM_LOG_DIR', 'logs'),
            console_level=os.environ.get('PLANOGRAM_LOG_LEVEL', 'INFO').upper()
        )
    return _logger_instance.get_logger()
