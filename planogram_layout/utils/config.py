import json
from pathlib import Path
from typing import Any, Dict, Optional

from planogram_layout.models.planogram import PlanogramSettings
from .error_handler import ConfigurationError, DataLoadError
from .logger import get_logger

def load_settings(path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> PlanogramSettings:
    """Default settings, updated from a JSON file and then from ``overrides``.

    Keys may use the persisted camelCase names (``pixelsPerMm``) or the
    attribute names (``pixels_per_mm``).
    """
    data: Dict[str, Any] = {}

    if path:
        settings_file = Path(path)
        if not settings_file.exists():
            raise DataLoadError(f"Settings file not found: {path}")
        try:
            with open(settings_file, 'r') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Malformed settings file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Settings file {path} must contain a JSON object")
        # Accept a whole saved planogram as well
        data = data.get('settings', data)

    if overrides:
        data = {**data, **{k: v for k, v in overrides.items() if v is not None}}

    try:
        settings = PlanogramSettings.from_dict(data)
    except TypeError as e:
        raise ConfigurationError(f"Invalid settings: {e}") from e

    get_logger().debug(f"Settings: {settings.to_dict()}")
    return settings
