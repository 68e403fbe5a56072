"""
Pytest configuration and shared fixtures for the layout engine test suite.
"""

import os
import sys
from pathlib import Path

import pytest

# No log files from test runs
os.environ.setdefault("PLANOGRAM_LOG_DIR", "")

# Ensure project root is on PYTHONPATH so 'planogram_layout' can be imported
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from planogram_layout.layout import PlanogramEditor, UnitConverter
from planogram_layout.models import PlanogramSettings, Product, Shelf


@pytest.fixture
def settings():
    """Default settings: 0.5 px/mm, 50 mm grid, snapping on."""
    return PlanogramSettings()


@pytest.fixture
def converter(settings):
    return UnitConverter(settings)


@pytest.fixture
def exact_converter():
    """Converter with snapping off, for checking raw positions."""
    return UnitConverter(PlanogramSettings(snap_to_grid=False))


@pytest.fixture
def editor():
    return PlanogramEditor()


@pytest.fixture
def wide_shelf():
    """1000 px wide standalone shelf (2000 mm at 0.5 px/mm)."""
    return Shelf(item_id="shelf-1", x=0, y=100, width=1000, height=150, depth=400)


def make_product(name="Box", width=100, height=200, depth=100, spacing=50, **kwargs):
    return Product(name=name, width=width, height=height, depth=depth, spacing=spacing, **kwargs)


@pytest.fixture
def product_factory():
    """Fixture returning the product builder."""
    return make_product


@pytest.fixture
def sample_products():
    return [
        make_product("Cereal", width=200, height=300, depth=80),
        make_product("Oats", width=150, height=250, depth=70),
        make_product("Juice", width=90, height=240, depth=90),
    ]
