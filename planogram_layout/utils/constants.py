"""System-wide constants"""

# Scale and grid
DEFAULT_GRID_SIZE_MM = 50
DEFAULT_PIXELS_PER_MM = 0.5
DEFAULT_CANVAS_WIDTH = 1200
DEFAULT_CANVAS_HEIGHT = 800
DEFAULT_SHELF_DEPTH_MM = 400

# Product defaults
DEFAULT_PRODUCT_SPACING_MM = 2.0
DEFAULT_PRODUCT_COLOR = '#3B82F6'

# Shelf membership tolerances (pixels)
SHELF_TOLERANCE_PX = 10
NEARBY_TOLERANCE_PX = 50

# Distribution
EDGE_MARGIN_PX = 10

# Standalone shelf defaults
DEFAULT_SHELF_WIDTH_MM = 800
DEFAULT_SHELF_HEIGHT_MM = 120
DEFAULT_SHELF_ORIGIN_PX = 50

# Fixture defaults (hooks, dividers)
FIXTURE_SIZES_MM = {
    'hook': (20, 150),
    'divider': (10, 200)
}

# Rack defaults
DEFAULT_RACK_WIDTH_MM = 1200
DEFAULT_RACK_HEIGHT_MM = 1800
DEFAULT_RACK_DEPTH_MM = 400
DEFAULT_RACK_LEVELS = 4
MIN_RACK_LEVELS = 1
MAX_RACK_LEVELS = 8
DEFAULT_RACK_NAME = 'Rack'

# New racks are tiled so they do not overlap
RACK_ORIGIN_PX = 100
RACKS_PER_ROW = 3
RACK_OFFSET_X_PX = 300
RACK_OFFSET_Y_PX = 400

# Advisory load limits (kg) by shelf type
SHELF_MAX_LOAD = {
    'hook': 5,
    'basket': 10
}
DEFAULT_SHELF_MAX_LOAD = 20
