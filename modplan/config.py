"""Global configuration: constants shared by the geometry core."""

# Element-mode snapping accepts a candidate only when it is closer than this
SNAP_TOLERANCE_PX = 24

# Bathroom pods live on a coarser grid than the drawing grid
POD_GRID_MM = 50

# Drawing grid defaults (per floor)
DEFAULT_GRID_SIZE_MM = 100
DEFAULT_ELEMENT_GAP_MM = 0
DEFAULT_GRID_WIDTH_M = 100
DEFAULT_GRID_HEIGHT_M = 100
DEFAULT_SNAP_MODE = "off"
SNAP_MODES = ("off", "grid", "element")

# Canvas defaults
DEFAULT_SCALE_FACTOR = 1.0  # px per mm

# Floors
DEFAULT_FLOOR_NAME = "Level 1"
DEFAULT_FLOOR_HEIGHT_MM = 3100

# Smallest footprint side a module can be resized to
MIN_MODULE_SIZE_MM = 100

# Plan-view thickness of the opening marker drawn inside the wall line
OPENING_DEPTH_MM = 100

# Pixel delta applied to a copied group (right and down on screen)
COPY_OFFSET_PX = 20

# Element kinds that may be collected into an ElementGroup
GROUPABLE_KINDS = ("module", "corridor", "balcony", "bathroom_pod")
