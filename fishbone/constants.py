"""Constants and defaults for fishbone diagrams."""

from typing import Dict, Tuple


# Logical drawing space. All geometry is computed in these units.
LOGICAL_WIDTH = 1200.0
LOGICAL_HEIGHT = 720.0
SPINE_Y = LOGICAL_HEIGHT * 0.5

SPINE_MARGIN_LEFT = 60.0
SPINE_ARROW_GAP = 24.0
TAIL_LENGTH = 40.0
ARROW_HALF_HEIGHT = 95.0
ARROW_TIP_INSET = 18.0

# Distance of bone edge points from the top/bottom of the canvas.
BONE_EDGE_OFFSET = 40.0
MIN_BONE_SLANT = 20.0

T_MIN = 0.08
T_MAX = 0.92
T_DEFAULT = 0.5
T_SIBLING_STEP = 0.12

PROJECTION_EPSILON = 1e-9

RIB_GAP = 6.0
BLOCK_GUTTER = 12.0
BLOCK_TITLE_BIAS = 12.0
DEFAULT_BLOCK_HEIGHT = 60.0
LABEL_GAP = 4.0
MIN_BLOCK_WIDTH = 80.0

CATEGORY_COUNT = 6
CATEGORIES_PER_SIDE = 3

SCHEMA_VERSION = 3
LEGACY_SCHEMA_VERSION = 2

DEFAULT_BONE_COLOR = "#c00000"
DEFAULT_BONE_THICKNESS = 10.0
DEFAULT_FONT_SIZE = 12.0
DEFAULT_ARROW_WIDTH = 240.0
DEFAULT_LABEL_WIDTH = 200.0
DEFAULT_RIB_LENGTH = 130.0
DEFAULT_BLOCK_WIDTH = 180.0
DEFAULT_BONE_SLANT = 160.0

DEFAULT_EFFECT_WIDTH = 200.0
DEFAULT_EFFECT_HEIGHT = 150.0
MIN_EFFECT_WIDTH = 60.0
MIN_EFFECT_HEIGHT = 40.0

DEFAULT_EFFECT_TEXT = (
    ">40% A&E attendances for HIO (>20 attendances) are for avoidable "
    "reasons which can be supported in the community"
)

DEFAULT_CATEGORY_LABELS: Tuple[str, ...] = (
    "Relationships & Culture",
    "Communication & Coordination",
    "Processes & Procedures",
    "Resources & Infrastructure",
    "Methods & Ways of Working",
    "Environment & External Factors",
)

DEFAULT_CATEGORY_LABEL = "Category"
DEFAULT_BLOCK_TITLE = "Heading"
NEW_BLOCK_TITLE = "New heading"
NEW_BULLET_TEXT = "New bullet…"

# Valid bands for numeric appearance fields, keyed by attribute name.
APPEARANCE_BOUNDS: Dict[str, Tuple[float, float]] = {
    "bone_thickness": (1.0, 40.0),
    "font_size": (6.0, 48.0),
    "arrow_width": (80.0, 480.0),
    "label_width": (60.0, 480.0),
    "rib_length": (20.0, 400.0),
    "block_width": (MIN_BLOCK_WIDTH, 480.0),
    "bone_slant": (MIN_BONE_SLANT, 480.0),
}

# Persisted camelCase keys to Appearance attribute names.
APPEARANCE_KEYS: Dict[str, str] = {
    "boneColor": "bone_color",
    "boneThickness": "bone_thickness",
    "fontSize": "font_size",
    "arrowWidth": "arrow_width",
    "labelWidth": "label_width",
    "ribLength": "rib_length",
    "blockWidth": "block_width",
    "boneSlant": "bone_slant",
}
