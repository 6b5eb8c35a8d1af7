"""Fishbone (cause-and-effect) diagram editor built with PySide6 and QML.

The implementation keeps every heading rigidly attached to its category
bone: geometry lives in a fixed logical space and is re-derived from
measured panel positions on every layout pass.
"""

from .coords import CoordinateMapper
from .drag import IDLE, DragController, DragState
from .editor import FishboneEditor
from .errors import DragError, FishboneError, FishboneImportError
from .geometry import build_bones, clamp_t, point_at, project_t
from .measurement import LayoutMeasurementProvider, MeasurementRegistry
from .model import FishboneModel
from .placement import LayoutResult, PlacementEngine
from .project import FishboneProjectManager
from .scheduler import RenderScheduler, ResizeNotifier
from .types import (
    Appearance,
    Block,
    Bone,
    Category,
    DiagramState,
    EffectBox,
    Point,
    Rect,
    Segment,
    Side,
)
from .ui import create_fishbone_window, main

__all__ = [
    "Appearance",
    "Block",
    "Bone",
    "Category",
    "CoordinateMapper",
    "DiagramState",
    "DragController",
    "DragError",
    "DragState",
    "EffectBox",
    "FishboneEditor",
    "FishboneError",
    "FishboneImportError",
    "FishboneModel",
    "FishboneProjectManager",
    "IDLE",
    "LayoutMeasurementProvider",
    "LayoutResult",
    "MeasurementRegistry",
    "PlacementEngine",
    "Point",
    "Rect",
    "RenderScheduler",
    "ResizeNotifier",
    "Segment",
    "Side",
    "build_bones",
    "clamp_t",
    "create_fishbone_window",
    "main",
    "point_at",
    "project_t",
]
