"""Bone geometry and point projection.

Bones are derived per category from the current render: every pass starts
from scratch, so nothing here holds state between calls.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Tuple

from .constants import (
    ARROW_HALF_HEIGHT,
    ARROW_TIP_INSET,
    BONE_EDGE_OFFSET,
    LOGICAL_HEIGHT,
    LOGICAL_WIDTH,
    MIN_BONE_SLANT,
    PROJECTION_EPSILON,
    SPINE_ARROW_GAP,
    SPINE_MARGIN_LEFT,
    SPINE_Y,
    T_MAX,
    T_MIN,
    TAIL_LENGTH,
)
from .measurement import LayoutMeasurementProvider, region_key
from .types import Appearance, Bone, Category, Point, Segment, Side

logger = logging.getLogger(__name__)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def clamp_t(t: float) -> float:
    """Clamp a bone parameter into the band a Block may store."""
    return clamp(t, T_MIN, T_MAX)


# --- Point projection -------------------------------------------------------
def project_t(point: Point, start: Point, end: Point) -> float:
    """Return the parameter of the closest point to ``point`` on the line start-end.

    0 is ``start``, 1 is ``end``. The result is not clamped. A degenerate
    segment (squared length below epsilon) yields 0.
    """
    dx = end.x - start.x
    dy = end.y - start.y
    length_sq = dx * dx + dy * dy
    if length_sq < PROJECTION_EPSILON:
        return 0.0
    return ((point.x - start.x) * dx + (point.y - start.y) * dy) / length_sq


def project_onto_bone(point: Point, bone: Bone) -> float:
    return project_t(point, bone.spine_point, bone.edge_point)


def point_at(bone: Bone, t: float) -> Point:
    """Affine combination ``spine + t * (edge - spine)``."""
    return Point(
        bone.x_spine + t * (bone.x_edge - bone.x_spine),
        bone.y_spine + t * (bone.y_edge - bone.y_spine),
    )


# --- Spine ------------------------------------------------------------------
def spine_extent(appearance: Appearance, width: float = LOGICAL_WIDTH) -> Tuple[float, float]:
    """Return the (start, end) x of the spine band, left margin to arrow body."""
    arrow_x = width - appearance.arrow_width
    return SPINE_MARGIN_LEFT, max(SPINE_MARGIN_LEFT, arrow_x - SPINE_ARROW_GAP)


def spine_segments(appearance: Appearance, width: float = LOGICAL_WIDTH) -> List[Segment]:
    """Spine and the short tail to its left."""
    start, end = spine_extent(appearance, width)
    return [
        Segment(start, SPINE_Y, end, SPINE_Y),
        Segment(max(0.0, start - TAIL_LENGTH), SPINE_Y, start, SPINE_Y),
    ]


def arrow_polygon(appearance: Appearance, width: float = LOGICAL_WIDTH) -> List[Point]:
    """Arrow head triangle at the right end of the spine."""
    body_x = width - appearance.arrow_width
    return [
        Point(body_x, SPINE_Y - ARROW_HALF_HEIGHT),
        Point(width - ARROW_TIP_INSET, SPINE_Y),
        Point(body_x, SPINE_Y + ARROW_HALF_HEIGHT),
    ]


# --- Bones ------------------------------------------------------------------
def anchor_positions(count: int, appearance: Appearance, width: float = LOGICAL_WIDTH) -> List[float]:
    """Evenly spaced spine anchors for ``count`` categories, left to right."""
    if count <= 0:
        return []
    start, end = spine_extent(appearance, width)
    step = (end - start) / (count + 1)
    return [start + step * (idx + 1) for idx in range(count)]


def _edge_point(x_spine: float, side: Side, appearance: Appearance, width: float, height: float) -> Point:
    slant = max(appearance.bone_slant, MIN_BONE_SLANT)
    y_edge = BONE_EDGE_OFFSET if side == Side.UPPER else height - BONE_EDGE_OFFSET
    return Point(clamp(x_spine - slant, 0.0, width), clamp(y_edge, 0.0, height))


def build_bones(
    categories: Iterable[Category],
    measurements: LayoutMeasurementProvider,
    appearance: Appearance,
    width: float = LOGICAL_WIDTH,
    height: float = LOGICAL_HEIGHT,
) -> Dict[str, Bone]:
    """Compute one bone per measurable category.

    Anchors are spaced evenly per side in declared order, independent of
    where each region was actually laid out, so bones never cross. A
    category whose region cannot be measured yet is left out of the result.
    """
    by_side: Dict[Side, List[Category]] = {Side.UPPER: [], Side.LOWER: []}
    for category in categories:
        by_side[category.side].append(category)

    bones: Dict[str, Bone] = {}
    for side, members in by_side.items():
        anchors = anchor_positions(len(members), appearance, width)
        for category, x_spine in zip(members, anchors):
            if measurements.measure(region_key(category.id)) is None:
                logger.debug("Region of category %s not measured yet, skipping bone", category.id)
                continue
            edge = _edge_point(x_spine, side, appearance, width, height)
            bones[category.id] = Bone(
                x_spine=x_spine,
                y_spine=SPINE_Y,
                x_edge=edge.x,
                y_edge=edge.y,
                side=side,
            )
    return bones

