"""Data types for fishbone diagrams.

This module contains the core data structures shared by the model,
the geometry engine and the placement layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .constants import (
    DEFAULT_ARROW_WIDTH,
    DEFAULT_BLOCK_WIDTH,
    DEFAULT_BONE_COLOR,
    DEFAULT_BONE_SLANT,
    DEFAULT_BONE_THICKNESS,
    DEFAULT_EFFECT_HEIGHT,
    DEFAULT_EFFECT_WIDTH,
    DEFAULT_FONT_SIZE,
    DEFAULT_LABEL_WIDTH,
    DEFAULT_RIB_LENGTH,
)


class Side(Enum):
    """Which side of the spine a category hangs from."""

    UPPER = "upper"
    LOWER = "lower"


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    """An axis-aligned rectangle (x, y is the top-left corner)."""

    x: float
    y: float
    width: float
    height: float

    @property
    def is_empty(self) -> bool:
        return self.width <= 0.0 or self.height <= 0.0


@dataclass(frozen=True)
class Segment:
    """A straight line segment between two points."""

    x1: float
    y1: float
    x2: float
    y2: float


@dataclass(frozen=True)
class Bone:
    """The derived ray of a category, from its spine anchor to its edge point.

    Bones are rebuilt on every layout pass and never persisted.
    """

    x_spine: float
    y_spine: float
    x_edge: float
    y_edge: float
    side: Side

    @property
    def spine_point(self) -> Point:
        return Point(self.x_spine, self.y_spine)

    @property
    def edge_point(self) -> Point:
        return Point(self.x_edge, self.y_edge)


@dataclass
class Block:
    """A heading with its bullets, positioned by ``t`` along its bone."""

    id: str
    title: str = "Heading"
    bullets: List[str] = field(default_factory=lambda: [""])
    t: float = 0.5
    width_override: Optional[float] = None


@dataclass
class Category:
    """One branch of the diagram."""

    id: str
    side: Side
    label: str = "Category"
    blocks: List[Block] = field(default_factory=list)


@dataclass
class EffectBox:
    """The problem statement shown at the arrow tip."""

    text: str = ""
    dx: float = 0.0
    dy: float = 0.0
    width: float = DEFAULT_EFFECT_WIDTH
    height: float = DEFAULT_EFFECT_HEIGHT


@dataclass
class Appearance:
    """Global visual parameters. Pure configuration, no derived state."""

    bone_color: str = DEFAULT_BONE_COLOR
    bone_thickness: float = DEFAULT_BONE_THICKNESS
    font_size: float = DEFAULT_FONT_SIZE
    arrow_width: float = DEFAULT_ARROW_WIDTH
    label_width: float = DEFAULT_LABEL_WIDTH
    rib_length: float = DEFAULT_RIB_LENGTH
    block_width: float = DEFAULT_BLOCK_WIDTH
    bone_slant: float = DEFAULT_BONE_SLANT


@dataclass
class DiagramState:
    """Everything persisted for one diagram."""

    categories: List[Category] = field(default_factory=list)
    effect: EffectBox = field(default_factory=EffectBox)
    appearance: Appearance = field(default_factory=Appearance)
