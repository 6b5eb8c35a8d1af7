"""Placement of ribs, heading blocks and labels along category bones.

Everything is computed in logical units from the bones of the current pass
and each block's stored ``t``; the result is a plain value so running the
same layout twice yields identical output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .constants import (
    BLOCK_GUTTER,
    BLOCK_TITLE_BIAS,
    DEFAULT_BLOCK_HEIGHT,
    LABEL_GAP,
    RIB_GAP,
)
from .coords import CoordinateMapper
from .geometry import arrow_polygon, clamp, clamp_t, point_at, spine_segments
from .measurement import LayoutMeasurementProvider, block_key, label_key
from .types import Appearance, Bone, Category, EffectBox, Point, Rect, Segment, Side


@dataclass(frozen=True)
class BlockPlacement:
    category_id: str
    rect: Rect
    attachment: Point


@dataclass(frozen=True)
class LabelPlacement:
    side: Side
    rect: Rect


@dataclass
class LayoutResult:
    """Output of one placement pass, in logical units."""

    bones: Dict[str, Bone] = field(default_factory=dict)
    ribs: Dict[str, Segment] = field(default_factory=dict)
    blocks: Dict[str, BlockPlacement] = field(default_factory=dict)
    labels: Dict[str, LabelPlacement] = field(default_factory=dict)
    spine: List[Segment] = field(default_factory=list)
    arrow: List[Point] = field(default_factory=list)
    effect: Optional[Rect] = None


class PlacementEngine:
    """Derive on-screen attachment points from bones and block parameters.

    Measured label and block heights (rendered pixels) are converted into
    logical units through the mapper; when an element has not been measured
    a font-based or fixed fallback height is used instead.
    """

    def __init__(
        self,
        measurements: LayoutMeasurementProvider,
        mapper: Optional[CoordinateMapper] = None,
    ):
        self._measurements = measurements
        self._mapper = mapper or CoordinateMapper()

    @property
    def width(self) -> float:
        return self._mapper.width

    @property
    def height(self) -> float:
        return self._mapper.height

    def layout(
        self,
        categories: Iterable[Category],
        bones: Dict[str, Bone],
        appearance: Appearance,
        effect: EffectBox,
        container: Optional[Rect],
    ) -> LayoutResult:
        result = LayoutResult(
            bones=dict(bones),
            spine=spine_segments(appearance, self.width),
            arrow=arrow_polygon(appearance, self.width),
            effect=self.place_effect(effect, appearance),
        )
        for category in categories:
            bone = bones.get(category.id)
            if bone is None:
                continue
            result.labels[category.id] = self.place_label(category, bone, appearance, container)
            for block in category.blocks:
                attachment = point_at(bone, clamp_t(block.t))
                result.ribs[block.id] = self.rib_for(attachment, appearance)
                width = block.width_override if block.width_override is not None else appearance.block_width
                height = self._measured_height(block_key(block.id), container) or DEFAULT_BLOCK_HEIGHT
                result.blocks[block.id] = BlockPlacement(
                    category_id=category.id,
                    rect=self.block_rect(attachment, width, height, appearance),
                    attachment=attachment,
                )
        return result

    # --- Individual pieces ---------------------------------------------------
    @staticmethod
    def rib_for(attachment: Point, appearance: Appearance) -> Segment:
        """Horizontal rib ending just short of the attachment point."""
        x_end = attachment.x - RIB_GAP
        return Segment(x_end - appearance.rib_length, attachment.y, x_end, attachment.y)

    def block_rect(self, attachment: Point, width: float, height: float, appearance: Appearance) -> Rect:
        x = attachment.x - (width + appearance.rib_length + BLOCK_GUTTER)
        y = attachment.y - height * 0.5 - BLOCK_TITLE_BIAS
        x = clamp(x, 0.0, max(0.0, self.width - width))
        y = clamp(y, 0.0, max(0.0, self.height - height))
        return Rect(x, y, width, height)

    def place_label(
        self,
        category: Category,
        bone: Bone,
        appearance: Appearance,
        container: Optional[Rect],
    ) -> LabelPlacement:
        height = self._measured_height(label_key(category.id), container)
        if height is None:
            height = appearance.font_size * 1.6 + 8.0
        width = appearance.label_width
        x = clamp(bone.x_edge - width * 0.5, 0.0, max(0.0, self.width - width))
        if bone.side == Side.UPPER:
            y = bone.y_edge - height - LABEL_GAP
        else:
            y = bone.y_edge + LABEL_GAP
        y = clamp(y, 0.0, max(0.0, self.height - height))
        return LabelPlacement(side=bone.side, rect=Rect(x, y, width, height))

    def place_effect(self, effect: EffectBox, appearance: Appearance) -> Rect:
        body_x = self.width - appearance.arrow_width
        x = clamp(body_x + effect.dx, 0.0, max(0.0, self.width - effect.width))
        y = clamp(self.height * 0.5 - effect.height * 0.5 + effect.dy, 0.0, max(0.0, self.height - effect.height))
        return Rect(x, y, effect.width, effect.height)

    def _measured_height(self, element_id: str, container: Optional[Rect]) -> Optional[float]:
        rect = self._measurements.measure(element_id)
        if rect is None:
            return None
        return self._mapper.height_to_logical(rect.height, container)
