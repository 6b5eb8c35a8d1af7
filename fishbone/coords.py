"""Conversion between the logical drawing space and rendered pixels.

Geometry is computed and cached in logical units; conversion to pixels only
happens when a position is written onto a displayed element.
"""

from __future__ import annotations

from typing import Optional

from .constants import LOGICAL_HEIGHT, LOGICAL_WIDTH
from .types import Point, Rect, Segment


class CoordinateMapper:
    """Map points between a fixed W x H logical space and a container rect.

    Every conversion returns ``None`` while the container is unmeasured
    (zero width or height) so callers can skip their writes.
    """

    def __init__(self, width: float = LOGICAL_WIDTH, height: float = LOGICAL_HEIGHT):
        self.width = float(width)
        self.height = float(height)

    @staticmethod
    def is_measured(container: Optional[Rect]) -> bool:
        return container is not None and not container.is_empty

    def to_logical(self, point: Point, container: Optional[Rect]) -> Optional[Point]:
        if not self.is_measured(container):
            return None
        return Point(
            (point.x - container.x) / container.width * self.width,
            (point.y - container.y) / container.height * self.height,
        )

    def to_rendered(self, point: Point, container: Optional[Rect]) -> Optional[Point]:
        if not self.is_measured(container):
            return None
        return Point(
            container.x + point.x / self.width * container.width,
            container.y + point.y / self.height * container.height,
        )

    def rect_to_logical(self, rect: Rect, container: Optional[Rect]) -> Optional[Rect]:
        origin = self.to_logical(Point(rect.x, rect.y), container)
        if origin is None:
            return None
        return Rect(
            origin.x,
            origin.y,
            rect.width / container.width * self.width,
            rect.height / container.height * self.height,
        )

    def rect_to_rendered(self, rect: Rect, container: Optional[Rect]) -> Optional[Rect]:
        origin = self.to_rendered(Point(rect.x, rect.y), container)
        if origin is None:
            return None
        return Rect(
            origin.x,
            origin.y,
            rect.width / self.width * container.width,
            rect.height / self.height * container.height,
        )

    def segment_to_rendered(self, segment: Segment, container: Optional[Rect]) -> Optional[Segment]:
        start = self.to_rendered(Point(segment.x1, segment.y1), container)
        end = self.to_rendered(Point(segment.x2, segment.y2), container)
        if start is None or end is None:
            return None
        return Segment(start.x, start.y, end.x, end.y)

    def width_to_logical(self, pixels: float, container: Optional[Rect]) -> Optional[float]:
        if not self.is_measured(container):
            return None
        return pixels / container.width * self.width

    def height_to_logical(self, pixels: float, container: Optional[Rect]) -> Optional[float]:
        if not self.is_measured(container):
            return None
        return pixels / container.height * self.height

    def stroke_to_rendered(self, units: float, container: Optional[Rect]) -> Optional[float]:
        """Scale a stroke width uniformly by the smaller of the two axis ratios."""
        if not self.is_measured(container):
            return None
        return units * min(container.width / self.width, container.height / self.height)
