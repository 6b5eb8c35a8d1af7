"""Measured on-screen rectangles consumed by the geometry engine.

The view reports the rectangles of the editing surface, category regions,
labels and heading blocks in rendered pixels. Geometry code only reads
them through :class:`LayoutMeasurementProvider`, so tests can feed synthetic
measurements without any rendering surface.
"""

from __future__ import annotations

from typing import Dict, Optional, Protocol

from .types import Rect


def surface_key() -> str:
    return "surface"


def effect_key() -> str:
    return "effect"


def region_key(category_id: str) -> str:
    return f"region:{category_id}"


def label_key(category_id: str) -> str:
    return f"label:{category_id}"


def block_key(block_id: str) -> str:
    return f"block:{block_id}"


class LayoutMeasurementProvider(Protocol):
    def measure(self, element_id: str) -> Optional[Rect]:
        ...


class MeasurementRegistry:
    """Last reported rectangle per element id."""

    def __init__(self) -> None:
        self._rects: Dict[str, Rect] = {}

    def measure(self, element_id: str) -> Optional[Rect]:
        rect = self._rects.get(element_id)
        if rect is None or rect.is_empty:
            return None
        return rect

    def update(self, element_id: str, rect: Rect) -> bool:
        """Store a rectangle. Returns True if it differs from the previous one."""
        if self._rects.get(element_id) == rect:
            return False
        self._rects[element_id] = rect
        return True

    def forget(self, element_id: str) -> None:
        self._rects.pop(element_id, None)

    def clear(self) -> None:
        self._rects.clear()

    def __contains__(self, element_id: str) -> bool:
        return element_id in self._rects

    def __len__(self) -> int:
        return len(self._rects)
