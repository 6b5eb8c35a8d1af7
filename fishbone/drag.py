"""Bone-constrained dragging of heading blocks.

The drag state is an explicit immutable value. The module level functions
compute transitions without touching any store, which keeps them easy to
test; :class:`DragController` owns the current value and writes the
resulting ``t`` back through the model.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol

from .errors import DragError
from .geometry import clamp_t, project_onto_bone
from .types import Bone, Point

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DragState:
    """Either idle (no block id) or dragging one block of one category."""

    category_id: str = ""
    block_id: str = ""
    t_offset: float = 0.0

    @property
    def active(self) -> bool:
        return bool(self.block_id)


IDLE = DragState()


def start_drag(state: DragState, bone: Bone, category_id: str, block_id: str,
               current_t: float, point: Point) -> DragState:
    """Enter the dragging state, remembering where on the block it was grabbed.

    The offset between the block's stored ``t`` and the projected grab
    point keeps the block from jumping under the pointer.
    """
    if state.active:
        raise DragError(f"Drag of {state.block_id} already in progress")
    grab_t = project_onto_bone(point, bone)
    return DragState(category_id=category_id, block_id=block_id, t_offset=current_t - grab_t)


def drag_t(state: DragState, bone: Bone, point: Point) -> float:
    """Return the clamped ``t`` for a pointer at ``point`` while dragging."""
    if not state.active:
        raise DragError("No drag in progress")
    return clamp_t(project_onto_bone(point, bone) + state.t_offset)


def end_drag(state: DragState) -> DragState:
    return IDLE


class ParameterStore(Protocol):
    def categoryOf(self, block_id: str) -> str:
        ...

    def getT(self, block_id: str) -> float:
        ...

    def setT(self, block_id: str, value: float) -> None:
        ...


class DragController:
    """Route pointer events (in logical units) to the active drag session."""

    def __init__(self, store: ParameterStore, bones: Callable[[], Dict[str, Bone]]):
        self._store = store
        self._bones = bones
        self._state = IDLE

    @property
    def state(self) -> DragState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state.active

    def on_drag_start(self, block_id: str, point: Point) -> bool:
        """Start dragging ``block_id``. Returns False if the block has no bone yet."""
        category_id = self._store.categoryOf(block_id)
        bone = self._bones().get(category_id) if category_id else None
        if bone is None:
            logger.debug("Cannot drag %s: no bone for its category", block_id)
            return False
        self._state = start_drag(
            self._state, bone, category_id, block_id, self._store.getT(block_id), point
        )
        logger.debug("Drag started for %s (offset %.4f)", block_id, self._state.t_offset)
        return True

    def on_drag_move(self, point: Point) -> Optional[float]:
        """Write the new ``t`` for the dragged block and return it."""
        if not self._state.active:
            return None
        bone = self._bones().get(self._state.category_id)
        if bone is None:
            return None
        value = drag_t(self._state, bone, point)
        self._store.setT(self._state.block_id, value)
        return value

    def on_drag_end(self) -> None:
        if self._state.active:
            logger.debug("Drag finished for %s", self._state.block_id)
        self._state = end_drag(self._state)

    def on_drag_cancel(self) -> None:
        self.on_drag_end()

    def release_block(self, block_id: str) -> bool:
        """Drop the drag if it targets ``block_id`` (e.g. the block was deleted)."""
        if self._state.block_id != block_id:
            return False
        self._state = IDLE
        return True
