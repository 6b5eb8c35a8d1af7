"""Ordering of re-measurement and re-layout passes.

Structural edits rebuild the editable panels first and only recompute
geometry one event-loop cycle later, once the view has laid the panels out
and reported fresh measurements. Appearance edits go straight to geometry;
resize notifications only redo placement.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Tuple

from PySide6.QtCore import QObject, QTimer, Signal, Slot

logger = logging.getLogger(__name__)


class RenderScheduler(QObject):
    """Coordinate panel, geometry and placement passes.

    Args:
        rebuild_geometry: Rebuilds bones, then placement, ribs and labels.
        rebuild_placement: Re-runs placement with the bones of the last pass.
    """

    panelsRebuildRequested = Signal()

    def __init__(
        self,
        rebuild_geometry: Callable[[], None],
        rebuild_placement: Callable[[], None],
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self._rebuild_geometry = rebuild_geometry
        self._rebuild_placement = rebuild_placement
        self._geometry_pending = False
        self._placement_pending = False
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(0)
        self._timer.timeout.connect(self.flush)

    @property
    def pending(self) -> bool:
        return self._geometry_pending or self._placement_pending

    @Slot()
    def requestStructuralRebuild(self) -> None:
        """Rebuild panels now, geometry after the next event-loop cycle."""
        logger.debug("Structural rebuild requested")
        self.panelsRebuildRequested.emit()
        self._geometry_pending = True
        self._timer.start()

    @Slot()
    def requestGeometryRebuild(self) -> None:
        """Recompute bones and placement without touching the panels."""
        if self._geometry_pending:
            # A structural pass is waiting for measurements; it covers this.
            return
        self._rebuild_geometry()

    @Slot()
    def requestMeasurementRebuild(self) -> None:
        """Fresh measurements arrived; redo geometry once the view settles."""
        self._geometry_pending = True
        self._timer.start()

    @Slot()
    def requestPlacementRebuild(self) -> None:
        if self._geometry_pending:
            return
        self._placement_pending = True
        self._timer.start()

    @Slot()
    def flush(self) -> None:
        """Run whatever is pending, geometry before placement."""
        self._timer.stop()
        if self._geometry_pending:
            self._geometry_pending = False
            self._placement_pending = False
            self._rebuild_geometry()
        elif self._placement_pending:
            self._placement_pending = False
            self._rebuild_placement()


class ResizeNotifier(QObject):
    """Subscription based size-change notifications.

    Several notifications for the same element within one event-loop cycle
    are coalesced; subscribers only see the latest size.
    """

    def __init__(self, parent: QObject | None = None):
        super().__init__(parent)
        self._subscribers: Dict[str, List[Callable[[Dict[str, float]], None]]] = {}
        self._pending: Dict[str, Tuple[float, float]] = {}
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(0)
        self._timer.timeout.connect(self.flush)

    def onResize(self, element_id: str, callback: Callable[[Dict[str, float]], None]) -> Callable[[], None]:
        """Subscribe to size changes of ``element_id``. Returns an unsubscribe callable."""
        self._subscribers.setdefault(element_id, []).append(callback)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(element_id, [])
            if callback in callbacks:
                callbacks.remove(callback)
            if not callbacks:
                self._subscribers.pop(element_id, None)

        return unsubscribe

    def subscriberCount(self, element_id: str) -> int:
        return len(self._subscribers.get(element_id, []))

    @Slot(str, float, float)
    def notifyResize(self, element_id: str, width: float, height: float) -> None:
        if element_id not in self._subscribers:
            return
        self._pending[element_id] = (width, height)
        self._timer.start()

    @Slot()
    def flush(self) -> None:
        self._timer.stop()
        pending, self._pending = self._pending, {}
        for element_id, (width, height) in pending.items():
            for callback in list(self._subscribers.get(element_id, [])):
                callback({"width": width, "height": height})
