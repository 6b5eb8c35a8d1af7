"""FishboneEditor: glue between the model, the geometry engine and QML.

The view reports measured rectangles and pointer positions in rendered
pixels; the editor converts them into logical units, runs the passes in
order (bones, placement, ribs, labels) and publishes the result back in
rendered pixels.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from PySide6.QtCore import Property, QObject, Signal, Slot

from .coords import CoordinateMapper
from .drag import DragController
from .geometry import build_bones
from .measurement import MeasurementRegistry, block_key, effect_key, surface_key
from .model import FishboneModel
from .placement import LayoutResult, PlacementEngine
from .scheduler import RenderScheduler, ResizeNotifier
from .types import Bone, Point, Rect, Segment

logger = logging.getLogger(__name__)


def _empty_layout() -> Dict[str, Any]:
    return {
        "bonePaths": [],
        "ribPaths": [],
        "labelPositions": {},
        "blockPositions": {},
        "spinePaths": [],
        "arrowPath": [],
        "effectBox": {},
    }


def _segment_dict(segment: Segment, width: float, **extra: Any) -> Dict[str, Any]:
    data = {"x1": segment.x1, "y1": segment.y1, "x2": segment.x2, "y2": segment.y2, "width": width}
    data.update(extra)
    return data


def _rect_dict(rect: Rect, **extra: Any) -> Dict[str, Any]:
    data = {"x": rect.x, "y": rect.y, "width": rect.width, "height": rect.height}
    data.update(extra)
    return data


class FishboneEditor(QObject):
    """Qt facade exposing layout output and drag handling to QML."""

    layoutChanged = Signal()
    dragStateChanged = Signal()

    def __init__(
        self,
        model: FishboneModel,
        measurements: Optional[MeasurementRegistry] = None,
        mapper: Optional[CoordinateMapper] = None,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self._model = model
        self._measurements = measurements if measurements is not None else MeasurementRegistry()
        self._mapper = mapper or CoordinateMapper()
        self._engine = PlacementEngine(self._measurements, self._mapper)
        self._bones: Dict[str, Bone] = {}
        self._result: Optional[LayoutResult] = None
        self._rendered: Dict[str, Any] = _empty_layout()

        self._scheduler = RenderScheduler(self._rebuild_geometry, self._rebuild_placement, self)
        self._resizes = ResizeNotifier(self)
        self._resizes.onResize(effect_key(), self._on_effect_resized)
        self._block_subscriptions: Dict[str, Callable[[], None]] = {}
        self._drag = DragController(model, lambda: self._bones)

        model.structureChanged.connect(self._on_structure_changed)
        model.appearanceChanged.connect(self._scheduler.requestGeometryRebuild)
        model.positionChanged.connect(self._on_position_changed)
        model.sizeChanged.connect(self._on_size_changed)
        model.headingRemoved.connect(self._on_heading_removed)
        self._sync_block_subscriptions()

    # --- Accessors ----------------------------------------------------------
    @property
    def model(self) -> FishboneModel:
        return self._model

    @property
    def measurements(self) -> MeasurementRegistry:
        return self._measurements

    @property
    def scheduler(self) -> RenderScheduler:
        return self._scheduler

    @property
    def resizes(self) -> ResizeNotifier:
        return self._resizes

    @property
    def drag(self) -> DragController:
        return self._drag

    def bones(self) -> Dict[str, Bone]:
        return dict(self._bones)

    def logicalLayout(self) -> Optional[LayoutResult]:
        """The last placement pass in logical units, or None before the first one."""
        return self._result

    def layout(self) -> Dict[str, Any]:
        """The last placement pass in rendered pixels."""
        return dict(self._rendered)

    def _container(self) -> Optional[Rect]:
        return self._measurements.measure(surface_key())

    # --- Properties exposed to QML -----------------------------------------
    @Property(list, notify=layoutChanged)
    def bonePaths(self) -> List[Dict[str, Any]]:
        return self._rendered["bonePaths"]

    @Property(list, notify=layoutChanged)
    def ribPaths(self) -> List[Dict[str, Any]]:
        return self._rendered["ribPaths"]

    @Property("QVariantMap", notify=layoutChanged)
    def labelPositions(self) -> Dict[str, Any]:
        return self._rendered["labelPositions"]

    @Property("QVariantMap", notify=layoutChanged)
    def blockPositions(self) -> Dict[str, Any]:
        return self._rendered["blockPositions"]

    @Property(list, notify=layoutChanged)
    def spinePaths(self) -> List[Dict[str, Any]]:
        return self._rendered["spinePaths"]

    @Property(list, notify=layoutChanged)
    def arrowPath(self) -> List[Dict[str, float]]:
        return self._rendered["arrowPath"]

    @Property("QVariantMap", notify=layoutChanged)
    def effectBox(self) -> Dict[str, Any]:
        return self._rendered["effectBox"]

    @Property(bool, notify=dragStateChanged)
    def dragging(self) -> bool:
        return self._drag.active

    @Property(str, notify=dragStateChanged)
    def draggedBlockId(self) -> str:
        return self._drag.state.block_id

    # --- Measurements and resizes --------------------------------------------
    @Slot(str, float, float, float, float)
    def reportGeometry(self, element_id: str, x: float, y: float, width: float, height: float) -> None:
        """Record a measured rectangle; changed measurements trigger a deferred pass."""
        if self._measurements.update(element_id, Rect(x, y, width, height)):
            self._scheduler.requestMeasurementRebuild()

    @Slot(str)
    def forgetGeometry(self, element_id: str) -> None:
        self._measurements.forget(element_id)

    @Slot(str, float, float)
    def notifyResize(self, element_id: str, width: float, height: float) -> None:
        """Interactive resize of the effect box or a block, in rendered pixels."""
        self._resizes.notifyResize(element_id, width, height)

    @Slot(float, float)
    def moveEffect(self, dx: float, dy: float) -> None:
        """Shift the effect box by a pointer delta given in rendered pixels."""
        container = self._container()
        logical_dx = self._mapper.width_to_logical(dx, container)
        logical_dy = self._mapper.height_to_logical(dy, container)
        if logical_dx is None or logical_dy is None:
            return
        effect = self._model.effect
        self._model.setEffectOffset(effect.dx + logical_dx, effect.dy + logical_dy)

    def _on_effect_resized(self, size: Dict[str, float]) -> None:
        container = self._container()
        width = self._mapper.width_to_logical(size["width"], container)
        height = self._mapper.height_to_logical(size["height"], container)
        if width is None or height is None:
            return
        self._model.setEffectSize(width, height)

    def _block_resized(self, block_id: str) -> Callable[[Dict[str, float]], None]:
        def callback(size: Dict[str, float]) -> None:
            width = self._mapper.width_to_logical(size["width"], self._container())
            if width is not None:
                self._model.setBlockWidth(block_id, width)

        return callback

    def _sync_block_subscriptions(self) -> None:
        current = {block.id for block in self._model.blocks()}
        for block_id in list(self._block_subscriptions):
            if block_id not in current:
                self._block_subscriptions.pop(block_id)()
                self._measurements.forget(block_key(block_id))
        for block_id in current:
            if block_id not in self._block_subscriptions:
                self._block_subscriptions[block_id] = self._resizes.onResize(
                    block_key(block_id), self._block_resized(block_id)
                )

    # --- Model notifications ---------------------------------------------------
    def _on_structure_changed(self) -> None:
        self._sync_block_subscriptions()
        self._scheduler.requestStructuralRebuild()

    def _on_position_changed(self, block_id: str) -> None:
        self._rebuild_placement()

    def _on_size_changed(self, element_id: str) -> None:
        self._scheduler.requestPlacementRebuild()

    def _on_heading_removed(self, block_id: str) -> None:
        if self._drag.release_block(block_id):
            logger.info("Dragged heading %s was removed; drag cleared", block_id)
            self.dragStateChanged.emit()

    # --- Passes ------------------------------------------------------------------
    def _rebuild_geometry(self) -> None:
        container = self._container()
        if not self._mapper.is_measured(container):
            logger.debug("Editing surface not measured yet; skipping geometry pass")
            return
        self._bones = build_bones(
            self._model.categories(),
            self._measurements,
            self._model.appearance,
            self._mapper.width,
            self._mapper.height,
        )
        self._place(container)

    def _rebuild_placement(self) -> None:
        container = self._container()
        if not self._mapper.is_measured(container):
            return
        self._place(container)

    def _place(self, container: Rect) -> None:
        result = self._engine.layout(
            self._model.categories(),
            self._bones,
            self._model.appearance,
            self._model.effect,
            container,
        )
        self._result = result
        rendered = self._render(result, container)
        if rendered != self._rendered:
            self._rendered = rendered
            self.layoutChanged.emit()

    def _render(self, result: LayoutResult, container: Rect) -> Dict[str, Any]:
        mapper = self._mapper
        appearance = self._model.appearance
        bone_width = mapper.stroke_to_rendered(appearance.bone_thickness, container)
        rib_width = mapper.stroke_to_rendered(max(2.0, appearance.bone_thickness - 4.0), container)
        tail_width = mapper.stroke_to_rendered(max(4.0, appearance.bone_thickness - 4.0), container)

        rendered = _empty_layout()
        for category_id, bone in result.bones.items():
            segment = Segment(bone.x_spine, bone.y_spine, bone.x_edge, bone.y_edge)
            rendered["bonePaths"].append(_segment_dict(
                mapper.segment_to_rendered(segment, container),
                bone_width,
                categoryId=category_id,
                side=bone.side.value,
            ))
        for block_id, rib in result.ribs.items():
            rendered["ribPaths"].append(_segment_dict(
                mapper.segment_to_rendered(rib, container), rib_width, blockId=block_id
            ))
        for category_id, label in result.labels.items():
            rendered["labelPositions"][category_id] = _rect_dict(
                mapper.rect_to_rendered(label.rect, container), side=label.side.value
            )
        for block_id, placement in result.blocks.items():
            attachment = mapper.to_rendered(placement.attachment, container)
            rendered["blockPositions"][block_id] = _rect_dict(
                mapper.rect_to_rendered(placement.rect, container),
                categoryId=placement.category_id,
                attachX=attachment.x,
                attachY=attachment.y,
            )
        spine, tail = result.spine
        rendered["spinePaths"] = [
            _segment_dict(mapper.segment_to_rendered(spine, container), bone_width),
            _segment_dict(mapper.segment_to_rendered(tail, container), tail_width),
        ]
        for point in result.arrow:
            corner = mapper.to_rendered(point, container)
            rendered["arrowPath"].append({"x": corner.x, "y": corner.y})
        if result.effect is not None:
            rendered["effectBox"] = _rect_dict(mapper.rect_to_rendered(result.effect, container))
        return rendered

    @Slot()
    def flush(self) -> None:
        """Deliver pending resizes and run pending passes now."""
        self._resizes.flush()
        self._scheduler.flush()

    # --- Dragging -------------------------------------------------------------------
    @Slot(str, float, float, result=bool)
    def startHeadingDrag(self, block_id: str, x: float, y: float) -> bool:
        """Begin dragging ``block_id`` from a press at rendered pixel (x, y).

        Raises:
            DragError: if another drag is still in progress.
        """
        point = self._mapper.to_logical(Point(x, y), self._container())
        if point is None:
            return False
        started = self._drag.on_drag_start(block_id, point)
        if started:
            self.dragStateChanged.emit()
        return started

    @Slot(float, float, result=float)
    def updateHeadingDrag(self, x: float, y: float) -> float:
        """Move the active drag; returns the block's new ``t`` or -1."""
        point = self._mapper.to_logical(Point(x, y), self._container())
        if point is None:
            return -1.0
        value = self._drag.on_drag_move(point)
        return -1.0 if value is None else value

    @Slot()
    def finishHeadingDrag(self) -> None:
        was_active = self._drag.active
        self._drag.on_drag_end()
        if was_active:
            self.dragStateChanged.emit()

    @Slot()
    def cancelHeadingDrag(self) -> None:
        was_active = self._drag.active
        self._drag.on_drag_cancel()
        if was_active:
            self.dragStateChanged.emit()

    # --- Position parameter passthrough ------------------------------------------
    @Slot(str, result=float)
    def getT(self, block_id: str) -> float:
        return self._model.getT(block_id)

    @Slot(str, float)
    def setT(self, block_id: str, value: float) -> None:
        self._model.setT(block_id, value)
