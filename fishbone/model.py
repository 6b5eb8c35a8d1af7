"""FishboneModel: the single store of categories, blocks and appearance.

The model has no geometry knowledge. Each mutation kind goes through one
update path and announces itself with one signal, so the editor can pick
the right rebuild (structural, appearance or placement only).
"""

from __future__ import annotations

import logging
import math
from itertools import count
from typing import Any, Dict, Iterator, List, Optional, Tuple

from PySide6.QtCore import (
    QAbstractListModel,
    QModelIndex,
    Property,
    Qt,
    Signal,
    Slot,
)

from .constants import (
    APPEARANCE_BOUNDS,
    APPEARANCE_KEYS,
    DEFAULT_BLOCK_TITLE,
    DEFAULT_CATEGORY_LABEL,
    LOGICAL_HEIGHT,
    LOGICAL_WIDTH,
    MIN_BLOCK_WIDTH,
    MIN_EFFECT_HEIGHT,
    MIN_EFFECT_WIDTH,
    NEW_BLOCK_TITLE,
    NEW_BULLET_TEXT,
    T_SIBLING_STEP,
    T_MAX,
)
from .geometry import clamp, clamp_t
from .io import default_state, parse_payload, to_payload
from .types import Appearance, Block, Category, DiagramState, EffectBox

logger = logging.getLogger(__name__)


class FishboneModel(QAbstractListModel):
    """Qt model exposing the six categories to QML."""

    IdRole = Qt.UserRole + 1
    SideRole = Qt.UserRole + 2
    LabelRole = Qt.UserRole + 3
    BlocksRole = Qt.UserRole + 4

    structureChanged = Signal()
    appearanceChanged = Signal()
    effectChanged = Signal()
    positionChanged = Signal(str, arguments=["blockId"])
    sizeChanged = Signal(str, arguments=["elementId"])
    headingRemoved = Signal(str, arguments=["blockId"])

    def __init__(self, state: Optional[DiagramState] = None):
        super().__init__()
        self._id_source = count()
        self._state = state if state is not None else default_state(self._next_id)

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}_{next(self._id_source)}"

    # --- Qt model overrides -------------------------------------------------
    def rowCount(self, parent: QModelIndex | None = QModelIndex()) -> int:  # type: ignore[override]
        return len(self._state.categories)

    def data(self, index: QModelIndex, role: int = Qt.DisplayRole):  # type: ignore[override]
        if not index.isValid() or not (0 <= index.row() < len(self._state.categories)):
            return None

        category = self._state.categories[index.row()]
        if role == self.IdRole:
            return category.id
        if role == self.SideRole:
            return category.side.value
        if role == self.LabelRole:
            return category.label
        if role == self.BlocksRole:
            return [self._block_snapshot(block) for block in category.blocks]
        return None

    def roleNames(self) -> Dict[int, bytes]:  # type: ignore[override]
        return {
            self.IdRole: b"categoryId",
            self.SideRole: b"side",
            self.LabelRole: b"label",
            self.BlocksRole: b"blocks",
        }

    @staticmethod
    def _block_snapshot(block: Block) -> Dict[str, Any]:
        return {
            "id": block.id,
            "title": block.title,
            "bullets": list(block.bullets),
            "t": block.t,
            "width": block.width_override if block.width_override is not None else -1.0,
        }

    def _category_changed(self, category: Category, roles: List[int]) -> None:
        row = self._state.categories.index(category)
        index = self.index(row, 0)
        self.dataChanged.emit(index, index, roles)

    # --- Properties exposed to QML -----------------------------------------
    @Property(str, notify=effectChanged)
    def effectText(self) -> str:
        return self._state.effect.text

    @Property("QVariantMap", notify=appearanceChanged)
    def appearanceValues(self) -> Dict[str, Any]:
        return {key: getattr(self._state.appearance, attr) for key, attr in APPEARANCE_KEYS.items()}

    # --- Read access ----------------------------------------------------------
    @property
    def appearance(self) -> Appearance:
        return self._state.appearance

    @property
    def effect(self) -> EffectBox:
        return self._state.effect

    def categories(self) -> List[Category]:
        return list(self._state.categories)

    def blocks(self) -> Iterator[Block]:
        for category in self._state.categories:
            yield from category.blocks

    def getCategory(self, category_id: str) -> Optional[Category]:
        for category in self._state.categories:
            if category.id == category_id:
                return category
        return None

    def getBlock(self, block_id: str) -> Optional[Block]:
        for block in self.blocks():
            if block.id == block_id:
                return block
        return None

    def _locate(self, block_id: str) -> Tuple[Optional[Category], Optional[Block]]:
        for category in self._state.categories:
            for block in category.blocks:
                if block.id == block_id:
                    return category, block
        return None, None

    @Slot(str, result=str)
    def categoryOf(self, block_id: str) -> str:
        category, _ = self._locate(block_id)
        return category.id if category else ""

    @Slot(result=list)
    def categoryIds(self) -> List[str]:
        return [category.id for category in self._state.categories]

    # --- Position parameter ----------------------------------------------------
    @Slot(str, result=float)
    def getT(self, block_id: str) -> float:
        """Return the block's ``t``, or -1 for an unknown block."""
        block = self.getBlock(block_id)
        return block.t if block else -1.0

    @Slot(str, float)
    def setT(self, block_id: str, value: float) -> None:
        """Store a new ``t``, clamped into its band. NaN is ignored."""
        block = self.getBlock(block_id)
        if block is None or math.isnan(value):
            return
        clamped = clamp_t(value)
        if block.t == clamped:
            return
        block.t = clamped
        self.positionChanged.emit(block_id)

    def suggestT(self, category: Category) -> float:
        """A free spot next to the last heading of ``category``."""
        if not category.blocks:
            return clamp_t(0.5)
        last = category.blocks[-1].t
        candidate = last + T_SIBLING_STEP
        if candidate > T_MAX:
            candidate = last - T_SIBLING_STEP
        return clamp_t(candidate)

    # --- Headings ---------------------------------------------------------------
    @Slot(str, str, result=str)
    def addHeading(self, category_id: str, title: str = "") -> str:
        category = self.getCategory(category_id)
        if category is None:
            return ""
        block = Block(
            id=self._next_id("block"),
            title=title.strip() or NEW_BLOCK_TITLE,
            bullets=[NEW_BULLET_TEXT],
            t=self.suggestT(category),
        )
        category.blocks.append(block)
        self._category_changed(category, [self.BlocksRole])
        self.structureChanged.emit()
        return block.id

    @Slot(str, result=bool)
    def removeHeading(self, block_id: str) -> bool:
        """Delete a heading. The last heading of a category is kept."""
        category, block = self._locate(block_id)
        if category is None or block is None:
            return False
        if len(category.blocks) <= 1:
            logger.info("Refusing to remove the last heading of %s", category.id)
            return False
        category.blocks.remove(block)
        self._category_changed(category, [self.BlocksRole])
        self.headingRemoved.emit(block_id)
        self.structureChanged.emit()
        return True

    @Slot(str, str)
    def setBlockTitle(self, block_id: str, title: str) -> None:
        category, block = self._locate(block_id)
        if block is None:
            return
        title = title.strip() or DEFAULT_BLOCK_TITLE
        if block.title == title:
            return
        block.title = title
        self._category_changed(category, [self.BlocksRole])
        self.structureChanged.emit()

    @Slot(str, str)
    def setCategoryLabel(self, category_id: str, label: str) -> None:
        category = self.getCategory(category_id)
        if category is None:
            return
        label = label.strip() or DEFAULT_CATEGORY_LABEL
        if category.label == label:
            return
        category.label = label
        self._category_changed(category, [self.LabelRole])
        self.structureChanged.emit()

    # --- Bullets -------------------------------------------------------------------
    @Slot(str, str)
    def addBullet(self, block_id: str, text: str = "") -> None:
        category, block = self._locate(block_id)
        if block is None:
            return
        block.bullets.append(text or NEW_BULLET_TEXT)
        self._category_changed(category, [self.BlocksRole])
        self.structureChanged.emit()

    @Slot(str, int, str)
    def setBullet(self, block_id: str, index: int, text: str) -> None:
        category, block = self._locate(block_id)
        if block is None or not (0 <= index < len(block.bullets)):
            return
        text = text.strip()
        if block.bullets[index] == text:
            return
        block.bullets[index] = text
        self._category_changed(category, [self.BlocksRole])
        self.structureChanged.emit()

    @Slot(str, int)
    def removeBullet(self, block_id: str, index: int) -> None:
        category, block = self._locate(block_id)
        if block is None or not (0 <= index < len(block.bullets)):
            return
        block.bullets.pop(index)
        if not block.bullets:
            block.bullets.append(NEW_BULLET_TEXT)
        self._category_changed(category, [self.BlocksRole])
        self.structureChanged.emit()

    # --- Sizes ---------------------------------------------------------------------
    @Slot(str, float)
    def setBlockWidth(self, block_id: str, width: float) -> None:
        """Store a per-block width override (logical units)."""
        category, block = self._locate(block_id)
        if block is None or not math.isfinite(width):
            return
        width = clamp(width, MIN_BLOCK_WIDTH, LOGICAL_WIDTH)
        if block.width_override == width:
            return
        block.width_override = width
        self._category_changed(category, [self.BlocksRole])
        self.sizeChanged.emit(block_id)

    @Slot(str)
    def clearBlockWidth(self, block_id: str) -> None:
        category, block = self._locate(block_id)
        if block is None or block.width_override is None:
            return
        block.width_override = None
        self._category_changed(category, [self.BlocksRole])
        self.sizeChanged.emit(block_id)

    # --- Effect box ----------------------------------------------------------------
    @Slot(str)
    def setEffectText(self, text: str) -> None:
        text = text.strip()
        if self._state.effect.text == text:
            return
        self._state.effect.text = text
        self.effectChanged.emit()
        self.structureChanged.emit()

    @Slot(float, float)
    def setEffectOffset(self, dx: float, dy: float) -> None:
        effect = self._state.effect
        dx = clamp(dx, -LOGICAL_WIDTH, LOGICAL_WIDTH)
        dy = clamp(dy, -LOGICAL_HEIGHT, LOGICAL_HEIGHT)
        if (effect.dx, effect.dy) == (dx, dy):
            return
        effect.dx, effect.dy = dx, dy
        self.effectChanged.emit()
        self.sizeChanged.emit("effect")

    @Slot(float, float)
    def setEffectSize(self, width: float, height: float) -> None:
        effect = self._state.effect
        width = clamp(width, MIN_EFFECT_WIDTH, LOGICAL_WIDTH)
        height = clamp(height, MIN_EFFECT_HEIGHT, LOGICAL_HEIGHT)
        if (effect.width, effect.height) == (width, height):
            return
        effect.width, effect.height = width, height
        self.effectChanged.emit()
        self.sizeChanged.emit("effect")

    # --- Appearance ----------------------------------------------------------------
    @Slot(str, "QVariant")
    def setAppearanceValue(self, key: str, value: Any) -> None:
        """Set one appearance field by its persisted (camelCase) name."""
        attr = APPEARANCE_KEYS.get(key)
        if attr is None:
            logger.warning("Unknown appearance key: %s", key)
            return
        appearance = self._state.appearance
        if attr == "bone_color":
            new_value: Any = str(value).strip() or appearance.bone_color
        else:
            try:
                number = float(value)
            except (TypeError, ValueError):
                logger.warning("Ignoring non-numeric %s: %r", key, value)
                return
            if not math.isfinite(number):
                return
            low, high = APPEARANCE_BOUNDS[attr]
            new_value = clamp(number, low, high)
        if getattr(appearance, attr) == new_value:
            return
        setattr(appearance, attr, new_value)
        self.appearanceChanged.emit()

    # --- Whole-model operations ----------------------------------------------------
    def _replace_state(self, state: DiagramState) -> None:
        self.beginResetModel()
        self._state = state
        self.endResetModel()
        self.effectChanged.emit()
        self.appearanceChanged.emit()
        self.structureChanged.emit()

    @Slot()
    def reset(self) -> None:
        """Replace the diagram with a fresh default model."""
        self._id_source = count()
        self._replace_state(default_state(self._next_id))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the diagram for saving."""
        return to_payload(self._state)

    def from_dict(self, data: Dict[str, Any]) -> None:
        """Replace the diagram with a validated payload.

        Raises:
            FishboneImportError: if the payload is rejected. The current
                diagram is left untouched in that case.
        """
        state = parse_payload(data, self._next_id)

        # Resume id generation past every numeric suffix in use.
        max_id = 0
        for category in state.categories:
            for item_id in [category.id] + [block.id for block in category.blocks]:
                try:
                    id_parts = item_id.rsplit("_", 1)
                    if len(id_parts) == 2:
                        max_id = max(max_id, int(id_parts[1]) + 1)
                except ValueError:
                    pass
        self._id_source = count(max(max_id, next(self._id_source)))

        self._replace_state(state)
