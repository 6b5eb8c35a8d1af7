"""Conversion between persisted diagram payloads and live diagram state.

Payloads are validated completely before anything is returned, so a
rejected import never leaves the live model half replaced.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Callable, Dict, List, Optional

from .constants import (
    APPEARANCE_BOUNDS,
    APPEARANCE_KEYS,
    CATEGORIES_PER_SIDE,
    CATEGORY_COUNT,
    DEFAULT_BLOCK_TITLE,
    DEFAULT_CATEGORY_LABEL,
    DEFAULT_CATEGORY_LABELS,
    DEFAULT_EFFECT_TEXT,
    LEGACY_SCHEMA_VERSION,
    LOGICAL_HEIGHT,
    LOGICAL_WIDTH,
    MIN_BLOCK_WIDTH,
    MIN_EFFECT_HEIGHT,
    MIN_EFFECT_WIDTH,
    NEW_BULLET_TEXT,
    SCHEMA_VERSION,
    T_DEFAULT,
    T_MAX,
    T_MIN,
)
from .errors import FishboneImportError
from .geometry import clamp, clamp_t
from .types import Appearance, Block, Category, DiagramState, EffectBox, Side

logger = logging.getLogger(__name__)

IdFactory = Callable[[str], str]


def side_for_position(position: int) -> Side:
    return Side.UPPER if position < CATEGORIES_PER_SIDE else Side.LOWER


def spread_t(index: int, count: int) -> float:
    """Default ``t`` for the index-th of ``count`` blocks on one bone."""
    if count <= 1:
        return T_DEFAULT
    return 0.2 + 0.6 * index / (count - 1)


def make_block(next_id: IdFactory, title: str = DEFAULT_BLOCK_TITLE, t: float = T_DEFAULT) -> Block:
    return Block(id=next_id("block"), title=title, bullets=[NEW_BULLET_TEXT], t=clamp_t(t))


def make_category(next_id: IdFactory, position: int, label: Optional[str] = None) -> Category:
    if label is None:
        label = DEFAULT_CATEGORY_LABELS[position] if position < len(DEFAULT_CATEGORY_LABELS) else DEFAULT_CATEGORY_LABEL
    return Category(
        id=next_id("cat"),
        side=side_for_position(position),
        label=label,
        blocks=[make_block(next_id)],
    )


def default_state(next_id: IdFactory) -> DiagramState:
    return DiagramState(
        categories=[make_category(next_id, position) for position in range(CATEGORY_COUNT)],
        effect=EffectBox(text=DEFAULT_EFFECT_TEXT),
        appearance=Appearance(),
    )


# --- Parsing helpers ---------------------------------------------------------
def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _finite(value: Any, default: float) -> float:
    number = _number(value)
    if number is None or not math.isfinite(number):
        return default
    return number


def _parse_t(value: Any, default: float) -> float:
    """Clamp a stored ``t``; infinities clamp to the nearest bound, NaN falls back."""
    number = _number(value)
    if number is None or math.isnan(number):
        return default
    if math.isinf(number):
        return T_MAX if number > 0 else T_MIN
    return clamp_t(number)


def _text(value: Any, default: str) -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def _parse_bullets(value: Any) -> List[str]:
    if not isinstance(value, list):
        return [NEW_BULLET_TEXT]
    bullets = [str(item) for item in value]
    return bullets or [NEW_BULLET_TEXT]


def _fresh_ids(next_id: IdFactory, taken: set) -> IdFactory:
    """Wrap ``next_id`` so it skips every id in ``taken`` and records what it hands out."""
    def factory(prefix: str) -> str:
        candidate = next_id(prefix)
        while candidate in taken:
            candidate = next_id(prefix)
        taken.add(candidate)
        return candidate

    return factory


def _payload_ids(raw_categories: List[Any]) -> set:
    ids = set()
    for raw in raw_categories:
        if not isinstance(raw, dict):
            continue
        if raw.get("id") not in (None, ""):
            ids.add(str(raw["id"]))
        blocks = raw.get("blocks")
        for block in blocks if isinstance(blocks, list) else []:
            if isinstance(block, dict) and block.get("id") not in (None, ""):
                ids.add(str(block["id"]))
    return ids


def _unique_id(value: Any, prefix: str, seen: set, next_id: IdFactory) -> str:
    candidate = str(value) if value not in (None, "") else ""
    if not candidate or candidate in seen:
        candidate = next_id(prefix)
    seen.add(candidate)
    return candidate


def _parse_blocks(value: Any, seen: set, next_id: IdFactory, legacy: bool = False) -> List[Block]:
    raw_blocks = [entry for entry in value if isinstance(entry, dict)] if isinstance(value, list) else []
    blocks: List[Block] = []
    for index, raw in enumerate(raw_blocks):
        default_t = spread_t(index, len(raw_blocks))
        width = _number(raw.get("width"))
        if width is not None and not math.isfinite(width):
            width = None
        blocks.append(Block(
            id=_unique_id(raw.get("id"), "block", seen, next_id),
            title=_text(raw.get("title"), DEFAULT_BLOCK_TITLE),
            bullets=_parse_bullets(raw.get("bullets")),
            # Legacy payloads stored pixel offsets, which have no bone meaning.
            t=default_t if legacy else _parse_t(raw.get("t"), default_t),
            width_override=None if width is None else clamp(width, MIN_BLOCK_WIDTH, LOGICAL_WIDTH),
        ))
    if not blocks:
        blocks.append(make_block(next_id))
    return blocks


def _parse_appearance(value: Any) -> Appearance:
    appearance = Appearance()
    if not isinstance(value, dict):
        return appearance
    for key, attr in APPEARANCE_KEYS.items():
        if key not in value:
            continue
        if attr == "bone_color":
            appearance.bone_color = _text(value[key], appearance.bone_color)
            continue
        low, high = APPEARANCE_BOUNDS[attr]
        number = _finite(value[key], getattr(appearance, attr))
        setattr(appearance, attr, clamp(number, low, high))
    return appearance


def _parse_effect(data: Dict[str, Any]) -> EffectBox:
    effect = EffectBox(text=str(data.get("effectText", "") or ""))
    position = data.get("effectPos")
    if isinstance(position, dict):
        effect.dx = clamp(_finite(position.get("dx"), 0.0), -LOGICAL_WIDTH, LOGICAL_WIDTH)
        effect.dy = clamp(_finite(position.get("dy"), 0.0), -LOGICAL_HEIGHT, LOGICAL_HEIGHT)
    size = data.get("effectSize")
    if isinstance(size, dict):
        effect.width = clamp(_finite(size.get("w"), effect.width), MIN_EFFECT_WIDTH, LOGICAL_WIDTH)
        effect.height = clamp(_finite(size.get("h"), effect.height), MIN_EFFECT_HEIGHT, LOGICAL_HEIGHT)
    return effect


def _legacy_categories(data: Dict[str, Any]) -> List[Any]:
    top = data.get("topCategories")
    bottom = data.get("bottomCategories")
    if not isinstance(top, list) or not isinstance(bottom, list):
        raise FishboneImportError("That JSON does not look like a fishbone model.")

    def pad(entries: List[Any]) -> List[Any]:
        entries = list(entries[:CATEGORIES_PER_SIDE])
        return entries + [None] * (CATEGORIES_PER_SIDE - len(entries))

    return pad(top) + pad(bottom)


def parse_payload(data: Any, next_id: IdFactory) -> DiagramState:
    """Validate a persisted payload and build the diagram state it describes.

    Raises:
        FishboneImportError: if the payload is not a diagram object, comes
            from a newer schema, or has no usable ``categories`` list.
    """
    if not isinstance(data, dict):
        raise FishboneImportError("Diagram payload must be a JSON object")

    version = data.get("version", SCHEMA_VERSION)
    if isinstance(version, bool) or not isinstance(version, int):
        raise FishboneImportError(f"Unsupported diagram version: {version!r}")
    if version > SCHEMA_VERSION:
        raise FishboneImportError(f"Diagram version {version} is newer than supported ({SCHEMA_VERSION})")

    legacy = version <= LEGACY_SCHEMA_VERSION and "categories" not in data
    if legacy:
        raw_categories = _legacy_categories(data)
    else:
        raw_categories = data.get("categories")
        if not isinstance(raw_categories, list):
            raise FishboneImportError("Diagram payload is missing its categories")
        if not raw_categories:
            raise FishboneImportError("Diagram payload has no categories")
        if len(raw_categories) != CATEGORY_COUNT:
            logger.warning(
                "Diagram payload has %d categories, expected %d; using defaults for the rest",
                len(raw_categories),
                CATEGORY_COUNT,
            )
        raw_categories = raw_categories[:CATEGORY_COUNT]

    seen: set = set()
    # Generated ids must not collide with ids the payload already uses.
    fresh = _fresh_ids(next_id, _payload_ids(raw_categories))
    categories: List[Category] = []
    for position in range(CATEGORY_COUNT):
        raw = raw_categories[position] if position < len(raw_categories) else None
        if not isinstance(raw, dict):
            category = make_category(fresh, position)
            seen.add(category.id)
            seen.update(block.id for block in category.blocks)
            categories.append(category)
            continue
        categories.append(Category(
            id=_unique_id(raw.get("id"), "cat", seen, fresh),
            side=side_for_position(position),
            label=_text(raw.get("label"), DEFAULT_CATEGORY_LABEL),
            blocks=_parse_blocks(raw.get("blocks"), seen, fresh, legacy=legacy),
        ))

    return DiagramState(
        categories=categories,
        effect=_parse_effect(data),
        appearance=_parse_appearance(data.get("appearance")),
    )


def to_payload(state: DiagramState) -> Dict[str, Any]:
    """Serialize diagram state to the persisted schema."""
    appearance = {key: getattr(state.appearance, attr) for key, attr in APPEARANCE_KEYS.items()}
    categories = []
    for category in state.categories:
        blocks = []
        for block in category.blocks:
            block_data: Dict[str, Any] = {
                "id": block.id,
                "title": block.title,
                "bullets": list(block.bullets),
                "t": block.t,
            }
            if block.width_override is not None:
                block_data["width"] = block.width_override
            blocks.append(block_data)
        categories.append({
            "id": category.id,
            "side": category.side.value,
            "label": category.label,
            "blocks": blocks,
        })
    return {
        "version": SCHEMA_VERSION,
        "effectText": state.effect.text,
        "effectPos": {"dx": state.effect.dx, "dy": state.effect.dy},
        "effectSize": {"w": state.effect.width, "h": state.effect.height},
        "appearance": appearance,
        "categories": categories,
    }
