"""Tests for rib, block and label placement along bones."""

import pytest

from fishbone.measurement import MeasurementRegistry, label_key
from fishbone.placement import PlacementEngine
from fishbone.types import Appearance, Block, Bone, Category, EffectBox, Point, Rect, Segment, Side

UPPER_BONE = Bone(500, 360, 340, 40, Side.UPPER)
LOWER_BONE = Bone(500, 360, 340, 680, Side.LOWER)


@pytest.fixture
def engine():
    return PlacementEngine(MeasurementRegistry())


def _category(*blocks, side=Side.UPPER):
    return Category(id="c", side=side, blocks=list(blocks))


class TestRibsAndBlocks:
    def test_rib_ends_short_of_attachment(self, engine):
        rib = engine.rib_for(Point(420, 200), Appearance())
        assert rib == Segment(284, 200, 414, 200)

    def test_block_sits_left_of_rib(self, engine):
        rect = engine.block_rect(Point(420, 200), 180, 60, Appearance())
        assert rect == Rect(98, 158, 180, 60)

    def test_block_rect_is_clamped_to_canvas(self, engine):
        rect = engine.block_rect(Point(100, 10), 180, 60, Appearance())
        assert rect.x == 0
        assert rect.y == 0

    def test_layout_attaches_block_at_t(self, engine):
        block = Block(id="b", t=0.5)
        result = engine.layout([_category(block)], {"c": UPPER_BONE}, Appearance(), EffectBox(), None)
        placement = result.blocks["b"]
        assert placement.category_id == "c"
        assert placement.attachment == Point(420, 200)
        assert placement.rect == Rect(98, 158, 180, 60)
        assert result.ribs["b"] == Segment(284, 200, 414, 200)

    def test_width_override_wins(self, engine):
        block = Block(id="b", t=0.5, width_override=250)
        result = engine.layout([_category(block)], {"c": UPPER_BONE}, Appearance(), EffectBox(), None)
        assert result.blocks["b"].rect.x == pytest.approx(28)
        assert result.blocks["b"].rect.width == 250

    def test_out_of_band_t_is_clamped_when_placed(self, engine):
        block = Block(id="b", t=0.0)
        result = engine.layout([_category(block)], {"c": UPPER_BONE}, Appearance(), EffectBox(), None)
        attachment = result.blocks["b"].attachment
        assert attachment.x == pytest.approx(500 - 0.08 * 160)
        assert attachment.y == pytest.approx(360 - 0.08 * 320)

    def test_category_without_bone_is_not_placed(self, engine):
        result = engine.layout([_category(Block(id="b"))], {}, Appearance(), EffectBox(), None)
        assert result.blocks == {}
        assert result.ribs == {}
        assert result.labels == {}

    def test_layout_is_idempotent(self, engine):
        categories = [_category(Block(id="b1", t=0.3), Block(id="b2", t=0.7))]
        first = engine.layout(categories, {"c": UPPER_BONE}, Appearance(), EffectBox(), None)
        second = engine.layout(categories, {"c": UPPER_BONE}, Appearance(), EffectBox(), None)
        assert first == second

    def test_measured_block_height_is_converted(self):
        registry = MeasurementRegistry()
        registry.update("block:b", Rect(0, 0, 90, 40))
        engine = PlacementEngine(registry)
        container = Rect(0, 0, 600, 360)
        result = engine.layout([_category(Block(id="b", t=0.5))], {"c": UPPER_BONE}, Appearance(), EffectBox(), container)
        assert result.blocks["b"].rect.height == pytest.approx(80)


class TestLabels:
    def test_upper_label_above_edge(self, engine):
        label = engine.place_label(_category(), UPPER_BONE, Appearance(), None)
        assert label.side == Side.UPPER
        assert label.rect.x == pytest.approx(240)
        assert label.rect.height == pytest.approx(27.2)
        assert label.rect.y == pytest.approx(40 - 27.2 - 4)

    def test_lower_label_below_edge(self, engine):
        label = engine.place_label(_category(side=Side.LOWER), LOWER_BONE, Appearance(), None)
        assert label.side == Side.LOWER
        assert label.rect.y == pytest.approx(684)

    def test_measured_label_height_is_used(self):
        registry = MeasurementRegistry()
        registry.update(label_key("c"), Rect(0, 0, 100, 10))
        engine = PlacementEngine(registry)
        label = engine.place_label(_category(side=Side.LOWER), LOWER_BONE, Appearance(), Rect(0, 0, 600, 360))
        assert label.rect.height == pytest.approx(20)


class TestEffectBox:
    def test_default_effect_at_arrow_body(self, engine):
        rect = engine.place_effect(EffectBox(), Appearance())
        assert rect == Rect(960, 285, 200, 150)

    def test_effect_offset_is_clamped(self, engine):
        rect = engine.place_effect(EffectBox(dx=500, dy=-900), Appearance())
        assert rect.x == 1000
        assert rect.y == 0
