"""Integration tests for FishboneEditor passes, drags and resizes."""

import pytest
from PySide6.QtQml import QQmlApplicationEngine

from fishbone import create_fishbone_window
from fishbone.editor import FishboneEditor
from fishbone.errors import DragError
from fishbone.geometry import point_at
from fishbone.measurement import region_key
from fishbone.model import FishboneModel


def _measure(editor, width=1200, height=720):
    editor.reportGeometry("surface", 0, 0, width, height)
    for category_id in editor.model.categoryIds():
        editor.reportGeometry(region_key(category_id), 0, 0, width / 3, height / 2)
    editor.flush()


@pytest.fixture
def editor(app):
    editor = FishboneEditor(FishboneModel())
    _measure(editor)
    return editor


class TestPasses:
    def test_nothing_is_placed_before_measurement(self, app):
        editor = FishboneEditor(FishboneModel())
        editor.flush()
        assert editor.bones() == {}
        assert editor.bonePaths == []
        assert editor.logicalLayout() is None

    def test_layout_after_measurement(self, editor):
        assert len(editor.bones()) == 6
        assert len(editor.bonePaths) == 6
        assert len(editor.ribPaths) == 6
        assert set(editor.blockPositions) == {block.id for block in editor.model.blocks()}
        assert set(editor.labelPositions) == set(editor.model.categoryIds())
        assert len(editor.arrowPath) == 3
        assert editor.effectBox["x"] == pytest.approx(960)

    def test_attachment_follows_t(self, editor):
        position = editor.blockPositions["block_1"]
        assert (position["attachX"], position["attachY"]) == pytest.approx((199, 200))

    def test_rendered_output_is_scaled(self, app):
        editor = FishboneEditor(FishboneModel())
        _measure(editor, 600, 360)
        bone = next(path for path in editor.bonePaths if path["categoryId"] == "cat_0")
        assert (bone["x1"], bone["y1"]) == pytest.approx((139.5, 180))
        assert bone["width"] == pytest.approx(5)

    def test_appearance_change_rebuilds_bones(self, editor):
        editor.model.setAppearanceValue("boneSlant", 100)
        bone = editor.bones()["cat_0"]
        assert bone.x_spine - bone.x_edge == pytest.approx(100)

    def test_new_heading_placed_after_flush(self, editor):
        panels = []
        editor.scheduler.panelsRebuildRequested.connect(lambda: panels.append(True))
        block_id = editor.model.addHeading("cat_0", "More")
        assert panels == [True]
        assert block_id not in editor.blockPositions
        editor.flush()
        assert block_id in editor.blockPositions

    def test_layout_changed_only_on_change(self, editor):
        changes = []
        editor.layoutChanged.connect(lambda: changes.append(True))
        editor.scheduler.requestGeometryRebuild()
        assert changes == []
        editor.model.setT("block_1", 0.3)
        assert changes == [True]


class TestDragging:
    def test_drag_moves_block_along_bone(self, editor):
        bone = editor.bones()["cat_4"]
        start = point_at(bone, 0.5)
        assert editor.startHeadingDrag("block_5", start.x, start.y)
        assert editor.dragging
        assert editor.draggedBlockId == "block_5"

        target = point_at(bone, 0.7)
        assert editor.updateHeadingDrag(target.x, target.y) == pytest.approx(0.7)
        assert editor.getT("block_5") == pytest.approx(0.7)
        assert editor.blockPositions["block_5"]["attachX"] == pytest.approx(target.x)

        editor.finishHeadingDrag()
        assert not editor.dragging
        assert editor.updateHeadingDrag(start.x, start.y) == -1.0

    def test_drag_far_off_bone_is_clamped(self, editor):
        bone = editor.bones()["cat_0"]
        start = point_at(bone, 0.5)
        editor.startHeadingDrag("block_1", start.x, start.y)
        far = point_at(bone, 5.0)
        assert editor.updateHeadingDrag(far.x, far.y) == pytest.approx(0.92)
        editor.cancelHeadingDrag()

    def test_second_drag_raises(self, editor):
        editor.startHeadingDrag("block_1", 199, 200)
        with pytest.raises(DragError):
            editor.startHeadingDrag("block_3", 418, 200)
        editor.finishHeadingDrag()

    def test_removed_heading_clears_drag(self, editor):
        block_id = editor.model.addHeading("cat_0", "Temp")
        editor.flush()
        attach = editor.blockPositions[block_id]
        assert editor.startHeadingDrag(block_id, attach["attachX"], attach["attachY"])
        assert editor.model.removeHeading(block_id)
        assert not editor.dragging
        assert editor.draggedBlockId == ""


class TestResizes:
    def test_block_resize_keeps_other_positions(self, editor):
        before = {block.id: block.t for block in editor.model.blocks()}
        editor.notifyResize("block:block_3", 300, 80)
        editor.flush()
        assert editor.model.getBlock("block_3").width_override == pytest.approx(300)
        assert {block.id: block.t for block in editor.model.blocks()} == before
        assert editor.blockPositions["block_3"]["width"] == pytest.approx(300)

    def test_container_resize_round_trip_keeps_other_blocks(self, editor):
        before_t = {block.id: block.t for block in editor.model.blocks()}
        before_positions = dict(editor.blockPositions)

        editor.notifyResize("block:block_3", 300, 80)
        editor.flush()
        editor.reportGeometry("surface", 0, 0, 800, 480)
        editor.flush()
        assert editor.blockPositions["block_1"]["attachX"] == pytest.approx(199 * 800 / 1200)
        editor.reportGeometry("surface", 0, 0, 1200, 720)
        editor.flush()

        assert {block.id: block.t for block in editor.model.blocks()} == before_t
        for block_id, position in before_positions.items():
            if block_id != "block_3":
                assert editor.blockPositions[block_id] == position

    def test_effect_resize(self, editor):
        editor.notifyResize("effect", 250, 120)
        editor.flush()
        assert (editor.model.effect.width, editor.model.effect.height) == (250, 120)
        assert editor.effectBox["width"] == pytest.approx(250)


class TestEffectMove:
    def test_move_updates_offset_and_box(self, editor):
        editor.moveEffect(30, -15)
        editor.flush()
        assert (editor.model.effect.dx, editor.model.effect.dy) == (30, -15)
        assert editor.effectBox["x"] == pytest.approx(990)
        assert editor.effectBox["y"] == pytest.approx(270)

    def test_move_is_converted_to_logical_units(self, app):
        editor = FishboneEditor(FishboneModel())
        _measure(editor, 600, 360)
        editor.moveEffect(30, -15)
        editor.moveEffect(10, 0)
        assert (editor.model.effect.dx, editor.model.effect.dy) == pytest.approx((80, -30))

    def test_move_before_measurement_is_ignored(self, app):
        editor = FishboneEditor(FishboneModel())
        editor.moveEffect(30, 30)
        assert (editor.model.effect.dx, editor.model.effect.dy) == (0, 0)

    def test_offset_is_persisted(self, editor):
        editor.moveEffect(-40, 20)
        assert editor.model.to_dict()["effectPos"] == {"dx": -40, "dy": 20}


class TestCreateFishboneWindow:
    def test_create_window(self, app):
        editor = FishboneEditor(FishboneModel())
        engine = create_fishbone_window(editor)
        assert isinstance(engine, QQmlApplicationEngine)
        assert engine.rootObjects()
