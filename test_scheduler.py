"""Tests for pass ordering and resize coalescing."""

import pytest

from fishbone.scheduler import RenderScheduler, ResizeNotifier


@pytest.fixture
def calls():
    return []


@pytest.fixture
def scheduler(app, calls):
    return RenderScheduler(lambda: calls.append("geometry"), lambda: calls.append("placement"))


class TestRenderScheduler:
    def test_structural_rebuild_defers_geometry(self, scheduler, calls):
        panels = []
        scheduler.panelsRebuildRequested.connect(lambda: panels.append(True))
        scheduler.requestStructuralRebuild()
        assert panels == [True]
        assert calls == []
        assert scheduler.pending
        scheduler.flush()
        assert calls == ["geometry"]
        assert not scheduler.pending

    def test_geometry_rebuild_runs_immediately(self, scheduler, calls):
        scheduler.requestGeometryRebuild()
        assert calls == ["geometry"]

    def test_geometry_rebuild_waits_for_pending_structure(self, scheduler, calls):
        scheduler.requestStructuralRebuild()
        scheduler.requestGeometryRebuild()
        assert calls == []
        scheduler.flush()
        assert calls == ["geometry"]

    def test_placement_rebuild_is_deferred(self, scheduler, calls):
        scheduler.requestPlacementRebuild()
        assert calls == []
        scheduler.flush()
        assert calls == ["placement"]

    def test_geometry_covers_pending_placement(self, scheduler, calls):
        scheduler.requestPlacementRebuild()
        scheduler.requestMeasurementRebuild()
        scheduler.requestPlacementRebuild()
        scheduler.flush()
        assert calls == ["geometry"]

    def test_flush_with_nothing_pending(self, scheduler, calls):
        scheduler.flush()
        assert calls == []


class TestResizeNotifier:
    def test_latest_size_wins(self, app):
        notifier = ResizeNotifier()
        sizes = []
        notifier.onResize("block:a", sizes.append)
        notifier.notifyResize("block:a", 100, 40)
        notifier.notifyResize("block:a", 120, 44)
        assert sizes == []
        notifier.flush()
        assert sizes == [{"width": 120, "height": 44}]

    def test_unsubscribed_element_is_ignored(self, app):
        notifier = ResizeNotifier()
        sizes = []
        notifier.onResize("block:a", sizes.append)
        notifier.notifyResize("block:b", 100, 40)
        notifier.flush()
        assert sizes == []

    def test_unsubscribe(self, app):
        notifier = ResizeNotifier()
        sizes = []
        unsubscribe = notifier.onResize("effect", sizes.append)
        assert notifier.subscriberCount("effect") == 1
        unsubscribe()
        assert notifier.subscriberCount("effect") == 0
        notifier.notifyResize("effect", 10, 10)
        notifier.flush()
        assert sizes == []
