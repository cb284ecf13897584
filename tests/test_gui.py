"""Tests for the Qt preview window, run on the offscreen platform."""

from __future__ import annotations

import os

import pytest
from PIL import Image

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
QtWidgets = pytest.importorskip("PyQt6.QtWidgets")
from PyQt6.QtGui import QCloseEvent  # noqa: E402

from gui import MorphWindow  # noqa: E402
from main import MorphStatus  # noqa: E402


@pytest.fixture(scope="module")
def qapp():
    return QtWidgets.QApplication.instance() or QtWidgets.QApplication([])


@pytest.fixture
def window(qapp, small_config, target_file):
    win = MorphWindow(small_config.replace(target_path=target_file))
    yield win
    win.timer.stop()
    win.deleteLater()


class TestMorphWindow:
    def test_target_loaded_on_startup(self, window):
        assert window.engine.status is MorphStatus.TARGET_READY
        assert window.status_label.text() == "target ready, waiting for source"
        assert not window.replay_button.isVisible()

    def test_zero_size_surface_skips_frame(self, window):
        label = window.preview_label
        label.clear()
        label.setMinimumSize(0, 0)
        label.resize(0, 0)
        window.update_preview(Image.new("RGB", (8, 8), (255, 0, 0)))
        assert label.pixmap().isNull()

        # next tick after the surface comes back draws normally
        label.resize(8, 8)
        window.update_preview(Image.new("RGB", (8, 8), (255, 0, 0)))
        assert not label.pixmap().isNull()

    def test_missing_surface_skips_frame(self, window):
        window.preview_label = None
        window.update_preview(Image.new("RGB", (8, 8)))

    def test_source_starts_timer_and_close_stops_it(self, window, source_file):
        window.engine.load_source(source_file)
        window._refresh_controls()
        assert window.timer.isActive()
        assert window.status_label.text() == "running"

        window.closeEvent(QCloseEvent())
        assert not window.timer.isActive()
        assert not window.engine.is_animating

    def test_timer_tick_draws_frame(self, window, source_file):
        window.engine.load_source(source_file)
        window._refresh_controls()
        window.preview_label.clear()
        window.preview_label.resize(8, 8)
        window._on_timer_tick()
        assert window.engine.state.tick == 1
        assert not window.preview_label.pixmap().isNull()
