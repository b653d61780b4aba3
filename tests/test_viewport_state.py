import math

import pytest

from ridescope.chartview.viewport_state import (
    GestureState,
    PreviewTransform,
    ViewportState,
    VisibleWindow,
)


def test_visible_window_properties():
    window = VisibleWindow(0.25, 0.75)
    assert window.width == 0.5
    assert not window.is_full
    assert window.is_valid()
    assert VisibleWindow.full().is_full


@pytest.mark.parametrize("bounds", [(-0.1, 0.5), (0.5, 1.1), (0.6, 0.4), (math.nan, 0.5)])
def test_invalid_windows(bounds):
    assert not VisibleWindow(*bounds).is_valid()


def test_clamped():
    assert VisibleWindow(-0.5, 1.5).clamped() == VisibleWindow(0.0, 1.0)


def test_approx_equal():
    assert VisibleWindow(0.2, 0.4).approx_equal(VisibleWindow(0.2 + 1e-12, 0.4))
    assert not VisibleWindow(0.2, 0.4).approx_equal(VisibleWindow(0.21, 0.4))


def test_preview_transform_composition():
    preview = PreviewTransform.identity().zoomed(2.0, 0.5)
    assert preview == PreviewTransform(2.0, -0.5)
    assert preview.visible_content_range() == pytest.approx((0.25, 0.75))

    panned = preview.panned(0.25)
    assert panned.translation == pytest.approx(-0.25)
    assert not panned.is_identity


def test_gesture_bookkeeping():
    state = ViewportState()
    assert not state.is_gesturing

    state.begin_gesture(GestureState.PANNING)
    state.preview = PreviewTransform(1.0, 0.3)
    state.defer_refresh("test")
    assert state.is_gesturing

    state.end_gesture()
    assert state.preview.is_identity
    assert state.take_pending_refresh()
    assert not state.take_pending_refresh()


def test_reset_to_initial_state():
    state = ViewportState(VisibleWindow(0.1, 0.2))
    state.begin_gesture(GestureState.ZOOMING)
    state.refresh_pending = True

    state.reset_to_initial_state()
    assert state.window.is_full
    assert state.gesture is GestureState.IDLE
    assert not state.refresh_pending
