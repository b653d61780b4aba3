import pytest

from ridescope.chartview.config import ChartConfig
from ridescope.chartview.geometry import ChartLayout, LayoutInsets, Rect, zoom_hint_span
from ridescope.chartview.viewport_state import VisibleWindow


def test_landscape_layout():
    layout = ChartLayout.compute(800, 300)

    assert layout.series_axis_rect == Rect(0.0, 0.0, 800.0, 278.0)
    assert layout.series_rect == Rect(52.0, 0.0, 710.0, 278.0)
    assert layout.time_labels_rect == Rect(47.0, 0.0, 720.0, 300.0)


def test_portrait_layout():
    layout = ChartLayout.compute(800, 300, portrait=True)

    assert layout.series_rect == Rect(0.0, 0.0, 760.0, 278.0)
    assert layout.time_labels_rect == Rect(20.0, 0.0, 760.0, 300.0)
    assert layout.portrait


def test_custom_insets():
    layout = ChartLayout.compute(200, 100, insets=LayoutInsets(series_inset_x=0, series_offset_x=0))
    assert layout.series_rect.x == 0.0
    assert layout.series_rect.width == 200.0


def test_tiny_bounds_do_not_go_negative():
    layout = ChartLayout.compute(30, 10)
    assert layout.series_rect.width == 0.0
    assert layout.fraction_of_series_width(10.0) == 0.0


def test_pixel_to_fraction_conversion():
    layout = ChartLayout.compute(800, 300)
    assert layout.fraction_of_series_width(71.0) == pytest.approx(0.1)
    assert layout.series_fraction_at(52.0 + 355.0) == pytest.approx(0.5)


def test_zoom_hint_span():
    rect = Rect(0.0, 0.0, 100.0, 10.0)
    assert zoom_hint_span(rect, VisibleWindow.full()) is None
    assert zoom_hint_span(rect, VisibleWindow(0.2, 0.6)) == pytest.approx((20.0, 60.0))


def test_config_defaults():
    config = ChartConfig()
    assert config.min_spacing_px == 2.0
    assert config.time_label_count(portrait=False) == 3
    assert config.time_label_count(portrait=True) == 2


@pytest.mark.parametrize(
    "kwargs",
    [{"min_spacing_px": 0.0}, {"num_axis_labels": -1}, {"snap_epsilon": 0.5}],
)
def test_config_validation(kwargs):
    with pytest.raises(ValueError):
        ChartConfig(**kwargs)


def test_config_from_dict(log_messages):
    config = ChartConfig.from_dict(
        {
            "MIN_SPACING_PX": 4.0,
            "SMOOTH_PAN": True,
            "INSETS": {"AXIS_INSET_Y": 5},
            "LOG_LEVEL": "DEBUG",
        }
    )

    assert config.min_spacing_px == 4.0
    assert config.smooth_pan
    assert config.insets.axis_inset_y == 5.0
    assert config.insets.series_inset_x == LayoutInsets().series_inset_x
    assert any("LOG_LEVEL" in msg for msg in log_messages)
