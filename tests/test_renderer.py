import matplotlib.pyplot as plt
import pytest

from conftest import make_source
from ridescope.chartview.chart import TelemetryChart
from ridescope.chartview.renderer import MatplotlibRenderer
from ridescope.chartview.series import EventSeries, LabelSide, ValueSeries
from ridescope.chartview.viewport_state import PreviewTransform


@pytest.fixture
def renderer():
    renderer = MatplotlibRenderer(figsize=(5.9, 3.0))
    yield renderer
    renderer.close()


def make_chart(renderer):
    chart = TelemetryChart(make_source(200), renderer=renderer)
    chart.add_series(
        ValueSeries(
            "value",
            0.0,
            200.0,
            label_side=LabelSide.RIGHT,
            evaluator=lambda s: s["value"],
            gradient_under_path=True,
        )
    )
    chart.add_series(EventSeries("spikes", predicate=lambda s: 20 <= s["value"] < 30))
    chart.resize(590.0, 300.0)
    return chart


def test_draw_frame_creates_artists(renderer):
    chart = make_chart(renderer)
    ax = renderer.ax

    assert renderer.frame is chart.last_frame
    assert len(ax.lines) == 1
    # One fill under the line
    assert len(ax.collections) == 1
    # One fault interval, no zoom hint at full range
    assert len(ax.patches) == 1
    # Five axis labels plus three time labels
    assert len(ax.texts) == 8
    assert ax.get_xlim() == (0.0, 590.0)
    assert ax.get_ylim() == (300.0, 0.0)


def test_zoomed_frame_draws_zoom_hint(renderer):
    chart = make_chart(renderer)
    chart.controller.set_window((0.0, 0.5))

    # Interval plus the hint bar
    assert len(renderer.ax.patches) == 2


def test_redraw_replaces_previous_artists(renderer):
    chart = make_chart(renderer)
    chart.refresh()
    chart.refresh()
    assert len(renderer.ax.lines) == 1


def test_apply_transform_moves_xlim(renderer):
    chart = make_chart(renderer)
    chart.zoom_begin()
    chart.zoom_changed(2.0, 52.0 + 250.0)

    assert renderer.transform == PreviewTransform(2.0, -0.5)
    assert renderer.ax.get_xlim() == pytest.approx((151.0, 446.0))

    chart.cancel_gesture()
    assert renderer.ax.get_xlim() == pytest.approx((0.0, 590.0))


def test_apply_transform_before_first_frame(renderer):
    renderer.apply_transform(PreviewTransform(2.0, 0.0))
    assert renderer.frame is None


def test_save(renderer, tmp_path, log_messages):
    make_chart(renderer)
    path = tmp_path / "chart.png"
    renderer.save(path)

    assert path.exists()
    assert any("Plot saved to" in msg for msg in log_messages)


def test_save_without_frame_raises(renderer, tmp_path):
    with pytest.raises(RuntimeError):
        renderer.save(tmp_path / "empty.png")


def test_uses_given_axes():
    fig, ax = plt.subplots()
    try:
        renderer = MatplotlibRenderer(ax=ax)
        assert renderer.fig is fig
        assert renderer.ax is ax
    finally:
        plt.close(fig)


def test_single_point_event_run_has_visible_width(renderer):
    chart = TelemetryChart(make_source(1000), renderer=renderer)
    chart.add_series(EventSeries("blip", predicate=lambda s: 500 <= s["value"] <= 502))
    frame = chart.resize(590.0, 300.0)

    # Only cache point 250 (sample 500) matches; the interval keeps its endpoints
    plot = frame.plots["blip"]
    assert plot.intervals.tolist() == [[302.0, 302.0]]

    (patch,) = renderer.ax.patches
    bbox = patch.get_window_extent()
    x0, x1 = renderer.ax.transData.inverted().transform([[bbox.x0, 0.0], [bbox.x1, 0.0]])[:, 0]
    assert x1 - x0 > 0
    assert x0 == pytest.approx(302.0, abs=0.5)
    assert x1 == pytest.approx(304.0, abs=0.5)


def test_time_labels_drawn_at_frame_positions(renderer):
    chart = make_chart(renderer)
    frame = chart.last_frame
    bounds = frame.layout.bounds

    time_texts = renderer.ax.texts[-len(frame.time_labels):]
    assert [t.get_text() for t in time_texts] == [label.text for label in frame.time_labels]
    assert [t.get_position()[0] for t in time_texts] == pytest.approx(
        [label.x / bounds.width for label in frame.time_labels]
    )
    assert [t.get_horizontalalignment() for t in time_texts] == ["left", "center", "right"]
