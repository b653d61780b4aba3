import pytest

from conftest import make_source
from ridescope.chartview.chart import TelemetryChart
from ridescope.chartview.config import ChartConfig
from ridescope.chartview.sample_source import SampleBuffer
from ridescope.chartview.series import EventSeries, LabelSide, ValueSeries
from ridescope.chartview.viewport_state import VisibleWindow

# Landscape width whose series rect is exactly 500 px wide, starting at x=52
CHART_WIDTH = 590.0
CHART_HEIGHT = 300.0
SERIES_X = 52.0


class RecordingRenderer:
    def __init__(self):
        self.frames = []
        self.transforms = []

    def draw_frame(self, frame):
        self.frames.append(frame)

    def apply_transform(self, transform):
        self.transforms.append(transform)


def make_chart(n=1000, renderer=None, config=None):
    chart = TelemetryChart(make_source(n), config=config, renderer=renderer)
    chart.add_series(
        ValueSeries("value", 0.0, max(float(n), 1.0), label_side=LabelSide.LEFT, evaluator=lambda s: s["value"])
    )
    chart.add_series(EventSeries("late", predicate=lambda s: s["value"] >= n - 10))
    chart.resize(CHART_WIDTH, CHART_HEIGHT)
    return chart


def test_resize_builds_first_frame():
    chart = make_chart()
    frame = chart.last_frame

    assert frame.layout.series_rect.width == 500.0
    assert len(frame.cache) == 250
    assert frame.cache.positions[0] == SERIES_X
    assert frame.cache.positions[1] - frame.cache.positions[0] == pytest.approx(2.0)
    assert set(frame.plots) == {"value", "late"}
    assert len(frame.time_labels) == 3
    assert frame.zoom_hint is None


def test_axis_ticks_only_for_labelled_series():
    frame = make_chart().last_frame
    assert list(frame.axis_ticks) == ["value"]
    assert len(frame.axis_ticks["value"]) == 5


def test_add_series_requires_source(log_messages):
    chart = TelemetryChart()
    assert not chart.add_series(ValueSeries("x", evaluator=lambda s: 0.0))
    assert chart.series == {}
    assert any("before a sample source" in msg for msg in log_messages)


def test_add_series_replaces_same_name():
    chart = make_chart()
    replacement = EventSeries("late", predicate=lambda s: False)
    assert chart.add_series(replacement)
    assert chart.series["late"] is replacement
    assert len(chart.series) == 2


def test_pixel_zoom_commits_window_and_refreshes():
    renderer = RecordingRenderer()
    chart = make_chart(renderer=renderer)
    frames_before = len(renderer.frames)

    assert chart.zoom_begin()
    chart.zoom_changed(2.0, SERIES_X + 250.0)
    assert renderer.transforms[-1].scale == 2.0
    # Only the preview moved
    assert len(renderer.frames) == frames_before

    frame = chart.zoom_end()
    assert chart.state.window.as_tuple() == pytest.approx((0.25, 0.75))
    assert frame.window == chart.state.window
    assert renderer.frames[-1] is frame
    assert renderer.transforms[-1].is_identity
    assert frame.zoom_hint == pytest.approx((SERIES_X + 125.0, SERIES_X + 375.0))


def test_pixel_pan_after_zoom():
    chart = make_chart()
    chart.controller.set_window((0.25, 0.75))

    chart.pan_begin()
    chart.pan_changed(125.0)
    frame = chart.pan_end()

    assert frame.window.as_tuple() == pytest.approx((0.125, 0.625))
    assert frame.cache.indices[0] == 125


def test_home_restores_full_window():
    chart = make_chart()
    chart.controller.set_window((0.4, 0.5))
    frame = chart.home()
    assert frame.window.is_full
    assert len(frame.cache) == 250


def test_refresh_deferred_during_gesture():
    source = SampleBuffer(make_source(100).at(i) for i in range(100))
    renderer = RecordingRenderer()
    chart = TelemetryChart(source, renderer=renderer)
    chart.add_series(ValueSeries("value", 0.0, 200.0, evaluator=lambda s: s["value"]))
    chart.resize(CHART_WIDTH, CHART_HEIGHT)
    assert len(chart.last_frame.cache) == 100

    chart.controller.set_window((0.0, 0.5))
    chart.zoom_begin()
    source.extend(make_source(200).at(i) for i in range(100, 200))
    assert chart.notify_samples_appended() is None
    assert chart.state.refresh_pending
    assert chart.last_frame.cache.source_count == 100

    # Gesture ends without a window change; the deferred refresh runs
    frame = chart.cancel_gesture()
    assert not chart.state.refresh_pending
    assert frame.cache.source_count == 200
    assert len(frame.cache) == 100


def test_window_change_covers_deferred_refresh():
    source = SampleBuffer(make_source(100).at(i) for i in range(100))
    chart = TelemetryChart(source)
    chart.resize(CHART_WIDTH, CHART_HEIGHT)

    chart.zoom_begin()
    source.extend(make_source(120).at(i) for i in range(100, 120))
    chart.notify_samples_appended()
    chart.zoom_changed(2.0, SERIES_X)
    frame = chart.zoom_end()

    assert frame.cache.source_count == 120
    assert not chart.state.refresh_pending


def test_portrait_mode_resets_window_and_disables_gestures():
    chart = make_chart()
    chart.controller.set_window((0.2, 0.3))

    frame = chart.set_portrait_mode(True)
    assert frame.window.is_full
    assert frame.layout.portrait
    assert len(frame.time_labels) == 2
    assert not chart.zoom_begin()
    assert not chart.pan_begin()

    frame = chart.set_portrait_mode(False)
    assert len(frame.time_labels) == 3
    assert chart.zoom_begin()


def test_bind_resets_window():
    chart = make_chart()
    chart.controller.set_window((0.2, 0.3))
    frame = chart.bind(make_source(50))

    assert frame.window.is_full
    assert len(frame.cache) == 50


def test_failed_refresh_keeps_last_frame(log_messages):
    state = {"fail": False}

    def evaluator(sample):
        if state["fail"]:
            raise RuntimeError("sensor decode failed")
        return sample["value"]

    chart = TelemetryChart(make_source(100))
    chart.add_series(ValueSeries("value", 0.0, 100.0, evaluator=evaluator))
    good = chart.resize(CHART_WIDTH, CHART_HEIGHT)

    state["fail"] = True
    assert chart.refresh() is good
    assert any("Error refreshing chart" in msg for msg in log_messages)


def test_empty_source_gives_empty_frame():
    chart = make_chart(n=0)
    frame = chart.last_frame
    assert frame.cache.is_empty
    assert frame.time_labels == []
    assert all(len(plot) == 0 for plot in frame.plots.values())


def test_config_spacing_is_used():
    chart = make_chart(config=ChartConfig(min_spacing_px=5.0))
    assert len(chart.last_frame.cache) == 100


def test_attach_renderer_draws_last_frame():
    chart = make_chart()
    renderer = RecordingRenderer()
    chart.attach_renderer(renderer)
    assert renderer.frames == [chart.last_frame]


def test_smooth_pan_refreshes_during_gesture():
    renderer = RecordingRenderer()
    chart = make_chart(renderer=renderer, config=ChartConfig(smooth_pan=True))
    chart.controller.set_window(VisibleWindow(0.5, 0.75))
    frames_before = len(renderer.frames)

    chart.pan_begin()
    chart.pan_changed(-50.0)
    assert len(renderer.frames) == frames_before + 1
    assert chart.state.window.start == pytest.approx(0.525)
    chart.pan_end()


def test_time_labels_span_time_label_rect():
    frame = make_chart().last_frame
    rect = frame.layout.time_labels_rect

    assert (rect.x, rect.width) == (47.0, 510.0)
    assert [label.x for label in frame.time_labels] == pytest.approx([47.0, 302.0, 557.0])


def test_append_listeners_run_during_gesture():
    source = SampleBuffer(make_source(100).at(i) for i in range(100))
    chart = TelemetryChart(source, renderer=RecordingRenderer())
    chart.add_series(ValueSeries("value", 0.0, 200.0, evaluator=lambda s: s["value"]))
    chart.resize(CHART_WIDTH, CHART_HEIGHT)
    seen = []
    chart.subscribe_samples_appended(lambda src: seen.append(src.count()))

    chart.controller.set_window((0.0, 0.5))
    chart.zoom_begin()
    source.extend(make_source(120).at(i) for i in range(100, 120))
    assert chart.notify_samples_appended() is None

    # Listeners see the new samples even though the refresh waits
    assert seen == [120]
    assert chart.state.refresh_pending
