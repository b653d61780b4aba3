"""
General-purpose chart viewport components for RideScope.

This package contains the windowing, downsampling and gesture handling that
can be used with any timestamped sample source, not just board telemetry.
"""

from ridescope.chartview.chart import TelemetryChart
from ridescope.chartview.config import ChartConfig
from ridescope.chartview.frame import ChartFrame, MaxValueMarker
from ridescope.chartview.geometry import ChartLayout, LayoutInsets, Rect
from ridescope.chartview.range_controller import RangeController
from ridescope.chartview.renderer import MatplotlibRenderer, Renderer
from ridescope.chartview.sample_cache import RenderCache, SampleCache
from ridescope.chartview.sample_source import (
    ArraySampleSource,
    Sample,
    SampleBuffer,
    SampleSource,
)
from ridescope.chartview.series import (
    AxisTick,
    EventSeries,
    LabelSide,
    Series,
    SeriesPlot,
    ValueSeries,
)
from ridescope.chartview.time_axis import TimeAxisLabeler, TimeLabel
from ridescope.chartview.viewport_state import (
    GestureState,
    PreviewTransform,
    ViewportState,
    VisibleWindow,
)

__all__ = [
    "TelemetryChart",
    "ChartConfig",
    "ChartFrame",
    "MaxValueMarker",
    "ChartLayout",
    "LayoutInsets",
    "Rect",
    "RangeController",
    "Renderer",
    "MatplotlibRenderer",
    "RenderCache",
    "SampleCache",
    "Sample",
    "SampleSource",
    "SampleBuffer",
    "ArraySampleSource",
    "Series",
    "ValueSeries",
    "EventSeries",
    "SeriesPlot",
    "AxisTick",
    "LabelSide",
    "TimeAxisLabeler",
    "TimeLabel",
    "GestureState",
    "PreviewTransform",
    "ViewportState",
    "VisibleWindow",
]
