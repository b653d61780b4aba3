"""
RideScope: time-series viewport engine for EV ride telemetry

Decides which samples of a long ride are visible, downsamples them for
drawing, and turns pinch and pan gestures into new visible windows.
"""

# Import from chartview subpackage
from ridescope.chartview.chart import TelemetryChart
from ridescope.chartview.config import ChartConfig
from ridescope.chartview.renderer import MatplotlibRenderer
from ridescope.chartview.sample_source import ArraySampleSource, Sample, SampleBuffer
from ridescope.chartview.series import EventSeries, LabelSide, ValueSeries
from ridescope.chartview.viewport_state import VisibleWindow

# Import from telemetry subpackage
from ridescope.telemetry.ride_stats import RideStats
from ridescope.telemetry.session import configure_logging, create_ride_chart

__all__ = [
    # General chart viewport
    "TelemetryChart",
    "ChartConfig",
    "MatplotlibRenderer",
    "Sample",
    "SampleBuffer",
    "ArraySampleSource",
    "ValueSeries",
    "EventSeries",
    "LabelSide",
    "VisibleWindow",
    # Board telemetry
    "RideStats",
    "configure_logging",
    "create_ride_chart",
]
