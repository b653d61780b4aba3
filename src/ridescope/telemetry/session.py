import sys
from typing import Optional

from loguru import logger

from ridescope.chartview.chart import TelemetryChart
from ridescope.chartview.config import ChartConfig
from ridescope.chartview.renderer import Renderer
from ridescope.chartview.sample_source import SampleSource

from .ride_stats import RideStats
from .series import (
    BatterySeries,
    ControllerTempSeries,
    FaultSeries,
    MotorTempSeries,
    SpeedSeries,
)


def configure_logging(log_level: str = "INFO") -> None:
    """
    Configure loguru logging with specified level.

    Parameters
    ----------
    log_level : str, default="INFO"
        Logging level: DEBUG, INFO, SUCCESS, WARNING, ERROR, CRITICAL.
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=log_level.upper(),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
        colorize=True,
    )


def create_ride_chart(
    source: SampleSource,
    stats: Optional[RideStats] = None,
    config: Optional[ChartConfig] = None,
    renderer: Optional[Renderer] = None,
) -> TelemetryChart:
    """
    Build a chart showing the standard ride series.

    Parameters
    ----------
    source : SampleSource
        Recorded ride samples.
    stats : Optional[RideStats], default=None
        Running ride statistics for the top-speed marker. Computed from
        ``source`` when omitted, otherwise brought up to date with it. Either
        way they follow ``notify_samples_appended``.
    config : Optional[ChartConfig], default=None
        Chart configuration.
    renderer : Optional[Renderer], default=None
        Renderer to attach.

    Returns
    -------
    TelemetryChart
        Chart bound to ``source`` with speed, battery, temperature and fault
        series. Call ``resize`` to produce the first frame.
    """
    if stats is None:
        stats = RideStats.from_source(source)
    else:
        stats.update_from(source)

    chart = TelemetryChart(config=config, renderer=renderer)
    chart.bind(source)
    chart.subscribe_samples_appended(stats.update_from)
    for series in (
        FaultSeries(),
        ControllerTempSeries(),
        MotorTempSeries(),
        BatterySeries(),
        SpeedSeries(stats=stats),
    ):
        chart.add_series(series)

    logger.info(f"Created ride chart with {len(chart.series)} series")
    return chart
