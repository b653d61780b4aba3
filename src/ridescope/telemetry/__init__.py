"""
Board telemetry components for RideScope.

This package contains the board-specific sample fields, the standard ride
series and the session helpers built on top of ``ridescope.chartview``.
"""

from ridescope.telemetry.board import RPM_TO_MPH, make_board_sample, rpm_to_mph
from ridescope.telemetry.ride_stats import RideStats
from ridescope.telemetry.series import (
    BatterySeries,
    ControllerTempSeries,
    FaultSeries,
    MotorTempSeries,
    SpeedSeries,
)
from ridescope.telemetry.session import configure_logging, create_ride_chart

__all__ = [
    "RPM_TO_MPH",
    "rpm_to_mph",
    "make_board_sample",
    "RideStats",
    "SpeedSeries",
    "BatterySeries",
    "ControllerTempSeries",
    "MotorTempSeries",
    "FaultSeries",
    "configure_logging",
    "create_ride_chart",
]
