from datetime import datetime
from typing import Optional, Tuple

from ridescope.chartview.sample_source import Sample
from ridescope.chartview.series import FAR_FUTURE, EventSeries, LabelSide, ValueSeries

from .board import (
    BATTERY_LEVEL,
    CONTROLLER_TEMP,
    FOOT_PAD_1,
    FOOT_PAD_2,
    MOTOR_TEMP,
    RIDER_PRESENT,
    sample_mph,
)
from .ride_stats import RideStats

# Above this speed an unloaded board is a fault
FAULT_MIN_MPH = 1.0


class SpeedSeries(ValueSeries):
    """Wheel speed in MPH, with a marker at the ride's top speed."""

    # Current world record is about 27 MPH
    MAX_MPH = 20.0

    def __init__(
        self,
        name: str = "Speed",
        color: str = "tab:blue",
        stats: Optional[RideStats] = None,
        max_value: float = MAX_MPH,
    ):
        super().__init__(
            name,
            0.0,
            max_value,
            label_side=LabelSide.LEFT,
            color=color,
            gradient_under_path=True,
        )
        self.stats = stats
        self.draw_max_line = stats is not None

    def evaluate(self, sample: Sample) -> float:
        return sample_mph(sample)

    def maximum_value_info(self) -> Tuple[datetime, float]:
        if self.stats is None or self.stats.max_rpm_time is None or self.span <= 0:
            return (FAR_FUTURE, 0.0)
        return (self.stats.max_rpm_time, (self.stats.max_mph - self.min_value) / self.span)

    def format_value(self, value: float) -> str:
        return f"{int(value)}MPH"


class BatterySeries(ValueSeries):
    def __init__(self, name: str = "Battery", color: str = "tab:green"):
        super().__init__(name, 0.0, 100.0, label_side=LabelSide.RIGHT, color=color)

    def evaluate(self, sample: Sample) -> float:
        return float(sample.get(BATTERY_LEVEL, 0.0))

    def format_value(self, value: float) -> str:
        return f"{int(value)}%"


class ControllerTempSeries(ValueSeries):
    def __init__(self, name: str = "Controller Temp", color: str = "tab:orange"):
        super().__init__(name, 0.0, 120.0, label_side=LabelSide.NONE, color=color)

    def evaluate(self, sample: Sample) -> float:
        return float(sample.get(CONTROLLER_TEMP, 0.0))

    def format_value(self, value: float) -> str:
        return f"{int(value)}°F"


class MotorTempSeries(ValueSeries):
    def __init__(self, name: str = "Motor Temp", color: str = "tab:purple"):
        super().__init__(name, 0.0, 120.0, label_side=LabelSide.RIGHT, color=color)

    def evaluate(self, sample: Sample) -> float:
        return float(sample.get(MOTOR_TEMP, 0.0))

    def format_value(self, value: float) -> str:
        return f"{int(value)}°F"


class FaultSeries(EventSeries):
    """
    Highlights moments where the board is moving without a rider on it.

    A sample is a fault when the speed exceeds ``FAULT_MIN_MPH`` and either
    both foot pads are released or the rider is not detected.
    """

    def __init__(self, name: str = "Fault", color: str = EventSeries.DEFAULT_COLOR):
        super().__init__(name, label_side=LabelSide.NONE, color=color)

    def condition(self, sample: Sample) -> bool:
        if sample_mph(sample) <= FAULT_MIN_MPH:
            return False
        pads_released = not sample.get(FOOT_PAD_1, False) and not sample.get(FOOT_PAD_2, False)
        return pads_released or not sample.get(RIDER_PRESENT, False)
