import math
from datetime import datetime
from typing import Optional

from ridescope.chartview.sample_source import Sample

# Sample field names
RPM = "rpm"
BATTERY_LEVEL = "battery_level"
CONTROLLER_TEMP = "controller_temp"
MOTOR_TEMP = "motor_temp"
FOOT_PAD_1 = "foot_pad_1"
FOOT_PAD_2 = "foot_pad_2"
RIDER_PRESENT = "rider_present"

FIELD_NAMES = (
    RPM,
    BATTERY_LEVEL,
    CONTROLLER_TEMP,
    MOTOR_TEMP,
    FOOT_PAD_1,
    FOOT_PAD_2,
    RIDER_PRESENT,
)

TIRE_DIAMETER_IN = 11.5
INCHES_PER_MILE = 63360.0
# Wheel revolutions per minute to miles per hour
RPM_TO_MPH = TIRE_DIAMETER_IN * math.pi * 60.0 / INCHES_PER_MILE


def rpm_to_mph(rpm: float) -> float:
    return rpm * RPM_TO_MPH


def sample_mph(sample: Sample) -> float:
    return rpm_to_mph(float(sample.get(RPM, 0.0)))


def make_board_sample(
    timestamp: datetime,
    rpm: float = 0.0,
    battery_level: float = 0.0,
    controller_temp: float = 0.0,
    motor_temp: float = 0.0,
    foot_pad_1: bool = False,
    foot_pad_2: bool = False,
    rider_present: Optional[bool] = None,
) -> Sample:
    """
    Build a board telemetry sample.

    ``rider_present`` defaults to whether either foot pad is pressed.
    """
    if rider_present is None:
        rider_present = foot_pad_1 or foot_pad_2
    return Sample(
        timestamp=timestamp,
        fields={
            RPM: float(rpm),
            BATTERY_LEVEL: float(battery_level),
            CONTROLLER_TEMP: float(controller_temp),
            MOTOR_TEMP: float(motor_temp),
            FOOT_PAD_1: bool(foot_pad_1),
            FOOT_PAD_2: bool(foot_pad_2),
            RIDER_PRESENT: bool(rider_present),
        },
    )
