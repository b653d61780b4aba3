import matplotlib

matplotlib.use("Agg")

from datetime import datetime, timedelta, timezone  # noqa: E402
from typing import List  # noqa: E402

import numpy as np  # noqa: E402
import pytest  # noqa: E402
from loguru import logger  # noqa: E402

from ridescope.chartview.sample_source import ArraySampleSource  # noqa: E402
from ridescope.telemetry.board import RPM_TO_MPH, make_board_sample  # noqa: E402

RIDE_START = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


def make_source(n: int, step_s: float = 1.0, **extra_fields) -> ArraySampleSource:
    """Source of ``n`` samples one ``step_s`` apart with a ``value`` field equal to the index."""
    t = RIDE_START.timestamp() + np.arange(n) * step_s
    fields = {"value": np.arange(n, dtype=np.float64)}
    fields.update(extra_fields)
    return ArraySampleSource(t, fields)


def board_samples(n: int, fault_indices=(), mph: float = 10.0):
    """Board samples at ``mph``, with both foot pads released at ``fault_indices``."""
    samples = []
    for i in range(n):
        released = i in fault_indices
        samples.append(
            make_board_sample(
                RIDE_START + timedelta(seconds=i),
                rpm=mph / RPM_TO_MPH,
                battery_level=90 - i * 0.1,
                controller_temp=80.0,
                motor_temp=85.0,
                foot_pad_1=not released,
                foot_pad_2=not released,
            )
        )
    return samples


@pytest.fixture
def source_1000():
    return make_source(1000)


@pytest.fixture
def log_messages() -> List[str]:
    """Collect loguru messages emitted during a test."""
    messages: List[str] = []
    handler_id = logger.add(lambda msg: messages.append(msg.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
