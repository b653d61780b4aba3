from datetime import datetime
from typing import Optional

import numpy as np
from loguru import logger

from ridescope.chartview.sample_source import Sample, SampleSource

from .board import RPM, rpm_to_mph


class RideStats:
    """
    Running statistics for one ride.

    Tracks the all-time maximum wheel speed and when it happened. It sees
    every recorded sample, independently of what the chart shows, so the
    maximum-speed marker does not move while zooming. Feed it either sample
    by sample with ``observe`` or from a growing source with ``update_from``;
    ``create_ride_chart`` hooks ``update_from`` to
    ``TelemetryChart.notify_samples_appended``.
    """

    def __init__(self):
        self.max_rpm = 0.0
        self.max_rpm_time: Optional[datetime] = None
        self.sample_count = 0

    @classmethod
    def from_source(cls, source: SampleSource) -> "RideStats":
        """Compute statistics over every sample currently in ``source``."""
        stats = cls()
        stats.update_from(source)
        logger.info(
            f"Ride stats from {stats.sample_count} samples: max {stats.max_mph:.1f} mph"
        )
        return stats

    def update_from(self, source: SampleSource) -> int:
        """
        Observe the samples of ``source`` not seen yet.

        ``sample_count`` is used as the cursor into the append-only source.

        Returns
        -------
        int
            Number of newly observed samples.
        """
        start = self.sample_count
        count = source.count()
        for i in range(start, count):
            self.observe(source.at(i))
        if count > start:
            logger.debug(f"Ride stats observed {count - start} new samples")
        return max(0, count - start)

    @property
    def max_mph(self) -> float:
        return rpm_to_mph(self.max_rpm)

    def observe(self, sample: Sample) -> bool:
        """
        Fold one sample into the statistics.

        Returns True if the sample set a new maximum.
        """
        self.sample_count += 1
        rpm = sample.get(RPM)
        if rpm is None or not np.isfinite(rpm):
            return False
        if rpm > self.max_rpm:
            self.max_rpm = float(rpm)
            self.max_rpm_time = sample.timestamp
            return True
        return False

    def reset(self) -> None:
        self.max_rpm = 0.0
        self.max_rpm_time = None
        self.sample_count = 0
