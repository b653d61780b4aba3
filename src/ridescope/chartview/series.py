from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional, Tuple

import numpy as np
from loguru import logger
from numba import njit

from .sample_cache import RenderCache
from .sample_source import Sample

# Sentinel timestamp for "no maximum recorded"
FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


@njit
def _find_runs_numba(flags: np.ndarray) -> np.ndarray:
    """
    Numba-optimized detection of runs of set flags.

    Parameters
    ----------
    flags : np.ndarray
        Boolean array, one entry per cache point.

    Returns
    -------
    np.ndarray
        Array of shape (n_runs, 2) with the first and last index (inclusive)
        of every run of consecutive True values.
    """
    # At most every other point starts a run
    max_runs = (len(flags) + 1) // 2
    runs = np.empty((max_runs, 2), dtype=np.int64)
    run_count = 0

    in_run = False
    start = 0

    for i in range(len(flags)):
        if flags[i] and not in_run:
            start = i
            in_run = True
        elif not flags[i] and in_run:
            runs[run_count, 0] = start
            runs[run_count, 1] = i - 1
            run_count += 1
            in_run = False

    # Handle run at end of cache
    if in_run:
        runs[run_count, 0] = start
        runs[run_count, 1] = len(flags) - 1
        run_count += 1

    return runs[:run_count]


class LabelSide(Enum):
    NONE = "none"
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class AxisTick:
    value: float
    fractional_y: float
    label: str


@dataclass(frozen=True, eq=False)
class SeriesPlot:
    """
    Plot data for one series bound against a render cache.

    ``values`` holds one normalized value per cache position. Event series
    also fill ``intervals`` with ``[start_position, end_position]`` rows.
    """

    name: str
    positions: np.ndarray
    values: np.ndarray
    intervals: np.ndarray = field(
        default_factory=lambda: np.empty((0, 2), dtype=np.float64)
    )

    def __len__(self) -> int:
        return len(self.positions)


class Series:
    """
    Named, independently normalized view of one metric.

    Series are created once and outlive window changes. They keep no cache of
    their own and read the shared render cache every time they are bound.
    """

    DEFAULT_COLOR = "black"

    def __init__(
        self,
        name: str,
        min_value: float = 0.0,
        max_value: float = 1.0,
        label_side: LabelSide = LabelSide.NONE,
        color: str = DEFAULT_COLOR,
    ):
        if not np.isfinite(min_value) or not np.isfinite(max_value):
            raise ValueError(
                f"Series '{name}' bounds must be finite, got [{min_value}, {max_value}]"
            )
        if max_value < min_value:
            raise ValueError(
                f"Series '{name}' max ({max_value}) must not be below min ({min_value})"
            )
        self.name = name
        self.min_value = float(min_value)
        self.max_value = float(max_value)
        self.label_side = label_side
        self.color = color
        # Renderer hints
        self.gradient_under_path = False
        self.draw_max_line = False

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.name!r}, "
            f"range=[{self.min_value:g}, {self.max_value:g}], labels={self.label_side.value})"
        )

    @property
    def span(self) -> float:
        return self.max_value - self.min_value

    def normalize(self, sample: Sample) -> float:
        raise NotImplementedError

    def build_plot(self, cache: RenderCache) -> SeriesPlot:
        """Evaluate ``normalize`` for every cache sample, in cache order."""
        values = np.fromiter(
            (self.normalize(sample) for sample in cache.samples),
            dtype=np.float64,
            count=len(cache),
        )
        return SeriesPlot(self.name, np.asarray(cache.positions, dtype=np.float64), values)

    def axis_ticks(self, num_labels: int) -> List[AxisTick]:
        """
        Evenly spaced axis ticks from ``min`` to ``max``.

        The tick at ``min`` is left out so no label sits on the baseline.
        ``fractional_y`` is measured from the top of the plot area.

        Parameters
        ----------
        num_labels : int
            Number of steps between ``min`` and ``max``.

        Returns
        -------
        List[AxisTick]
            ``num_labels`` ticks ordered from low to high value.
        """
        if num_labels <= 0 or self.span <= 0:
            return []

        step = self.span / num_labels
        ticks = []
        for i in range(1, num_labels + 1):
            value = self.min_value + i * step
            fractional_y = 1.0 - (value - self.min_value) / self.span
            ticks.append(AxisTick(value, fractional_y, self.format_value(value)))
        return ticks

    def maximum_value_info(self) -> Tuple[datetime, float]:
        """Timestamp and normalized value of the all-time maximum, if tracked."""
        return (FAR_FUTURE, 0.0)

    def format_value(self, value: float) -> str:
        return f"{value:g}"

    def format_max_value(self, fraction: float) -> str:
        """Label for the maximum-value marker, in series units."""
        return f"{self.min_value + fraction * self.span:.1f}"


class ValueSeries(Series):
    """
    Continuous series normalized to ``[0, 1]`` over ``[min, max]``.

    Subclasses implement ``evaluate``; an ``evaluator`` callable can be passed
    instead for ad-hoc series.
    """

    def __init__(
        self,
        name: str,
        min_value: float = 0.0,
        max_value: float = 1.0,
        label_side: LabelSide = LabelSide.NONE,
        color: str = Series.DEFAULT_COLOR,
        evaluator: Optional[Callable[[Sample], float]] = None,
        gradient_under_path: bool = False,
    ):
        super().__init__(name, min_value, max_value, label_side, color)
        self._evaluator = evaluator
        self.gradient_under_path = gradient_under_path

    def evaluate(self, sample: Sample) -> float:
        if self._evaluator is None:
            raise NotImplementedError(
                f"{type(self).__name__} needs an evaluator or an evaluate() override"
            )
        return float(self._evaluator(sample))

    def normalize(self, sample: Sample) -> float:
        value = self.evaluate(sample)
        if np.isnan(value):
            logger.debug(f"Series '{self.name}' evaluated to NaN; normalizing to 0")
            return 0.0
        if self.span <= 0:
            # Degenerate range
            return 0.0
        # Infinite values clamp to the nearest bound
        return min(1.0, max(0.0, (value - self.min_value) / self.span))


class EventSeries(Series):
    """
    Boolean condition series drawn as highlighted intervals.

    Adjacent cache points where the condition holds collapse into a single
    ``[first_position, last_position]`` interval.
    """

    DEFAULT_COLOR = "red"

    def __init__(
        self,
        name: str,
        label_side: LabelSide = LabelSide.NONE,
        color: str = DEFAULT_COLOR,
        predicate: Optional[Callable[[Sample], bool]] = None,
    ):
        super().__init__(name, 0.0, 1.0, label_side, color)
        self._predicate = predicate

    def condition(self, sample: Sample) -> bool:
        if self._predicate is None:
            raise NotImplementedError(
                f"{type(self).__name__} needs a predicate or a condition() override"
            )
        return bool(self._predicate(sample))

    def normalize(self, sample: Sample) -> float:
        return 1.0 if self.condition(sample) else 0.0

    def build_plot(self, cache: RenderCache) -> SeriesPlot:
        plot = super().build_plot(cache)
        runs = _find_runs_numba(np.ascontiguousarray(plot.values == 1.0))
        intervals = plot.positions[runs] if len(runs) else np.empty((0, 2), dtype=np.float64)
        if len(runs):
            logger.debug(f"Series '{self.name}' highlights {len(runs)} interval(s)")
        return SeriesPlot(plot.name, plot.positions, plot.values, intervals)
