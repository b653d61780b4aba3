import math
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

import numpy as np
from loguru import logger
from numba import njit

from .sample_source import Sample, SampleSource
from .viewport_state import VisibleWindow


@njit
def _select_indices_numba(
    data_count: int, start_index: float, visible_count: int, num_points: int
) -> np.ndarray:
    """
    Numba-optimized evenly spaced index selection.

    Parameters
    ----------
    data_count : int
        Number of samples in the source when the rebuild started.
    start_index : float
        ``data_count * window.start``.
    visible_count : int
        Number of source samples covered by the window.
    num_points : int
        Number of cache points to produce.

    Returns
    -------
    np.ndarray
        Source indices, one per cache point. Shorter than ``num_points`` when an
        index would fall past ``data_count``.
    """
    indices = np.empty(num_points, dtype=np.int64)
    n = 0

    for i in range(num_points):
        # Multiply first so integer ratios stay exact
        idx = int(math.floor(start_index + i * visible_count / num_points))
        if idx >= data_count:
            break
        indices[n] = idx
        n += 1

    return indices[:n]


@dataclass(frozen=True, eq=False)
class RenderCache:
    """
    Downsampled, position-ordered view of the visible samples.

    Iterating yields ``(position, sample)`` pairs in increasing position order.
    """

    positions: np.ndarray = field(default_factory=lambda: np.array([], dtype=np.float64))
    samples: Tuple[Sample, ...] = ()
    indices: np.ndarray = field(default_factory=lambda: np.array([], dtype=np.int64))
    origin_x: float = 0.0
    width_px: float = 0.0
    source_count: int = 0

    def __len__(self) -> int:
        return len(self.samples)

    def __iter__(self) -> Iterator[Tuple[float, Sample]]:
        for position, sample in zip(self.positions, self.samples):
            yield float(position), sample

    @property
    def is_empty(self) -> bool:
        return len(self.samples) == 0


class SampleCache:
    """
    Builds the bounded render cache for the current window.

    The cache is discarded and rebuilt from scratch on every invalidation;
    there is no incremental update path.
    """

    # Minimum horizontal spacing between cache points (pixels)
    MIN_SPACING_PX = 2.0

    def __init__(self, min_spacing_px: float = MIN_SPACING_PX):
        """
        Initialise the sample cache.

        Parameters
        ----------
        min_spacing_px : float, default=2.0
            Minimum pixel distance between neighbouring cache points. Bounds
            the cache size to ``floor(width / min_spacing_px)``.
        """
        if not min_spacing_px > 0:
            raise ValueError(f"min_spacing_px must be positive, got {min_spacing_px}")
        self.min_spacing_px = float(min_spacing_px)
        self._current: Optional[RenderCache] = None

    @property
    def current(self) -> RenderCache:
        """Last built cache, or an empty one after invalidation."""
        return self._current if self._current is not None else RenderCache()

    @property
    def is_valid(self) -> bool:
        return self._current is not None

    def invalidate(self) -> None:
        self._current = None

    def max_points(self, available_width_px: float) -> int:
        if not np.isfinite(available_width_px) or available_width_px <= 0:
            return 0
        return int(math.floor(available_width_px / self.min_spacing_px))

    def rebuild(
        self,
        source: Optional[SampleSource],
        window: VisibleWindow,
        available_width_px: float,
        origin_x: float = 0.0,
    ) -> RenderCache:
        """
        Rebuild the render cache for a window and drawing width.

        Parameters
        ----------
        source : Optional[SampleSource]
            Sample provider. ``None`` behaves like an empty source.
        window : VisibleWindow
            Visible fraction of the full index range.
        available_width_px : float
            Width of the drawing area in pixels.
        origin_x : float, default=0.0
            Left edge of the drawing area; position of the first cache point.

        Returns
        -------
        RenderCache
            The new cache, also stored as ``current``.
        """
        if not window.is_valid():
            logger.warning(f"Invalid window {window.as_tuple()} passed to rebuild. Clamping.")
            window = window.clamped()

        data_count = source.count() if source is not None else 0
        # Round half up
        visible_count = int(math.floor(data_count * window.width + 0.5))
        max_points = self.max_points(available_width_px)
        num_points = min(visible_count, max_points)

        if num_points <= 0:
            logger.debug(
                f"Empty cache: data_count={data_count}, visible_count={visible_count}, max_points={max_points}"
            )
            cache = RenderCache(
                origin_x=float(origin_x),
                width_px=float(max(available_width_px, 0.0)),
                source_count=data_count,
            )
            self._current = cache
            return cache

        indices = _select_indices_numba(
            data_count, float(data_count * window.start), visible_count, num_points
        )

        # The source may have shrunk since count() was read
        live_count = source.count()
        if live_count < data_count:
            keep = int(np.searchsorted(indices, live_count, side="left"))
            logger.warning(
                f"Source shrank from {data_count} to {live_count} samples during rebuild. "
                f"Truncating cache from {len(indices)} to {keep} points."
            )
            indices = indices[:keep]

        delta_x = available_width_px / num_points
        positions = origin_x + np.arange(len(indices), dtype=np.float64) * delta_x
        samples: List[Sample] = [source.at(int(idx)) for idx in indices]

        cache = RenderCache(
            positions=positions,
            samples=tuple(samples),
            indices=indices,
            origin_x=float(origin_x),
            width_px=float(available_width_px),
            source_count=data_count,
        )
        self._current = cache

        logger.debug(
            f"Cached {len(cache)}/{visible_count} samples of {data_count} for window "
            f"[{window.start:.4f}-{window.end:.4f}] (deltaX={delta_x:.3f}px)"
        )
        if len(indices) > 0:
            logger.debug(f"Cache index range [{indices[0]}-{indices[-1]}]")

        return cache
