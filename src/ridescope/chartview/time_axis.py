from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from loguru import logger

from .sample_cache import RenderCache
from .sample_source import SampleSource
from .viewport_state import VisibleWindow

# Visible span boundaries for showing seconds (hysteresis)
SECONDS_FORMAT_ENTER_S = 120.0
SECONDS_FORMAT_EXIT_S = 150.0

SHORT_TIME_FORMAT = "%H:%M"
PRECISE_TIME_FORMAT = "%H:%M:%S"


def _get_time_format(span_s: float, current_format: Optional[str]) -> str:
    """
    Pick the label format for a visible time span.

    Uses two boundaries so the format does not flicker when the span hovers
    around a single threshold.

    Parameters
    ----------
    span_s : float
        Visible span in seconds.
    current_format : Optional[str]
        Format currently in use, or None on first call.

    Returns
    -------
    str
        strftime format string.
    """
    if current_format == PRECISE_TIME_FORMAT:
        return PRECISE_TIME_FORMAT if span_s < SECONDS_FORMAT_EXIT_S else SHORT_TIME_FORMAT
    return PRECISE_TIME_FORMAT if span_s < SECONDS_FORMAT_ENTER_S else SHORT_TIME_FORMAT


@dataclass(frozen=True)
class TimeLabel:
    fractional_x: float
    timestamp: datetime
    text: str
    alignment: str
    x: float


class TimeAxisLabeler:
    """Computes time axis labels for the current window."""

    LABEL_ALIGN_LEFT = "left"
    LABEL_ALIGN_CENTER = "center"
    LABEL_ALIGN_RIGHT = "right"

    def __init__(self):
        self.current_format: Optional[str] = None

    def update_format(self, span_s: float) -> bool:
        """
        Update the label format for a visible span.

        Returns True if the format changed, False otherwise.
        """
        new_format = _get_time_format(span_s, self.current_format)
        if new_format != self.current_format:
            logger.info(f"Time label format changed to '{new_format}' (span={span_s:.1f}s)")
            self.current_format = new_format
            return True
        return False

    def reset(self) -> None:
        self.current_format = None

    def labels(
        self,
        cache: RenderCache,
        window: VisibleWindow,
        source: Optional[SampleSource],
        num_labels: int,
        extent: Optional[Tuple[float, float]] = None,
    ) -> List[TimeLabel]:
        """
        Evenly spaced time labels across the visible window.

        Parameters
        ----------
        cache : RenderCache
            Current render cache; supplies the default pixel extent.
        window : VisibleWindow
            Visible window, used to map label fractions back to sample indices.
        source : Optional[SampleSource]
            Sample provider the timestamps are read from.
        num_labels : int
            Number of labels. The first and last sit on the window edges.
        extent : Optional[Tuple[float, float]], default=None
            ``(x, width)`` in pixels the labels are spread across. Defaults to
            the extent of ``cache``.

        Returns
        -------
        List[TimeLabel]
            Labels ordered left to right; empty for an empty source.
        """
        data_count = source.count() if source is not None else 0
        if data_count == 0 or num_labels <= 0:
            return []

        last_idx = data_count - 1
        start_idx = int(window.start * last_idx)

        def index_at(frac: float) -> int:
            return min(last_idx, int(last_idx * (window.width * frac)) + start_idx)

        first_ts = source.at(index_at(0.0)).timestamp
        last_ts = source.at(index_at(1.0)).timestamp
        self.update_format((last_ts - first_ts).total_seconds())

        origin_x, width_px = extent if extent is not None else (cache.origin_x, cache.width_px)

        labels = []
        for label_idx in range(num_labels):
            frac = label_idx / (num_labels - 1) if num_labels > 1 else 0.0
            sample = source.at(index_at(frac))

            if label_idx == 0:
                alignment = self.LABEL_ALIGN_LEFT
            elif label_idx == num_labels - 1:
                alignment = self.LABEL_ALIGN_RIGHT
            else:
                alignment = self.LABEL_ALIGN_CENTER

            labels.append(
                TimeLabel(
                    fractional_x=frac,
                    timestamp=sample.timestamp,
                    text=sample.timestamp.strftime(self.current_format),
                    alignment=alignment,
                    x=origin_x + frac * width_px,
                )
            )

        logger.debug(f"Time labels: {[label.text for label in labels]}")
        return labels
