from dataclasses import dataclass
from typing import Optional, Tuple

from .viewport_state import VisibleWindow


@dataclass(frozen=True)
class Rect:
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def mid_x(self) -> float:
        return self.x + self.width / 2

    def inset(self, dx: float, dy: float) -> "Rect":
        """Shrink by ``dx`` on the left and right and ``dy`` on the top and bottom."""
        return Rect(
            self.x + dx,
            self.y + dy,
            max(0.0, self.width - 2 * dx),
            max(0.0, self.height - 2 * dy),
        )

    def translated(self, dx: float, dy: float = 0.0) -> "Rect":
        return Rect(self.x + dx, self.y + dy, self.width, self.height)


@dataclass(frozen=True)
class LayoutInsets:
    """
    Pixel insets used to carve the chart bounds into drawing areas.

    The horizontal offsets leave room for the left/right axis labels, whose
    widths differ, and are tuned per orientation.
    """

    axis_inset_y: float = 11.0
    series_inset_x: float = 45.0
    series_offset_x: float = 7.0
    series_inset_x_portrait: float = 20.0
    series_offset_x_portrait: float = -20.0
    time_inset_x: float = 40.0
    time_offset_x: float = 7.0
    time_inset_x_portrait: float = 20.0


@dataclass(frozen=True)
class ChartLayout:
    """Drawing areas for one chart size and orientation."""

    bounds: Rect
    series_rect: Rect
    series_axis_rect: Rect
    time_labels_rect: Rect
    portrait: bool = False

    @classmethod
    def compute(
        cls,
        width: float,
        height: float,
        portrait: bool = False,
        insets: Optional[LayoutInsets] = None,
    ) -> "ChartLayout":
        """
        Compute drawing areas for the given chart bounds.

        Parameters
        ----------
        width, height : float
            Chart bounds in pixels.
        portrait : bool, default=False
            Portrait layouts let the series extend behind the axis labels.
        insets : Optional[LayoutInsets], default=None
            Inset configuration; defaults to ``LayoutInsets()``.

        Returns
        -------
        ChartLayout
            The computed layout.
        """
        insets = insets if insets is not None else LayoutInsets()
        bounds = Rect(0.0, 0.0, max(0.0, width), max(0.0, height))

        series_axis_rect = bounds.inset(0.0, insets.axis_inset_y).translated(
            0.0, -insets.axis_inset_y
        )
        if portrait:
            time_labels_rect = bounds.inset(insets.time_inset_x_portrait, 0.0)
            series_rect = series_axis_rect.inset(insets.series_inset_x_portrait, 0.0).translated(
                insets.series_offset_x_portrait
            )
        else:
            time_labels_rect = bounds.inset(insets.time_inset_x, 0.0).translated(insets.time_offset_x)
            series_rect = series_axis_rect.inset(insets.series_inset_x, 0.0).translated(
                insets.series_offset_x
            )

        return cls(bounds, series_rect, series_axis_rect, time_labels_rect, portrait)

    def fraction_of_series_width(self, dx: float) -> float:
        """Convert a pixel distance to a fraction of the series rect width."""
        if self.series_rect.width <= 0:
            return 0.0
        return dx / self.series_rect.width

    def series_fraction_at(self, x: float) -> float:
        """Fraction of the series rect width at pixel ``x``."""
        return self.fraction_of_series_width(x - self.series_rect.x)


def zoom_hint_span(rect: Rect, window: VisibleWindow) -> Optional[Tuple[float, float]]:
    """
    Horizontal extent of the zoom indicator bar.

    Shows where the visible window sits within the whole ride, scaled to
    ``rect``. Returns None when zoomed all the way out.
    """
    if window.is_full:
        return None
    zoom_start = rect.x + window.start * rect.width
    return (zoom_start, zoom_start + window.width * rect.width)
