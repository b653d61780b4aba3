from typing import List, Optional, Protocol, Tuple

import matplotlib as mpl
import matplotlib.pyplot as plt
import numpy as np
from loguru import logger
from matplotlib.patches import Rectangle

from .frame import ChartFrame
from .series import EventSeries, LabelSide
from .viewport_state import PreviewTransform


class Renderer(Protocol):
    """Drawing surface a ``TelemetryChart`` pushes frames to."""

    def draw_frame(self, frame: ChartFrame) -> None: ...

    def apply_transform(self, transform: PreviewTransform) -> None: ...


class MatplotlibRenderer:
    """
    Draws chart frames onto a matplotlib axes in chart pixel coordinates.

    The axes spans the chart bounds with y growing downwards, so the pixel
    positions from the render cache are used as-is. Labels are placed in axes
    coordinates and stay put while a gesture preview moves the data.
    """

    DEFAULT_FIGSIZE = (10, 5)
    DEFAULT_DPI = 100
    DEFAULT_BG_COLOR = "white"
    DEFAULT_LINE_WIDTH = 1.5
    DEFAULT_FILL_ALPHA = 0.25
    DEFAULT_EVENT_ALPHA = 0.3
    DEFAULT_FONT_SIZE = 8

    def __init__(
        self,
        ax: Optional[mpl.axes.Axes] = None,
        figsize: Tuple[float, float] = DEFAULT_FIGSIZE,
        dpi: int = DEFAULT_DPI,
        bg_color: str = DEFAULT_BG_COLOR,
    ):
        """
        Initialise the renderer.

        Parameters
        ----------
        ax : Optional[mpl.axes.Axes], default=None
            Axes to draw into. A new figure is created when omitted.
        figsize : Tuple[float, float], default=(10, 5)
            Figure size in inches for a newly created figure.
        dpi : int, default=100
            Figure resolution for a newly created figure.
        bg_color : str, default="white"
            Axes background colour.
        """
        if ax is None:
            self.fig, self.ax = plt.subplots(figsize=figsize, dpi=dpi)
        else:
            self.fig, self.ax = ax.figure, ax
        self.bg_color = bg_color
        self.frame: Optional[ChartFrame] = None
        self.transform = PreviewTransform.identity()
        self._base_xlim: Tuple[float, float] = (0.0, 1.0)
        self._data_artists: List[mpl.artist.Artist] = []

    @property
    def pixel_size(self) -> Tuple[float, float]:
        """Width and height of the axes in device pixels."""
        bbox = self.ax.get_window_extent()
        return (bbox.width, bbox.height)

    def _clear(self) -> None:
        self.ax.clear()
        self._data_artists = []
        self.ax.set_facecolor(self.bg_color)
        self.ax.set_axis_off()

    def _to_axes(self, x: float, y: float) -> Tuple[float, float]:
        bounds = self.frame.layout.bounds
        if bounds.width <= 0 or bounds.height <= 0:
            return (0.0, 0.0)
        return (x / bounds.width, 1.0 - y / bounds.height)

    def _label(self, x: float, y: float, text: str, ha: str, va: str, color: str = "black"):
        ax_x, ax_y = self._to_axes(x, y)
        return self.ax.text(
            ax_x,
            ax_y,
            text,
            ha=ha,
            va=va,
            color=color,
            fontsize=self.DEFAULT_FONT_SIZE,
            transform=self.ax.transAxes,
            clip_on=False,
        )

    def draw_frame(self, frame: ChartFrame) -> None:
        """Redraw everything from ``frame``."""
        self.frame = frame
        self.transform = PreviewTransform.identity()
        self._clear()

        bounds = frame.layout.bounds
        series_rect = frame.layout.series_rect
        self._base_xlim = (bounds.x, bounds.right)
        self.ax.set_xlim(self._base_xlim)
        # Pixel coordinates: y grows downwards
        self.ax.set_ylim(bounds.bottom, bounds.y)

        for name, plot in frame.plots.items():
            series = frame.series[name]
            if len(plot) == 0:
                continue

            if isinstance(series, EventSeries):
                # Each point covers one spacing so single-point runs stay visible
                point_width = (
                    plot.positions[1] - plot.positions[0] if len(plot) > 1 else frame.cache.width_px
                )
                for start, end in plot.intervals:
                    span = self.ax.axvspan(
                        start,
                        end + point_width,
                        ymin=1.0 - (series_rect.bottom - bounds.y) / max(bounds.height, 1.0),
                        ymax=1.0 - (series_rect.y - bounds.y) / max(bounds.height, 1.0),
                        color=series.color,
                        alpha=self.DEFAULT_EVENT_ALPHA,
                        linewidth=0,
                        zorder=-5,
                    )
                    self._data_artists.append(span)
                continue

            y = series_rect.y + (1.0 - plot.values) * series_rect.height
            (line,) = self.ax.plot(
                plot.positions,
                y,
                color=series.color,
                linewidth=self.DEFAULT_LINE_WIDTH,
                label=name,
            )
            self._data_artists.append(line)
            if series.gradient_under_path:
                fill = self.ax.fill_between(
                    plot.positions,
                    y,
                    np.full_like(y, series_rect.bottom),
                    color=series.color,
                    alpha=self.DEFAULT_FILL_ALPHA,
                    linewidth=0,
                )
                self._data_artists.append(fill)

        for marker in frame.max_markers:
            color = frame.series[marker.series_name].color
            self.ax.hlines(
                marker.y, series_rect.x, series_rect.right, colors=color, linestyles="dashed", linewidth=0.8
            )
            self._label(series_rect.x + 2, marker.y - 2, marker.label, ha="left", va="bottom", color=color)

        axis_rect = frame.layout.series_axis_rect
        for name, ticks in frame.axis_ticks.items():
            series = frame.series[name]
            for tick in ticks:
                y = axis_rect.y + tick.fractional_y * axis_rect.height
                if series.label_side is LabelSide.LEFT:
                    self._label(axis_rect.x, y, tick.label, ha="left", va="center", color=series.color)
                elif series.label_side is LabelSide.RIGHT:
                    self._label(axis_rect.right, y, tick.label, ha="right", va="center", color=series.color)

        for label in frame.time_labels:
            self._label(label.x, bounds.bottom, label.text, ha=label.alignment, va="bottom")

        if frame.zoom_hint is not None:
            x0, x1 = frame.zoom_hint
            hint = Rectangle(
                self._to_axes(x0, bounds.bottom),
                (x1 - x0) / max(bounds.width, 1.0),
                2.0 / max(bounds.height, 1.0),
                transform=self.ax.transAxes,
                color="gray",
                alpha=0.6,
                clip_on=False,
            )
            self.ax.add_patch(hint)

        logger.debug(
            f"Drew frame: {len(frame.plots)} series, {len(frame.time_labels)} time labels, "
            f"{len(self._data_artists)} data artists"
        )
        self.fig.canvas.draw_idle()

    def apply_transform(self, transform: PreviewTransform) -> None:
        """
        Show a gesture preview by moving the x limits.

        A preview maps series position ``p`` to ``x + s * (p - x) + t * W``
        where ``x`` and ``W`` are the series rect origin and width. The
        inverse of that mapping gives the x limits that display it.
        """
        self.transform = transform
        if self.frame is None:
            return
        if transform.is_identity:
            self.ax.set_xlim(self._base_xlim)
        else:
            rect = self.frame.layout.series_rect
            shift = transform.translation * rect.width
            self.ax.set_xlim(
                tuple(
                    rect.x + (bound - rect.x - shift) / transform.scale
                    for bound in self._base_xlim
                )
            )
        self.fig.canvas.draw_idle()

    def save(self, filepath: str) -> None:
        """
        Save the current figure to a file.

        Parameters
        ----------
        filepath : str
            Path to save the image.
        """
        if self.frame is None:
            raise RuntimeError("No frame has been drawn yet.")
        self.fig.savefig(filepath)
        logger.info(f"Plot saved to {filepath}")

    def close(self) -> None:
        plt.close(self.fig)
