from typing import Callable, Dict, List, Optional

from loguru import logger

from .config import ChartConfig
from .frame import ChartFrame, MaxValueMarker
from .geometry import ChartLayout, zoom_hint_span
from .range_controller import RangeController
from .renderer import Renderer
from .sample_cache import SampleCache
from .sample_source import SampleSource
from .series import LabelSide, Series
from .time_axis import TimeAxisLabeler
from .viewport_state import PreviewTransform, ViewportState, VisibleWindow


class TelemetryChart:
    """
    Scrollable, zoomable multi-series chart engine.

    Wires the range controller, sample cache, series and time labeler around
    one ``ViewportState``. Hosts forward layout and gesture events; every
    committed change produces a fresh ``ChartFrame`` which is handed to the
    renderer, if one is attached.
    """

    def __init__(
        self,
        source: Optional[SampleSource] = None,
        config: Optional[ChartConfig] = None,
        renderer: Optional[Renderer] = None,
    ):
        """
        Initialise the chart.

        Parameters
        ----------
        source : Optional[SampleSource], default=None
            Sample provider. Series can only be added once a source is bound.
        config : Optional[ChartConfig], default=None
            Chart configuration; defaults to ``ChartConfig()``.
        renderer : Optional[Renderer], default=None
            Receives frames and gesture preview transforms.
        """
        self.config = config if config is not None else ChartConfig()
        self.source = source
        self.renderer = renderer

        self.state = ViewportState()
        self.cache = SampleCache(self.config.min_spacing_px)
        self.controller = RangeController(
            self.state,
            smooth_pan=self.config.smooth_pan,
            snap_epsilon=self.config.snap_epsilon,
        )
        self.labeler = TimeAxisLabeler()
        self.series: Dict[str, Series] = {}
        self.layout = ChartLayout.compute(0.0, 0.0, insets=self.config.insets)
        self.last_frame: Optional[ChartFrame] = None
        self._append_listeners: List[Callable[[SampleSource], None]] = []

        self.controller.subscribe(self._on_window_changed)
        self.controller.subscribe_preview(self._on_preview)

        # Single flag to prevent re-entrant refreshes
        self._updating = False

    # --- Setup ---

    def bind(self, source: SampleSource) -> Optional[ChartFrame]:
        """Bind a new sample source and show it fully zoomed out."""
        logger.info(f"Binding sample source with {source.count()} samples")
        self.source = source
        self.controller.cancel_gesture()
        self.state.reset_to_initial_state()
        self.labeler.reset()
        self.cache.invalidate()
        return self.request_refresh("bind")

    def add_series(self, series: Series) -> bool:
        """
        Add a series, replacing any existing series with the same name.

        Returns False if no sample source has been bound yet.
        """
        if self.source is None:
            logger.warning(f"Cannot add series '{series.name}' before a sample source is set")
            return False
        if series.name in self.series:
            logger.debug(f"Replacing series '{series.name}'")
        self.series[series.name] = series
        return True

    def attach_renderer(self, renderer: Renderer) -> None:
        self.renderer = renderer
        if self.last_frame is not None:
            renderer.draw_frame(self.last_frame)

    # --- Layout and external invalidation ---

    def resize(self, width: float, height: float) -> Optional[ChartFrame]:
        self.layout = ChartLayout.compute(
            width, height, portrait=self.state.portrait_mode, insets=self.config.insets
        )
        logger.debug(
            f"Layout {width}x{height}: series rect x={self.layout.series_rect.x} "
            f"width={self.layout.series_rect.width}"
        )
        return self.request_refresh("resize")

    def set_portrait_mode(self, portrait: bool) -> Optional[ChartFrame]:
        """
        Switch orientation.

        Portrait shows the whole ride with gestures disabled, so entering it
        resets the window.
        """
        if portrait == self.state.portrait_mode:
            return self.last_frame
        logger.info(f"Set portrait mode {portrait}")
        self.controller.cancel_gesture()
        self.state.portrait_mode = portrait
        self.layout = ChartLayout.compute(
            self.layout.bounds.width,
            self.layout.bounds.height,
            portrait=portrait,
            insets=self.config.insets,
        )
        if portrait:
            self.state.window = VisibleWindow.full()
        self.cache.invalidate()
        return self.request_refresh("orientation")

    def subscribe_samples_appended(self, listener: Callable[[SampleSource], None]) -> None:
        """Register a callback receiving the source each time samples are appended."""
        self._append_listeners.append(listener)

    def notify_samples_appended(self) -> Optional[ChartFrame]:
        """
        Invalidation hook for hosts whose source grew while the chart is open.

        Append listeners run immediately, even during a gesture; only the
        refresh is deferred.
        """
        if self.source is not None:
            for listener in self._append_listeners:
                listener(self.source)
        return self.request_refresh("new samples")

    def request_refresh(self, reason: str = "external") -> Optional[ChartFrame]:
        """
        Refresh unless a gesture is in progress.

        During a gesture the request is remembered and replayed when the
        gesture ends.
        """
        if self.state.is_gesturing:
            self.state.defer_refresh(reason)
            return None
        return self.refresh()

    # --- Frame building ---

    def _on_window_changed(self, window: VisibleWindow) -> None:
        self.cache.invalidate()
        self.refresh()

    def _on_preview(self, transform: PreviewTransform) -> None:
        if self.renderer is not None:
            self.renderer.apply_transform(transform)

    def _build_frame(self) -> ChartFrame:
        window = self.state.window
        series_rect = self.layout.series_rect

        cache = self.cache.rebuild(self.source, window, series_rect.width, series_rect.x)

        plots = {name: series.build_plot(cache) for name, series in self.series.items()}

        axis_ticks = {
            name: series.axis_ticks(self.config.num_axis_labels)
            for name, series in self.series.items()
            if series.label_side is not LabelSide.NONE
        }

        max_markers = []
        for name, series in self.series.items():
            if not series.draw_max_line:
                continue
            timestamp, fraction = series.maximum_value_info()
            if fraction > 0:
                max_markers.append(
                    MaxValueMarker(
                        series_name=name,
                        timestamp=timestamp,
                        fraction=fraction,
                        y=series_rect.y + (1.0 - fraction) * series_rect.height,
                        label=series.format_max_value(fraction),
                    )
                )

        time_labels = self.labeler.labels(
            cache,
            window,
            self.source,
            self.config.time_label_count(self.state.portrait_mode),
            extent=(self.layout.time_labels_rect.x, self.layout.time_labels_rect.width),
        )

        return ChartFrame(
            window=window,
            layout=self.layout,
            cache=cache,
            series=dict(self.series),
            plots=plots,
            axis_ticks=axis_ticks,
            time_labels=time_labels,
            max_markers=max_markers,
            zoom_hint=zoom_hint_span(series_rect, window),
        )

    def refresh(self) -> Optional[ChartFrame]:
        """
        Rebuild the cache and every derived product for the current window.

        Returns
        -------
        Optional[ChartFrame]
            The new frame. On failure the previous frame is kept and returned.
        """
        if self._updating:
            return self.last_frame

        self._updating = True
        try:
            try:
                frame = self._build_frame()
            except Exception as e:
                logger.exception(f"Error refreshing chart: {e}")
                logger.info("Keeping last valid frame")
                return self.last_frame

            self.state.refresh_pending = False
            self.last_frame = frame
            logger.debug(
                f"Frame ready: {len(frame.cache)} points, {len(frame.plots)} series, "
                f"{len(frame.time_labels)} time labels"
            )
            if self.renderer is not None:
                self.renderer.draw_frame(frame)
            return frame
        finally:
            self._updating = False

    def home(self) -> Optional[ChartFrame]:
        """Return to the fully zoomed-out view."""
        self.controller.cancel_gesture()
        self.labeler.reset()
        if not self.controller.reset_window():
            return self.refresh()
        logger.info("Home view restored")
        return self.last_frame

    # --- Gestures (pixel units) ---

    def _after_gesture(self, committed: Optional[VisibleWindow]) -> Optional[ChartFrame]:
        if committed is None and self.state.take_pending_refresh():
            logger.debug("Replaying refresh deferred during gesture")
            return self.refresh()
        return self.last_frame

    def zoom_begin(self) -> bool:
        return self.controller.on_zoom_begin()

    def zoom_changed(self, scale: float, anchor_x: float) -> Optional[PreviewTransform]:
        """Pinch update; ``anchor_x`` is the pinch centre in chart pixels."""
        return self.controller.on_zoom_changed(scale, self.layout.series_fraction_at(anchor_x))

    def zoom_end(self) -> Optional[ChartFrame]:
        return self._after_gesture(self.controller.on_zoom_end())

    def pan_begin(self) -> bool:
        return self.controller.on_pan_begin()

    def pan_changed(self, translation_x: float) -> Optional[PreviewTransform]:
        """Pan update; ``translation_x`` is the drag since the last update, in pixels."""
        return self.controller.on_pan_changed(
            self.layout.fraction_of_series_width(translation_x)
        )

    def pan_end(self) -> Optional[ChartFrame]:
        return self._after_gesture(self.controller.on_pan_end())

    def cancel_gesture(self) -> Optional[ChartFrame]:
        self.controller.cancel_gesture()
        return self._after_gesture(None)
