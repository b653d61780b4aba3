from typing import Callable, List, Optional, Tuple, Union

import numpy as np
from loguru import logger

from .viewport_state import (
    WINDOW_EPSILON,
    GestureState,
    PreviewTransform,
    ViewportState,
    VisibleWindow,
)

WindowListener = Callable[[VisibleWindow], None]
PreviewListener = Callable[[PreviewTransform], None]


def _clamp(value: float, lo: float, hi: float) -> float:
    return min(hi, max(lo, value))


class RangeController:
    """
    Owns the visible window and turns gestures into window changes.

    Every gesture has two phases. While it is in progress, changes only update
    a ``PreviewTransform`` that is reported to preview listeners (the renderer
    applies it without touching data). When the gesture ends the transform is
    committed into a new ``VisibleWindow`` and window listeners are notified,
    which triggers a cache rebuild.
    """

    # Windows this close to the full range after a zoom snap to (0, 1)
    DEFAULT_SNAP_EPSILON = 1e-4

    def __init__(
        self,
        state: ViewportState,
        smooth_pan: bool = False,
        snap_epsilon: float = DEFAULT_SNAP_EPSILON,
    ):
        """
        Initialise the range controller.

        Parameters
        ----------
        state : ViewportState
            Viewport state shared with the owning chart.
        smooth_pan : bool, default=False
            If True, every pan change commits a new window immediately instead
            of translating the preview.
        snap_epsilon : float, default=1e-4
            Tolerance for treating a zoomed window as the full range.
        """
        self.state = state
        self.smooth_pan = smooth_pan
        self.snap_epsilon = snap_epsilon
        self._window_listeners: List[WindowListener] = []
        self._preview_listeners: List[PreviewListener] = []

    @property
    def window(self) -> VisibleWindow:
        return self.state.window

    def subscribe(self, listener: WindowListener) -> None:
        """Register a callback invoked synchronously after every window change."""
        self._window_listeners.append(listener)

    def subscribe_preview(self, listener: PreviewListener) -> None:
        """Register a callback receiving display-only gesture transforms."""
        self._preview_listeners.append(listener)

    def _notify_window(self) -> None:
        for listener in self._window_listeners:
            listener(self.state.window)

    def _emit_preview(self) -> None:
        for listener in self._preview_listeners:
            listener(self.state.preview)

    # --- Window ---

    def set_window(self, window: Union[VisibleWindow, Tuple[float, float]]) -> bool:
        """
        Validate and store a new visible window.

        Parameters
        ----------
        window : Union[VisibleWindow, Tuple[float, float]]
            Requested ``(start, end)`` fractions.

        Returns
        -------
        bool
            True if the window changed and listeners were notified.
        """
        if not isinstance(window, VisibleWindow):
            window = VisibleWindow(float(window[0]), float(window[1]))

        if not np.isfinite(window.start) or not np.isfinite(window.end):
            logger.warning(f"Rejecting non-finite window {window.as_tuple()}. Keeping current.")
            return False
        if window.start > window.end:
            logger.warning(f"Rejecting window with start > end: {window.as_tuple()}. Keeping current.")
            return False
        if not window.is_valid():
            clamped = window.clamped()
            logger.warning(f"Window {window.as_tuple()} outside [0, 1]. Clamping to {clamped.as_tuple()}.")
            window = clamped

        if window.approx_equal(self.state.window, WINDOW_EPSILON):
            return False

        logger.info(
            f"Window [{self.state.window.start:.4f}:{self.state.window.end:.4f}] -> "
            f"[{window.start:.4f}:{window.end:.4f}]"
        )
        self.state.window = window
        self._notify_window()
        return True

    def reset_window(self) -> bool:
        return self.set_window(VisibleWindow.full())

    # --- Gesture bookkeeping ---

    def _begin(self, gesture: GestureState) -> bool:
        if self.state.portrait_mode:
            logger.debug(f"Ignoring {gesture.value} gesture in portrait mode")
            return False
        if self.state.is_gesturing:
            logger.warning(
                f"Ignoring {gesture.value} begin while a {self.state.gesture.value} gesture is active"
            )
            return False
        self.state.begin_gesture(gesture)
        return True

    def _expect(self, gesture: GestureState, event: str) -> bool:
        if self.state.gesture is not gesture:
            logger.debug(f"Ignoring {event} without matching begin (state={self.state.gesture.value})")
            return False
        return True

    def _finish_gesture(self) -> None:
        self.state.end_gesture()
        self._emit_preview()

    def cancel_gesture(self) -> None:
        """Abandon the current gesture; the preview reverts and no data changes."""
        if not self.state.is_gesturing:
            return
        logger.debug(f"Cancelling {self.state.gesture.value} gesture")
        self._finish_gesture()

    def commit(self) -> Optional[VisibleWindow]:
        """
        Commit the in-flight gesture into a window.

        Returns
        -------
        Optional[VisibleWindow]
            The new window, or None if nothing changed or no gesture was active.
        """
        if self.state.gesture is GestureState.ZOOMING:
            new_window = self.window_for_zoom(self.state.window, self.state.preview)
        elif self.state.gesture is GestureState.PANNING:
            shift = -self.state.preview.translation * self.state.window.width
            new_window = self.window_for_pan(self.state.window, shift)
        else:
            return None

        # Gesture must be over before listeners rebuild
        self._finish_gesture()

        if new_window.approx_equal(self.state.window):
            logger.debug("Gesture ended without a meaningful window change")
            return None
        return new_window if self.set_window(new_window) else None

    # --- Zoom ---

    def window_for_zoom(
        self, window: VisibleWindow, transform: PreviewTransform
    ) -> VisibleWindow:
        """
        Window framed by the viewport after applying a zoom transform.

        Parameters
        ----------
        window : VisibleWindow
            Window at gesture start.
        transform : PreviewTransform
            Accumulated preview transform.

        Returns
        -------
        VisibleWindow
            Clamped window; snapped to the full range when within
            ``snap_epsilon`` of it.
        """
        if window.width <= 0 or transform.scale <= 0:
            return window

        inv_scale = 1.0 / window.width
        visible_frac = 1.0 / transform.scale
        start_frac = -transform.translation / transform.scale

        new_start = _clamp(window.start + start_frac / inv_scale, 0.0, 1.0)
        new_end = _clamp(window.start + (start_frac + visible_frac) / inv_scale, 0.0, 1.0)

        if new_start <= self.snap_epsilon and new_end >= 1.0 - self.snap_epsilon:
            return VisibleWindow.full()
        return VisibleWindow(new_start, new_end)

    def on_zoom_begin(self) -> bool:
        return self._begin(GestureState.ZOOMING)

    def on_zoom_changed(
        self, scale_factor: float, anchor_fraction: float
    ) -> Optional[PreviewTransform]:
        """
        Accumulate an incremental pinch scale about an anchor.

        Parameters
        ----------
        scale_factor : float
            Scale relative to the previous change event.
        anchor_fraction : float
            Pinch centre as a fraction of the series rect width.

        Returns
        -------
        Optional[PreviewTransform]
            Updated preview, or None if the event was ignored.
        """
        if not self._expect(GestureState.ZOOMING, "zoom change"):
            return None
        if not np.isfinite(scale_factor) or scale_factor <= 0:
            logger.warning(f"Ignoring invalid zoom scale factor {scale_factor}")
            return None

        anchor = _clamp(float(anchor_fraction), 0.0, 1.0)
        self.state.preview = self.state.preview.zoomed(float(scale_factor), anchor)
        self._emit_preview()
        return self.state.preview

    def on_zoom_end(self) -> Optional[VisibleWindow]:
        if not self._expect(GestureState.ZOOMING, "zoom end"):
            return None
        return self.commit()

    # --- Pan ---

    @staticmethod
    def window_for_pan(window: VisibleWindow, shift: float) -> VisibleWindow:
        """Shift a window by ``shift``, clamped to the available leeway."""
        shift = _clamp(shift, -window.start, 1.0 - window.end)
        return VisibleWindow(window.start + shift, window.end + shift)

    def on_pan_begin(self) -> bool:
        return self._begin(GestureState.PANNING)

    def on_pan_changed(self, delta_fraction: float) -> Optional[PreviewTransform]:
        """
        Apply an incremental pan.

        Parameters
        ----------
        delta_fraction : float
            Horizontal translation since the previous change event, as a
            fraction of the series rect width. Positive values drag the content
            right, revealing earlier samples.

        Returns
        -------
        Optional[PreviewTransform]
            Updated preview, or None if the change was ignored or rejected.
        """
        if not self._expect(GestureState.PANNING, "pan change"):
            return None
        if not np.isfinite(delta_fraction):
            logger.warning(f"Ignoring non-finite pan delta {delta_fraction}")
            return None

        window = self.state.window
        if window.is_full:
            # Not zoomed in, nothing to pan
            return None
        if delta_fraction == 0:
            return self.state.preview

        current_shift = -self.state.preview.translation * window.width
        if delta_fraction > 0 and window.start + current_shift <= 0.0:
            logger.debug("Pan rejected: already at the beginning of the ride")
            return None
        if delta_fraction < 0 and window.end + current_shift >= 1.0:
            logger.debug("Pan rejected: already at the end of the ride")
            return None

        if self.smooth_pan:
            self.set_window(self.window_for_pan(window, -delta_fraction * window.width))
            return self.state.preview

        self.state.preview = self.state.preview.panned(float(delta_fraction))
        self._emit_preview()
        return self.state.preview

    def on_pan_end(self) -> Optional[VisibleWindow]:
        if not self._expect(GestureState.PANNING, "pan end"):
            return None
        return self.commit()
