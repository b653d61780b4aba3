from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np
from loguru import logger

# Tolerance for comparing window fractions
WINDOW_EPSILON = 1e-9


def _clamp_unit(value: float) -> float:
    return min(1.0, max(0.0, float(value)))


@dataclass(frozen=True)
class VisibleWindow:
    """Normalized ``[start, end)`` fraction of the full sample range."""

    start: float = 0.0
    end: float = 1.0

    @classmethod
    def full(cls) -> "VisibleWindow":
        return cls(0.0, 1.0)

    @property
    def width(self) -> float:
        return self.end - self.start

    @property
    def is_full(self) -> bool:
        return self.start <= WINDOW_EPSILON and self.end >= 1.0 - WINDOW_EPSILON

    def is_valid(self) -> bool:
        return (
            np.isfinite(self.start)
            and np.isfinite(self.end)
            and 0.0 <= self.start <= self.end <= 1.0
        )

    def clamped(self) -> "VisibleWindow":
        return VisibleWindow(_clamp_unit(self.start), _clamp_unit(self.end))

    def approx_equal(self, other: "VisibleWindow", eps: float = WINDOW_EPSILON) -> bool:
        return abs(self.start - other.start) <= eps and abs(self.end - other.end) <= eps

    def as_tuple(self) -> Tuple[float, float]:
        return (self.start, self.end)


class GestureState(Enum):
    IDLE = "idle"
    ZOOMING = "zooming"
    PANNING = "panning"


@dataclass(frozen=True)
class PreviewTransform:
    """
    Display-only transform applied while a gesture is in progress.

    Maps a point ``u`` of the content as it was laid out at gesture start
    (fraction of the series rect width) to ``scale * u + translation`` on
    screen. Nothing is recomputed while this is active.
    """

    scale: float = 1.0
    translation: float = 0.0

    @classmethod
    def identity(cls) -> "PreviewTransform":
        return cls(1.0, 0.0)

    @property
    def is_identity(self) -> bool:
        return self.scale == 1.0 and self.translation == 0.0

    def zoomed(self, scale_factor: float, anchor: float) -> "PreviewTransform":
        """Compose a scale about ``anchor`` (screen fraction) onto this transform."""
        return PreviewTransform(
            scale=self.scale * scale_factor,
            translation=anchor + scale_factor * (self.translation - anchor),
        )

    def panned(self, delta: float) -> "PreviewTransform":
        return PreviewTransform(self.scale, self.translation + delta)

    def visible_content_range(self) -> Tuple[float, float]:
        """Content fractions currently framed by the viewport ``[0, 1]``."""
        return (-self.translation / self.scale, (1.0 - self.translation) / self.scale)


class ViewportState:
    """
    Per-chart mutable viewport state.

    Owns the current window, the gesture flag and the in-flight preview
    transform. One instance is created per chart and shared by reference with
    the controller, the cache and the chart itself.
    """

    def __init__(self, window: Optional[VisibleWindow] = None):
        self.window = window if window is not None else VisibleWindow.full()
        self.gesture = GestureState.IDLE
        self.preview = PreviewTransform.identity()
        # Set when a recompute was requested mid-gesture
        self.refresh_pending = False
        self.portrait_mode = False

    @property
    def is_gesturing(self) -> bool:
        return self.gesture is not GestureState.IDLE

    def begin_gesture(self, gesture: GestureState) -> None:
        self.gesture = gesture
        self.preview = PreviewTransform.identity()

    def end_gesture(self) -> None:
        self.gesture = GestureState.IDLE
        self.preview = PreviewTransform.identity()

    def defer_refresh(self, reason: str) -> None:
        logger.debug(f"Deferring refresh ({reason}) until {self.gesture.value} gesture ends")
        self.refresh_pending = True

    def take_pending_refresh(self) -> bool:
        pending = self.refresh_pending
        self.refresh_pending = False
        return pending

    def reset_to_initial_state(self) -> None:
        """Reset window and gesture bookkeeping."""
        self.window = VisibleWindow.full()
        self.gesture = GestureState.IDLE
        self.preview = PreviewTransform.identity()
        self.refresh_pending = False
