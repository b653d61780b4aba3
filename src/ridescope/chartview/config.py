from dataclasses import dataclass, field, fields
from typing import Any, Dict

from loguru import logger

from .geometry import LayoutInsets

DEFAULT_MIN_SPACING_PX = 2.0
DEFAULT_NUM_AXIS_LABELS = 5
DEFAULT_NUM_TIME_LABELS = 3
DEFAULT_NUM_TIME_LABELS_PORTRAIT = 2
DEFAULT_SNAP_EPSILON = 1e-4


@dataclass(frozen=True)
class ChartConfig:
    """
    Construction-time chart configuration.

    Nothing here changes while a chart is alive; build a new chart to use
    different values.
    """

    min_spacing_px: float = DEFAULT_MIN_SPACING_PX
    num_axis_labels: int = DEFAULT_NUM_AXIS_LABELS
    num_time_labels: int = DEFAULT_NUM_TIME_LABELS
    num_time_labels_portrait: int = DEFAULT_NUM_TIME_LABELS_PORTRAIT
    smooth_pan: bool = False
    snap_epsilon: float = DEFAULT_SNAP_EPSILON
    insets: LayoutInsets = field(default_factory=LayoutInsets)

    def __post_init__(self):
        if not self.min_spacing_px > 0:
            raise ValueError(f"min_spacing_px must be positive, got {self.min_spacing_px}")
        for name in ("num_axis_labels", "num_time_labels", "num_time_labels_portrait"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative, got {getattr(self, name)}")
        if not 0 <= self.snap_epsilon < 0.5:
            raise ValueError(f"snap_epsilon must be in [0, 0.5), got {self.snap_epsilon}")

    def time_label_count(self, portrait: bool) -> int:
        return self.num_time_labels_portrait if portrait else self.num_time_labels

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "ChartConfig":
        """
        Build a config from an upper-case settings dictionary.

        Keys are the field names in upper case (``"MIN_SPACING_PX"``, ...);
        ``"INSETS"`` may hold a dictionary of ``LayoutInsets`` fields. Unknown
        keys are reported and ignored so a script's CONFIG can carry other
        settings alongside.

        Parameters
        ----------
        config : Dict[str, Any]
            Settings dictionary.

        Returns
        -------
        ChartConfig
            The validated configuration.
        """
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in config.items():
            name = key.lower()
            if name not in known:
                logger.debug(f"Ignoring non-chart config key '{key}'")
                continue
            if name == "insets" and isinstance(value, dict):
                inset_names = {f.name for f in fields(LayoutInsets)}
                unknown = set(k.lower() for k in value) - inset_names
                if unknown:
                    logger.warning(f"Unknown layout inset keys ignored: {sorted(unknown)}")
                value = LayoutInsets(
                    **{k.lower(): float(v) for k, v in value.items() if k.lower() in inset_names}
                )
            kwargs[name] = value
        return cls(**kwargs)
