from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from .geometry import ChartLayout
from .sample_cache import RenderCache
from .series import AxisTick, Series, SeriesPlot
from .time_axis import TimeLabel
from .viewport_state import VisibleWindow


@dataclass(frozen=True)
class MaxValueMarker:
    series_name: str
    timestamp: datetime
    fraction: float
    y: float
    label: str


@dataclass(frozen=True, eq=False)
class ChartFrame:
    """Everything a renderer needs to draw one invalidation."""

    window: VisibleWindow
    layout: ChartLayout
    cache: RenderCache
    series: Dict[str, Series]
    plots: Dict[str, SeriesPlot]
    axis_ticks: Dict[str, List[AxisTick]]
    time_labels: List[TimeLabel]
    max_markers: List[MaxValueMarker] = field(default_factory=list)
    zoom_hint: Optional[Tuple[float, float]] = None
