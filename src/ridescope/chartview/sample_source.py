from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Union

import numpy as np
from loguru import logger

FieldValue = Union[float, int, bool]


@dataclass(frozen=True)
class Sample:
    """
    One timestamped telemetry reading.

    The field mapping is wrapped read-only on construction so a sample can be
    shared between the source, the render cache and every series without copies.
    """

    timestamp: datetime
    fields: Mapping[str, FieldValue] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def __getitem__(self, name: str) -> FieldValue:
        return self.fields[name]

    def get(self, name: str, default: Optional[FieldValue] = None) -> Optional[FieldValue]:
        return self.fields.get(name, default)


class SampleSource(Protocol):
    """
    Ordered, random-access provider of samples.

    Implementations must keep ``at(i)`` stable for every index already handed
    out during a viewing session; growth is append-only.
    """

    def count(self) -> int: ...

    def at(self, index: int) -> Sample: ...


class SampleBuffer:
    """
    Append-only, list-backed sample source.

    Used for live rides where samples arrive while a chart is open. After
    appending, the host calls ``TelemetryChart.notify_samples_appended()``.
    """

    def __init__(self, samples: Optional[Iterable[Sample]] = None):
        self._samples: List[Sample] = []
        if samples is not None:
            self.extend(samples)

    def count(self) -> int:
        return len(self._samples)

    def at(self, index: int) -> Sample:
        return self._samples[index]

    def append(self, sample: Sample) -> None:
        """Append one sample, warning if it goes back in time."""
        if self._samples and sample.timestamp < self._samples[-1].timestamp:
            logger.warning(
                f"Sample timestamp {sample.timestamp} precedes last buffered sample "
                f"{self._samples[-1].timestamp}. Ordering is the producer's responsibility."
            )
        self._samples.append(sample)

    def extend(self, samples: Iterable[Sample]) -> None:
        for sample in samples:
            self.append(sample)


class ArraySampleSource:
    """
    Column-oriented sample source built from numpy arrays.

    Stores one timestamp column (seconds since the epoch) plus any number of
    named field columns, and materialises ``Sample`` objects on demand.
    """

    def __init__(
        self,
        timestamps: Union[np.ndarray, List[float]],
        fields: Dict[str, Union[np.ndarray, List[Any]]],
        tz: timezone = timezone.utc,
    ):
        """
        Initialise the array source.

        Parameters
        ----------
        timestamps : Union[np.ndarray, List[float]]
            Sample times in seconds since the Unix epoch.
        fields : Dict[str, Union[np.ndarray, List[Any]]]
            Field name to column array. Boolean columns keep their dtype.
        tz : timezone, default=timezone.utc
            Time zone attached to the materialised timestamps.

        Raises
        ------
        ValueError
            If any field column length differs from the timestamp column.
        """
        self._t = np.asarray(timestamps, dtype=np.float64)
        if self._t.ndim != 1:
            raise ValueError(f"Timestamp array must be 1-D, got shape {self._t.shape}")

        self._fields: Dict[str, np.ndarray] = {}
        for name, column in fields.items():
            arr = np.asarray(column)
            if len(arr) != len(self._t):
                raise ValueError(
                    f"Field '{name}' has {len(arr)} values but there are {len(self._t)} timestamps"
                )
            self._fields[name] = arr
        self._tz = tz

        self._validate_timestamps()

    def _validate_timestamps(self) -> None:
        if len(self._t) == 0:
            logger.warning("Initialising sample source with empty arrays.")
            return
        if len(self._t) > 1:
            diffs = np.diff(self._t)
            if np.any(diffs < 0):
                logger.warning(
                    f"Timestamps are not monotonically non-decreasing. "
                    f"Negative steps (first 10): {diffs[diffs < 0][:10]}. "
                    f"Time labels may be misleading."
                )

    @property
    def field_names(self) -> List[str]:
        return list(self._fields)

    def count(self) -> int:
        return len(self._t)

    def at(self, index: int) -> Sample:
        values = {}
        for name, column in self._fields.items():
            value = column[index]
            values[name] = bool(value) if column.dtype == np.bool_ else float(value)
        return Sample(
            timestamp=datetime.fromtimestamp(float(self._t[index]), tz=self._tz),
            fields=values,
        )
