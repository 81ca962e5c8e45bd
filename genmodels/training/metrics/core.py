# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Metric history sink for GenModels.

A MetricHistory stores named scalar series. Values are appended in call
order together with an index (by default the 1-based position in the
series, the tracking callback passes its iteration counter instead) and are
read back as parallel (indices, values) lists, ready for plotting.

The history belongs to the caller: the callback only writes to it, and the
same object can be handed to several consecutive fits to keep one curve.
"""

from dataclasses import dataclass, field
from typing import Iterator


@dataclass
class MetricSeries:
    """One named series of (index, value) pairs."""

    indices: list[int] = field(default_factory=list)
    values: list[float] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.values)


class MetricHistory:
    """
    Named scalar series, appended to during training.

    Example:
        history = MetricHistory()
        history.push("loss", 0.5)
        history.push("loss", 0.4)
        history.get("loss")  # ([1, 2], [0.5, 0.4])
    """

    def __init__(self) -> None:
        self._series: dict[str, MetricSeries] = {}

    def push(self, name: str, value: float, index: int | None = None) -> None:
        """
        Append `value` to the series `name`, creating the series if needed.

        Args:
            name: Metric name, e.g. "loss" or "KL".
            value: Scalar value; converted with float().
            index: Position to record; defaults to the series length + 1.
        """
        series = self._series.setdefault(name, MetricSeries())
        if index is None:
            index = len(series) + 1
        series.indices.append(int(index))
        series.values.append(float(value))

    def get(self, name: str) -> tuple[list[int], list[float]]:
        """
        Return copies of the (indices, values) of series `name`.

        Raises:
            KeyError: If nothing was ever pushed under `name`.
        """
        if name not in self._series:
            raise KeyError(f"Unknown metric '{name}'. Available: {sorted(self._series)}")
        series = self._series[name]
        return list(series.indices), list(series.values)

    def last(self, name: str) -> tuple[int, float]:
        """Return the most recent (index, value) pair of series `name`."""
        indices, values = self.get(name)
        return indices[-1], values[-1]

    def keys(self) -> list[str]:
        """Series names in first-push order."""
        return list(self._series)

    def as_dict(self) -> dict[str, dict[str, list]]:
        """Plain-dict snapshot, suitable for json.dumps."""
        return {
            name: {"indices": list(s.indices), "values": list(s.values)}
            for name, s in self._series.items()
        }

    def __contains__(self, name: object) -> bool:
        return name in self._series

    def __iter__(self) -> Iterator[str]:
        return iter(self._series)

    def __len__(self) -> int:
        return len(self._series)
