# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""
Per-task series registry.

Tasks are discovered the first time their name shows up in a snapshot. Discovery
order is the panel/legend order and also decides the color, so a task keeps the
same color for the life of the process regardless of how later snapshots order it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, NamedTuple

from .buffers import TimelineBuffer
from .errors import UnknownSeriesError
from .snapshot import METRIC_KINDS

logger = logging.getLogger(__name__)

HUE_STEP = 80
SATURATION_PCT = 70
LIGHTNESS_PCT = 50


def color_for_index(index: int) -> str:
    """CSS color for the task discovered at `index` (0-based)."""
    hue = (int(index) * HUE_STEP) % 360
    return f"hsl({hue} {SATURATION_PCT}% {LIGHTNESS_PCT}%)"


class SeriesKey(NamedTuple):
    task_name: str
    metric_kind: str


@dataclass
class SeriesEntry:
    name: str
    index: int
    color: str
    # Ingestion cycle number of each stored point, parallel to every metric buffer.
    sampled_at: TimelineBuffer
    buffers: Dict[str, TimelineBuffer] = field(default_factory=dict)

    def keys(self) -> List[SeriesKey]:
        return [SeriesKey(self.name, kind) for kind in self.buffers]


class SeriesRegistry:
    """Owns every per-task TimelineBuffer, keyed by task name in discovery order."""

    def __init__(self, max_points: int):
        if int(max_points) < 1:
            raise ValueError(f"max_points must be >= 1, got {max_points}")
        self.max_points = int(max_points)
        self._entries: Dict[str, SeriesEntry] = {}

    def ensure_series(self, task_name: str) -> SeriesEntry:
        entry = self._entries.get(task_name)
        if entry is not None:
            return entry

        index = len(self._entries)
        entry = SeriesEntry(
            name=task_name,
            index=index,
            color=color_for_index(index),
            sampled_at=TimelineBuffer(self.max_points),
            buffers={kind: TimelineBuffer(self.max_points) for kind in METRIC_KINDS},
        )
        self._entries[task_name] = entry
        logger.debug("discovered task %r (index=%d color=%s)", task_name, index, entry.color)
        return entry

    def buffer_for(self, task_name: str, metric_kind: str) -> TimelineBuffer:
        if metric_kind not in METRIC_KINDS:
            raise ValueError(f"unknown metric kind: {metric_kind!r}")
        entry = self._entries.get(task_name)
        if entry is None:
            raise UnknownSeriesError(task_name)
        return entry.buffers[metric_kind]

    def get(self, key: SeriesKey) -> TimelineBuffer:
        return self.buffer_for(key.task_name, key.metric_kind)

    def all_series(self) -> List[SeriesEntry]:
        return list(self._entries.values())

    def names(self) -> List[str]:
        return list(self._entries)

    def __contains__(self, task_name: object) -> bool:
        return task_name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[SeriesEntry]:
        return iter(self.all_series())
