# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""
Applies one validated Snapshot to the label/CPU buffers and the series registry.

Every buffer shares the same `max_points`, so index i of the label buffer and
index i of the CPU buffer always refer to the same sampling instant. A task's four
metric buffers are appended together and stay the same length as each other;
alongside them the entry records the cycle number each point was sampled in, so
a task that skipped cycles can still be placed under the right label.
"""

from __future__ import annotations

import contextlib
from threading import Lock
from typing import Iterator

from .buffers import TimelineBuffer
from .registry import SeriesRegistry
from .snapshot import METRIC_KINDS, Snapshot


class SampleIngestor:
    def __init__(self, registry: SeriesRegistry):
        self._mu = Lock()
        self._registry = registry
        self._labels = TimelineBuffer(registry.max_points)
        self._cpu = TimelineBuffer(registry.max_points)
        self._cycles = 0

    @property
    def registry(self) -> SeriesRegistry:
        return self._registry

    @property
    def labels(self) -> TimelineBuffer:
        return self._labels

    @property
    def cpu(self) -> TimelineBuffer:
        return self._cpu

    @property
    def max_points(self) -> int:
        return self._registry.max_points

    @property
    def cycles(self) -> int:
        return self._cycles

    @contextlib.contextmanager
    def locked(self) -> Iterator["SampleIngestor"]:
        """Hold the ingestion mutex while reading buffers from another thread."""
        with self._mu:
            yield self

    def ingest(self, snapshot: Snapshot, timestamp_label: str) -> None:
        # Type check happens before taking the lock so a bad argument never mutates anything.
        if not isinstance(snapshot, Snapshot):
            raise TypeError(f"expected Snapshot, got {type(snapshot).__name__}")

        with self._mu:
            cycle = self._cycles + 1
            self._labels.append(str(timestamp_label))
            self._cpu.append(snapshot.cpu)
            for task in snapshot.tasks:
                entry = self._registry.ensure_series(task.name)
                entry.sampled_at.append(cycle)
                for kind in METRIC_KINDS:
                    self._registry.buffer_for(task.name, kind).append(task.metric(kind))
            self._cycles = cycle
