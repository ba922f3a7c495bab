# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""
Periodic single-flight poller: fetch -> ingest -> render.

- At most one cycle runs at a time. A tick that arrives while a cycle is still in
  flight is skipped, not queued.
- A fetch/parse failure abandons the cycle before any buffer is touched; the next
  tick simply tries again. The dashboard shows a gap, nothing is interpolated.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Sequence

from .errors import MonitorError
from .ingest import SampleIngestor
from .registry import SeriesRegistry
from .snapshot import Snapshot

logger = logging.getLogger(__name__)


class SnapshotSource(Protocol):
    def fetch_snapshot(self) -> Snapshot: ...


class RenderSink(Protocol):
    def render(self, registry: SeriesRegistry, ingestor: SampleIngestor) -> None: ...


def default_timestamp_label() -> str:
    return time.strftime("%H:%M:%S")


@dataclass
class PollerStats:
    ok: int = 0
    failed: int = 0
    skipped: int = 0
    sink_errors: int = 0


class Poller:
    def __init__(
        self,
        *,
        source: SnapshotSource,
        ingestor: SampleIngestor,
        sinks: Sequence[RenderSink] = (),
        interval_s: float = 1.0,
        max_cycles: Optional[int] = None,
        clock_label: Callable[[], str] = default_timestamp_label,
    ):
        if interval_s <= 0:
            raise ValueError(f"interval_s must be > 0, got {interval_s}")
        self.source = source
        self.ingestor = ingestor
        self.sinks: List[RenderSink] = list(sinks)
        self.interval_s = float(interval_s)
        self.max_cycles = max_cycles
        self.clock_label = clock_label
        self.stats = PollerStats()

        self._in_flight = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def request_stop(self) -> None:
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def poll_once(self) -> bool:
        """Run one cycle. Returns True if a snapshot was ingested.

        Returns False (without blocking) when another cycle is in flight or when the
        fetch failed.
        """
        if not self._in_flight.acquire(blocking=False):
            self.stats.skipped += 1
            logger.warning("previous poll still in flight; skipping this tick")
            return False
        try:
            return self._cycle()
        finally:
            self._in_flight.release()

    def _cycle(self) -> bool:
        try:
            snapshot = self.source.fetch_snapshot()
        except MonitorError as e:
            self.stats.failed += 1
            logger.warning("poll failed: %s", e)
            return False

        self.ingestor.ingest(snapshot, self.clock_label())
        self.stats.ok += 1
        logger.info(
            "cycle %d: cpu=%.1f%% tasks=%d series=%d",
            self.ingestor.cycles,
            snapshot.cpu,
            len(snapshot.tasks),
            len(self.ingestor.registry),
        )

        for sink in self.sinks:
            try:
                with self.ingestor.locked():
                    sink.render(self.ingestor.registry, self.ingestor)
            except Exception:
                self.stats.sink_errors += 1
                logger.exception("render sink %r failed", sink)
        return True

    def run(self) -> int:
        """Poll until stopped (or `max_cycles` ticks have elapsed). The first tick fires immediately."""
        ticks = 0
        while not self._stop.is_set():
            started = time.monotonic()
            self.poll_once()
            ticks += 1
            if self.max_cycles is not None and ticks >= self.max_cycles:
                break
            # Fixed cadence: sleep the remainder of the interval, interruptible by request_stop().
            remaining = self.interval_s - (time.monotonic() - started)
            if remaining > 0:
                self._stop.wait(remaining)
        return 0

    def start(self) -> None:
        """Run the poll loop on a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self.run, name="sched-monitor-poller", daemon=True)
        self._thread.start()

    def stop(self, timeout_s: float = 2.0) -> None:
        self.request_stop()
        if self._thread is not None:
            self._thread.join(timeout=timeout_s)
            self._thread = None
