"""
Scheduler monitor client.

Polls a scheduler's `/metrics` endpoint and keeps rolling, fixed-size time series
per task and per metric (exec time, deadline misses, jitter, priority) plus the
global CPU load, ready for the HTML dashboard.

Public API is re-exported from:
- `sched_monitor.buffers` / `sched_monitor.registry` / `sched_monitor.ingest` for the buffer core
- `sched_monitor.client` / `sched_monitor.poller` for polling
- `sched_monitor.dashboard` for rendering
"""

from .buffers import TimelineBuffer  # noqa: F401
from .client import SchedulerClient  # noqa: F401
from .config import MonitorConfig, load_config  # noqa: F401
from .dashboard import HtmlDashboard  # noqa: F401
from .errors import (  # noqa: F401
    ConfigError,
    FetchError,
    MonitorError,
    ParseError,
    UnknownSeriesError,
)
from .ingest import SampleIngestor  # noqa: F401
from .poller import Poller  # noqa: F401
from .registry import SeriesEntry, SeriesKey, SeriesRegistry, color_for_index  # noqa: F401
from .snapshot import METRIC_KINDS, Snapshot, TaskSample, parse_snapshot  # noqa: F401

__all__ = [
    "ConfigError",
    "FetchError",
    "HtmlDashboard",
    "METRIC_KINDS",
    "MonitorConfig",
    "MonitorError",
    "ParseError",
    "Poller",
    "SampleIngestor",
    "SchedulerClient",
    "SeriesEntry",
    "SeriesKey",
    "SeriesRegistry",
    "Snapshot",
    "TaskSample",
    "TimelineBuffer",
    "UnknownSeriesError",
    "color_for_index",
    "load_config",
    "parse_snapshot",
]
