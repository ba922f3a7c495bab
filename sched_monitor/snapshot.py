# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""
Snapshot types for the scheduler `/metrics` endpoint.

Example payload:
    {
      "cpu": 37.5,
      "tasks": [
        {"name": "T1", "exec_us": 120.0, "misses": 0, "jitter_ms": 0.4, "priority": 3},
        {"name": "T2", "exec_us": 85.5, "misses": 2, "jitter_ms": 1.1, "priority": 1}
      ]
    }

`parse_snapshot()` validates the whole document before anything is returned, so a
malformed body never reaches the ingestor half-applied.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Set, Tuple

from .errors import ParseError

METRIC_EXEC = "exec"
METRIC_MISSES = "misses"
METRIC_JITTER = "jitter"
METRIC_PRIORITY = "priority"

# Iteration order for panels and per-task buffers.
METRIC_KINDS: Tuple[str, ...] = (METRIC_EXEC, METRIC_MISSES, METRIC_JITTER, METRIC_PRIORITY)

CPU_MIN = 0.0
CPU_MAX = 100.0


@dataclass(frozen=True)
class TaskSample:
    """One task's reading inside a snapshot."""
    name: str
    exec_us: float
    misses: int
    jitter_ms: float
    priority: float

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ValueError(f"task name must be a non-empty string, got {self.name!r}")
        for key in ("exec_us", "jitter_ms", "priority"):
            if not _is_finite_number(getattr(self, key)):
                raise ValueError(f"task {self.name!r}: {key} must be a finite number, got {getattr(self, key)!r}")
        if isinstance(self.misses, bool) or not isinstance(self.misses, int) or self.misses < 0:
            raise ValueError(f"task {self.name!r}: misses must be a non-negative integer, got {self.misses!r}")

    def metric(self, kind: str) -> float:
        if kind == METRIC_EXEC:
            return self.exec_us
        if kind == METRIC_MISSES:
            return self.misses
        if kind == METRIC_JITTER:
            return self.jitter_ms
        if kind == METRIC_PRIORITY:
            return self.priority
        raise ValueError(f"unknown metric kind: {kind!r}")


@dataclass(frozen=True)
class Snapshot:
    cpu: float
    tasks: Tuple[TaskSample, ...] = ()

    def __post_init__(self) -> None:
        # Checked at construction so ingestion never meets a half-valid snapshot.
        if not _is_finite_number(self.cpu) or not (CPU_MIN <= self.cpu <= CPU_MAX):
            raise ValueError(f"cpu must be a number in [{CPU_MIN:g}, {CPU_MAX:g}], got {self.cpu!r}")
        tasks = tuple(self.tasks)
        seen: Set[str] = set()
        for t in tasks:
            if not isinstance(t, TaskSample):
                raise TypeError(f"tasks must contain TaskSample, got {type(t).__name__}")
            if t.name in seen:
                raise ValueError(f"duplicate task name {t.name!r}")
            seen.add(t.name)
        object.__setattr__(self, "tasks", tasks)


def _is_number(v: Any) -> bool:
    # bool is an int subclass; a JSON true/false is never a metric value.
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _is_finite_number(v: Any) -> bool:
    if not _is_number(v):
        return False
    try:
        return math.isfinite(v)
    except OverflowError:
        return False


def _number(obj: Mapping[str, Any], key: str, *, where: str) -> float:
    if key not in obj:
        raise ParseError(f"{where}: missing '{key}'")
    v = obj[key]
    if not _is_number(v):
        raise ParseError(f"{where}: '{key}' must be a number, got {type(v).__name__}")
    if not _is_finite_number(v):
        raise ParseError(f"{where}: '{key}' must be finite, got {v!r}")
    return float(v)


def _parse_task(raw: Any, idx: int) -> TaskSample:
    where = f"tasks[{idx}]"
    if not isinstance(raw, Mapping):
        raise ParseError(f"{where}: expected an object, got {type(raw).__name__}")
    name = raw.get("name")
    if not isinstance(name, str) or not name:
        raise ParseError(f"{where}: 'name' must be a non-empty string")
    where = f"tasks[{idx}] ({name})"

    misses_f = _number(raw, "misses", where=where)
    if misses_f < 0 or not misses_f.is_integer():
        raise ParseError(f"{where}: 'misses' must be a non-negative integer, got {raw['misses']!r}")

    return TaskSample(
        name=name,
        exec_us=_number(raw, "exec_us", where=where),
        misses=int(misses_f),
        jitter_ms=_number(raw, "jitter_ms", where=where),
        priority=_number(raw, "priority", where=where),
    )


def parse_snapshot(obj: Any) -> Snapshot:
    """Validate a decoded JSON document and return a Snapshot.

    Raises:
        ParseError: if the document does not have the expected shape.
    """
    if not isinstance(obj, Mapping):
        raise ParseError(f"expected a JSON object, got {type(obj).__name__}")
    cpu = _number(obj, "cpu", where="snapshot")
    if not (CPU_MIN <= cpu <= CPU_MAX):
        raise ParseError(f"snapshot: 'cpu' must be within [{CPU_MIN:g}, {CPU_MAX:g}], got {obj['cpu']!r}")

    if "tasks" not in obj:
        raise ParseError("snapshot: missing 'tasks'")
    raw_tasks = obj["tasks"]
    if not isinstance(raw_tasks, list):
        raise ParseError(f"snapshot: 'tasks' must be a list, got {type(raw_tasks).__name__}")

    tasks: List[TaskSample] = []
    seen: Set[str] = set()
    for idx, raw in enumerate(raw_tasks):
        t = _parse_task(raw, idx)
        if t.name in seen:
            raise ParseError(f"snapshot: duplicate task name {t.name!r}")
        seen.add(t.name)
        tasks.append(t)
    return Snapshot(cpu=cpu, tasks=tuple(tasks))


def snapshot_to_dict(snap: Snapshot) -> Dict[str, Any]:
    return {
        "cpu": snap.cpu,
        "tasks": [
            {
                "name": t.name,
                "exec_us": t.exec_us,
                "misses": t.misses,
                "jitter_ms": t.jitter_ms,
                "priority": t.priority,
            }
            for t in snap.tasks
        ],
    }
