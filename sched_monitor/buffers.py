# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Bounded FIFO used for the label axis and every metric series."""

from __future__ import annotations

from collections import deque
from typing import Any, Deque, Iterator, Tuple


class TimelineBuffer:
    """Keeps the newest `max_points` values; appending past capacity drops the oldest."""

    def __init__(self, max_points: int):
        if int(max_points) < 1:
            raise ValueError(f"max_points must be >= 1, got {max_points}")
        self._max_points = int(max_points)
        self._dq: Deque[Any] = deque(maxlen=self._max_points)

    @property
    def max_points(self) -> int:
        return self._max_points

    def append(self, value: Any) -> None:
        self._dq.append(value)

    def values(self) -> Tuple[Any, ...]:
        return tuple(self._dq)

    def clear(self) -> None:
        self._dq.clear()

    def __len__(self) -> int:
        return len(self._dq)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.values())

    def __repr__(self) -> str:
        return f"TimelineBuffer(max_points={self._max_points}, len={len(self._dq)})"
