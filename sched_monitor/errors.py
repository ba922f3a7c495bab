# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Scheduler monitor error types.

Fetch/parse errors share a base class so the poller can abandon a cycle with a
single except clause. `UnknownSeriesError` is an invariant violation and is not
meant to be caught.
"""

from __future__ import annotations

from typing import Optional


class MonitorError(Exception):
    def __init__(self, message: str, *, endpoint: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.endpoint = str(endpoint or "")
        self.status_code = int(status_code) if status_code is not None else None


class FetchError(MonitorError):
    pass


class ParseError(MonitorError):
    pass


class UnknownSeriesError(AssertionError):
    def __init__(self, task_name: str):
        super().__init__(f"no series registered for task {task_name!r}")
        self.task_name = task_name


class ConfigError(ValueError):
    pass
