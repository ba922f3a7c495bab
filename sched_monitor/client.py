# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""
HTTP client for the scheduler monitoring endpoints.

Endpoints (relative to `base_url`):
- GET /metrics                 -> snapshot JSON (see snapshot.py)
- GET /setScheduler?mode=<id>  -> switch scheduling policy; body is ignored
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from .errors import FetchError
from .snapshot import Snapshot, parse_snapshot

logger = logging.getLogger(__name__)

DEFAULT_METRICS_PATH = "/metrics"
DEFAULT_MODE_PATH = "/setScheduler"


def _join_url(base_url: str, path: str) -> str:
    base = str(base_url or "").rstrip("/")
    return f"{base}{path}" if path.startswith("/") else f"{base}/{path}"


class SchedulerClient:
    def __init__(
        self,
        base_url: str,
        *,
        metrics_path: str = DEFAULT_METRICS_PATH,
        mode_path: str = DEFAULT_MODE_PATH,
        timeout_s: float = 2.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = str(base_url)
        self.metrics_path = metrics_path
        self.mode_path = mode_path
        self.timeout_s = float(timeout_s)
        self._session = session if session is not None else requests.Session()
        self.headers: Dict[str, str] = {"Accept": "application/json"}

    def _get(self, path: str, *, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        url = _join_url(self.base_url, path)
        try:
            resp = self._session.get(url, headers=self.headers, params=params, timeout=self.timeout_s)
        except requests.exceptions.RequestException as e:
            raise FetchError(f"request to {path} failed: {e}", endpoint=path) from e

        if not (200 <= int(resp.status_code) < 300):
            raise FetchError(
                f"{path} returned HTTP {resp.status_code}",
                endpoint=path,
                status_code=resp.status_code,
            )
        return resp

    def fetch_snapshot(self) -> Snapshot:
        """Poll the metrics endpoint once.

        Raises:
            FetchError: transport failure, non-2xx, or a body that is not JSON.
            ParseError: JSON that does not look like a snapshot.
        """
        resp = self._get(self.metrics_path)
        try:
            data = resp.json()
        except ValueError as e:  # requests.Response.json() raises ValueError/JSONDecodeError
            raise FetchError(f"{self.metrics_path} returned a non-JSON body: {e}", endpoint=self.metrics_path) from e
        return parse_snapshot(data)

    def set_mode(self, mode: str) -> None:
        mode = str(mode or "").strip()
        if not mode:
            raise ValueError("mode must be a non-empty string")
        self._get(self.mode_path, params={"mode": mode})
        logger.info("scheduler mode set to %s", mode)

    def close(self) -> None:
        self._session.close()
