# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""
Monitor configuration.

Values come from (lowest to highest precedence):
  1. built-in defaults (MonitorConfig)
  2. $SCHED_MONITOR_URL for the base URL
  3. an optional YAML file (--config)
  4. CLI flags

Example YAML:
    base_url: http://192.168.4.1
    max_points: 60
    interval_s: 0.5
    output: ~/sched-monitor/index.html
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .client import DEFAULT_METRICS_PATH, DEFAULT_MODE_PATH
from .errors import ConfigError

ENV_BASE_URL = "SCHED_MONITOR_URL"


def _default_output_path() -> Path:
    return Path.home() / ".cache" / "sched-monitor" / "index.html"


@dataclass(frozen=True)
class MonitorConfig:
    base_url: str = "http://localhost"
    metrics_path: str = DEFAULT_METRICS_PATH
    mode_path: str = DEFAULT_MODE_PATH
    max_points: int = 30
    interval_s: float = 1.0
    timeout_s: float = 2.0
    output: Path = dataclasses.field(default_factory=_default_output_path)
    title: str = "Scheduler Monitor"

    def __post_init__(self) -> None:
        if isinstance(self.max_points, bool) or not isinstance(self.max_points, int) or self.max_points < 1:
            raise ConfigError(f"max_points must be an integer >= 1, got {self.max_points!r}")
        for name in ("interval_s", "timeout_s"):
            v = getattr(self, name)
            if isinstance(v, bool) or not isinstance(v, (int, float)) or v <= 0:
                raise ConfigError(f"{name} must be a positive number, got {v!r}")
        if not isinstance(self.base_url, str) or not self.base_url.strip():
            raise ConfigError("base_url must be a non-empty string")
        # Frozen dataclass: coerce through object.__setattr__.
        object.__setattr__(self, "interval_s", float(self.interval_s))
        object.__setattr__(self, "timeout_s", float(self.timeout_s))
        object.__setattr__(self, "output", Path(self.output).expanduser())

    def with_overrides(self, **overrides: Any) -> "MonitorConfig":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        unknown = set(changes) - {f.name for f in dataclasses.fields(self)}
        if unknown:
            raise ConfigError(f"unknown config keys: {', '.join(sorted(unknown))}")
        return dataclasses.replace(self, **changes)


def load_config(path: Optional[Path] = None, *, environ: Optional[Dict[str, str]] = None) -> MonitorConfig:
    env = os.environ if environ is None else environ
    cfg = MonitorConfig()
    env_url = (env.get(ENV_BASE_URL) or "").strip()
    if env_url:
        cfg = cfg.with_overrides(base_url=env_url)

    if path is None:
        return cfg

    p = Path(path).expanduser()
    try:
        with open(p, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"cannot read config file {p}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {p}: {e}") from e

    if data is None:
        return cfg
    if not isinstance(data, dict):
        raise ConfigError(f"{p}: top level must be a mapping")
    return cfg.with_overrides(**data)
