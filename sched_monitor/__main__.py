#!/usr/bin/env python3
"""Module entrypoint for `sched_monitor`.

Usage:
  - `python3 -m sched_monitor watch --url http://192.168.4.1`
"""

from __future__ import annotations

from .cli import main


if __name__ == "__main__":
    raise SystemExit(main())
