# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""
CLI for sched_monitor.

Examples:
  sched-monitor watch --url http://192.168.4.1 --output /tmp/sched/index.html
  sched-monitor watch --mode EDF --max-points 60
  sched-monitor once --json
  sched-monitor set-mode RM
"""

from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
from pathlib import Path
from typing import Optional, Sequence

from .client import SchedulerClient
from .config import MonitorConfig, load_config
from .dashboard import HtmlDashboard
from .errors import ConfigError, MonitorError
from .ingest import SampleIngestor
from .poller import Poller, default_timestamp_label
from .registry import SeriesRegistry
from .snapshot import METRIC_KINDS, snapshot_to_dict

LOGGER = logging.getLogger("sched_monitor")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", type=Path, default=None, help="YAML config file")
    common.add_argument("--url", dest="base_url", default=None, help="Scheduler base URL (default: $SCHED_MONITOR_URL or http://localhost)")
    common.add_argument("--timeout-seconds", dest="timeout_s", type=float, default=None, help="HTTP timeout (default: 2.0)")
    common.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    p = argparse.ArgumentParser(
        prog="sched-monitor",
        description="Poll a scheduler metrics endpoint and keep rolling per-task time series.",
        epilog=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = p.add_subparsers(dest="command", required=True)

    w = sub.add_parser("watch", parents=[common], help="Poll continuously and render the HTML dashboard")
    w.add_argument("--max-points", dest="max_points", type=int, default=None, help="Window size in samples (default: 30)")
    w.add_argument("--interval-seconds", dest="interval_s", type=float, default=None, help="Polling interval (default: 1.0)")
    w.add_argument("--output", type=Path, default=None, help="Dashboard HTML path (default: ~/.cache/sched-monitor/index.html)")
    w.add_argument("--title", default=None, help="Dashboard title")
    w.add_argument("--cycles", type=int, default=None, help="Stop after N polling ticks")
    w.add_argument("--mode", default=None, help="Set this scheduler mode before polling")

    o = sub.add_parser("once", parents=[common], help="Take one sample and print it")
    o.add_argument("--json", action="store_true", help="Print the snapshot as JSON")

    m = sub.add_parser("set-mode", parents=[common], help="Switch the scheduler mode")
    m.add_argument("mode", help="Mode identifier, e.g. RM, EDF, FIFO")

    return p.parse_args(argv)


def _build_config(args: argparse.Namespace) -> MonitorConfig:
    cfg = load_config(args.config)
    return cfg.with_overrides(
        base_url=args.base_url,
        timeout_s=args.timeout_s,
        max_points=getattr(args, "max_points", None),
        interval_s=getattr(args, "interval_s", None),
        output=getattr(args, "output", None),
        title=getattr(args, "title", None),
    )


def _client(cfg: MonitorConfig) -> SchedulerClient:
    return SchedulerClient(
        cfg.base_url,
        metrics_path=cfg.metrics_path,
        mode_path=cfg.mode_path,
        timeout_s=cfg.timeout_s,
    )


def _cmd_watch(cfg: MonitorConfig, args: argparse.Namespace) -> int:
    client = _client(cfg)
    if args.mode:
        try:
            client.set_mode(args.mode)
        except (MonitorError, ValueError) as e:
            LOGGER.error("failed to set mode %s: %s", args.mode, e)
            client.close()
            return 2

    registry = SeriesRegistry(cfg.max_points)
    ingestor = SampleIngestor(registry)
    dashboard = HtmlDashboard(cfg.output, title=cfg.title, refresh_s=cfg.interval_s, mode=args.mode)
    poller = Poller(
        source=client,
        ingestor=ingestor,
        sinks=[dashboard],
        interval_s=cfg.interval_s,
        max_cycles=args.cycles,
    )

    def _handle_sig(_signum, _frame) -> None:
        LOGGER.warning("signal received; stopping...")
        poller.request_stop()

    prev_int = signal.signal(signal.SIGINT, _handle_sig)
    prev_term = signal.signal(signal.SIGTERM, _handle_sig)

    LOGGER.info("Polling %s%s every %.2fs (window=%d)", cfg.base_url, cfg.metrics_path, cfg.interval_s, cfg.max_points)
    LOGGER.info("Dashboard: %s", cfg.output)
    try:
        return poller.run()
    finally:
        signal.signal(signal.SIGINT, prev_int)
        signal.signal(signal.SIGTERM, prev_term)
        client.close()
        LOGGER.info(
            "done: ok=%d failed=%d skipped=%d sink_errors=%d",
            poller.stats.ok,
            poller.stats.failed,
            poller.stats.skipped,
            poller.stats.sink_errors,
        )


def _cmd_once(cfg: MonitorConfig, args: argparse.Namespace) -> int:
    client = _client(cfg)
    try:
        snap = client.fetch_snapshot()
    except MonitorError as e:
        LOGGER.error("poll failed: %s", e)
        return 1
    finally:
        client.close()

    if args.json:
        sys.stdout.write(json.dumps(snapshot_to_dict(snap), indent=2) + "\n")
        return 0

    registry = SeriesRegistry(cfg.max_points)
    ingestor = SampleIngestor(registry)
    ingestor.ingest(snap, default_timestamp_label())
    _write_summary(registry, ingestor)
    return 0


def _write_summary(registry: SeriesRegistry, ingestor: SampleIngestor) -> None:
    """Print the newest point of every buffer as a table."""
    with ingestor.locked():
        label = ingestor.labels.values()[-1]
        cpu = ingestor.cpu.values()[-1]
        sys.stdout.write(f"[{label}] cpu: {cpu:.1f}%  tasks: {len(registry)}\n")
        header = "  ".join(f"{k:>10}" for k in METRIC_KINDS)
        sys.stdout.write(f"{'task':<16}{header}\n")
        for entry in registry.all_series():
            row = "  ".join(f"{registry.get(key).values()[-1]:>10g}" for key in entry.keys())
            sys.stdout.write(f"{entry.name:<16}{row}\n")


def _cmd_set_mode(cfg: MonitorConfig, args: argparse.Namespace) -> int:
    client = _client(cfg)
    try:
        client.set_mode(args.mode)
    except (MonitorError, ValueError) as e:
        LOGGER.error("failed to set mode %s: %s", args.mode, e)
        return 2
    finally:
        client.close()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        cfg = _build_config(args)
    except ConfigError as e:
        LOGGER.error("config error: %s", e)
        return 2

    if args.command == "watch":
        return _cmd_watch(cfg, args)
    if args.command == "once":
        return _cmd_once(cfg, args)
    return _cmd_set_mode(cfg, args)


if __name__ == "__main__":
    raise SystemExit(main())
