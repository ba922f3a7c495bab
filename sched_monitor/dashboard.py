# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""
HTML dashboard sink.

Writes a single self-refreshing page with five tabbed Plotly panels (CPU, exec time,
deadline misses, jitter, priority). Plotly is loaded from the CDN; the data is
embedded as JSON so the page also works when opened straight from disk.
"""

from __future__ import annotations

import json
import os
import urllib.parse
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .ingest import SampleIngestor
from .registry import SeriesRegistry
from .snapshot import METRIC_EXEC, METRIC_JITTER, METRIC_KINDS, METRIC_MISSES, METRIC_PRIORITY

_THIS_DIR = Path(__file__).resolve().parent
TEMPLATE_NAME = "dashboard.j2"

# Legend suffix per panel.
DATASET_LABELS: Dict[str, str] = {
    METRIC_EXEC: "{name} (us)",
    METRIC_MISSES: "{name} misses",
    METRIC_JITTER: "{name} jitter(ms)",
    METRIC_PRIORITY: "{name} prio",
}

PANEL_TITLES: Dict[str, str] = {
    "cpu": "CPU (%)",
    METRIC_EXEC: "Execution time (us)",
    METRIC_MISSES: "Deadline misses",
    METRIC_JITTER: "Jitter (ms)",
    METRIC_PRIORITY: "Priority",
}

_FAVICON_SVG = """<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 100 100">
  <rect width="100" height="100" fill="#76b900" rx="15"/>
  <text x="50" y="75" font-family="Arial, sans-serif" font-size="70" font-weight="bold" fill="white" text-anchor="middle">S</text>
</svg>"""


def _favicon_data_url() -> str:
    return "data:image/svg+xml," + urllib.parse.quote(_FAVICON_SVG)


def _json(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"), default=str)


def _script_json(obj: Any) -> str:
    # Safe to inline inside <script>: task names cannot close the tag.
    return _json(obj).replace("<", "\\u003c").replace(">", "\\u003e").replace("&", "\\u0026")


def atomic_write_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Write via a temp file in the same directory + os.replace() so readers never see a partial page."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    tmp = p.with_name(f".{p.name}.tmp.{os.getpid()}")
    try:
        tmp.write_text(content, encoding=encoding)
        os.replace(str(tmp), str(p))
    except Exception:
        tmp.unlink(missing_ok=True)
        raise


def _place_by_cycle(
    stamps: Sequence[int], values: Sequence[Any], first_cycle: int, width: int
) -> List[Any]:
    # A task missing from some cycles has fewer points than the label axis; each
    # point goes under the label of the cycle it was sampled in, the rest are gaps.
    out: List[Any] = [None] * width
    for cycle, value in zip(stamps, values):
        pos = cycle - first_cycle
        if 0 <= pos < width:
            out[pos] = value
    return out


def build_payload(
    registry: SeriesRegistry,
    ingestor: SampleIngestor,
    *,
    title: str = "Scheduler Monitor",
    mode: Optional[str] = None,
) -> Dict[str, Any]:
    labels = list(ingestor.labels.values())
    width = len(labels)
    first_cycle = ingestor.cycles - width + 1

    panels: Dict[str, List[Dict[str, Any]]] = {kind: [] for kind in METRIC_KINDS}
    for entry in registry.all_series():
        stamps = entry.sampled_at.values()
        for key in entry.keys():
            panels[key.metric_kind].append(
                {
                    "label": DATASET_LABELS[key.metric_kind].format(name=entry.name),
                    "color": entry.color,
                    "data": _place_by_cycle(stamps, registry.get(key).values(), first_cycle, width),
                }
            )

    return {
        "title": str(title),
        "mode": mode,
        "generated": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        "max_points": ingestor.max_points,
        "cycles": ingestor.cycles,
        "labels": labels,
        "cpu": list(ingestor.cpu.values()),
        "panels": panels,
    }


class HtmlDashboard:
    """RenderSink that rewrites `output_path` after every ingestion cycle."""

    def __init__(
        self,
        output_path: Path,
        *,
        title: str = "Scheduler Monitor",
        refresh_s: float = 1.0,
        mode: Optional[str] = None,
    ):
        self.output_path = Path(output_path)
        self.title = title
        self.refresh_s = max(1, int(round(float(refresh_s))))
        self.mode = mode
        self._env = Environment(
            loader=FileSystemLoader(str(_THIS_DIR)),
            autoescape=select_autoescape(["html", "xml", "j2"]),
        )

    def render_html(self, registry: SeriesRegistry, ingestor: SampleIngestor) -> str:
        payload = build_payload(registry, ingestor, title=self.title, mode=self.mode)
        template = self._env.get_template(TEMPLATE_NAME)
        return template.render(
            title=self.title,
            mode=self.mode,
            refresh_s=self.refresh_s,
            favicon_url=_favicon_data_url(),
            panel_titles=PANEL_TITLES,
            metric_kinds=METRIC_KINDS,
            payload=payload,
            payload_json=_script_json(payload),
        )

    def render(self, registry: SeriesRegistry, ingestor: SampleIngestor) -> None:
        atomic_write_text(self.output_path, self.render_html(registry, ingestor))

    def __repr__(self) -> str:
        return f"HtmlDashboard({str(self.output_path)!r})"
