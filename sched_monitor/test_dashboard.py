"""
Pytest tests for dashboard.py (payload building + HTML rendering).

Run from the repo root:
    pytest sched_monitor/test_dashboard.py -v
"""

import json
import re
import sys
from pathlib import Path

import pytest

# Set up path for imports
parent_dir = Path(__file__).parent.parent
if str(parent_dir) not in sys.path:
    sys.path.insert(0, str(parent_dir))

from sched_monitor import dashboard
from sched_monitor.dashboard import HtmlDashboard, atomic_write_text, build_payload
from sched_monitor.ingest import SampleIngestor
from sched_monitor.registry import SeriesRegistry, color_for_index
from sched_monitor.snapshot import METRIC_KINDS, Snapshot, TaskSample


def _task(name, v):
    return TaskSample(name=name, exec_us=v, misses=int(v) % 3, jitter_ms=v / 10, priority=1.0)


def _filled_ingestor():
    ing = SampleIngestor(SeriesRegistry(4))
    ing.ingest(Snapshot(cpu=10, tasks=(_task("T1", 1),)), "12:00:01")
    ing.ingest(Snapshot(cpu=20, tasks=(_task("T1", 2),)), "12:00:02")
    ing.ingest(Snapshot(cpu=30, tasks=(_task("T2", 9), _task("T1", 3))), "12:00:03")
    return ing


# ============================================================================
# build_payload()
# ============================================================================

def test_payload_axes_and_panels():
    ing = _filled_ingestor()
    payload = build_payload(ing.registry, ing, title="RT", mode="EDF")
    assert payload["labels"] == ["12:00:01", "12:00:02", "12:00:03"]
    assert payload["cpu"] == [10, 20, 30]
    assert payload["mode"] == "EDF"
    assert set(payload["panels"]) == set(METRIC_KINDS)

    exec_sets = payload["panels"]["exec"]
    assert [d["label"] for d in exec_sets] == ["T1 (us)", "T2 (us)"]
    assert [d["color"] for d in exec_sets] == [color_for_index(0), color_for_index(1)]
    assert [d["label"] for d in payload["panels"]["misses"]] == ["T1 misses", "T2 misses"]
    assert [d["label"] for d in payload["panels"]["jitter"]] == ["T1 jitter(ms)", "T2 jitter(ms)"]
    assert [d["label"] for d in payload["panels"]["priority"]] == ["T1 prio", "T2 prio"]


def test_late_task_starts_under_its_first_label():
    ing = _filled_ingestor()
    payload = build_payload(ing.registry, ing)
    t1, t2 = payload["panels"]["exec"]
    assert t1["data"] == [1, 2, 3]
    assert t2["data"] == [None, None, 9]
    for kind in METRIC_KINDS:
        for ds in payload["panels"][kind]:
            assert len(ds["data"]) == len(payload["labels"])


def test_disappeared_task_leaves_gaps_after_last_sample():
    ing = SampleIngestor(SeriesRegistry(5))
    ing.ingest(Snapshot(cpu=1, tasks=(_task("A", 1), _task("B", 10))), "c1")
    ing.ingest(Snapshot(cpu=2, tasks=(_task("A", 2),)), "c2")
    ing.ingest(Snapshot(cpu=3, tasks=(_task("A", 3),)), "c3")
    a, b = build_payload(ing.registry, ing)["panels"]["exec"]
    assert a["data"] == [1, 2, 3]
    assert b["data"] == [10, None, None]


def test_returning_task_points_stay_under_their_cycles():
    ing = SampleIngestor(SeriesRegistry(5))
    ing.ingest(Snapshot(cpu=1, tasks=(_task("A", 1), _task("B", 10))), "c1")
    ing.ingest(Snapshot(cpu=2, tasks=(_task("A", 2),)), "c2")
    ing.ingest(Snapshot(cpu=3, tasks=(_task("A", 3), _task("B", 30))), "c3")
    ing.ingest(Snapshot(cpu=4, tasks=(_task("A", 4),)), "c4")
    payload = build_payload(ing.registry, ing)
    _, b = payload["panels"]["exec"]
    assert b["data"] == [10, None, 30, None]
    _, b_misses = payload["panels"]["misses"]
    assert b_misses["data"] == [1, None, 0, None]


def test_sparse_task_after_window_wraps():
    # Window of 3 labels over 5 cycles: only cycles 3..5 are visible.
    ing = SampleIngestor(SeriesRegistry(3))
    ing.ingest(Snapshot(cpu=1, tasks=(_task("A", 1), _task("B", 10))), "c1")
    ing.ingest(Snapshot(cpu=2, tasks=(_task("A", 2), _task("B", 20))), "c2")
    ing.ingest(Snapshot(cpu=3, tasks=(_task("A", 3),)), "c3")
    ing.ingest(Snapshot(cpu=4, tasks=(_task("A", 4), _task("B", 40))), "c4")
    ing.ingest(Snapshot(cpu=5, tasks=(_task("A", 5),)), "c5")
    payload = build_payload(ing.registry, ing)
    assert payload["labels"] == ["c3", "c4", "c5"]
    a, b = payload["panels"]["exec"]
    assert a["data"] == [3, 4, 5]
    assert b["data"] == [None, 40, None]


def test_payload_is_json_serializable():
    ing = _filled_ingestor()
    json.dumps(build_payload(ing.registry, ing))


# ============================================================================
# HtmlDashboard
# ============================================================================

def test_render_writes_page(tmp_path):
    ing = _filled_ingestor()
    out = tmp_path / "site" / "index.html"
    dash = HtmlDashboard(out, title="RT Scheduler", refresh_s=1.0, mode="RM")
    dash.render(ing.registry, ing)

    html = out.read_text(encoding="utf-8")
    assert "<title>RT Scheduler</title>" in html
    assert 'content="1"' in html
    assert "plotly" in html
    for kind in METRIC_KINDS:
        assert f'id="graph_{kind}"' in html
    assert "T2 jitter(ms)" in html
    # No leftover temp files next to the output.
    assert [p.name for p in out.parent.iterdir()] == ["index.html"]


def test_render_escapes_task_names(tmp_path):
    ing = SampleIngestor(SeriesRegistry(2))
    ing.ingest(Snapshot(cpu=1, tasks=(_task("</script><b>x", 1),)), "t1")
    html = HtmlDashboard(tmp_path / "i.html").render_html(ing.registry, ing)
    assert "</script><b>x" not in html


def test_render_empty_registry(tmp_path):
    ing = SampleIngestor(SeriesRegistry(2))
    html = HtmlDashboard(tmp_path / "i.html", mode=None).render_html(ing.registry, ing)
    assert re.search(r'id="currentMode">unknown<', html)


def test_atomic_write_text_replaces_existing(tmp_path):
    p = tmp_path / "out.html"
    p.write_text("old")
    atomic_write_text(p, "new")
    assert p.read_text() == "new"


def test_atomic_write_text_cleans_up_on_failure(tmp_path, monkeypatch):
    p = tmp_path / "out.html"
    p.write_text("old")

    def failing_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(dashboard.os, "replace", failing_replace)
    with pytest.raises(OSError):
        atomic_write_text(p, "new")
    assert p.read_text() == "old"
    assert [x.name for x in tmp_path.iterdir()] == ["out.html"]
