import json
import os
from datetime import datetime, timezone

from jamo.reporting import atomic_write_text, default_output_path, write_json_object


def test_atomic_write_text(tmp_path):
    path = tmp_path / "atomic.txt"

    atomic_write_text(str(path), "first")
    assert path.read_text(encoding="utf-8") == "first"

    atomic_write_text(str(path), "second")
    assert path.read_text(encoding="utf-8") == "second"

    leftovers = [p for p in tmp_path.iterdir() if p.name != "atomic.txt"]
    assert not leftovers


def test_write_json_object_creates_dir(tmp_path):
    path = tmp_path / "out" / "suggestion.json"
    write_json_object(str(path), {"ok": True, "top": {"name": "Città Sant'Angelo"}})

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["ok"] is True
    assert data["top"]["name"] == "Città Sant'Angelo"
    assert "generated_at" in data


def test_default_output_path_is_timestamped():
    now = datetime(2026, 3, 1, 9, 30, 5, tzinfo=timezone.utc)
    assert default_output_path("out", "car", now=now) == os.path.join("out", "suggestion_car_20260301T093005Z.json")
