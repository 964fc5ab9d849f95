"""Saving suggestion payloads from CLI runs."""
from __future__ import annotations

import json
import os
import tempfile
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional, TextIO


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def default_output_path(out_dir: str, mode: str, now: Optional[datetime] = None) -> str:
    stamp = (now or utc_now()).strftime("%Y%m%dT%H%M%SZ")
    return os.path.join(out_dir, f"suggestion_{mode}_{stamp}.json")


@contextmanager
def atomic_writer(path: str, encoding: str = "utf-8") -> Iterator[TextIO]:
    dir_path = os.path.dirname(path) or "."
    fd, tmp_path = tempfile.mkstemp(prefix=f".{os.path.basename(path)}.", suffix=".tmp", dir=dir_path)
    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def atomic_write_text(path: str, text: str) -> None:
    with atomic_writer(path) as f:
        f.write(text)


def write_json_object(path: str, payload: Dict[str, Any], now: Optional[datetime] = None) -> str:
    """Write `payload` plus a generated_at stamp; creates parent dirs. Returns the path."""
    dir_path = os.path.dirname(path)
    if dir_path:
        os.makedirs(dir_path, exist_ok=True)
    data = {"generated_at": (now or utc_now()).isoformat(), **payload}
    atomic_write_text(path, json.dumps(data, ensure_ascii=False, indent=2) + "\n")
    return path
