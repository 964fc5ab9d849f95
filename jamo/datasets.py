"""Loading of the pre-built place and hub datasets.

Datasets are produced offline and consumed as opaque JSON. A file is parsed
once per (path, mtime) and handed out as an immutable tuple snapshot, so
concurrent requests can share it without copying.
"""
from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from . import config

logger = logging.getLogger(__name__)


class DatasetError(RuntimeError):
    def __init__(self, message: str, hint: str = "", tried: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.hint = hint
        self.tried = list(tried or [])


@dataclass(frozen=True)
class DatasetSnapshot:
    path: str
    records: Tuple[Any, ...]
    meta: Dict[str, Any] = field(default_factory=dict)


def _resolve(rel: str, root: Optional[Path]) -> Path:
    p = Path(rel).expanduser()
    if p.is_absolute():
        return p
    return (Path(root) if root else config.repo_root()) / p


def extract_records(data: Any, key: str) -> Tuple[List[Any], Dict[str, Any]]:
    """Accept either a bare list or an object carrying the list under `key`."""
    if isinstance(data, list):
        return data, {}
    if isinstance(data, dict) and isinstance(data.get(key), list):
        meta = {k: v for k, v in data.items() if k != key and not isinstance(v, list)}
        return data[key], meta
    raise DatasetError(
        f"Dataset format error: expected a list or an object with '{key}'",
        hint=f"Top-level JSON must be an array or {{\"{key}\": [...]}}",
    )


def primary_region(meta: Dict[str, Any]) -> str:
    """Region a places dataset was curated for, from coverage.primary_region or region."""
    coverage = meta.get("coverage")
    if isinstance(coverage, dict) and coverage.get("primary_region"):
        return str(coverage["primary_region"]).strip()
    return str(meta.get("region") or "").strip()


class DatasetLoader:
    def __init__(self, root: Optional[Path] = None) -> None:
        self.root = root
        self._lock = threading.Lock()
        self._cache: Dict[str, Tuple[float, DatasetSnapshot]] = {}

    def load(self, candidates: Iterable[str], key: str) -> DatasetSnapshot:
        tried: List[str] = []
        for rel in candidates:
            path = _resolve(rel, self.root)
            tried.append(str(path))
            if not path.exists():
                continue
            return self._load_path(path, key, tried)
        raise DatasetError(
            "Dataset file not found in any known path",
            hint=f"Expected: {tried[0] if tried else key}",
            tried=tried,
        )

    def _load_path(self, path: Path, key: str, tried: List[str]) -> DatasetSnapshot:
        cache_key = f"{path}|{key}"
        mtime = os.path.getmtime(path)
        with self._lock:
            hit = self._cache.get(cache_key)
            if hit and hit[0] == mtime:
                return hit[1]

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            raise DatasetError(
                f"Dataset file unreadable or invalid JSON: {exc}",
                hint=f"Check JSON validity of {path}",
                tried=tried,
            ) from exc

        records, meta = extract_records(data, key)
        snapshot = DatasetSnapshot(path=str(path), records=tuple(records), meta=meta)
        logger.info("Loaded %s %s from %s", len(records), key, path)
        with self._lock:
            self._cache[cache_key] = (mtime, snapshot)
        return snapshot

    def places(self) -> DatasetSnapshot:
        return self.load(config.places_paths(), "places")

    def airports(self) -> DatasetSnapshot:
        return self.load(config.airports_paths(), "airports")

    def stations(self) -> DatasetSnapshot:
        return self.load(config.stations_paths(), "stations")

    def status(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for name, candidates in (
            ("places", config.places_paths()),
            ("airports", config.airports_paths()),
            ("stations", config.stations_paths()),
        ):
            found = None
            for rel in candidates:
                path = _resolve(rel, self.root)
                if path.exists():
                    found = str(path)
                    break
            out[name] = {"exists": found is not None, "path": found}
        return out
