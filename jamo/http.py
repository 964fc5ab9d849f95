"""Outbound HTTP for the geocoder: throttling, retry/backoff, counters."""
from __future__ import annotations

import logging
import random
import threading
import time
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


class RequestStats:
    """Thread-safe counters surfaced by /api/health."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.counts: Dict[str, int] = {"requests": 0, "retries": 0, "failures": 0, "cache_hits": 0}

    def inc(self, key: str) -> None:
        with self._lock:
            self.counts[key] = self.counts.get(key, 0) + 1

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self.counts)


class HttpClient:
    def __init__(
        self,
        user_agent: str,
        timeout: int = 12,
        retry_max: int = 3,
        backoff_base: float = 0.5,
        backoff_max: float = 8.0,
        min_interval: float = 0.0,
        stats: Optional[RequestStats] = None,
    ) -> None:
        self.user_agent = user_agent
        self.timeout = timeout
        self.retry_max = max(1, retry_max)
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        # Nominatim's public instance allows one request per second.
        self.min_interval = max(0.0, min_interval)
        self.stats = stats or RequestStats()
        self.session = requests.Session()
        self._slot_lock = threading.Lock()
        self._next_slot = 0.0

    def get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
        headers.update(extra_headers or {})

        attempt = 0
        while True:
            attempt += 1
            last_try = attempt >= self.retry_max
            self._wait_for_slot()
            self.stats.inc("requests")
            try:
                resp = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
            except requests.RequestException as exc:
                if last_try:
                    self.stats.inc("failures")
                    raise
                logger.warning("GET %s failed (attempt %s/%s): %s", url, attempt, self.retry_max, exc)
                self._retry_sleep(attempt)
                continue

            if resp.status_code == 200:
                return resp.json()

            if resp.status_code not in RETRYABLE_STATUSES or last_try:
                logger.error("GET %s returned HTTP %s", url, resp.status_code)
                self.stats.inc("failures")
                resp.raise_for_status()
                raise requests.HTTPError(f"HTTP {resp.status_code}", response=resp)

            logger.warning("GET %s returned HTTP %s (attempt %s/%s)", url, resp.status_code, attempt, self.retry_max)
            self._retry_sleep(attempt, resp.headers.get("Retry-After"))

    def _wait_for_slot(self) -> None:
        if not self.min_interval:
            return
        with self._slot_lock:
            now = time.monotonic()
            wait = self._next_slot - now
            self._next_slot = max(now, self._next_slot) + self.min_interval
        if wait > 0:
            time.sleep(wait)

    def _retry_sleep(self, attempt: int, retry_after: Optional[str] = None) -> None:
        self.stats.inc("retries")
        delay = self._retry_after_seconds(retry_after)
        if delay is None:
            delay = min(self.backoff_base * (2 ** (attempt - 1)), self.backoff_max)
            delay += random.uniform(0, self.backoff_base)
        time.sleep(delay)

    def _retry_after_seconds(self, value: Optional[str]) -> Optional[float]:
        if not value:
            return None
        try:
            delay = float(value)
        except ValueError:
            return None
        return max(0.0, min(delay, self.backoff_max))
