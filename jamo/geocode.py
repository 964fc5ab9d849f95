"""Nominatim geocoding (read-only, no key)."""
from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional

import requests

from . import config
from .cache import Cache, make_geocode_cache_key
from .geo import to_float
from .http import HttpClient, RequestStats
from .models import Origin

logger = logging.getLogger(__name__)


class GeocodeError(RuntimeError):
    pass


def parse_nominatim_response(raw: Any) -> List[Dict[str, Any]]:
    results = []
    for item in raw or []:
        if not isinstance(item, dict):
            continue
        lat = to_float(item.get("lat"))
        lon = to_float(item.get("lon"))
        if not (math.isfinite(lat) and math.isfinite(lon)):
            continue
        results.append(
            {
                "display_name": item.get("display_name"),
                "lat": lat,
                "lon": lon,
                "type": item.get("type"),
                "class": item.get("class"),
                "importance": item.get("importance"),
            }
        )
    return results


def clamp_limit(value: Any) -> int:
    limit = to_float(value)
    if not math.isfinite(limit):
        return config.GEOCODE_LIMIT_DEFAULT
    return int(max(1, min(config.GEOCODE_LIMIT_MAX, limit)))


class NominatimGeocoder:
    def __init__(
        self,
        http_client: HttpClient,
        cache: Optional[Cache] = None,
        url: Optional[str] = None,
        language: Optional[str] = None,
        stats: Optional[RequestStats] = None,
    ) -> None:
        self.http_client = http_client
        self.cache = cache
        self.url = url or config.NOMINATIM_SEARCH_URL
        self.language = language or config.NOMINATIM_LANGUAGE
        self.stats = stats or RequestStats()

    def search(self, query: str, limit: int = config.GEOCODE_LIMIT_DEFAULT) -> List[Dict[str, Any]]:
        query = (query or "").strip()
        if not query:
            return []
        limit = clamp_limit(limit)
        key = make_geocode_cache_key(query, limit, self.language)
        if self.cache is not None:
            hit = self.cache.get_geocode(key)
            if hit is not None:
                self.stats.inc("cache_hits")
                return hit

        params = {
            "format": "json",
            "limit": limit,
            "addressdetails": 1,
            "accept-language": self.language,
            "q": query,
        }
        try:
            raw = self.http_client.get_json(
                self.url, params=params, extra_headers={"Accept-Language": self.language}
            )
        except (requests.RequestException, ValueError) as exc:
            raise GeocodeError(f"Geocode provider error: {exc}") from exc

        results = parse_nominatim_response(raw)
        if self.cache is not None:
            self.cache.set_geocode(key, results)
        logger.info("Geocoded %r: %s results", query, len(results))
        return results

    def resolve_origin(self, text: str) -> Optional[Origin]:
        results = self.search(text, limit=1)
        if not results:
            return None
        first = results[0]
        return Origin(lat=first["lat"], lon=first["lon"], label=first.get("display_name") or text)


def build_geocoder(cache_path: Optional[str] = None) -> NominatimGeocoder:
    stats = RequestStats()
    http_client = HttpClient(
        config.NOMINATIM_USER_AGENT,
        timeout=config.HTTP_TIMEOUT_SECONDS,
        retry_max=config.HTTP_RETRY_MAX,
        backoff_base=config.HTTP_BACKOFF_BASE,
        backoff_max=config.HTTP_BACKOFF_MAX,
        min_interval=config.NOMINATIM_MIN_INTERVAL_SECONDS,
        stats=stats,
    )
    cache = Cache(cache_path or config.GEOCODE_CACHE_DB_PATH, ttl_seconds=config.GEOCODE_CACHE_TTL_SECONDS)
    return NominatimGeocoder(http_client, cache, stats=stats)
