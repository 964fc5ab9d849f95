"""Local JSON API.

Routes are dispatched by JamoHandler to plain functions returning
(status, payload), so they can be exercised without a socket.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable, Dict, Optional, Tuple
from urllib.parse import parse_qs, urlparse

from . import config
from .datasets import DatasetError, DatasetLoader, primary_region
from .geocode import GeocodeError, NominatimGeocoder, clamp_limit
from .pipeline import plan, suggest
from .query import InputError, origin_text, parse_query

logger = logging.getLogger(__name__)

Response = Tuple[int, Dict[str, Any]]


@dataclass
class JamoService:
    loader: DatasetLoader = field(default_factory=DatasetLoader)
    geocoder: Optional[NominatimGeocoder] = None
    scoring: Optional[config.ScoringConfig] = None
    hubs: Optional[config.HubConfig] = None

    @property
    def scoring_config(self) -> config.ScoringConfig:
        return self.scoring or config.SCORING_CONFIG

    @property
    def hub_config(self) -> config.HubConfig:
        return self.hubs or config.HUB_CONFIG


def _error(status: int, message: str, **extra: Any) -> Response:
    return status, {"ok": False, "error": message, **extra}


def _hub_snapshot(service: JamoService, mode_value: str):
    if mode_value == "plane":
        return service.loader.airports()
    return service.loader.stations()


def _run_plan(body: Dict[str, Any], service: JamoService, origin=None) -> Response:
    query = parse_query(body, origin=origin, hub_only=True)
    snapshot = _hub_snapshot(service, query.mode.value)
    payload = plan(
        snapshot.records,
        query,
        hubs_config=service.hub_config,
        scoring=service.scoring_config,
        dataset=snapshot.path,
    )
    return 200, payload


def handle_jamo(body: Any, service: JamoService) -> Response:
    if not isinstance(body, dict):
        raise InputError("Request body must be a JSON object")

    origin = None
    if not isinstance(body.get("origin"), dict):
        text = origin_text(body)
        if not text:
            raise InputError("origin must be {lat, lon} or originText")
        if service.geocoder is None:
            raise InputError("originText is not supported without a geocoder")
        origin = service.geocoder.resolve_origin(text)
        if origin is None:
            raise InputError(f"Could not geocode originText: {text}")

    query = parse_query(body, origin=origin)
    if query.mode.is_hub_mode:
        return _run_plan(body, service, origin=query.origin)

    snapshot = service.loader.places()
    payload = suggest(
        snapshot.records,
        query,
        scoring=service.scoring_config,
        dataset=snapshot.path,
        region=primary_region(snapshot.meta),
    )
    return 200, payload


def handle_plan(body: Any, service: JamoService) -> Response:
    if not isinstance(body, dict):
        raise InputError("Request body must be a JSON object")
    return _run_plan(body, service)


def handle_geocode(query_string: str, service: JamoService) -> Response:
    params = parse_qs(query_string)
    q = (params.get("q", [""])[0] or "").strip()
    if not q:
        raise InputError("Query parameter 'q' is required.")
    if service.geocoder is None:
        raise GeocodeError("Geocoder is not configured")
    limit = clamp_limit(params.get("limit", [config.GEOCODE_LIMIT_DEFAULT])[0])
    return 200, {"ok": True, "results": service.geocoder.search(q, limit=limit)}


def handle_health(service: JamoService) -> Response:
    payload = {"ok": True, "datasets": service.loader.status()}
    if service.geocoder is not None:
        payload["geocode"] = service.geocoder.stats.snapshot()
    return 200, payload


def dispatch(handler: Callable[[], Response]) -> Response:
    """Run a route handler and map known errors to status codes."""
    try:
        return handler()
    except InputError as exc:
        return _error(400, str(exc))
    except DatasetError as exc:
        logger.error("Dataset error: %s", exc)
        return _error(500, str(exc), hint=exc.hint, tried=exc.tried)
    except GeocodeError as exc:
        logger.warning("Geocode error: %s", exc)
        return _error(502, str(exc))
    except Exception as exc:
        logger.exception("Unhandled error")
        return _error(500, f"Internal error: {exc}")


GET_ROUTES = ("/api/geocode", "/api/health")
POST_ROUTES = ("/api/jamo", "/api/plan")


class JamoHandler(BaseHTTPRequestHandler):
    service: Optional[JamoService] = None

    def do_GET(self) -> None:
        parsed = urlparse(self.path)
        if parsed.path == "/api/geocode":
            self._respond(dispatch(lambda: handle_geocode(parsed.query, self.service)))
        elif parsed.path == "/api/health":
            self._respond(dispatch(lambda: handle_health(self.service)))
        else:
            self._reject(parsed.path)

    def do_POST(self) -> None:
        parsed = urlparse(self.path)
        if parsed.path not in POST_ROUTES:
            self._reject(parsed.path)
            return
        try:
            body = self._read_json_body()
        except ValueError:
            self._send_json({"ok": False, "error": "Request body is not valid JSON"}, 400)
            return
        if parsed.path == "/api/jamo":
            self._respond(dispatch(lambda: handle_jamo(body, self.service)))
        else:
            self._respond(dispatch(lambda: handle_plan(body, self.service)))

    def do_PUT(self) -> None:
        self._reject(urlparse(self.path).path)

    def do_DELETE(self) -> None:
        self._reject(urlparse(self.path).path)

    def do_PATCH(self) -> None:
        self._reject(urlparse(self.path).path)

    def _respond(self, response: Response) -> None:
        status, payload = response
        self._send_json(payload, status)

    def _reject(self, path: str) -> None:
        if path in GET_ROUTES or path in POST_ROUTES:
            self._send_json({"ok": False, "error": "Method not allowed"}, 405)
        else:
            self._send_json({"ok": False, "error": "Not found"}, 404)

    def _read_json_body(self) -> Any:
        length = max(0, int(self.headers.get("Content-Length", 0)))
        raw = self.rfile.read(length)
        return json.loads(raw) if raw else {}

    def _send_json(self, data: Dict[str, Any], status: int = 200) -> None:
        body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, fmt: str, *args: Any) -> None:
        logger.info("%s - %s", self.address_string(), fmt % args)


def make_server(
    host: Optional[str] = None,
    port: Optional[int] = None,
    service: Optional[JamoService] = None,
) -> ThreadingHTTPServer:
    host = config.SERVER_HOST if host is None else host
    port = config.SERVER_PORT if port is None else port
    handler = type("BoundJamoHandler", (JamoHandler,), {"service": service or JamoService()})
    return ThreadingHTTPServer((host, port), handler)
