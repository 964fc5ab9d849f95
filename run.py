"""CLI entrypoint."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv as _load_dotenv

from jamo import config
from jamo.datasets import DatasetError, DatasetLoader, primary_region
from jamo.geocode import build_geocoder
from jamo.hubs import parse_hubs
from jamo.models import Place
from jamo.pipeline import plan, suggest
from jamo.query import InputError, parse_query
from jamo.reporting import default_output_path, write_json_object
from jamo.server import JamoService, make_server

logger = logging.getLogger("jamo.run")


def _repo_root() -> Path:
    return Path(__file__).resolve().parent


def load_env(path: str = ".env", root_dir: Optional[Path] = None) -> None:
    """Load a repo-root .env file without overriding real env vars."""
    root = Path(root_dir) if root_dir else _repo_root()
    env_path = (root / path).resolve()
    if not env_path.exists():
        return
    _load_dotenv(dotenv_path=env_path, override=False)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Suggest a destination reachable within a time budget")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--serve", action="store_true", help="Run the local JSON API")
    group.add_argument("--preflight", action="store_true", help="Check datasets and exit")
    parser.add_argument("--host", type=str, default=None)
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument("--config", type=str, default=None, help="Path to jamo_config.json")
    parser.add_argument("--lat", type=float, default=None)
    parser.add_argument("--lon", type=float, default=None)
    parser.add_argument("--minutes", type=float, default=None, help="Time budget in minutes")
    parser.add_argument("--mode", type=str, default="car", help="car/walk/bike/plane/train/bus")
    parser.add_argument("--category", type=str, default=None)
    parser.add_argument("--style", type=str, default=None, help="mainstream or gem")
    parser.add_argument("--region", type=str, default=None, help="Primary region (defaults to the dataset's)")
    parser.add_argument(
        "--exclude",
        type=str,
        default="",
        help="Comma-separated place ids to leave out (visited or already suggested)",
    )
    parser.add_argument("--limit", type=int, default=None, help="Hub modes: number of routes")
    parser.add_argument("--out", type=str, default=None, help="Also write the JSON result to this path")
    parser.add_argument(
        "--save",
        action="store_true",
        help="Also write the JSON result under the output dir with a timestamped name",
    )
    return parser.parse_args(argv)


def run_preflight(loader: DatasetLoader) -> int:
    ok = True

    try:
        snapshot = loader.places()
        valid = sum(1 for r in snapshot.records if Place.from_record(r) is not None)
        print(f"Places: OK ({valid}/{len(snapshot.records)} valid, {snapshot.path})")
        if valid == 0:
            print("Places: FAIL (no valid records)")
            ok = False
    except DatasetError as exc:
        print(f"Places: FAIL ({exc}; {exc.hint})")
        ok = False

    for name, load, kind in (
        ("Airports", loader.airports, "airport"),
        ("Stations", loader.stations, "station"),
    ):
        try:
            snapshot = load()
            hubs, dropped = parse_hubs(snapshot.records, kind=kind)
            print(f"{name}: OK ({len(hubs)} hubs, {dropped} dropped, {snapshot.path})")
        except DatasetError as exc:
            # Hub datasets are optional for car/walk/bike suggestions.
            print(f"{name}: MISSING ({exc.hint})")

    print(f"Server: {config.SERVER_HOST}:{config.SERVER_PORT}")
    print("Preflight: PASS" if ok else "Preflight: FAIL")
    return 0 if ok else 1


def run_server(host: Optional[str], port: Optional[int], loader: DatasetLoader) -> int:
    service = JamoService(loader=loader, geocoder=build_geocoder())
    server = make_server(host, port, service)
    bound_host, bound_port = server.server_address[:2]
    print(f"Jamo API running at http://{bound_host}:{bound_port}")
    print("Press Ctrl+C to stop.\n")

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nShutting down.")
    server.server_close()
    if service.geocoder is not None and service.geocoder.cache is not None:
        service.geocoder.cache.close()
    return 0


def build_body(args: argparse.Namespace) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "origin": {"lat": args.lat, "lon": args.lon},
        "maxMinutes": args.minutes,
        "mode": args.mode,
        "visitedIds": [x.strip() for x in (args.exclude or "").split(",") if x.strip()],
    }
    if args.category is not None:
        body["category"] = args.category
    if args.style is not None:
        body["style"] = args.style
    if args.region is not None:
        body["primaryRegion"] = args.region
    if args.limit is not None:
        body["limit"] = args.limit
    return body


def run_suggestion(args: argparse.Namespace, loader: DatasetLoader) -> int:
    if args.lat is None or args.lon is None or args.minutes is None:
        print("Error: --lat, --lon and --minutes are required", file=sys.stderr)
        return 2

    try:
        query = parse_query(build_body(args))
        if query.mode.is_hub_mode:
            snapshot = loader.airports() if query.mode.value == "plane" else loader.stations()
            payload = plan(snapshot.records, query, dataset=snapshot.path)
        else:
            snapshot = loader.places()
            payload = suggest(
                snapshot.records,
                query,
                dataset=snapshot.path,
                region=primary_region(snapshot.meta),
            )
    except InputError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except DatasetError as exc:
        print(f"Dataset error: {exc} ({exc.hint})", file=sys.stderr)
        return 1

    print(json.dumps(payload, ensure_ascii=False, indent=2))
    out_path = args.out
    if out_path is None and args.save:
        out_path = default_output_path(config.OUTPUT_DIR, query.mode.value)
    if out_path:
        write_json_object(out_path, payload)
        logger.info("Wrote %s", out_path)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    load_env()
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    if config.load_config(args.config):
        logger.info("Loaded jamo_config.json")
    config.apply_env_overrides()

    loader = DatasetLoader()
    if args.preflight:
        return run_preflight(loader)
    if args.serve:
        return run_server(args.host, args.port, loader)
    return run_suggestion(args, loader)


if __name__ == "__main__":
    raise SystemExit(main())
