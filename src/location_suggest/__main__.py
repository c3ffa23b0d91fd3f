import argparse
import asyncio
import json
import logging

from .engine import ResolutionEngine
from .providers import arcgis, gazetteer
from .providers.fixture import FIXTURE_DIR, FixtureProvider


def _fixture_providers(primary_path=None, secondary_path=None):
    primary = FixtureProvider(
        gazetteer.parse_response,
        fixture_path=primary_path or FIXTURE_DIR / "gazetteer_responses.json",
        name="gazetteer",
    )
    secondary = FixtureProvider(
        arcgis.parse_response,
        fixture_path=secondary_path or FIXTURE_DIR / "arcgis_responses.json",
        empty={"candidates": []},
        name="arcgis",
    )
    return primary, secondary


async def _run(engine, query, select_index=None):
    try:
        await engine.resolve(query)
        if select_index is not None:
            if engine.select(select_index) is None:
                raise ValueError(f"no suggestion at index {select_index}")
            return engine.get_selected(), engine.last_cycle
        return engine.get_suggestions(), engine.last_cycle
    finally:
        await engine.aclose()


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Resolve a location query into map suggestions (GeoJSON)",
    )
    parser.add_argument(
        "--query",
        required=True,
        help="Free text or coordinates, e.g. 'austin tx' or '44.96 -93.24'",
    )
    parser.add_argument(
        "--states",
        default=None,
        help="State codes or a shortcut (48, 50, usgs, all)",
    )
    parser.add_argument(
        "--include",
        default=None,
        help="Location types to search, e.g. 'gnis postal state'",
    )
    parser.add_argument(
        "--bounds",
        default=None,
        help="latMin,lonMin,latMax,lonMax",
    )
    parser.add_argument(
        "--no-secondary",
        dest="secondary",
        action="store_false",
        help="Never fall back to the commercial geocoder",
    )
    parser.add_argument("--min-score", type=float, default=None)
    parser.add_argument("--timeout-ms", type=int, default=None)
    parser.add_argument(
        "--select",
        type=int,
        default=None,
        help="Print the Nth suggestion as the selected feature",
    )
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Use recorded service responses (no network)",
    )
    parser.add_argument("--primary-fixture", default=None)
    parser.add_argument("--secondary-fixture", default=None)
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (DEBUG, INFO, etc.)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit one JSON log line for the resolution cycle",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=(args.log_level or "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    options = {"debounce_ms": 0, "secondary": args.secondary}
    for name in ("states", "include", "bounds", "min_score", "timeout_ms"):
        value = getattr(args, name)
        if value is not None:
            options[name] = value

    primary = secondary = None
    if args.demo or args.primary_fixture or args.secondary_fixture:
        primary, secondary = _fixture_providers(args.primary_fixture, args.secondary_fixture)
    engine = ResolutionEngine("cli", options, primary=primary, secondary=secondary)

    output, cycle = asyncio.run(_run(engine, args.query, args.select))
    if args.log_json:
        print(json.dumps({"cycle": cycle.to_dict() if cycle is not None else None}))
    print(json.dumps(output))


def _safe_main():
    try:
        main()
    except SystemExit:
        raise
    except Exception as exc:
        print(json.dumps({"error": str(exc)}))
        raise SystemExit(1)


if __name__ == "__main__":
    _safe_main()
