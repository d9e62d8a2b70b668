# SPDX-License-Identifier: Apache-2.0
"""Command-line entry point: compose a globe texture headlessly.

``geoglobe compose OPTION.json --geojson world=world.json`` runs one refresh
against a recording surface and writes the resulting primitives as JSON.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from geoglobe.chart import GlobeChart
from geoglobe.loaders import AutoRasterLoader, FileGeoJsonSource, FileRasterLoader
from geoglobe.surface import RecordingSurface
from geoglobe.utils.cli_helpers import configure_logging_from_env
from geoglobe.utils.serialize import to_list, to_obj


def _parse_geojson_args(values: list[str] | None) -> dict[str, FileGeoJsonSource]:
    sources: dict[str, FileGeoJsonSource] = {}
    for item in values or []:
        map_type, sep, path = item.partition("=")
        if not sep or not map_type or not path:
            raise SystemExit(f"--geojson expects TYPE=PATH, got '{item}'")
        sources[map_type] = FileGeoJsonSource(path)
    return sources


def _load_option(path: str) -> dict[str, Any]:
    if path == "-":
        return json.load(sys.stdin)
    with open(path, encoding="utf-8") as fp:
        return json.load(fp)


def _shape_payload(chart: GlobeChart) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for shape in chart.region_layer.shapes:
        item = to_obj(shape)
        item.pop("data", None)
        item["points"] = shape.points
        item["rect"] = to_obj(shape.get_rect())
        out.append(item)
    return out


def compose_payload(chart: GlobeChart, focus: Any = None) -> dict[str, Any]:
    """Summarize a refreshed chart as a JSON-serializable mapping."""

    payload: dict[str, Any] = {
        "map_type": chart.map_type,
        "texture_size": chart.texture_size,
        "viewport": list(chart.viewport),
        "background_color": chart.surface.background_color,
        "light": to_obj(chart.light),
        "shapes": _shape_payload(chart),
        "labels": to_list(chart.region_layer.labels),
        "surface_layers": to_list(chart.surface_layers),
    }
    if focus is not None:
        payload["focus"] = to_obj(focus)
    return payload


async def _compose(ns: argparse.Namespace) -> dict[str, Any]:
    option = _load_option(ns.option)
    base_dir = Path(ns.option).parent if ns.option != "-" else Path.cwd()
    chart = GlobeChart(
        RecordingSurface(),
        _parse_geojson_args(ns.geojson),
        AutoRasterLoader(files=FileRasterLoader(base_dir)),
        view_size=(ns.width, ns.height),
    )
    try:
        chart.refresh(option)
        await chart.wait_idle()
        focus = await chart.focus_on(ns.focus) if ns.focus else None
        return compose_payload(chart, focus)
    finally:
        chart.dispose()


def handle_compose(ns: argparse.Namespace) -> int:
    """Handle the ``compose`` subcommand."""

    if getattr(ns, "verbose", False):
        os.environ["GEOGLOBE_VERBOSITY"] = "debug"
    elif getattr(ns, "quiet", False):
        os.environ["GEOGLOBE_VERBOSITY"] = "quiet"
    configure_logging_from_env()

    payload = asyncio.run(_compose(ns))
    text = json.dumps(payload, indent=2)
    if ns.output in (None, "-"):
        sys.stdout.write(text + "\n")
    else:
        out = Path(ns.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text, encoding="utf-8")
        logging.info("Wrote globe composition to %s", out)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="geoglobe", description=__doc__)
    sub = parser.add_subparsers(dest="command", required=True)

    compose = sub.add_parser("compose", help="Compose globe primitives from an option file")
    compose.add_argument("option", help="Chart option JSON file ('-' for stdin)")
    compose.add_argument(
        "--geojson",
        action="append",
        metavar="TYPE=PATH",
        help="GeoJSON file for a map type (repeatable)",
    )
    compose.add_argument("--output", "-o", default="-", help="Output JSON path or '-'")
    compose.add_argument("--focus", help="Region name to compute a focus target for")
    compose.add_argument("--width", type=int, default=800, help="View width in pixels")
    compose.add_argument("--height", type=int, default=600, help="View height in pixels")
    verbosity = compose.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", "-v", action="store_true")
    verbosity.add_argument("--quiet", "-q", action="store_true")
    compose.set_defaults(func=handle_compose)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)
    return ns.func(ns)


if __name__ == "__main__":
    raise SystemExit(main())
