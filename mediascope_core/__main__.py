from __future__ import annotations

import argparse
from dataclasses import asdict
import json
import logging
from pathlib import Path

from mediascope_core.clock import AnimationClock
from mediascope_core.dashboard import Dashboard, default_panels
from mediascope_data.filters import criteria_from_raw, filter_records
from mediascope_data.insights import generate_insights
from mediascope_data.loader import load_records
from mediascope_plot.charts import load_basemap
from mediascope_plot.raster import RasterRenderer
from mediascope_plot.svg import save_svg
from mediascope_plot.theme import validate_theme


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="mediascope")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Render every dashboard panel to PNG (and optionally SVG).")
    render.add_argument("dataset", type=Path)
    render.add_argument("--out", type=Path, default=Path("out"))
    render.add_argument("--width", type=int, default=700)
    render.add_argument("--height", type=int, default=450)
    render.add_argument("--basemap", type=Path, default=None, help="GeoJSON FeatureCollection for the world panel.")
    render.add_argument(
        "--filter",
        action="append",
        default=[],
        metavar="FIELD=VALUE[,VALUE...]",
        help="Accepted values for a field; for range fields pass LOW,HIGH.",
    )
    render.add_argument("--panel", action="append", default=None, help="Only render the named panel(s).")
    render.add_argument("--svg", action="store_true")
    render.add_argument("--theme", type=Path, default=None, help="JSON object of theme token overrides.")
    render.add_argument("--fps", type=int, default=60)

    insights = sub.add_parser("insights", help="Print dataset insights as JSON.")
    insights.add_argument("dataset", type=Path)
    insights.add_argument("--filter", action="append", default=[], metavar="FIELD=VALUE[,VALUE...]")

    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.command == "render":
        if args.width <= 0 or args.height <= 0:
            raise ValueError("width/height must be > 0")
        theme = validate_theme(json.loads(args.theme.read_text(encoding="utf-8")) if args.theme else None)
        basemap = load_basemap(args.basemap) if args.basemap is not None else None
        panels = default_panels(basemap, theme=theme)
        if args.panel:
            wanted = set(args.panel)
            panels = [p for p in panels if p.name in wanted]
            missing = wanted - {p.name for p in panels}
            if missing:
                raise ValueError(f"unknown panel(s): {', '.join(sorted(missing))}")

        dashboard = Dashboard(panels)
        dashboard.criteria = criteria_from_raw(_parse_filters(args.filter))
        clock = AnimationClock(target_fps=args.fps)
        now = 0.0
        dashboard.load(load_records(args.dataset), now)
        for name in dashboard.panels:
            dashboard.resize(name, args.width, args.height, now)
        settle_at = now + theme.enter_duration_ms + theme.exit_duration_ms
        for t in clock.frames(now, settle_at):
            dashboard.advance(t)

        renderer = RasterRenderer(theme)
        for name, scene in dashboard.scenes().items():
            path = renderer.save_png(scene, args.out / f"{name}.png")
            print(f"wrote {path} ({len(scene.marks)} marks)")
            if args.svg:
                print(f"wrote {save_svg(scene, args.out / f'{name}.svg', theme)}")
        print(f"records: {len(dashboard.filtered)}/{len(dashboard.records)} selected")
        return

    if args.command == "insights":
        records = load_records(args.dataset)
        criteria = criteria_from_raw(_parse_filters(args.filter))
        result = asdict(generate_insights(filter_records(records, criteria)))
        print(json.dumps(result, indent=2, sort_keys=True, default=str))
        return

    raise RuntimeError(f"unsupported command: {args.command}")


def _parse_filters(items: list[str]) -> dict[str, list[object]]:
    out: dict[str, list[object]] = {}
    for item in items:
        field, sep, raw = item.partition("=")
        if not sep or not field or not raw:
            raise ValueError(f"invalid filter {item!r}; expected FIELD=VALUE[,VALUE...]")
        out.setdefault(field.strip(), []).extend(_coerce(v.strip()) for v in raw.split(","))
    return out


def _coerce(value: str) -> object:
    if value in ("Yes", "No"):
        return value == "Yes"
    try:
        return float(value)
    except ValueError:
        return value


if __name__ == "__main__":
    main()
