import argparse
import logging
import sys
from pathlib import Path

from tracklog.analyzer import NOISE_THRESHOLD, STILLNESS_THRESHOLD, StatisticsConfig
from tracklog.batch import import_files
from tracklog.charts import generate_elevation_profile
from tracklog.config import DEFAULT_WORKERS, get_store_dir, load_config
from tracklog.errors import TrackError
from tracklog.formatters import format_distance, format_duration, format_elevation, format_speed
from tracklog.ingest import parse_and_summarize
from tracklog.models import TrackStatistics
from tracklog.store import DiskTrackStore, export_gpx


def build_parser(config: dict | None = None) -> argparse.ArgumentParser:
    """Build argument parser with defaults from config file."""
    if config is None:
        config = {}

    parser = argparse.ArgumentParser(
        prog="tracklog",
        description="Import GPX track logs and summarize distance, elevation and time.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--noise-threshold",
        type=float,
        default=config.get("noise_threshold", NOISE_THRESHOLD),
        help=f"Ignore elevation changes smaller than this, in meters (default: {NOISE_THRESHOLD})",
    )
    parser.add_argument(
        "--stillness-threshold",
        type=float,
        default=config.get("stillness_threshold", STILLNESS_THRESHOLD),
        help=f"Speed below which time is not counted as moving, in m/s (default: {STILLNESS_THRESHOLD})",
    )
    store_default = str(get_store_dir(config))

    sub = parser.add_subparsers(dest="command", required=True)

    summary = sub.add_parser("summary", help="Print statistics for a GPX file")
    summary.add_argument("gpx_file", help="Path to GPX file")

    imp = sub.add_parser("import", help="Import GPX files into the track store")
    imp.add_argument("gpx_files", nargs="+", help="GPX files to import")
    imp.add_argument("--owner", required=True, help="Owner id for the imported tracks")
    imp.add_argument("--store", default=store_default, help=f"Track store directory (default: {store_default})")
    imp.add_argument(
        "--workers",
        type=int,
        default=config.get("workers", DEFAULT_WORKERS),
        help=f"Files processed in parallel (default: {DEFAULT_WORKERS})",
    )

    lst = sub.add_parser("list", help="List stored tracks for an owner")
    lst.add_argument("--owner", required=True, help="Owner id")
    lst.add_argument("--store", default=store_default, help="Track store directory")

    exp = sub.add_parser("export", help="Write a stored track as GPX")
    exp.add_argument("track_id", help="Track id")
    exp.add_argument("--store", default=store_default, help="Track store directory")
    exp.add_argument("-o", "--output", default=None, help="Output file (default: stdout)")

    prof = sub.add_parser("profile", help="Render the elevation profile of a stored track as PNG")
    prof.add_argument("track_id", help="Track id")
    prof.add_argument("--store", default=store_default, help="Track store directory")
    prof.add_argument("-o", "--output", required=True, help="Output PNG file")

    ren = sub.add_parser("rename", help="Change the title of a stored track")
    ren.add_argument("track_id", help="Track id")
    ren.add_argument("title", help="New title")
    ren.add_argument("--owner", default=None, help="Only rename if the track belongs to this owner")
    ren.add_argument("--store", default=store_default, help="Track store directory")

    rm = sub.add_parser("delete", help="Remove a stored track")
    rm.add_argument("track_id", help="Track id")
    rm.add_argument("--owner", default=None, help="Only delete if the track belongs to this owner")
    rm.add_argument("--store", default=store_default, help="Track store directory")

    return parser


def print_statistics(title: str, stats: TrackStatistics) -> None:
    print(f"=== {title} ===")
    print(f"Distance:       {format_distance(stats.total_distance)}")
    print(f"Elevation Gain: {format_elevation(stats.elevation_gain)}")
    print(f"Elevation Loss: {format_elevation(stats.elevation_loss)}")
    if stats.start_time is not None:
        print(f"Start:          {stats.start_time.isoformat()}")
        print(f"End:            {stats.end_time.isoformat()}")
    print(f"Duration:       {format_duration(stats.duration)}")
    print(f"Moving Time:    {format_duration(stats.moving_time)}")
    print(f"Avg Speed:      {format_speed(stats.avg_moving_speed)}")
    print(f"Max Speed:      {format_speed(stats.max_speed)}")
    print(f"Points:         {stats.point_count} in {stats.segment_count} segment(s)")
    if stats.skipped_time_pairs:
        print(f"Skipped Pairs:  {stats.skipped_time_pairs} (timestamps out of order)")


def _cmd_summary(args, stats_config: StatisticsConfig) -> int:
    path = Path(args.gpx_file)
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        print(f"Error: File not found: {path}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: Cannot read {path}: {e}", file=sys.stderr)
        return 1
    try:
        _, stats = parse_and_summarize(raw, stats_config)
    except TrackError as e:
        print(f"Error: {e.kind}: {e}", file=sys.stderr)
        return 1
    print_statistics(path.name, stats)
    return 0


def _cmd_import(args, stats_config: StatisticsConfig) -> int:
    store = DiskTrackStore(args.store)
    report = import_files(
        args.gpx_files, args.owner, store, workers=args.workers, config=stats_config
    )
    for outcome in report.outcomes:
        if outcome.ok:
            print(f"OK     {outcome.source} -> {outcome.track_id}")
        elif outcome.status == "cancelled":
            print(f"SKIP   {outcome.source}")
        else:
            print(f"FAILED {outcome.source}: {outcome.error_kind}: {outcome.message}")
    print(f"Imported {report.succeeded} of {len(report.outcomes)} file(s)")
    return 1 if report.failed else 0


def _cmd_list(args) -> int:
    store = DiskTrackStore(args.store)
    for track in store.list_by_owner(args.owner):
        stats = track.statistics
        print(
            f"{track.id}  {track.created_at:%Y-%m-%d %H:%M}  {stats.total_distance / 1000:8.2f} km  "
            f"{format_duration(stats.duration):>12}  {track.title}"
        )
    return 0


def _cmd_export(args) -> int:
    store = DiskTrackStore(args.store)
    track = store.get(args.track_id)
    if track is None:
        print(f"Error: Track not found: {args.track_id}", file=sys.stderr)
        return 1
    xml = export_gpx(track)
    if args.output:
        Path(args.output).write_text(xml)
    else:
        sys.stdout.write(xml)
    return 0


def _cmd_profile(args) -> int:
    store = DiskTrackStore(args.store)
    track = store.get(args.track_id)
    if track is None:
        print(f"Error: Track not found: {args.track_id}", file=sys.stderr)
        return 1
    try:
        png = generate_elevation_profile(track)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    Path(args.output).write_bytes(png)
    return 0


def _cmd_rename(args) -> int:
    store = DiskTrackStore(args.store)
    title = args.title.strip()
    if not title:
        print("Error: Title must not be empty", file=sys.stderr)
        return 1
    if store.get(args.track_id, owner_id=args.owner) is None:
        print(f"Error: Track not found: {args.track_id}", file=sys.stderr)
        return 1
    track = store.rename(args.track_id, title)
    print(f"Renamed {track.id}: {track.title}")
    return 0


def _cmd_delete(args) -> int:
    store = DiskTrackStore(args.store)
    if store.get(args.track_id, owner_id=args.owner) is None:
        print(f"Error: Track not found: {args.track_id}", file=sys.stderr)
        return 1
    store.delete(args.track_id)
    print(f"Deleted {args.track_id}")
    return 0


def main(argv: list[str] | None = None) -> None:
    config = load_config()
    parser = build_parser(config)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    stats_config = StatisticsConfig(
        noise_threshold=args.noise_threshold,
        stillness_threshold=args.stillness_threshold,
    )

    try:
        if args.command == "summary":
            code = _cmd_summary(args, stats_config)
        elif args.command == "import":
            code = _cmd_import(args, stats_config)
        elif args.command == "list":
            code = _cmd_list(args)
        elif args.command == "export":
            code = _cmd_export(args)
        elif args.command == "profile":
            code = _cmd_profile(args)
        elif args.command == "rename":
            code = _cmd_rename(args)
        else:
            code = _cmd_delete(args)
    except TrackError as e:
        print(f"Error: {e.kind}: {e}", file=sys.stderr)
        code = 1
    sys.exit(code)
