"""perflog: reconstruct per-request performance telemetry from raw log dumps."""

import logging
import os
import signal
import sys
import time
from argparse import ArgumentParser

from perflog.config import ConfigError, load_config, load_yaml_config
from perflog.formatter import (
    export_filename,
    format_aggregates_json,
    format_aggregates_text,
    format_export,
    format_group_views_json,
    format_groups,
    format_quick_stats_json,
    format_quick_stats_text,
    format_record_text,
    format_records_json,
    format_tree_text,
    format_trees_json,
)
from perflog.models import FilterCriteria
from perflog.reader import read_lines
from perflog.session import analyze

logger = logging.getLogger("perflog")

VIEWS = ("groups", "records", "stats", "quick", "trees")

_running = True


def _signal_handler(sig, frame):
    global _running
    logger.info("Shutdown signal received, stopping...")
    _running = False


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="perflog",
        description="Group, filter and profile request latency in raw application logs.",
    )
    parser.add_argument("file", help="Log file to analyze")
    parser.add_argument("--id", default="", help="Keep groups containing this identifier (case-insensitive)")
    parser.add_argument("--signalr", action="store_true", help="Keep SignalR or hub groups")
    parser.add_argument("--highlight-signalr", action="store_true", help="Keep groups with the SignalR marker")
    parser.add_argument("--highlight-hub", action="store_true", help="Keep groups with the hub marker")
    parser.add_argument(
        "--status",
        type=int,
        nargs="+",
        default=[],
        metavar="BUCKET",
        help="Keep groups with an HTTP status in these hundred-buckets (e.g. 400 500)",
    )
    parser.add_argument("--request-response", action="store_true",
                        help="Merge groups by Request/Response ID")
    parser.add_argument("--profiler-only", action="store_true", help="Keep profiler groups only")
    parser.add_argument("--analysis", action="store_true",
                        help="Compute quick profiling stats (requires --profiler-only)")
    parser.add_argument("--slow-only", action="store_true",
                        help="Show only slow groups (requires --analysis)")
    parser.add_argument("--threshold", type=float, default=None,
                        help="Slow threshold in seconds for quick stats (default: 0.05)")
    parser.add_argument("--threshold-ms", type=float, default=None,
                        help="Slow threshold in milliseconds for aggregate stats (default: 100)")
    parser.add_argument("--view", choices=VIEWS, default="groups", help="What to print (default: groups)")
    parser.add_argument("--tree", metavar="RESPONSE_ID", help="Print only the profile tree of this response")
    parser.add_argument("--output", choices=["text", "json"], default=None,
                        help="Output format (default: text)")
    parser.add_argument("--export", metavar="PATH",
                        help="Write the export text to PATH, a directory, or '-' for stdout")
    parser.add_argument("--config", default=None, help="Path to YAML config file")
    parser.add_argument("--log-level", default=None, help="Logging level (default: INFO)")
    parser.add_argument("--watch", action="store_true", help="Re-run whenever the file changes")
    return parser


def validate_args(args, config) -> str | None:
    """Return an error message for incompatible flags, or None."""
    if args.slow_only and not args.analysis:
        return "--slow-only requires --analysis"
    if args.analysis and not args.profiler_only:
        return "--analysis requires --profiler-only"
    if args.watch and args.export:
        return "--watch and --export cannot be used together"
    for bucket in args.status:
        if bucket not in config.status_buckets:
            return f"--status bucket {bucket} is not one of {list(config.status_buckets)}"
    return None


def build_criteria(args, config) -> FilterCriteria:
    return FilterCriteria(
        id_filter=args.id,
        filter_signalr=args.signalr,
        highlight_signalr=args.highlight_signalr,
        highlight_hub=args.highlight_hub,
        status_buckets=tuple(args.status),
        request_response=args.request_response,
        profiler_only=args.profiler_only,
        protocol_marker=config.protocol_marker,
        hub_marker=config.hub_marker,
    )


def render(result, args, config) -> str:
    """Text for the selected view."""
    as_json = config.output_format == "json"
    view = "trees" if args.tree else args.view

    if view == "records":
        if as_json:
            return format_records_json(result.records)
        return "\n".join(format_record_text(r) for r in result.records)

    if view == "stats":
        if as_json:
            return format_aggregates_json(result.aggregates)
        return format_aggregates_text(result.aggregates, config.slow_threshold_ms)

    if view == "quick":
        if as_json:
            return format_quick_stats_json(result.quick_stats)
        return format_quick_stats_text(result.quick_stats, config.slow_threshold)

    if view == "trees":
        trees = result.trees
        if args.tree:
            trees = {k: v for k, v in trees.items() if k == args.tree}
        if as_json:
            return format_trees_json(trees)
        return "\n\n".join(f"{rid}\n{format_tree_text(tree)}" for rid, tree in trees.items())

    if as_json:
        return format_group_views_json(result.views)
    return format_groups(result.displayed)


def run_once(args, config, criteria) -> None:
    lines = read_lines(args.file)
    result = analyze(
        lines,
        criteria,
        config,
        analysis=args.analysis,
        slow_only=args.slow_only,
    )

    if args.export:
        source_name = os.path.basename(args.file)
        content = format_export(result, source_name, config.slow_threshold, args.slow_only)
        if args.export == "-":
            print(content)
            return
        target = args.export
        if os.path.isdir(target):
            target = os.path.join(target, export_filename(source_name, result.analysis_active))
        with open(target, "w", encoding="utf-8") as f:
            f.write(content)
        logger.info("Exported %d group(s) to %s", len(result.displayed), target)
        return

    output = render(result, args, config)
    if output:
        print(output)


def watch(args, config, criteria) -> None:
    """Re-run on every change to the file until interrupted."""
    from watchdog.observers import Observer
    from perflog.watcher import ReloadHandler

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    def reload(_path):
        try:
            run_once(args, config, criteria)
        except FileNotFoundError as e:
            logger.warning("%s", e)
        sys.stdout.flush()

    run_once(args, config, criteria)
    handler = ReloadHandler(args.file, reload)
    observer = Observer()
    observer.schedule(handler, handler.watch_dir, recursive=False)
    observer.start()
    logger.info("Watching %s. Press Ctrl+C to stop.", args.file)

    try:
        while _running:
            time.sleep(1)
    except KeyboardInterrupt:
        pass

    observer.stop()
    observer.join(timeout=5)


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    # Handlers must exist before the YAML file is read; level is final after load_config
    early_level = args.log_level or os.environ.get("PERFLOG_LOG_LEVEL", "INFO")
    logging.basicConfig(
        level=getattr(logging, early_level.upper(), logging.INFO),
        format="%(asctime)s [PERFLOG] %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    try:
        config = load_config(args, load_yaml_config(args.config))
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    logging.getLogger().setLevel(getattr(logging, config.log_level, logging.INFO))

    error = validate_args(args, config)
    if error:
        print(f"Error: {error}", file=sys.stderr)
        sys.exit(1)

    criteria = build_criteria(args, config)
    try:
        if args.watch:
            watch(args, config, criteria)
        else:
            run_once(args, config, criteria)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(0)
    except BrokenPipeError:
        sys.exit(0)
