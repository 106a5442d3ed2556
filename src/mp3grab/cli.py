"""mp3grab command-line interface with subcommands.

Usage:
    mp3grab serve [--host HOST] [--port PORT]
    mp3grab convert <url> [-o output_dir]
    mp3grab sweep [-o output_dir] [--max-age-ms MS]
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from mp3grab.config import settings
from mp3grab.errors import Mp3GrabError
from mp3grab.main import configure_logging
from mp3grab.models.conversion import ConversionJob
from mp3grab.services.files import FileLifecycleManager
from mp3grab.services.naming import extract_video_id
from mp3grab.services.orchestrator import ConversionOrchestrator


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings.ensure_directories()
    uvicorn.run(
        "mp3grab.main:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
    )
    return 0


async def cmd_convert(args: argparse.Namespace) -> int:
    """Convert one URL with the full strategy chain and print the result."""
    video_id = extract_video_id(args.url)
    if video_id is None:
        print(f"Error: unsupported URL: {args.url}", file=sys.stderr)
        return 2

    output_dir = Path(args.output_dir) if args.output_dir else settings.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)

    files = FileLifecycleManager(output_dir)
    orchestrator = ConversionOrchestrator.from_settings(settings, files)

    try:
        result = await orchestrator.convert(
            ConversionJob(source_url=args.url, video_id=video_id)
        )
    except Mp3GrabError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(json.dumps({
        "success": True,
        "filename": result.filename,
        "title": result.title,
        "method": result.method.value,
        "path": str(files.output_dir / result.filename),
        "attempts": [
            {"strategy": a.strategy, "outcome": a.outcome.value, "error": a.error}
            for a in result.attempts
        ],
    }, indent=2))
    return 0


def cmd_sweep(args: argparse.Namespace) -> int:
    output_dir = Path(args.output_dir) if args.output_dir else settings.output_dir
    max_age_ms = args.max_age_ms if args.max_age_ms is not None else settings.max_file_age_ms

    files = FileLifecycleManager(output_dir, max_age_seconds=max_age_ms / 1000.0)
    removed = files.sweep()
    for name in removed:
        print(name)
    print(f"Removed {len(removed)} file(s)", file=sys.stderr)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mp3grab", description="Video URL to MP3 converter")
    parser.add_argument("--log-level", default=None, help="Logging level (default: settings)")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP server")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    convert = sub.add_parser("convert", help="Convert one URL to MP3")
    convert.add_argument("url")
    convert.add_argument("-o", "--output-dir", default=None)

    sweep = sub.add_parser("sweep", help="Delete expired artifacts once")
    sweep.add_argument("-o", "--output-dir", default=None)
    sweep.add_argument("--max-age-ms", type=int, default=None)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level or settings.log_level)

    if args.command == "serve":
        return cmd_serve(args)
    if args.command == "convert":
        return asyncio.run(cmd_convert(args))
    return cmd_sweep(args)


if __name__ == "__main__":
    sys.exit(main())
