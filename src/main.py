"""Main entry point with CLI."""
import argparse
import asyncio
import sys
from pathlib import Path

import aiofiles
import orjson

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.config import config, Config
from src.logging_conf import setup_logging
from src.ingest.errors import FileError, StoreError
from src.ingest.models import DatePolicy
from src.ingest.pipeline import IngestPipeline
from src.store.video_store import VideoStore
from src.videos.service import VideoService

import logging

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Spark code tracker")
    parser.add_argument(
        "--log-level",
        default=None,
        help=f"Log level (default: {config.LOG_LEVEL})",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Ingest a CSV of video records")
    ingest.add_argument("file", type=Path, help="CSV file to ingest")
    ingest.add_argument("--owner", required=True, help="Owner id the videos belong to")
    ingest.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and validate only, no Supabase calls",
    )
    ingest.add_argument(
        "--strict-dates",
        action="store_true",
        help="Reject rows with unreadable post dates instead of using the current time",
    )
    ingest.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Also write the upload summary as JSON to this path",
    )

    list_cmd = subparsers.add_parser("list", help="List stored videos for an owner")
    list_cmd.add_argument("--owner", required=True, help="Owner id")

    delete = subparsers.add_parser("delete-all", help="Delete every video of an owner")
    delete.add_argument("--owner", required=True, help="Owner id")
    delete.add_argument("--yes", action="store_true", help="Confirm the deletion")

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)

    return parser.parse_args(argv)


def _dump(payload) -> str:
    return orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode()


async def run_ingest(args: argparse.Namespace, store: VideoStore | None) -> int:
    """Ingest one file and print the summary; returns the exit code."""
    try:
        async with aiofiles.open(args.file, "r", encoding="utf-8-sig") as f:
            text = await f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Cannot read {args.file}: {e}")
        return 1

    policy = DatePolicy.REJECT if args.strict_dates else DatePolicy(config.DATE_POLICY)
    pipeline = IngestPipeline(store, policy)
    try:
        if args.dry_run:
            summary = pipeline.parse_only(text)
        else:
            summary = await pipeline.ingest(text, args.owner)
    except FileError as e:
        logger.error(f"Cannot ingest {args.file}: {e}")
        return 1
    except StoreError as e:
        logger.error(f"Supabase error while ingesting {args.file}: {e}")
        return 1

    payload = summary.model_dump(mode="json", by_alias=True)
    print(_dump(payload))
    if args.output:
        async with aiofiles.open(args.output, "wb") as f:
            await f.write(orjson.dumps(payload, option=orjson.OPT_INDENT_2))
        logger.info(f"Saved summary to {args.output}")
    return 0


async def run_list(args: argparse.Namespace, store: VideoStore) -> int:
    videos = await VideoService(store).list_videos(args.owner)
    print(_dump([video.model_dump(mode="json") for video in videos]))
    return 0


async def run_delete_all(args: argparse.Namespace, store: VideoStore) -> int:
    if not args.yes:
        logger.error("Refusing to delete without --yes")
        return 1
    await VideoService(store).delete_all(args.owner)
    return 0


def main(argv: list[str] | None = None, store: VideoStore | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    if args.command == "serve":
        import uvicorn
        from src.api.main import create_app

        uvicorn.run(create_app(store), host=args.host, port=args.port)
        return 0

    offline = args.command == "ingest" and args.dry_run
    try:
        Config.validate(require_supabase=store is None and not offline)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    if store is None and not offline:
        store = VideoStore.from_config()

    handlers = {
        "ingest": run_ingest,
        "list": run_list,
        "delete-all": run_delete_all,
    }
    try:
        return asyncio.run(handlers[args.command](args, store))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 1
    except StoreError as e:
        logger.error(f"Supabase error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
