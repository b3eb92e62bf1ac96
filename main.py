"""
Story Builder backend: CLI entrypoint.

Builds the API around a fresh project store and serves it with uvicorn.
"""

import argparse
import logging
import os
import sys

import uvicorn
from dotenv import load_dotenv

load_dotenv()
from api.app import create_app

logger = logging.getLogger("story_builder")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments. Defaults come from STORY_BUILDER_HOST / STORY_BUILDER_PORT."""
    p = argparse.ArgumentParser(
        prog="story-builder",
        description="Serve the Story Builder backend (projects, AI generation, local LLM proxy).",
    )
    p.add_argument(
        "--host",
        type=str,
        default=os.environ.get("STORY_BUILDER_HOST", "127.0.0.1"),
        help="Bind address (default: 127.0.0.1).",
    )
    p.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("STORY_BUILDER_PORT", "8000")),
        help="Bind port (default: 8000).",
    )
    p.add_argument(
        "--log-level",
        type=str,
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: info).",
    )
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Parse args, build the app, run the server. Returns 0 on clean shutdown, non-zero on failure."""
    try:
        args = parse_args(argv)
    except SystemExit as e:
        return 2 if e.code else 0  # argparse error -> 2

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        app = create_app()
        logger.info("Story Builder started on %s:%d", args.host, args.port)
        uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level)
    except Exception as e:
        logger.exception("Server failed: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
