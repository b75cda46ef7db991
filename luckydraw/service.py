from __future__ import annotations

import argparse
import asyncio
import logging
import random
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from .config import AppSettings, load_settings
from .errors import RaffleError
from .session import RaffleSession
from .types import DrawResult


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stderr,
    )


async def run_draw(
    raw: bytes,
    count: int,
    settings: AppSettings,
    seed: Optional[int] = None,
) -> DrawResult:
    """Upload and draw once through a session, honouring the suspense delay."""
    rng = random.Random(seed) if seed is not None else None
    session = RaffleSession(settings, session_id="cli", rng=rng)
    try:
        session.upload(raw)
        return await session.start_draw(count)
    finally:
        session.close()


def format_winners(result: DrawResult) -> List[str]:
    return [f"{idx}. {w.number} - {w.name}" for idx, w in enumerate(result.winners, start=1)]


def serve(args: argparse.Namespace, settings: AppSettings) -> int:
    from .app import create_app

    app = create_app(settings)
    try:
        app.run(host=args.host, port=args.port, debug=settings.flask.debug, use_reloader=False)
    finally:
        app.extensions["luckydraw"].stop()
    return 0


def draw(args: argparse.Namespace, settings: AppSettings) -> int:
    logger = logging.getLogger("luckydraw.cli")
    if args.no_suspense:
        settings = settings.copy(draw=replace(settings.draw, delay_seconds=0.0))
    count = args.count if args.count is not None else settings.draw.default_winners
    seed = args.seed if args.seed is not None else settings.draw.seed

    try:
        raw = Path(args.csv).read_bytes()
    except FileNotFoundError:
        print(f"ERROR: File not found: {args.csv}", file=sys.stderr)
        return 2

    try:
        result = asyncio.run(run_draw(raw, count, settings, seed=seed))
    except RaffleError as exc:
        logger.debug("Draw failed: %s", exc.kind)
        print(f"ERROR: {exc.message}", file=sys.stderr)
        return 2

    print("Winners:")
    for line in format_winners(result):
        print(line)
    return 0


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Lucky draw raffle tool")
    parser.add_argument("--env-file", type=str, default=None, help="Path to .env file with settings")
    parser.add_argument(
        "--verbose", action="store_true", help="Enable debug logging (default INFO)."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve_parser = sub.add_parser("serve", help="Run the web app.")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=5000)

    draw_parser = sub.add_parser("draw", help="Draw winners from a CSV file.")
    draw_parser.add_argument("csv", help="Path to a CSV with 'number' and 'name' columns")
    draw_parser.add_argument("--count", type=int, default=None, help="Number of winners")
    draw_parser.add_argument("--seed", type=int, default=None, help="Seed for a reproducible draw")
    draw_parser.add_argument(
        "--no-suspense", action="store_true", help="Skip the suspense delay."
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    configure_logging(args.verbose)
    settings = load_settings(args.env_file)
    handler = serve if args.command == "serve" else draw
    try:
        code = handler(args, settings)
    except KeyboardInterrupt:
        print("Stopped by user.")
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    main()
