from __future__ import annotations

import argparse
import sys

import uvicorn

from coinboard.config.logging import configure_logging
from coinboard.config.settings import SettingsError, get_settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Serve the coinboard market API")
    parser.add_argument("--host", default=None, help="bind address (default: $HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="bind port (default: $PORT or 3000)")
    parser.add_argument("--reload", action="store_true", default=None, help="restart on code changes")
    parser.add_argument("--log-level", default=None, help="root log level (default: $LOG_LEVEL or INFO)")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
    except SettingsError as exc:
        print(f"coinboard: {exc}", file=sys.stderr)
        raise SystemExit(2)

    log_level = (args.log_level or settings.LOG_LEVEL).upper()
    configure_logging(log_level)

    uvicorn.run(
        "coinboard.main:app",
        host=args.host or settings.HOST,
        port=args.port or settings.PORT,
        reload=settings.RELOAD if args.reload is None else args.reload,
        log_level=log_level.lower(),
    )


if __name__ == "__main__":
    main()
