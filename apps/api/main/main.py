"""
CLI entrypoint for running the wlvault FastAPI service.
"""

from __future__ import annotations

import argparse
import logging

import uvicorn

_LOG_LEVELS = ("debug", "info", "warning", "error")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wlvault-api")
    parser.add_argument("--host", default="0.0.0.0", help="Bind host")
    parser.add_argument("--port", type=int, default=8000, help="Bind port")
    parser.add_argument("--log-level", default="info", choices=_LOG_LEVELS, help="Log level")
    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Configure logging and run the API process using uvicorn.

    Args:
        argv: Optional command arguments without program name.
    Returns:
        int: Process exit code.
    Assumptions:
        Config is resolved from `WLVAULT_ENV` / `WLVAULT_CONFIG` inside the app factory.
    Raises:
        None.
    Side Effects:
        Configures root logging; starts HTTP server loop.
    """
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    uvicorn.run(
        "apps.api.main.app:create_app",
        host=args.host,
        port=args.port,
        factory=True,
        log_level=args.log_level,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
