"""CLI entry point for the Peridot API server."""

import argparse
import os


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="peridot-server",
        description="Peridot API server: job graph and repo pull bookkeeping",
    )
    parser.add_argument("--host", default=None, help="Bind host (default: PERIDOT_HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Bind port (default: PERIDOT_PORT or 8080)")
    parser.add_argument(
        "--local",
        action="store_true",
        help="Local dev mode: SQLite database file, tables created at startup",
    )
    args = parser.parse_args(argv)

    # Must be set before peridot.config is first imported
    if args.local:
        os.environ["PERIDOT_LOCAL_MODE"] = "1"

    import uvicorn

    from peridot.config import settings

    uvicorn.run(
        "peridot.main:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
    )


if __name__ == "__main__":
    main()
