from __future__ import annotations

import argparse

import uvicorn

from .config import settings


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="agenda", description="Run the Agenda API server")
    parser.add_argument("--host", default=settings.host)
    parser.add_argument("--port", type=int, default=settings.port)
    parser.add_argument("--reload", action="store_true", help="restart on code changes (development only)")
    args = parser.parse_args(argv)
    uvicorn.run(
        "agenda.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
