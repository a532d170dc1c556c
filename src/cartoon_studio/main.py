"""Command-line entrypoint that serves the studio locally."""

import argparse
import logging

import uvicorn

from cartoon_studio.app_logging import configure_logging

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    """Serve the studio UI on localhost."""
    parser = argparse.ArgumentParser(
        prog="cartoon-studio",
        description="Cartoon Studio: turn prompts into cartoon images.",
    )
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true")
    args = parser.parse_args(argv)

    configure_logging()
    logger.info("Cartoon Studio listening on http://%s:%s", args.host, args.port)
    uvicorn.run(
        "cartoon_studio.api.asgi:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
