from __future__ import annotations

import argparse
import logging
import os

import uvicorn


def configure_logging() -> None:
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    # httpx logs every outbound request at INFO
    logging.getLogger("httpx").setLevel(os.getenv("HTTPX_LOG_LEVEL", "WARNING").upper())


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the Adjacent News API gateway")
    parser.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "8000")))
    parser.add_argument(
        "--reload",
        action="store_true",
        default=os.getenv("UVICORN_RELOAD", "0").lower() in {"1", "true", "yes"},
        help="Restart the server when source files change",
    )
    args = parser.parse_args()

    configure_logging()
    uvicorn.run(
        "adjacent_api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=os.getenv("UVICORN_LOG_LEVEL", "info"),
    )


if __name__ == "__main__":
    main()
