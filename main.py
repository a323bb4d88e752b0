"""Entry point: serve the AG-UI chat API with uvicorn."""

import argparse
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from agui_stream.api import create_fastapi_app
from agui_stream.logging_config import setup_logging


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="AG-UI chat service")
    parser.add_argument("--host", default=os.getenv("API_HOST", "localhost"))
    parser.add_argument("--port", type=int, default=int(os.getenv("API_PORT", "8000")))
    parser.add_argument(
        "--no-log-file",
        action="store_true",
        help="Log to stdout only",
    )
    return parser.parse_args()


def main():
    """Run the chat service."""
    load_dotenv(Path(__file__).resolve().parent / ".env")
    args = parse_args()
    setup_logging(to_file=not args.no_log_file)

    # Application components are started by the FastAPI lifespan
    app = create_fastapi_app()

    # uvicorn's own access log stays on its default formatter
    uvicorn.run(app, host=args.host, port=args.port, log_level="info")


if __name__ == "__main__":
    main()
