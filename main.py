#!/usr/bin/env python3
"""
Market Intelligence Explorer — launch the explore service.

Usage:
    python main.py                               # http://localhost:8000
    python main.py --port 9000                   # http://localhost:9000
    python main.py --host 127.0.0.1              # bind to localhost only
    python main.py --backend https://api.example # point at another backend
    python main.py --reload                      # auto-reload on code changes
"""

from __future__ import annotations

import argparse
import os
import sys

from utils.config import ExplorerConfig


def main() -> None:
    cfg = ExplorerConfig.from_env()

    parser = argparse.ArgumentParser(
        description="Launch the Market Intelligence Explorer API.",
    )
    parser.add_argument(
        "--host", default=cfg.api_host,
        help=f"Bind address (default: {cfg.api_host} or APP_HOST env var)",
    )
    parser.add_argument(
        "--port", type=int, default=cfg.api_port,
        help=f"Port to listen on (default: {cfg.api_port} or APP_PORT env var)",
    )
    parser.add_argument(
        "--backend", default=None,
        help="Backend base URL (default: EXPLORER_API_BASE_URL env var)",
    )
    parser.add_argument(
        "--reload", action="store_true",
        help="Enable auto-reload on file changes (development mode)",
    )
    args = parser.parse_args()

    # The app reads its configuration at import time
    if args.backend:
        os.environ["EXPLORER_API_BASE_URL"] = args.backend

    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn is not installed.")
        print("  pip install uvicorn[standard]")
        sys.exit(1)

    host = "localhost" if args.host == "0.0.0.0" else args.host
    print(f"Starting Market Intelligence Explorer at http://{host}:{args.port}")
    print(f"Backend: {args.backend or cfg.api_base_url}")
    print()

    uvicorn.run(
        "api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
