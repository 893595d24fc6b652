from __future__ import annotations

import argparse
import os

import uvicorn

from app.config import get_settings


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Observable mock API service")
    parser.add_argument("--host", default=settings.host, help="Interface to bind")
    parser.add_argument("--port", type=int, default=settings.port, help="TCP port to listen on (env PORT)")
    args = parser.parse_args()

    if args.port != settings.port:
        os.environ["PORT"] = str(args.port)
        get_settings.cache_clear()

    # Logging is configured in the app's startup hook; keep uvicorn from installing its own.
    # The request middleware already writes one access line per request.
    uvicorn.run("app.main:app", host=args.host, port=args.port, log_config=None, access_log=False)


if __name__ == "__main__":
    main()
