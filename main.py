#!/usr/bin/env python3
"""
authshim -- credential registration and bearer-token issuance service.

Usage:
  python main.py
  python main.py --host 0.0.0.0 --port 8080
  python main.py --reload

Environment variables (see core/config.py for the full list):
  SECRET_KEY            JWT signing key, at least 32 characters. Required unless DEBUG=true.
  TOKEN_EXPIRE_SECONDS  Token lifetime in seconds (default 3600).
  BCRYPT_ROUNDS         bcrypt cost factor (default 12).
  DATABASE_URL          SQLAlchemy URL of the credential store.
"""

import argparse

import uvicorn


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Serve the authshim HTTP API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on (default: 8000)")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    args = parser.parse_args()

    # Import string rather than the app object so --reload can re-import it.
    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
