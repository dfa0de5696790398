"""
Run the web server.

Usage:
    python -m contoso_university --host 0.0.0.0 --port 8000
    contoso-university --reload
"""

import argparse
from typing import List, Optional

import uvicorn


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the Contoso University web application")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address (default 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="HTTP port (default 8000)")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development)")
    parser.add_argument("--ssl-keyfile", default=None, help="TLS private key for HTTPS")
    parser.add_argument("--ssl-certfile", default=None, help="TLS certificate for HTTPS")
    return parser.parse_args(argv)


# PUBLIC_INTERFACE
def main(argv: Optional[List[str]] = None) -> None:
    """Start uvicorn with the application factory; startup failures exit non-zero."""
    args = parse_args(argv)
    uvicorn.run(
        "contoso_university.api.main:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        ssl_keyfile=args.ssl_keyfile,
        ssl_certfile=args.ssl_certfile,
        log_config=None,
    )


if __name__ == "__main__":
    main()
