"""
Start the Approval Flow API with uvicorn.

Usage:
    python run.py                  # host/port from API_HOST / API_PORT
    python run.py --reload         # auto-reload while developing
    python run.py --port 8080
"""
import argparse

import uvicorn

from approval_flow.config.settings import get_settings


def parse_args(argv=None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Approval Flow API server")
    parser.add_argument("--host", default=settings.api_host, help=f"Bind address (default: {settings.api_host})")
    parser.add_argument("--port", type=int, default=settings.api_port, help=f"Bind port (default: {settings.api_port})")
    parser.add_argument("--reload", action="store_true", help="Reload on source changes")
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Worker processes; forced to 1 with --reload"
    )
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    workers = 1 if args.reload else max(args.workers, 1)

    print(f"Approval Flow API on http://{args.host}:{args.port} (reload={args.reload}, workers={workers})")

    uvicorn.run(
        "approval_flow.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=workers
    )


if __name__ == "__main__":
    main()
