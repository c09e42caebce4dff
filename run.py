#!/usr/bin/env python
"""
InternBooth backend launcher

Usage:
    python run.py                    # default (127.0.0.1:8000)
    python run.py -p 8080            # custom port
    python run.py --host 0.0.0.0     # listen on all interfaces
    python run.py --reload           # hot reload
"""
import argparse
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).parent


def parse_args():
    parser = argparse.ArgumentParser(
        description="InternBooth backend launcher",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-p", "--port",
        type=int,
        default=8000,
        help="Port (default: 8000)"
    )
    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Bind address (default: 127.0.0.1)"
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable hot reload (development)"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Worker processes (default: 1)"
    )
    return parser.parse_args()


def check_env():
    """Warn about a missing .env and create the data directory"""
    env_file = ROOT_DIR / ".env"
    if not env_file.exists():
        print("No .env file found, using default settings")

    data_dir = ROOT_DIR / "data"
    if not data_dir.exists():
        data_dir.mkdir(parents=True)
        print(f"Created data directory: {data_dir}")


def main():
    args = parse_args()

    print("=" * 50)
    print("  InternBooth admin API")
    print("=" * 50)

    check_env()

    print(f"\nAddress: http://{args.host}:{args.port}")
    print(f"Docs:    http://{args.host}:{args.port}/docs")
    print(f"Reload:  {'on' if args.reload else 'off'}")
    print(f"Workers: {args.workers}")
    print("\n" + "-" * 50 + "\n")

    import uvicorn
    try:
        uvicorn.run(
            "internbooth.main:app",
            host=args.host,
            port=args.port,
            reload=args.reload,
            workers=args.workers if not args.reload else 1,
            log_level="info",
        )
    except KeyboardInterrupt:
        print("\nServer stopped")


if __name__ == "__main__":
    sys.exit(main())
