"""Reckoning Events dev launcher: runs the API under uvicorn with auto-reload."""

import argparse
import os
import signal
import subprocess
import sys
from pathlib import Path

from dotenv import load_dotenv

PROJECT_DIR = Path(__file__).parent
load_dotenv(PROJECT_DIR / ".env")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run the Reckoning Events API for development")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="where games and config.json are stored (default: ./data)")
    parser.add_argument("--host", default=os.getenv("RECKONING_HOST", "127.0.0.1"))
    parser.add_argument("--port", default=os.getenv("RECKONING_PORT", "13013"))
    return parser.parse_args(argv)


def main():
    args = parse_args()

    # The app factory reads DATA_DIR from the child's environment.
    env = dict(os.environ)
    if args.data_dir is not None:
        data_dir = args.data_dir.resolve()
        data_dir.mkdir(parents=True, exist_ok=True)
        env["DATA_DIR"] = str(data_dir)

    cmd = [
        sys.executable, "-m", "uvicorn", "reckoning.app:create_app", "--factory", "--reload",
        "--host", args.host, "--port", str(args.port),
    ]
    print(f"Reckoning Events API on http://{args.host}:{args.port}/api")
    server = subprocess.Popen(cmd, cwd=PROJECT_DIR, env=env)

    def stop(signum, _frame):
        print(f"\nReceived signal {signum}, stopping API server")
        server.terminate()
        server.wait()
        sys.exit(0)

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, stop)

    sys.exit(server.wait())


if __name__ == "__main__":
    main()
