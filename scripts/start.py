#!/usr/bin/env python3
"""
Container entrypoint for the back office API.

Creates missing tables and seeds (release.py), then hands the process over to
gunicorn serving `app.wsgi:app`.

Usage:
    PORT=8080 python scripts/start.py
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _port() -> str:
    raw = (os.environ.get("PORT") or "").strip() or "8080"
    if not raw.isdigit() or not 1 <= int(raw) <= 65535:
        print(f"ERROR: Invalid PORT value '{raw}'. Must be integer 1-65535.", flush=True)
        sys.exit(1)
    return raw


def gunicorn_argv(port: str) -> list[str]:
    workers = (os.environ.get("WEB_CONCURRENCY") or "2").strip()
    return [
        "gunicorn",
        "app.wsgi:app",
        "--bind", f"0.0.0.0:{port}",
        "--workers", workers,
        "--timeout", "60",
        "--preload",
        "--access-logfile", "-",
        "--error-logfile", "-",
    ]


def main() -> None:
    port = _port()

    from scripts.release import run_release

    try:
        run_release()
    except Exception as e:
        print(f"Release failed: {e}", flush=True)
        sys.exit(1)

    print(f"=== Starting gunicorn on 0.0.0.0:{port} ===", flush=True)
    # exec so gunicorn becomes PID 1 and receives signals directly
    os.execvp("gunicorn", gunicorn_argv(port))


if __name__ == "__main__":
    main()
