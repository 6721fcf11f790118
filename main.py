"""
Server entry point.

Run this file to start the capacity analytics API:

    python main.py

Interactive API docs are served at http://127.0.0.1:8000/docs

This file does NOT contain application logic. See app.py for the FastAPI
application, service wiring, and startup sequence.
"""

from __future__ import annotations

import os

import uvicorn


HOST = os.getenv("CAPACITY_HOST", "127.0.0.1")
PORT = int(os.getenv("CAPACITY_PORT", "8000"))


def main() -> None:
    """Start the capacity analytics API server."""
    print("=" * 60)
    print("  Capacity & Resource Analytics Engine")
    print("=" * 60)
    print(f"  Server   : http://{HOST}:{PORT}")
    print(f"  API docs : http://{HOST}:{PORT}/docs")
    print("=" * 60)
    print("  Press CTRL+C to stop\n")

    uvicorn.run(
        "app:app",
        host=HOST,
        port=PORT,
        reload=True,
        log_level="info",
    )


if __name__ == "__main__":
    main()
