"""
HierTable backend – standalone process entry point.

During development ``uvicorn app.main:app --reload`` is used instead.

Startup protocol:
  1. The port comes from HIERTABLE_PORT, or a free OS port is discovered by
     binding to 127.0.0.1:0.
  2. "PORT:{port}" is printed to stdout (flushed) so a parent process (desktop
     shell, test harness) knows where to poll /api/health.
  3. uvicorn serves the FastAPI app on that port.
"""

from __future__ import annotations

import logging
import os
import socket

from app.main import app as _fastapi_app


def _find_free_port() -> int:
    """Bind to port 0, let the OS assign a free port, return it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def _resolve_port() -> int:
    raw = os.environ.get("HIERTABLE_PORT", "").strip()
    if not raw:
        return _find_free_port()
    try:
        return int(raw)
    except ValueError:
        raise SystemExit(f"HIERTABLE_PORT must be an integer, got {raw!r}")


def main() -> None:
    port = _resolve_port()
    print(f"PORT:{port}", flush=True)

    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    # Pass the app object so uvicorn does not re-import it from a string.
    uvicorn.run(
        _fastapi_app,
        host="127.0.0.1",
        port=port,
        # Sessions are in-process; several workers would each hold their own copy.
        workers=1,
        loop="asyncio",
    )


if __name__ == "__main__":
    main()
