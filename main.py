"""Karaoke Timer: FastAPI server exposing timing sessions to a web front end.

Start with:
    python main.py
    python main.py --host 0.0.0.0 --port 8000
    python main.py --reload
"""

from __future__ import annotations

import argparse
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

load_dotenv()


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Assign a unique request_id to every incoming request for log correlation."""

    async def dispatch(self, request: Request, call_next):
        from karaoke_timer.utils.logging import set_request_id
        rid = request.headers.get("x-request-id", "")
        rid = set_request_id(rid)
        response = await call_next(request)
        response.headers["x-request-id"] = rid
        return response


@asynccontextmanager
async def lifespan(application: FastAPI):
    from karaoke_timer.api.sessions import clear_sessions, get_config
    from karaoke_timer.utils.logging import setup_logging, Verbosity, info, success

    setup_logging(Verbosity.NORMAL)
    info("Karaoke Timer starting...")

    cfg = get_config()
    info(f"Correction threshold {cfg.timing.correction_threshold}s, "
         f"style {cfg.export.style}, time shift {cfg.export.time_shift}s")
    success("Server ready. API: http://localhost:8000/api")

    yield

    clear_sessions()


app = FastAPI(
    title="Karaoke Timer",
    description="Tap-timed syllable karaoke for ASS subtitles",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIdMiddleware)

# ── API Routes ────────────────────────────────────────────────────────────────

from karaoke_timer.api.routes import router as api_router  # noqa: E402
app.include_router(api_router)


# ── CLI Entry Point ───────────────────────────────────────────────────────────

def main():
    parser = argparse.ArgumentParser(description="Karaoke Timer Server")
    parser.add_argument("--host", default="127.0.0.1", help="Bind host (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")
    parser.add_argument("--reload", action="store_true", help="Auto-reload on code changes")
    args = parser.parse_args()

    import uvicorn
    uvicorn.run(
        "main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
