"""
pawfence/main.py
============================================
FastAPI Application for Dog Geofencing
============================================

Main entry point of the PawFence service. Collars (or the mobile app on
their behalf) post location samples over HTTP; every sample is stored and
evaluated against the dog's safe-zone boundaries, and leaving all of them
creates a notification for the owner.

Architecture Overview:
---------------------
- REST API: location ingestion, dogs, boundaries and notifications
- WebSocket: real-time system logs streamed via /logs
- Startup: optional GeoJSON boundary import on an empty database

Run:
    uvicorn pawfence.main:app --reload
"""

# Environment Configuration
from dotenv import load_dotenv
import os
load_dotenv()

# FastAPI Core
from fastapi import FastAPI, WebSocket
from contextlib import asynccontextmanager
from pathlib import Path
import asyncio

from pawfence.Core.config import settings
from pawfence.Controller.Routes import boundaries, dogs, locations, notifications

# WebSocket Management (system logs only)
from pawfence.Core import log_ws

# Database
from pawfence.DB.session import SessionLocal
from pawfence.Repositories.boundary import count_boundaries
from pawfence.Services.boundary_importer import boundary_importer

# ============================================================
# ROOT PATH HANDLING (subdirectory deployment)
# ============================================================
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi.responses import RedirectResponse

ROOT_PATH = os.getenv("ROOT_PATH", "").strip()
if ROOT_PATH:
    if not ROOT_PATH.startswith("/"):
        ROOT_PATH = "/" + ROOT_PATH
    if ROOT_PATH.endswith("/"):
        ROOT_PATH = ROOT_PATH[:-1]


class StripPrefixMiddleware(BaseHTTPMiddleware):
    """
    Removes the ROOT_PATH prefix from incoming requests.

    Example:
        ROOT_PATH = "/pawfence"
        Incoming request: /pawfence/location/update
        FastAPI receives: /location/update
    """

    def __init__(self, app, prefix: str):
        super().__init__(app)
        self.prefix = prefix

    async def dispatch(self, request, call_next):
        if self.prefix:
            path = request.url.path

            if path == self.prefix:
                return RedirectResponse(url=self.prefix + "/", status_code=307)

            if path.startswith(self.prefix + "/"):
                request.scope["path"] = path[len(self.prefix):] or "/"

        return await call_next(request)


# ============================================================
# CORS CONFIGURATION
# ============================================================
from fastapi.middleware.cors import CORSMiddleware


def _parse_origins(csv_value: str):
    """
    Parse comma-separated origins.

    Examples:
        "*" → (True, ["*"])
        "https://app.com,https://admin.app.com" → (False, ["https://app.com", "https://admin.app.com"])
        "" → (False, [])
    """
    if not csv_value:
        return (False, [])

    csv_value = csv_value.strip()

    if csv_value == "*":
        return (True, ["*"])

    origins = [origin.strip() for origin in csv_value.split(",") if origin.strip()]
    return (False, origins)


_http_allow_all, _http_origins = _parse_origins(
    os.getenv("HTTP_ALLOWED_ORIGINS", "*")
)
_ws_allow_all, _ws_origins = _parse_origins(
    os.getenv("WS_ALLOWED_ORIGINS", "*")
)


# ============================================================
# STARTUP BOUNDARY IMPORT
# ============================================================
def import_seed_boundaries():
    """
    Import BOUNDARY_IMPORT_FILE when the boundaries table is empty.

    Features whose dog is not registered are counted as failed.
    """
    if not settings.BOUNDARY_IMPORT_FILE:
        return

    boundary_file = Path(settings.BOUNDARY_IMPORT_FILE)
    if not boundary_file.exists():
        print(f"[STARTUP] ⚠️  Boundary file not found at {boundary_file}, skipping import")
        return

    with SessionLocal() as db:
        count = count_boundaries(db)

        if count > 0:
            print(f"[STARTUP] ✅ Database contains {count} boundaries, skipping import")
            return

        print("[STARTUP] 📄 Empty boundaries table, importing seed file...")
        created, updated, skipped, failed = boundary_importer.import_from_file(
            db=db,
            filepath=str(boundary_file),
            mode='skip'
        )
        print(f"[STARTUP] ✅ Boundary import completed: {created} created, "
              f"{updated} updated, {skipped} skipped, {failed} failed")


# ============================================================
# APPLICATION LIFESPAN MANAGEMENT
# ============================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
        1. Give the log WebSocket manager the running loop, so worker
           threads can broadcast
        2. Import seed boundaries if configured
    """
    loop = asyncio.get_running_loop()
    log_ws.log_ws_manager.set_main_loop(loop)

    import_seed_boundaries()

    print("[STARTUP] ✅ Application initialization complete")

    yield

    print("[SHUTDOWN] 🛑 Application shutdown initiated")


# ============================================================
# APPLICATION INSTANCE CREATION
# ============================================================
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    lifespan=lifespan
)

# Middlewares run in REVERSE order of registration
if ROOT_PATH:
    app.add_middleware(StripPrefixMiddleware, prefix=ROOT_PATH)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_http_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================
# HEALTH CHECK
# ============================================================
@app.get("/health")
def health():
    return {"status": "ok"}


# ============================================================
# REST API ROUTE REGISTRATION
# ============================================================
app.include_router(locations.router, prefix="/location", tags=["location"])
app.include_router(dogs.router, prefix="/dogs", tags=["dogs"])
app.include_router(boundaries.router, tags=["boundaries"])
app.include_router(notifications.router, prefix="/notifications", tags=["notifications"])


# ============================================================
# WEBSOCKET ENDPOINTS
# ============================================================
async def socket_handler(ws: WebSocket, manager):
    """
    Generic WebSocket lifecycle: origin check, register, receive loop,
    unregister.
    """
    origin = ws.headers.get("origin")

    if (not _ws_allow_all) and (origin not in _ws_origins):
        print(f"[WS] ❌ Connection rejected - unauthorized origin: {origin}")
        await ws.close(code=1008)
        return

    await manager.register(ws)

    try:
        while True:
            message = await ws.receive_text()
            await manager.handle_message(ws, message)
    except Exception as e:
        print(f"[WS] Connection closed: {e}")
    finally:
        manager.unregister(ws)


@app.websocket("/logs")
async def websocket_logs(ws: WebSocket):
    """
    Live stream of system logs (transitions, malformed boundaries, storage
    errors).

    Message Format:
        {
            "msg_type": "log" | "warning" | "error",
            "message": "[EVALUATOR] Dog 'd1' EXITED boundary 'b1'",
            "timestamp": "2026-10-18T10:30:00+00:00"
        }
    """
    await socket_handler(ws, log_ws.log_ws_manager)


# ============================================================
# API INFORMATION ENDPOINT
# ============================================================
@app.get("/api")
def api_info():
    return {
        "status": "online",
        "version": settings.PROJECT_VERSION,
        "features": {
            "notify_on_exit": settings.NOTIFY_ON_EXIT,
            "notify_on_entry": settings.NOTIFY_ON_ENTRY,
            "max_batch_size": settings.MAX_BATCH_SIZE,
            "websockets": ["/logs"],
        },
        "endpoints": {
            "location": "/location/update, /location/batch",
            "dogs": "/dogs/*",
            "boundaries": "/dogs/{dog_id}/boundaries, /boundaries/{boundary_id}",
            "notifications": "/notifications/*",
            "logs": "/logs (WebSocket)",
            "health": "/health"
        }
    }
