"""
Log WebSocket Module
====================

Streams operator-relevant log lines (boundary transitions, malformed
boundaries, storage errors) to WebSocket clients connected to `/logs`.

Log lines can be produced from any thread: FastAPI runs synchronous routes in
a thread pool, so the ingestion pipeline never owns the event loop. Messages
are scheduled on the main loop with `asyncio.run_coroutine_threadsafe`.

Message Format:
--------------
    {
        "msg_type": "log" | "warning" | "error",
        "message": "[EVALUATOR] dog-1 left all boundaries",
        "timestamp": "2026-10-18T10:30:00+00:00"
    }

Usage Example:
-------------
    from pawfence.Core import log_ws

    log_ws.log_from_thread("[PIPELINE] Sample stored", "log")
    log_ws.log_from_thread("[STORAGE] Commit failed", "error")

Every message is echoed to the console, so nothing is lost when no
monitoring client is connected.
"""

import asyncio
import json
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import WebSocket


class WebSocketManager:
    """
    Thread-safe registry of WebSocket clients with broadcast support.

    The client list is guarded by a `threading.Lock`; sends happen on a
    snapshot of the list so the lock is never held during I/O. Clients that
    fail a send are dropped.
    """

    def __init__(self):
        self.clients: List[WebSocket] = []
        self.main_loop: Optional[asyncio.AbstractEventLoop] = None
        self._lock = threading.Lock()

    def set_main_loop(self, loop: asyncio.AbstractEventLoop):
        """Must be called from the lifespan handler so threads can schedule sends."""
        self.main_loop = loop

    async def register(self, ws: WebSocket):
        with self._lock:
            if ws not in self.clients:
                self.clients.append(ws)
        try:
            await ws.accept()
        except Exception:
            self.unregister(ws)
            raise

    def unregister(self, ws: WebSocket):
        with self._lock:
            if ws in self.clients:
                self.clients.remove(ws)

    @property
    def has_clients(self) -> bool:
        with self._lock:
            return len(self.clients) > 0

    async def broadcast(self, message: Dict[str, Any]):
        with self._lock:
            current_clients = list(self.clients)

        failed = []
        for ws in current_clients:
            try:
                await ws.send_text(json.dumps(message))
            except Exception:
                failed.append(ws)

        for ws in failed:
            self.unregister(ws)

    def send_from_thread(self, message: Dict[str, Any]):
        """Fire-and-forget broadcast usable from worker threads."""
        if not self.has_clients or self.main_loop is None:
            return
        if self.main_loop.is_closed():
            return
        asyncio.run_coroutine_threadsafe(self.broadcast(message), self.main_loop)

    async def handle_message(self, ws: WebSocket, message: str):
        # Log clients are read-only; incoming text is only a keep-alive.
        if message == "ping":
            await ws.send_text(json.dumps({"msg_type": "pong"}))


# ============================================================
# GLOBAL LOG WEBSOCKET MANAGER INSTANCE
# ============================================================
log_ws_manager = WebSocketManager()


def log_from_thread(message: str, msg_type: str = "log"):
    """
    Print `message` and broadcast it to every connected log client.

    Args:
        message: Log line, conventionally prefixed with a component tag
        msg_type: "log", "warning" or "error"
    """
    print(message)

    payload: Dict[str, Any] = {
        "msg_type": msg_type,
        "message": str(message),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    log_ws_manager.send_from_thread(payload)
