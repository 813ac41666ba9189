"""Live dashboard for batch progress and results.

Provides a FastAPI app with a WebSocket endpoint that pushes progress and
result events to connected browsers, plus a JSON view of the history store.

Dependencies:
    This module requires FastAPI and uvicorn. Install with:
        pip install fastapi uvicorn[standard]
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
import webbrowser
from collections import deque
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

try:
    import uvicorn
    from fastapi import FastAPI, WebSocket, WebSocketDisconnect
    from fastapi.responses import HTMLResponse, JSONResponse

    FASTAPI_AVAILABLE = True
except ImportError:
    FASTAPI_AVAILABLE = False

from flowzone.analysis.types import AnalysisResult
from flowzone.errors import HistoryError
from flowzone.experiments.batch import ProgressEvent
from flowzone.history.store import HistoryStore

logger = logging.getLogger(__name__)

REPLAY_LIMIT = 200


class LiveServer:
    """WebSocket server broadcasting batch events.

    Runs a FastAPI + uvicorn server in a daemon thread. Recent events are
    kept in a bounded replay buffer and re-sent to every new client, so
    progress streamed before a batch failed stays inspectable.

    Usage:
        server = LiveServer(port=4567, history=HistoryStore())
        server.start()
        options = BatchOptions(progress_callback=server.send_progress)
        result = analyzer.analyze(run_batch(..., options=options))
        server.send_result(result)
        server.stop()
    """

    def __init__(
        self,
        port: int = 4567,
        history: HistoryStore | None = None,
        open_browser: bool = False,
        replay_limit: int = REPLAY_LIMIT,
    ):
        """Initialize the live server.

        Args:
            port: Port to serve on (default: 4567)
            history: History store backing GET /history
            open_browser: Whether to open browser automatically (default: False)
            replay_limit: Number of recent events replayed to new clients

        Raises:
            ImportError: If FastAPI and uvicorn are not installed
        """
        if not FASTAPI_AVAILABLE:
            raise ImportError(
                "FastAPI and uvicorn are required for the live server. "
                "Install with: pip install fastapi uvicorn[standard]"
            )

        self.port = port
        self.history = history
        self.open_browser = open_browser
        self._clients: list[WebSocket] = []
        self._replay: deque[str] = deque(maxlen=replay_limit)
        self._replay_lock = threading.Lock()
        self._server_thread: threading.Thread | None = None
        self._server: Any = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._ready = threading.Event()

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            self._ready.set()
            yield

        self.app = FastAPI(title="flowzone live dashboard", lifespan=lifespan)

        self._setup_routes()

    def _setup_routes(self) -> None:
        """Setup FastAPI routes for the page, history and WebSocket."""

        @self.app.websocket("/ws")
        async def websocket_endpoint(websocket: WebSocket) -> None:
            await websocket.accept()
            with self._replay_lock:
                backlog = list(self._replay)
            for payload in backlog:
                await websocket.send_text(payload)
            self._clients.append(websocket)
            logger.info(f"Client connected. Total clients: {len(self._clients)}")

            try:
                while True:
                    await websocket.receive_text()
            except WebSocketDisconnect:
                pass
            finally:
                if websocket in self._clients:
                    self._clients.remove(websocket)
                logger.info(f"Client disconnected. Total clients: {len(self._clients)}")

        @self.app.get("/", response_class=HTMLResponse)
        async def serve_dashboard() -> HTMLResponse:
            template_path = Path(__file__).parent / "templates" / "live.html"
            if not template_path.exists():
                return HTMLResponse(
                    content="<h1>Live Dashboard Not Found</h1>"
                    "<p>Template file live.html is missing.</p>",
                    status_code=404,
                )
            return HTMLResponse(content=template_path.read_text(encoding="utf-8"))

        @self.app.get("/history")
        async def get_history() -> Any:
            if self.history is None:
                return []
            try:
                entries = self.history.entries()
            except HistoryError as e:
                logger.warning(f"History unavailable: {e}")
                return JSONResponse(status_code=409, content={"error": str(e)})
            return [{"saved_at": entry.saved_at, "result": entry.result} for entry in entries]

    @property
    def url(self) -> str:
        return f"http://localhost:{self.port}"

    def wait_until_ready(self, timeout: float = 5.0) -> None:
        """Block until the server is accepting connections.

        Args:
            timeout: Max seconds to wait. Logs a warning if exceeded.
        """
        if not self._ready.wait(timeout=timeout):
            logger.warning(f"Live server did not become ready within {timeout}s")

    def broadcast(self, event: str, data: dict[str, Any]) -> None:
        """Record an event for replay and push it to connected clients.

        Thread-safe: the send is scheduled on the server's event loop.
        """
        payload = json.dumps({"event": event, "data": data})
        with self._replay_lock:
            self._replay.append(payload)
        if self._loop and not self._loop.is_closed():
            asyncio.run_coroutine_threadsafe(self._broadcast_async(payload), self._loop)

    def send_progress(self, progress: ProgressEvent) -> None:
        """Progress callback suitable for BatchOptions.progress_callback."""
        self.broadcast(
            "progress",
            {
                "run": progress.run,
                "total": progress.total,
                "elapsed": round(progress.elapsed, 3),
                "score": progress.score,
            },
        )

    def send_result(self, result: AnalysisResult) -> None:
        self.broadcast("result", result.to_dict(include_raw=False))

    def send_error(self, message: str) -> None:
        self.broadcast("error", {"message": message})

    async def _broadcast_async(self, payload: str) -> None:
        """Send a pre-serialized event to all connected clients."""
        disconnected = []
        for client in self._clients:
            try:
                await client.send_text(payload)
            except (WebSocketDisconnect, RuntimeError, OSError):
                disconnected.append(client)

        for client in disconnected:
            if client in self._clients:
                self._clients.remove(client)

    def start(self) -> None:
        """Start the uvicorn server in a daemon thread."""

        def run_server() -> None:
            self._loop = asyncio.new_event_loop()
            asyncio.set_event_loop(self._loop)

            config = uvicorn.Config(
                self.app,
                host="127.0.0.1",
                port=self.port,
                log_level="warning",
                loop="asyncio",
            )
            self._server = uvicorn.Server(config)

            logger.info(f"Starting live server at {self.url}")
            print(f"  Live dashboard: {self.url}")

            if self.open_browser:
                threading.Timer(1.0, lambda: webbrowser.open(self.url)).start()

            self._loop.run_until_complete(self._server.serve())

        self._server_thread = threading.Thread(target=run_server, daemon=True)
        self._server_thread.start()

    def wait_forever(self) -> None:
        """Block until the server thread exits (Ctrl+C raises KeyboardInterrupt)."""
        while self._server_thread and self._server_thread.is_alive():
            self._server_thread.join(timeout=0.5)

    def stop(self) -> None:
        """Stop the server and cleanup."""
        if self._server is not None:
            self._server.should_exit = True
        if self._server_thread and self._server_thread.is_alive():
            self._server_thread.join(timeout=2.0)
        logger.info("Live server stopped")
