import os
import socket
import threading
import time
from typing import Optional, Tuple

import uvicorn
from fastapi import FastAPI, Request

from . import config
from .api import build_transfer_router, local_router
from .logging_config import log
from .net import resolve_lan_address
from .storage import StorageLayout


async def http_log_middleware(request: Request, call_next):
    """Log HTTP request latency with selective verbosity."""
    started = time.perf_counter()
    method = str(request.method or "")
    target = str(request.url.path or "")
    try:
        response = await call_next(request)
    except Exception:
        log.exception("HTTP %s %s -> 500", method, target)
        raise

    dt_ms = (time.perf_counter() - started) * 1000.0
    status = int(getattr(response, "status_code", 0) or 0)
    should_log = bool(getattr(config, "VERBOSE_HTTP_LOG", True)) or dt_ms >= 1000.0 or status >= 500
    if should_log:
        log.info("HTTP %s %s -> %s in %.1fms", method, target, status, dt_ms)
    return response


def create_app(session: "TransferSession") -> FastAPI:
    """Build the FastAPI app; handlers reach the session through `app.state.session`."""
    app = FastAPI(title=f"WiFiShare {config.VERSION}")
    app.state.session = session
    app.middleware("http")(http_log_middleware)
    app.include_router(build_transfer_router())
    app.include_router(local_router)
    return app


def _bind_socket(host: str, port: int) -> socket.socket:
    """Bind and listen on `host:port`; port 0 lets the OS pick an ephemeral port."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, int(port)))
        sock.listen(128)
    except OSError:
        sock.close()
        raise
    return sock


class TransferSession:
    """One server run: storage layout, bound socket, resolved URL and the uvicorn thread."""

    def __init__(self, layout: StorageLayout, host: Optional[str] = None) -> None:
        self.layout = layout
        self.host = host or config.HOST
        self.ip: Optional[str] = None
        self.port: Optional[int] = None
        self.url = ""
        self.app = create_app(self)
        self._sock: Optional[socket.socket] = None
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, port: int = 0, wait_s: float = 5.0) -> str:
        """Bind, resolve the LAN address, start serving and return the base URL."""
        if self._sock is not None:
            return self.url
        self._sock = _bind_socket(self.host, port)
        self.port = int(self._sock.getsockname()[1])
        self.ip = resolve_lan_address()
        self.url = f"http://{self.ip}:{self.port}"

        log_level = "debug" if config.DEBUG else "info"
        access_log = config.DEBUG
        if not config.LOG_ENABLED:
            log_level = "critical"
            access_log = False
        uv_config = uvicorn.Config(
            self.app,
            log_level=log_level,
            access_log=access_log,
            log_config=None,
            lifespan="off",
        )
        self._server = uvicorn.Server(uv_config)
        self._thread = threading.Thread(
            target=self._server.run,
            kwargs={"sockets": [self._sock]},
            name="wifishare-server",
            daemon=True,
        )
        self._thread.start()

        deadline = time.time() + max(0.0, float(wait_s))
        while not getattr(self._server, "started", False) and time.time() < deadline:
            if not self._thread.is_alive():
                break
            time.sleep(0.05)
        if not getattr(self._server, "started", False):
            if not self._thread.is_alive():
                self.stop()
                raise RuntimeError("server thread exited during startup")
            log.warning("Server did not report startup within %.1fs", wait_s)

        log.info("Server running at %s (base=%s)", self.url, self.layout.base_dir)
        return self.url

    def stop(self, timeout_s: float = 5.0) -> None:
        """Ask uvicorn to exit, join its thread and close the listening socket."""
        if self._server is not None:
            self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout=timeout_s)
        if self._sock is not None:
            try:
                self._sock.close()
            except OSError:
                pass
        self._server = None
        self._thread = None
        self._sock = None
        log.info("Server stopped")

    def stage_for_download(self, file_path: str) -> Tuple[bool, str]:
        """Place one host file in the outbox, replacing whatever was staged before."""
        path = str(file_path or "")
        if not os.path.isfile(path):
            return False, "File missing"
        try:
            name = self.layout.stage(path)
        except Exception as e:
            log.exception("Stage failed")
            return False, str(e)
        log.info("Ready to send: %s", name)
        return True, f"Ready to send: {name}"

    def inspect_inbox(self) -> str:
        """Return a status line naming the first received file."""
        name = self.layout.first_received()
        if name is None:
            return "No files received"
        return f"Received: {name}"

    def info(self) -> dict:
        return {
            "version": config.VERSION,
            "url": self.url,
            "ip": self.ip,
            "port": self.port,
            "base_dir": self.layout.base_dir,
            "inbox": self.layout.inbox_dir,
            "outbox": self.layout.outbox_dir,
            "staged": self.layout.outbox.current(),
            "upload_path": config.UPLOAD_PATH,
            "download_path": config.DOWNLOAD_PATH,
        }


def start(
    base_directory: str,
    *,
    host: Optional[str] = None,
    port: Optional[int] = None,
    peer: Optional[str] = None,
    wait_s: float = 5.0,
) -> TransferSession:
    """Start a transfer session rooted at `base_directory`."""
    base = str(base_directory or "").strip()
    if not base:
        raise ValueError("base directory is required")
    if not os.path.isdir(base):
        raise ValueError(f"base directory does not exist: {base}")
    layout = StorageLayout(base, peer=peer or config.PEER)
    session = TransferSession(layout, host=host)
    session.start(port=config.PORT if port is None else int(port), wait_s=wait_s)
    return session
