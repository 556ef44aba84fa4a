"""
relay.py – broadcast channel client.

JSON text frames `{"type": ..., ...}` over one WebSocket.  A daemon
thread reads frames and hands each decoded dict to the `on_frame`
callback in arrival order; `send()` may be called from any thread.

There is no reconnect loop: when the socket drops the reader logs it and
ends, and the last REST snapshot stays the baseline.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Callable, Optional

from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.sync.client import connect as ws_connect

import config

log = logging.getLogger(__name__)

FrameHandler = Callable[[dict], None]


class Relay:
    def __init__(self, url: str | None = None, *, connect=ws_connect):
        self.url = url or config.RELAY_URL
        self._connect = connect
        self._ws = None
        self._thread: Optional[threading.Thread] = None
        self._on_frame: Optional[FrameHandler] = None
        self._closed = False

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._closed

    # ── lifecycle ──────────────────────────────────────────────────────────
    def open(self, on_frame: FrameHandler) -> bool:
        """Connect and start the reader.  False when the relay is unreachable."""
        if self._closed:
            return False
        self._on_frame = on_frame
        try:
            self._ws = self._connect(self.url, open_timeout=config.HTTP_TIMEOUT)
        except (OSError, TimeoutError, WebSocketException) as e:
            log.warning(f"relay {self.url} unreachable: {e}")
            self._ws = None
            return False

        log.info(f"relay connected: {self.url}")
        self._thread = threading.Thread(target=self._read_loop, name="relay-reader", daemon=True)
        self._thread.start()
        return True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        ws, self._ws = self._ws, None
        if ws is not None:
            try:
                ws.close()
            except (OSError, WebSocketException) as e:
                log.debug(f"relay close: {e}")
        if self._thread and threading.current_thread() is not self._thread:
            self._thread.join(timeout=1.0)
        self._thread = None

    # ── outbound ───────────────────────────────────────────────────────────
    def send(self, frame: dict) -> bool:
        ws = self._ws
        if ws is None or self._closed:
            log.debug(f"relay not connected, dropped {frame.get('type')}")
            return False
        try:
            ws.send(json.dumps(frame))
        except (OSError, WebSocketException) as e:
            log.warning(f"relay send {frame.get('type')} failed: {e}")
            return False
        return True

    # ── inbound ────────────────────────────────────────────────────────────
    def _read_loop(self) -> None:
        ws = self._ws
        try:
            for raw in ws:
                if self._closed:
                    break
                self.dispatch(raw)
        except ConnectionClosed as e:
            if not self._closed:
                log.info(f"relay disconnected: {e}")
        log.info("relay reader stopped")

    def dispatch(self, raw) -> None:
        """Decode one raw frame and pass it on; bad frames are logged and dropped."""
        try:
            frame = json.loads(raw)
        except (TypeError, ValueError):
            log.warning(f"relay frame is not JSON, dropped: {raw!r:.120}")
            return
        if not isinstance(frame, dict):
            log.warning(f"relay frame is not an object, dropped: {frame!r:.120}")
            return
        try:
            self._on_frame(frame)
        except Exception:
            log.exception(f"relay handler failed on {frame.get('type')}, frame dropped")
