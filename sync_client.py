"""
sync_client.py

Bridges one authoritative REST snapshot with the relay's event stream.

Two scopes share this class:

* collection scope (`tv_id=None`) – the whole TV list, collection-wide topic
* display scope (`tv_id=<n>`)     – one TV; joins and leaves that TV's room

Events go to every registered handler in the order the relay delivered
them.  Nothing is buffered or reordered, and nothing is retried.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Union

from api_client import TVApiClient
from errors import TransientError
from models import TV, Event, RoomJoined, ZOOM_COMMANDS, parse_event
from relay import Relay

log = logging.getLogger(__name__)

EventHandler = Callable[[Event], None]


class SyncClient:
    def __init__(self, api: TVApiClient, relay: Relay, tv_id: int | None = None):
        self.api = api
        self.relay = relay
        self.tv_id = tv_id
        self.snapshot: Union[List[TV], TV, None] = None
        self.joined = False
        self._handlers: List[EventHandler] = []
        self._subscribed = False
        self._disposed = False

    @property
    def is_display(self) -> bool:
        return self.tv_id is not None

    # ── REST ───────────────────────────────────────────────────────────────
    def load_snapshot(self) -> Union[List[TV], TV]:
        """
        Collection scope → list of TVs, display scope → one TV.

        Raises NotFound (display scope only) or TransientError; the last
        good snapshot is kept on failure.
        """
        if self.is_display:
            snap = self.api.get_tv(self.tv_id)
        else:
            snap = self.api.list_tvs()
        self.snapshot = snap
        return snap

    # ── relay ──────────────────────────────────────────────────────────────
    def on_event(self, handler: EventHandler) -> None:
        self._handlers.append(handler)

    def subscribe(self) -> bool:
        if self._disposed or self._subscribed:
            return self._subscribed
        self._subscribed = self.relay.open(self._on_frame)
        if self._subscribed and self.is_display:
            self.relay.send({"type": "joinTvDisplay", "tvId": self.tv_id})
        return self._subscribed

    def send_zoom_command(self, tv_id: int, command: str) -> bool:
        if command not in ZOOM_COMMANDS:
            raise ValueError(f"unknown zoom command {command!r}")
        return self.relay.send({"type": "sendZoomCommand", "tvId": tv_id, "command": command})

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        if self._subscribed and self.is_display:
            self.relay.send({"type": "leaveTvDisplay", "tvId": self.tv_id})
        self.relay.close()
        self._subscribed = False
        self._handlers.clear()

    # ── inbound ────────────────────────────────────────────────────────────
    def _on_frame(self, frame: dict) -> None:
        if self._disposed:
            return

        if frame.get("type") == "zoomCommandSent":
            log.info(f"zoom command {frame.get('command')} relayed to TV {frame.get('tvId')}"
                     f" ({frame.get('clientCount', '?')} client(s))")
            return

        try:
            event: Optional[Event] = parse_event(frame)
        except TransientError as e:
            log.warning(f"malformed {frame.get('type')} frame dropped: {e.message}")
            return
        if event is None:
            log.debug(f"ignored relay frame {frame.get('type')!r}")
            return

        if isinstance(event, RoomJoined):
            self.joined = True
            log.info(f"joined room {event.room_name or event.tv_id}")

        for handler in list(self._handlers):
            handler(event)
