"""
dashboard.py – controller view state.

Holds every TV by id (insertion order = list order) and keeps it
consistent between this actor's REST calls and the relay's broadcasts:

* local actions merge the REST response immediately,
* broadcasts are applied by id, last writer wins,
* echoes of our own changes are applied but not announced.

Relay events may arrive on the reader thread, so all state changes go
through one lock.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Set

import config
from api_client import TVApiClient, Upload
from errors import StaleEventError, SyncError, ValidationError
from models import (TV, Event, ImageUpdated, TvAdded, TvDeleted, TvListSnapshot,
                    YoutubeLinkUpdated, ZOOM_COMMANDS)
from sync_client import SyncClient

log = logging.getLogger(__name__)

SUCCESS = "success"
ERROR   = "error"


@dataclass(frozen=True)
class Toast:
    message: str
    kind: str
    expires: float


class Dashboard:
    def __init__(self, sync: SyncClient, api: TVApiClient | None = None, *,
                 clock: Callable[[], float] = time.monotonic):
        self.sync = sync
        self.api = api or sync.api
        self.clock = clock
        self.tvs: Dict[int, TV] = {}
        self.loading = False
        self._toasts: List[Toast] = []
        self._lock = threading.RLock()
        self._in_flight: Set[int] = set()      # ids with a local mutation under way
        self._creating: List[str] = []         # names of local creates under way
        self._unclaimed: Dict[int, str] = {}   # TvAdded seen while a same-named create ran
        self._claimed: Dict[str, Set[int]] = {}  # ids our creates returned, by name
        self._echoes: Dict[int, TV] = {}       # last local result per id

    # ── lifecycle ──────────────────────────────────────────────────────────
    def start(self) -> None:
        self.sync.on_event(self.apply_event)
        self.sync.subscribe()
        self.load()

    def close(self) -> None:
        self.sync.dispose()

    def load(self) -> bool:
        self.loading = True
        try:
            tvs = self.sync.load_snapshot()
        except SyncError as e:
            log.warning(f"TV list load failed: {e.message}")
            self._toast("Failed to load TV list", ERROR)
            return False
        finally:
            self.loading = False
        with self._lock:
            self.tvs = {tv.id: tv for tv in tvs}
        return True

    # ── views ──────────────────────────────────────────────────────────────
    @property
    def tv_list(self) -> List[TV]:
        with self._lock:
            return list(self.tvs.values())

    def toasts(self) -> List[Toast]:
        """Live notifications, oldest first; expired ones are dropped."""
        now = self.clock()
        with self._lock:
            self._toasts = [t for t in self._toasts if t.expires > now]
            return list(self._toasts)

    @staticmethod
    def display_url(tv_id: int, base: str | None = None) -> str:
        return f"{(base or config.API_BASE_URL).rstrip('/')}/tv/{tv_id}"

    # ── broadcasts ─────────────────────────────────────────────────────────
    def apply_event(self, event: Event) -> None:
        with self._lock:
            try:
                self._apply(event)
            except StaleEventError as e:
                log.debug(f"stale event ignored: {e.message}")

    def _apply(self, event: Event) -> None:
        if isinstance(event, TvListSnapshot):
            self.tvs = {tv.id: tv for tv in event.tvs}

        elif isinstance(event, TvAdded):
            if event.tv.id in self.tvs:
                raise StaleEventError(f"TV {event.tv.id} already present")
            self.tvs[event.tv.id] = event.tv
            if event.tv.name in self._creating:
                # ours or a same-named one from elsewhere; add_tv decides
                self._unclaimed[event.tv.id] = event.tv.name
            else:
                self._toast(f'TV "{event.tv.name}" added by another user', SUCCESS)

        elif isinstance(event, (ImageUpdated, YoutubeLinkUpdated)):
            if self.tvs.get(event.tv_id) == event.tv:
                if self._echoes.get(event.tv_id) == event.tv:
                    del self._echoes[event.tv_id]
                raise StaleEventError(f"TV {event.tv_id} already up to date")
            own = self._is_echo(event.tv_id, event.tv)
            self.tvs[event.tv_id] = event.tv
            if own:
                log.debug(f"own change on TV {event.tv_id} echoed back")
            elif isinstance(event, ImageUpdated):
                self._toast(f'Images of TV "{event.tv.name}" updated by another user', SUCCESS)
            else:
                self._toast(f'YouTube link for TV "{event.tv.name}" updated by another user',
                            SUCCESS)

        elif isinstance(event, TvDeleted):
            gone = self.tvs.pop(event.tv_id, None)
            self._echoes.pop(event.tv_id, None)
            if gone is None:
                raise StaleEventError(f"TV {event.tv_id} already removed")
            if event.tv_id not in self._in_flight:
                self._toast(f'TV "{gone.name}" deleted by another user', SUCCESS)

    def _is_echo(self, tv_id: int, tv: TV) -> bool:
        if tv_id in self._in_flight:
            return True
        if self._echoes.get(tv_id) == tv:
            del self._echoes[tv_id]
            return True
        return False

    # ── local actions ──────────────────────────────────────────────────────
    def add_tv(self, name: str) -> Optional[TV]:
        name = (name or "").strip()
        if not name:
            return self._fail(ValidationError("TV name is required"))
        with self._lock:
            self._creating.append(name)
        tv = None
        try:
            tv = self._call(lambda: self.api.create_tv(name))
        finally:
            with self._lock:
                self._creating.remove(name)
                if tv is not None:
                    self._claimed.setdefault(name, set()).add(tv.id)
                    self.tvs.setdefault(tv.id, tv)
                if name not in self._creating:
                    self._settle_creates(name)
        if tv is None:
            return None
        self._toast(f'TV "{name}" added', SUCCESS)
        return tv

    def _settle_creates(self, name: str) -> None:
        """Announce same-named TVs that none of our creates returned."""
        claimed = self._claimed.pop(name, set())
        for tv_id in [i for i, n in self._unclaimed.items() if n == name]:
            del self._unclaimed[tv_id]
            if tv_id not in claimed and tv_id in self.tvs:
                self._toast(f'TV "{name}" added by another user', SUCCESS)

    def upload_images(self, tv_id: int, uploads: Iterable[Upload]) -> Optional[TV]:
        uploads = list(uploads)
        if not uploads:
            return self._fail(ValidationError("Please select image files"))
        tv = self._mutate(tv_id, lambda: self.api.upload_images(tv_id, uploads))
        if tv is not None:
            self._toast(f"{len(uploads)} image(s) uploaded", SUCCESS)
        return tv

    def set_youtube_link(self, tv_id: int, link: str) -> Optional[TV]:
        link = (link or "").strip()
        tv = self._mutate(tv_id, lambda: self.api.set_youtube_link(tv_id, link))
        if tv is not None:
            self._toast("YouTube link updated" if link else "YouTube link cleared", SUCCESS)
        return tv

    def clear_images(self, tv_id: int) -> Optional[TV]:
        current = self.tvs.get(tv_id)
        if current is None:
            return None
        tv = self._mutate(tv_id, lambda: self.api.clear_images(tv_id))
        if tv is not None:
            self._toast(f'All images cleared from "{current.name}"', SUCCESS)
        return tv

    def delete_tv(self, tv_id: int) -> bool:
        current = self.tvs.get(tv_id)
        if current is None:
            return False
        with self._lock:
            self._in_flight.add(tv_id)
        try:
            self.api.delete_tv(tv_id)
        except SyncError as e:
            self._fail(e)
            return False
        finally:
            with self._lock:
                self._in_flight.discard(tv_id)
        with self._lock:
            self.tvs.pop(tv_id, None)
            self._echoes.pop(tv_id, None)
        self._toast(f'TV "{current.name}" deleted', SUCCESS)
        return True

    def send_zoom_command(self, tv_id: int, command: str) -> bool:
        if command not in ZOOM_COMMANDS:
            self._fail(ValidationError(f"Unknown zoom command: {command}"))
            return False
        return self.sync.send_zoom_command(tv_id, command)

    # ── helpers ────────────────────────────────────────────────────────────
    def _mutate(self, tv_id: int, request: Callable[[], TV]) -> Optional[TV]:
        """Run a REST mutation for *tv_id* and merge its result right away."""
        with self._lock:
            self._in_flight.add(tv_id)
        try:
            tv = self._call(request)
        finally:
            with self._lock:
                self._in_flight.discard(tv_id)
        if tv is None:
            return None
        with self._lock:
            self.tvs[tv.id] = tv
            self._echoes[tv.id] = tv
        return tv

    def _call(self, request: Callable[[], TV]) -> Optional[TV]:
        self.loading = True
        try:
            return request()
        except SyncError as e:
            return self._fail(e)
        finally:
            self.loading = False

    def _fail(self, error: SyncError) -> None:
        log.info(f"action failed: {error.message}")
        self._toast(error.message, ERROR)
        return None

    def _toast(self, message: str, kind: str) -> None:
        with self._lock:
            self._toasts.append(Toast(message, kind, self.clock() + config.TOAST_DURATION))
