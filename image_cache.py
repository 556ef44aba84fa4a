"""
image_cache.py – fetched + decoded slideshow images.

Images are keyed by their full URL, cache-buster included, so an
`updatedAt` change is a cache miss.  Fetch and decode happen on one
worker thread; `get()` never blocks the main loop, it returns None
until the surface has arrived.  Failures are remembered per URL so a
bad entry is fetched once, not once per frame, until `forget_failures()`
(manual refresh) clears them.
"""

from __future__ import annotations

import io
import logging
import os
import queue
import threading
import urllib.parse
from collections import OrderedDict
from typing import Callable, Optional, Set, Tuple

import pygame

from errors import SyncError

log = logging.getLogger(__name__)


class ImageCache:
    def __init__(self, fetch: Callable[[str], bytes], max_items: int = 16):
        self.fetch = fetch
        self.max_items = max_items
        self._surfaces: "OrderedDict[str, pygame.Surface]" = OrderedDict()
        self._failed: Set[str] = set()
        self._pending: Set[str] = set()
        self._requests: "queue.Queue[Optional[str]]" = queue.Queue()
        self._done: "queue.Queue[Tuple[str, Optional[pygame.Surface]]]" = queue.Queue()
        self._worker: Optional[threading.Thread] = None

    # ── main-loop side ─────────────────────────────────────────────────────
    def get(self, url: str) -> Optional[pygame.Surface]:
        """Decoded surface for *url*; None while loading or after a failure."""
        self._collect()
        surf = self._surfaces.get(url)
        if surf is not None:
            self._surfaces.move_to_end(url)
            return surf
        if url not in self._failed and url not in self._pending:
            self._pending.add(url)
            self._start_worker()
            self._requests.put(url)
        return None

    def failed(self, url: str) -> bool:
        self._collect()
        return url in self._failed

    def natural_size(self, url: str) -> Optional[Tuple[int, int]]:
        """Decoded pixel size of the image, not its on-screen box."""
        surf = self.get(url)
        return surf.get_size() if surf is not None else None

    def forget_failures(self) -> None:
        self._collect()
        self._failed.clear()

    def join(self) -> None:
        """Block until every queued request has been answered."""
        self._requests.join()

    def close(self) -> None:
        if self._worker is not None:
            self._requests.put(None)
            self._worker.join(timeout=1.0)
            self._worker = None

    def _collect(self) -> None:
        while True:
            try:
                url, surf = self._done.get_nowait()
            except queue.Empty:
                return
            self._pending.discard(url)
            if surf is None:
                self._failed.add(url)
                continue
            self._surfaces[url] = surf
            while len(self._surfaces) > self.max_items:
                self._surfaces.popitem(last=False)

    # ── worker side ────────────────────────────────────────────────────────
    def _start_worker(self) -> None:
        if self._worker is None:
            self._worker = threading.Thread(target=self._run, name="image-loader", daemon=True)
            self._worker.start()

    def _run(self) -> None:
        while True:
            url = self._requests.get()
            try:
                if url is None:
                    return
                self._done.put((url, self._load(url)))
            finally:
                self._requests.task_done()

    def _load(self, url: str) -> Optional[pygame.Surface]:
        try:
            data = self.fetch(url)
            hint = os.path.basename(urllib.parse.urlparse(url).path)
            return pygame.image.load(io.BytesIO(data), hint)
        except (SyncError, pygame.error) as e:
            log.warning(f"cannot load {url}: {e}")
            return None
