"""
display.py

Presentation state machine for one TV.

All mutable display state lives on TVDisplay; the renderer only ever
sees the immutable `PresentationState` returned by `TVDisplay.state`.
Four owned timers drive it:

    slideshow     recurring, re-armed after every advance
    cursor        restarted by every pointer/touch activity
    notification  one zoom/fit toast at a time
    autoplay      grace period before the tap-to-play overlay

They all belong to one Scheduler, so `dispose()` cancels them together
and anything that fires afterwards is a no-op.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import config
from errors import NotFound, SyncError
from models import (TV, Event, ImageUpdated, RoomJoined, TvDeleted, TvListSnapshot,
                    YoutubeLinkUpdated, ZoomCommand, youtube_embed_url)
from sync_client import SyncClient
from timing import Scheduler

log = logging.getLogger(__name__)

# phases
LOADING   = "loading"
READY     = "ready"
FAILED    = "error"        # first load failed, nothing to show yet
NOT_FOUND = "not_found"
REMOVED   = "removed"
TERMINAL  = (NOT_FOUND, REMOVED)

# fit modes
CONTAIN = "contain"
FILL    = "fill"

Size = Tuple[int, int]
# (embed url, done) -> None; done gets the stream URL or None, later
Resolver = Callable[[str, Callable[[Optional[str]], None]], None]


@dataclass(frozen=True)
class PresentationState:
    phase: str
    tv: Optional[TV]
    images: Tuple[str, ...]
    current_index: int
    current_image: Optional[str]
    zoom_level: float
    fit_mode: str
    slideshow_running: bool
    controls_visible: bool
    cursor_visible: bool
    fullscreen: bool
    loading: bool
    notification: Optional[str]
    error: Optional[str]
    audio_url: Optional[str]
    show_play_overlay: bool

    @property
    def counter(self) -> str:
        return f"{self.current_index + 1}/{len(self.images)}" if self.images else ""


class TVDisplay:
    def __init__(self, tv_id: int, sync: SyncClient, scheduler: Scheduler | None = None, *,
                 image_size: Callable[[str], Optional[Size]] = lambda url: None,
                 container_size: Callable[[], Size] = lambda: config.WINDOWED_SIZE,
                 player=None,
                 resolve_audio: Resolver | None = None,
                 base_url: str | None = None):
        self.tv_id = tv_id
        self.sync = sync
        self.scheduler = scheduler or Scheduler()
        self.image_size = image_size
        self.container_size = container_size
        self.player = player
        self.resolve_audio = resolve_audio
        self.base_url = base_url or config.API_BASE_URL

        self.phase = LOADING
        self.tv: Optional[TV] = None
        self.current_index = 0
        self.zoom_level = 1.0
        self.fit_mode = FILL
        self.slideshow_running = True
        self.controls_visible = True
        self.cursor_visible = True
        self.fullscreen = config.FULLSCREEN
        self.loading = False
        self.video_interaction_done = False
        self.show_play_overlay = False
        self.notification: Optional[str] = None
        self.load_error: Optional[str] = None
        self.image_error: Optional[str] = None
        self.audio_url: Optional[str] = None
        self.stream_url: Optional[str] = None
        self._disposed = False

        self._slideshow = self.scheduler.timer(self._advance, "slideshow")
        self._cursor = self.scheduler.timer(self._hide_cursor, "cursor")
        self._notice = self.scheduler.timer(self._clear_notification, "notification")
        self._autoplay = self.scheduler.timer(self._check_autoplay, "autoplay")

    # ── lifecycle ──────────────────────────────────────────────────────────
    def start(self, deliver: Callable[[Event], None] | None = None) -> None:
        """
        Subscribe, load the first snapshot and arm the cursor timer.

        *deliver* receives relay events instead of `handle_event`; the app
        passes a queue poster so events are applied on the main loop.
        """
        self.sync.on_event(deliver or self.handle_event)
        self.sync.subscribe()
        self.load()
        self._cursor.start(config.CURSOR_HIDE_DELAY)

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self.scheduler.close()
        self._stop_audio()
        self.sync.dispose()

    @property
    def images(self) -> List[str]:
        return self.tv.effective_images if self.tv else []

    # ── snapshot ───────────────────────────────────────────────────────────
    def load(self) -> None:
        if self._disposed or self.phase in TERMINAL:
            return
        self.loading = True
        try:
            tv = self.sync.load_snapshot()
        except NotFound:
            log.info(f"TV {self.tv_id} not found")
            self._terminate(NOT_FOUND)
            return
        except SyncError as e:
            log.warning(f"TV {self.tv_id} load failed: {e.message}")
            self.load_error = f"Failed to load TV data: {e.message}"
            if self.tv is None:
                self.phase = FAILED
            return
        finally:
            self.loading = False

        self.load_error = None
        self._set_tv(tv)

    def _set_tv(self, tv: TV) -> None:
        old_count = len(self.images)
        self.tv = tv
        self.phase = READY
        count = len(self.images)
        if count != old_count or self.current_index >= count:
            self.current_index = 0
            self.image_error = None
        self._reschedule_slideshow()
        self._sync_audio()

    def _terminate(self, phase: str) -> None:
        self.phase = phase
        self.scheduler.close()
        self._stop_audio()
        self.show_play_overlay = False
        self.notification = None

    # ── relay events ───────────────────────────────────────────────────────
    def handle_event(self, event: Event) -> None:
        if self._disposed or self.phase in TERMINAL:
            return

        if isinstance(event, (ImageUpdated, YoutubeLinkUpdated)):
            if event.tv_id == self.tv_id:
                self._set_tv(event.tv)
                log.info(f"TV {self.tv_id} updated live")
        elif isinstance(event, TvDeleted):
            if event.tv_id == self.tv_id:
                log.info(f"TV {self.tv_id} was removed")
                self._terminate(REMOVED)
        elif isinstance(event, TvListSnapshot):
            mine = next((tv for tv in event.tvs if tv.id == self.tv_id), None)
            if mine is not None:
                self._set_tv(mine)
        elif isinstance(event, ZoomCommand):
            if event.tv_id in (None, self.tv_id):
                log.info(f"relayed command: {event.command}")
                self.command(event.command)
        elif isinstance(event, RoomJoined):
            log.info(f"display joined room for TV {event.tv_id}")

    def command(self, name: str) -> None:
        """Apply a zoom/navigation command, local or relayed alike."""
        handler = {
            "zoomIn":          self.zoom_in,
            "zoomOut":         self.zoom_out,
            "resetZoom":       self.reset_zoom,
            "fitToScreen":     self.fit_to_screen,
            "stretchToScreen": self.stretch_to_screen,
            "next":            self.next_image,
            "previous":        self.previous_image,
            "pause":           self.pause,
            "resume":          self.resume,
            "refresh":         self.load,
        }.get(name)
        if handler is None:
            log.warning(f"unknown command {name!r} ignored")
            return
        handler()

    # ── slideshow ──────────────────────────────────────────────────────────
    def _reschedule_slideshow(self) -> None:
        self._slideshow.cancel()
        if self.slideshow_running and self.phase == READY and len(self.images) > 1:
            self._slideshow.start(self.tv.effective_interval)

    def _advance(self) -> None:
        count = len(self.images)
        if count > 1 and self.slideshow_running:
            self._goto((self.current_index + 1) % count)
        else:
            self._reschedule_slideshow()

    def _goto(self, index: int) -> None:
        self.current_index = index
        self.image_error = None
        self._reschedule_slideshow()

    def next_image(self) -> None:
        count = len(self.images)
        if count:
            self._goto((self.current_index + 1) % count)

    def previous_image(self) -> None:
        count = len(self.images)
        if count:
            self._goto((self.current_index - 1) % count)

    def pause(self) -> None:
        self.slideshow_running = False
        self._slideshow.cancel()

    def resume(self) -> None:
        self.slideshow_running = True
        self._reschedule_slideshow()

    def toggle_slideshow(self) -> None:
        if self.slideshow_running:
            self.pause()
        else:
            self.resume()

    def image_failed(self, url: str) -> None:
        """The current image could not be decoded; the slideshow keeps going."""
        if self.image_error is None:
            log.warning(f"image failed to load: {url}")
        self.image_error = "Failed to load image"

    # ── zoom ───────────────────────────────────────────────────────────────
    def zoom_in(self) -> None:
        self._set_zoom(self.zoom_level + config.ZOOM_STEP)

    def zoom_out(self) -> None:
        self._set_zoom(self.zoom_level - config.ZOOM_STEP)

    def _set_zoom(self, level: float) -> None:
        self.zoom_level = max(config.ZOOM_MIN, min(config.ZOOM_MAX, level))
        self.notify(f"Zoom: {round(self.zoom_level * 100)}%")

    def reset_zoom(self) -> None:
        self.zoom_level = 1.0
        self.fit_mode = CONTAIN
        self.notify("Zoom: 100%")

    def fit_to_screen(self) -> None:
        url = self.current_image_url
        natural = self.image_size(url) if url else None
        if not natural or not natural[0] or not natural[1]:
            log.debug("fit to screen: no decoded image")
            return
        cw, ch = self.container_size()
        self.zoom_level = min(cw / natural[0], ch / natural[1])
        self.fit_mode = CONTAIN
        self.notify("Fit to Screen")

    def stretch_to_screen(self) -> None:
        self.zoom_level = 1.0
        self.fit_mode = FILL
        self.notify("Stretch to Screen")

    def notify(self, text: str) -> None:
        self.notification = text
        self._notice.start(config.NOTIFICATION_DURATION)

    def _clear_notification(self) -> None:
        self.notification = None

    # ── cursor / controls / fullscreen ─────────────────────────────────────
    def pointer_activity(self) -> None:
        self.cursor_visible = True
        self._cursor.start(config.CURSOR_HIDE_DELAY)

    def _hide_cursor(self) -> None:
        self.cursor_visible = False

    def toggle_controls(self) -> None:
        self.controls_visible = not self.controls_visible

    def toggle_fullscreen(self) -> None:
        self.fullscreen = not self.fullscreen

    def exit_fullscreen(self) -> None:
        if self.fullscreen:
            self.fullscreen = False

    # ── audio-only video ───────────────────────────────────────────────────
    def _sync_audio(self) -> None:
        url = youtube_embed_url(self.tv.youtube_link) if self.tv else None
        if url == self.audio_url:
            return
        if url is None:
            self._stop_audio()
            return

        self._stop_audio()
        self.audio_url = url
        self._request_stream()
        if not self.video_interaction_done:
            self._autoplay.start(config.AUTOPLAY_GRACE)

    def _request_stream(self) -> None:
        if self.resolve_audio is not None and self.audio_url:
            url = self.audio_url
            self.resolve_audio(url, lambda stream: self.audio_resolved(url, stream))

    def audio_resolved(self, url: str, stream: Optional[str]) -> None:
        """Stream lookup for embed *url* finished; stale answers are dropped."""
        if self._disposed or url != self.audio_url:
            return
        if stream is None:
            log.warning(f"no playable audio for {url}")
            return
        self.stream_url = stream
        if self.player is not None:
            self.player.load(stream)

    def _check_autoplay(self) -> None:
        if self.video_interaction_done or self.audio_url is None:
            return
        if self.player is None or not self.player.is_playing():
            log.info("autoplay blocked, waiting for a tap")
            self.show_play_overlay = True

    def tap(self) -> None:
        """Pointer press / touch; plays the audio when the overlay is up."""
        self.pointer_activity()
        if not self.show_play_overlay:
            return
        self.video_interaction_done = True
        self.show_play_overlay = False
        self._autoplay.cancel()
        if self.stream_url is None:
            self._request_stream()
        elif self.player is not None:
            self.player.reload(self.stream_url)

    def _stop_audio(self) -> None:
        self._autoplay.cancel()
        self.show_play_overlay = False
        if self.stream_url and self.player is not None:
            self.player.stop()
        self.audio_url = None
        self.stream_url = None

    # ── rendering boundary ─────────────────────────────────────────────────
    @property
    def current_image_url(self) -> Optional[str]:
        imgs = self.images
        if not imgs or self.tv is None:
            return None
        return self.tv.image_url(imgs[self.current_index % len(imgs)], self.base_url)

    @property
    def state(self) -> PresentationState:
        error = self.load_error or self.image_error
        return PresentationState(
            phase=self.phase,
            tv=self.tv,
            images=tuple(self.images),
            current_index=self.current_index,
            current_image=self.current_image_url,
            zoom_level=self.zoom_level,
            fit_mode=self.fit_mode,
            slideshow_running=self.slideshow_running,
            controls_visible=self.controls_visible,
            cursor_visible=self.cursor_visible,
            fullscreen=self.fullscreen,
            loading=self.loading,
            notification=self.notification,
            error=error,
            audio_url=self.audio_url,
            show_play_overlay=self.show_play_overlay,
        )
