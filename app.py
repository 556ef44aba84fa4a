#!/usr/bin/env python3
"""
app.py – live TV display (with EventManager)

Shows one TV's slideshow full-screen and plays its YouTube link as
audio only.  Keyboard/pointer input and relay events both arrive as
action dicts through events.py and are applied here, on the main loop,
so the presentation state is only ever touched from one thread.
"""
from __future__ import annotations

import logging
import webbrowser

import pygame

import config
from api_client   import TVApiClient
from audio_player import AudioPlayer
from audio_source import StreamResolver
from display      import READY, TVDisplay
from events       import EventManager
from image_cache  import ImageCache
from overlays     import draw_card, draw_overlay
from relay        import Relay
from renderer     import render_image
from sync_client  import SyncClient
from timing       import Scheduler

log = logging.getLogger(__name__)


# ── main application ───────────────────────────────────────────────────────
class TVDisplayApp:
    def __init__(self, tv_id: int):
        # window ----------------------------------------------------------
        pygame.init()
        pygame.display.set_caption(f"TV {tv_id}")
        self.fullscreen = config.FULLSCREEN
        self.screen = self._set_mode(self.fullscreen)
        self.clock = pygame.time.Clock()

        # core state ------------------------------------------------------
        self.api     = TVApiClient()
        self.sync    = SyncClient(self.api, Relay(), tv_id=tv_id)
        self.images  = ImageCache(self.api.fetch_bytes)
        resolver     = StreamResolver(deliver=lambda fn: EventManager.post({"type": "call", "fn": fn}))
        self.display = TVDisplay(
            tv_id, self.sync, Scheduler(),
            image_size=self.images.natural_size,
            container_size=lambda: self.screen.get_size(),
            player=AudioPlayer(),
            resolve_audio=resolver.request,
        )
        self.cursor_visible = True
        self.shown = None      # last decoded surface, kept on screen while the next loads

    @staticmethod
    def _set_mode(fullscreen: bool) -> pygame.Surface:
        return pygame.display.set_mode(
            (0, 0) if fullscreen else config.WINDOWED_SIZE,
            pygame.FULLSCREEN if fullscreen else 0,
        )

    # ── action dispatch ----------------------------------------------------
    def _dispatch(self, act: dict) -> bool:
        """Apply one action; False means quit."""
        t, d = act["type"], self.display
        if t == "quit":
            return False
        if t == "relay_event":
            d.handle_event(act["event"])
        elif t == "call":
            act["fn"]()
        elif t == "command":
            d.command(act["command"])
        elif t == "refresh":
            self.images.forget_failures()
            d.load()
        elif t == "toggle_fullscreen":
            d.toggle_fullscreen()
        elif t == "exit_fullscreen":
            d.exit_fullscreen()
        elif t == "toggle_controls":
            d.toggle_controls()
        elif t == "toggle_slideshow":
            d.toggle_slideshow()
        elif t == "open_dashboard":
            webbrowser.open(config.DASHBOARD_URL)
        elif t == "tap":
            d.tap()
        elif t == "activity":
            d.pointer_activity()
        return True

    # ── rendering boundary -------------------------------------------------
    def _apply_window(self, state) -> None:
        if state.fullscreen != self.fullscreen:
            self.fullscreen = state.fullscreen
            self.screen = self._set_mode(self.fullscreen)
        if state.cursor_visible != self.cursor_visible:
            self.cursor_visible = state.cursor_visible
            pygame.mouse.set_visible(self.cursor_visible)

    def _draw(self, state) -> None:
        if draw_card(self.screen, state):
            if state.phase == READY:
                draw_overlay(self.screen, state)
            return

        surf = self.images.get(state.current_image)
        if surf is not None:
            self.shown = surf
        elif self.images.failed(state.current_image):
            self.shown = None
            self.display.image_failed(state.current_image)
            state = self.display.state

        if self.shown is not None:
            render_image(self.screen, self.shown, state.zoom_level, state.fit_mode)
        else:
            self.screen.fill((0, 0, 0))
        draw_overlay(self.screen, state)

    # ── main loop ---------------------------------------------------------
    def run(self):
        self.display.start(
            deliver=lambda ev: EventManager.post({"type": "relay_event", "event": ev}))

        running = True
        while running:
            for e in pygame.event.get():
                EventManager.handle(e)

            # drain external queue (non-blocking)
            while running and (act := EventManager.poll()):
                running = self._dispatch(act)

            self.display.scheduler.fire_due()

            state = self.display.state
            self._apply_window(state)
            self._draw(state)

            pygame.display.flip()
            self.clock.tick(config.FPS)

        self.display.dispose()
        self.images.close()
        self.api.close()
        pygame.quit()
