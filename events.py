#!/usr/bin/env python3
"""
events.py  – central hub

• Translates raw Pygame events to high-level action dicts.
• Exposes a thread-safe queue so *any* external source can inject
  the same actions (the relay reader thread posts {"type": "relay_event"}).
"""

from __future__ import annotations
import queue
from pygame.locals import *

Action = dict      # alias for readability

# key → action; zoom and navigation keys reuse the relayed command names
_KEYMAP: dict[int, Action] = {
    K_q:        {"type": "quit"},
    K_r:        {"type": "refresh"},
    K_F5:       {"type": "refresh"},
    K_f:        {"type": "toggle_fullscreen"},
    K_ESCAPE:   {"type": "exit_fullscreen"},
    K_c:        {"type": "toggle_controls"},
    K_d:        {"type": "open_dashboard"},
    K_SPACE:    {"type": "toggle_slideshow"},
    K_PLUS:     {"type": "command", "command": "zoomIn"},
    K_EQUALS:   {"type": "command", "command": "zoomIn"},
    K_KP_PLUS:  {"type": "command", "command": "zoomIn"},
    K_MINUS:    {"type": "command", "command": "zoomOut"},
    K_KP_MINUS: {"type": "command", "command": "zoomOut"},
    K_0:        {"type": "command", "command": "resetZoom"},
    K_KP0:      {"type": "command", "command": "resetZoom"},
    K_RIGHT:    {"type": "command", "command": "next"},
    K_LEFT:     {"type": "command", "command": "previous"},
}


class EventManager:
    _fifo: "queue.Queue[Action]" = queue.Queue()      # global, thread-safe

    # ── SDL / keyboard path ────────────────────────────────────────────
    @classmethod
    def handle(cls, event) -> None:
        """Translate one Pygame event → action and enqueue it."""
        act = cls._translate_pygame(event)
        if act:
            cls._fifo.put(act)

    # ── external / programmatic path ───────────────────────────────────
    @classmethod
    def post(cls, action: Action) -> None:
        """
        Any thread may call this to inject an already-formed action dict, e.g.:
            EventManager.post({"type": "command", "command": "fitToScreen"})
        """
        cls._fifo.put(action)

    # ── main-loop consumer ─────────────────────────────────────────────
    @classmethod
    def poll(cls) -> Action | None:
        """Return next queued action or None (non-blocking)."""
        try:
            return cls._fifo.get_nowait()
        except queue.Empty:
            return None

    # ── internal translator ───────────────────────────────────────────
    @staticmethod
    def _translate_pygame(event) -> Action | None:
        if event.type == QUIT:
            return {"type": "quit"}

        if event.type == KEYDOWN:
            act = _KEYMAP.get(event.key)
            return dict(act) if act else None

        if event.type in (MOUSEBUTTONDOWN, FINGERDOWN):
            return {"type": "tap"}
        if event.type in (MOUSEMOTION, FINGERMOTION):
            return {"type": "activity"}

        return None
