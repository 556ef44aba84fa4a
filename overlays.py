"""
overlays.py

Pygame overlay renderer for the TV display: controls bar, zoom toast,
error banner, tap-to-play overlay and the full-screen cards
(loading / no image / not found / removed).
"""

from __future__ import annotations

from datetime import datetime, timezone

import pygame

from display import FAILED, LOADING, NOT_FOUND, REMOVED, PresentationState
from models import parse_timestamp

# ── colours ────────────────────────────────────────────────────────────────
WHITE = (255, 255, 255)
GREY  = (150, 150, 150)
RED   = (220, 38, 38)
BG    = (0, 0, 0, 180)
SHADE = (0, 0, 0, 128)

pygame.font.init()


# ── helpers ────────────────────────────────────────────────────────────────
def _compute_font_sizes(h: int) -> tuple[int, int, int]:
    return max(12, h // 60), max(16, h // 45), max(24, h // 15)


def format_updated(updated_at: str | None, now: datetime | None = None) -> str:
    """Relative "last updated" text for the controls bar."""
    dt = parse_timestamp(updated_at)
    if dt is None:
        return "Never"
    now = now or datetime.now(timezone.utc)
    mins = int((now - dt).total_seconds() // 60)
    hours, days = mins // 60, mins // 1440
    if mins < 1:
        return "Just now"
    if mins < 60:
        return f"{mins} minutes ago"
    if hours < 24:
        return f"{hours} hours ago"
    if days < 7:
        return f"{days} days ago"
    return dt.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _badge(surface: pygame.Surface, text: str, font, pos, colour=WHITE, bg=BG) -> pygame.Rect:
    pt   = font.get_height()
    txt  = font.render(text, True, colour)
    box  = pygame.Surface((txt.get_width() + pt, txt.get_height() + pt // 2), pygame.SRCALPHA)
    box.fill(bg)
    box.blit(txt, (pt // 2, pt // 4))
    return surface.blit(box, pos)


def _centred_lines(surface: pygame.Surface, lines: list[tuple[str, int, tuple]]) -> None:
    """Draw (text, point size, colour) lines centred as one block."""
    w, h  = surface.get_size()
    fonts = [(pygame.font.SysFont("monospace", pt), text, col) for text, pt, col in lines]
    total = sum(f.get_linesize() for f, _, _ in fonts)
    y     = (h - total) // 2
    for font, text, col in fonts:
        txt = font.render(text, True, col)
        surface.blit(txt, ((w - txt.get_width()) // 2, y))
        y += font.get_linesize()


# ── full-screen cards ──────────────────────────────────────────────────────
def draw_card(surface: pygame.Surface, state: PresentationState) -> bool:
    """Draw the card for phases that replace the image.  True if drawn."""
    _, small_pt, large_pt = _compute_font_sizes(surface.get_height())
    surface.fill((0, 0, 0))

    if state.phase == LOADING:
        _centred_lines(surface, [("Loading TV display...", small_pt, WHITE)])
    elif state.phase == NOT_FOUND:
        _centred_lines(surface, [
            ("TV Not Found", large_pt, WHITE),
            ("This TV display does not exist or has been deleted.", small_pt, GREY),
        ])
    elif state.phase == REMOVED:
        _centred_lines(surface, [
            ("TV Removed", large_pt, WHITE),
            ("This TV has been deleted.", small_pt, GREY),
        ])
    elif state.phase == FAILED:
        _centred_lines(surface, [
            ("Error", large_pt, WHITE),
            (state.error or "", small_pt, GREY),
            ("Press R to retry", small_pt, GREY),
        ])
    elif not state.images:
        tv = state.tv
        _centred_lines(surface, [
            ("No Image", large_pt, WHITE),
            ("Upload images from the dashboard", small_pt, WHITE),
            (tv.name if tv else "", small_pt, WHITE),
            (f"TV ID: {tv.id}" if tv else "", small_pt, GREY),
        ])
    else:
        return False
    return True


# ── on-top layers ──────────────────────────────────────────────────────────
def draw_overlay(surface: pygame.Surface, state: PresentationState) -> None:
    sw, sh = surface.get_size()
    tiny_pt, small_pt, large_pt = _compute_font_sizes(sh)
    FT = pygame.font.SysFont("monospace", tiny_pt)
    FS = pygame.font.SysFont("monospace", small_pt)

    # ── zoom / fit toast (top-left) ──────────────────────────────────────
    if state.notification:
        _badge(surface, state.notification, FS, (16, 16))

    # ── error banner (top-centre) ────────────────────────────────────────
    if state.error and state.tv is not None:
        txt = FS.render(state.error, True, WHITE)
        _badge(surface, state.error, FS, ((sw - txt.get_width()) // 2 - small_pt // 2, 16),
               bg=(*RED, 220))

    # ── controls bar (bottom) ────────────────────────────────────────────
    if state.controls_visible and state.tv is not None:
        tv    = state.tv
        parts = [f"TV: {tv.name}", f"Last updated: {format_updated(tv.updated_at)}"]
        if state.counter:
            parts.append(state.counter)
        if len(state.images) > 1:
            parts.append("playing" if state.slideshow_running else "paused")
        parts.append(f"{round(state.zoom_level * 100)}% {state.fit_mode}")
        bar_h = FT.size("Ag")[1] + FT.get_height() // 2
        _badge(surface, "   ".join(parts), FT, (16, sh - bar_h - 16), bg=SHADE)
        hint = "F fullscreen | R refresh | D dashboard | +/- zoom | 0 reset | C controls"
        _badge(surface, hint, FT, (16, sh - 2 * bar_h - 24), GREY, SHADE)

    # ── tap-to-play (full screen, on top of everything) ──────────────────
    if state.show_play_overlay:
        shade = pygame.Surface((sw, sh), pygame.SRCALPHA)
        shade.fill(SHADE)
        surface.blit(shade, (0, 0))
        r = large_pt
        pygame.draw.circle(surface, RED, (sw // 2, sh // 2), r)
        tri = [(sw // 2 - r // 3, sh // 2 - r // 2),
               (sw // 2 - r // 3, sh // 2 + r // 2),
               (sw // 2 + r // 2, sh // 2)]
        pygame.draw.polygon(surface, WHITE, tri)
        txt = FS.render("Tap to play audio", True, WHITE)
        surface.blit(txt, ((sw - txt.get_width()) // 2, sh // 2 + r + small_pt // 2))
