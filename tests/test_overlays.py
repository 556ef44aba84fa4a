from datetime import datetime, timedelta, timezone

import pygame
import pytest

from conftest import tv_dict
from display import FAILED, LOADING, NOT_FOUND, READY, REMOVED, PresentationState
from models import TV
from overlays import draw_card, draw_overlay, format_updated

NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)


def ago(**kw):
    return (NOW - timedelta(**kw)).isoformat().replace("+00:00", "Z")


@pytest.mark.parametrize("stamp, text", [
    (None,               "Never"),
    (ago(seconds=30),    "Just now"),
    (ago(minutes=5),     "5 minutes ago"),
    (ago(hours=3),       "3 hours ago"),
    (ago(days=2),        "2 days ago"),
])
def test_format_updated(stamp, text):
    assert format_updated(stamp, NOW) == text


def test_format_updated_old_dates_are_absolute():
    assert format_updated(ago(days=30), NOW)[:4] == "2024"


def state(phase=READY, images=(), **kw):
    tv = TV.from_dict(tv_dict(7, images=images))
    values = dict(phase=phase, tv=tv, images=tuple(images), current_index=0,
                  current_image=None, zoom_level=1.0, fit_mode="fill",
                  slideshow_running=True, controls_visible=True, cursor_visible=True,
                  fullscreen=False, loading=False, notification=None, error=None,
                  audio_url=None, show_play_overlay=False)
    values.update(kw)
    return PresentationState(**values)


@pytest.mark.parametrize("phase", [LOADING, NOT_FOUND, REMOVED, FAILED])
def test_cards_replace_the_image(phase):
    assert draw_card(pygame.Surface((320, 240)), state(phase))


def test_no_image_card_only_without_images():
    surface = pygame.Surface((320, 240))
    assert draw_card(surface, state())
    assert not draw_card(surface, state(images=["/a"]))


def test_overlay_layers_draw():
    surface = pygame.Surface((320, 240))
    draw_overlay(surface, state(images=["/a", "/b"], notification="Zoom: 125%",
                                error="Failed to load image", show_play_overlay=True))
    assert surface.get_at((160, 120))[:3] != (0, 0, 0)
