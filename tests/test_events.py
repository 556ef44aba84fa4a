import pygame
import pytest

from events import EventManager


@pytest.fixture(autouse=True)
def drain():
    while EventManager.poll() is not None:
        pass
    yield
    while EventManager.poll() is not None:
        pass


def key(k):
    return pygame.event.Event(pygame.KEYDOWN, key=k, mod=0, unicode="", scancode=0)


@pytest.mark.parametrize("k, action", [
    (pygame.K_q,      {"type": "quit"}),
    (pygame.K_F5,     {"type": "refresh"}),
    (pygame.K_ESCAPE, {"type": "exit_fullscreen"}),
    (pygame.K_SPACE,  {"type": "toggle_slideshow"}),
    (pygame.K_EQUALS, {"type": "command", "command": "zoomIn"}),
    (pygame.K_KP0,    {"type": "command", "command": "resetZoom"}),
    (pygame.K_LEFT,   {"type": "command", "command": "previous"}),
])
def test_keys(k, action):
    EventManager.handle(key(k))
    assert EventManager.poll() == action


def test_unmapped_key_enqueues_nothing():
    EventManager.handle(key(pygame.K_z))
    assert EventManager.poll() is None


def test_pointer_and_touch():
    EventManager.handle(pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=1, pos=(5, 5)))
    EventManager.handle(pygame.event.Event(pygame.MOUSEMOTION, pos=(6, 6), rel=(1, 1), buttons=(0, 0, 0)))
    EventManager.handle(pygame.event.Event(pygame.QUIT))
    assert [EventManager.poll()["type"] for _ in range(3)] == ["tap", "activity", "quit"]


def test_returned_actions_are_copies():
    EventManager.handle(key(pygame.K_r))
    EventManager.poll()["type"] = "mangled"
    EventManager.handle(key(pygame.K_r))
    assert EventManager.poll() == {"type": "refresh"}


def test_posted_actions_keep_order():
    EventManager.post({"type": "relay_event", "event": 1})
    EventManager.handle(key(pygame.K_c))
    assert EventManager.poll() == {"type": "relay_event", "event": 1}
    assert EventManager.poll() == {"type": "toggle_controls"}
