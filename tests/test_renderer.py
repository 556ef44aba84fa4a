import pygame

from display import CONTAIN, FILL
from renderer import render_image, target_rect


def test_fill_stretches_to_the_screen():
    assert target_rect((800, 600), (100, 50), 1.0, FILL) == pygame.Rect(0, 0, 800, 600)


def test_fill_zoom_is_centred_and_cropped():
    r = target_rect((800, 600), (100, 50), 2.0, FILL)
    assert r.size == (1600, 1200)
    assert r.center == (400, 300)


def test_contain_uses_natural_size():
    r = target_rect((960, 540), (1920, 1080), 0.5, CONTAIN)
    assert r == pygame.Rect(0, 0, 960, 540)


def test_tiny_zoom_never_collapses():
    assert target_rect((800, 600), (1, 1), 0.5, CONTAIN).size == (1, 1)


def test_render_draws_centred_on_black():
    screen = pygame.Surface((40, 40))
    image = pygame.Surface((10, 10))
    image.fill((255, 0, 0))
    render_image(screen, image, 1.0, CONTAIN)
    assert screen.get_at((20, 20))[:3] == (255, 0, 0)
    assert screen.get_at((0, 0))[:3] == (0, 0, 0)
