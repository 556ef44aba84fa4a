import pygame

from display import CONTAIN, FILL

# (source, size, scaled) – rescaling a large photo every frame is slow
_last = (None, None, None)


def target_rect(screen_size, image_size, zoom: float, fit: str) -> pygame.Rect:
    """
    Where the image lands on screen.

    fill     stretch to the screen, then scale by *zoom* (aspect not kept)
    contain  natural pixel size scaled by *zoom*, aspect kept
    Both are centred; anything larger than the screen is cropped.
    """
    sw, sh = screen_size
    iw, ih = image_size
    if fit == FILL:
        w, h = sw * zoom, sh * zoom
    else:
        w, h = iw * zoom, ih * zoom
    w, h = max(1, int(round(w))), max(1, int(round(h)))
    return pygame.Rect((sw - w) // 2, (sh - h) // 2, w, h)


def render_image(screen: pygame.Surface, image: pygame.Surface, zoom: float, fit: str = CONTAIN):
    """Scale *image* per zoom level and fit mode and draw it on black."""
    global _last
    rect = target_rect(screen.get_size(), image.get_size(), zoom, fit)
    if rect.size == image.get_size():
        surf = image
    elif _last[0] is image and _last[1] == rect.size:
        surf = _last[2]
    else:
        surf = pygame.transform.scale(image, rect.size)
        _last = (image, rect.size, surf)
    screen.fill((0, 0, 0))
    screen.blit(surf, rect.topleft)
