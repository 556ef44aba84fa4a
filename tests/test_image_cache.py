import io
import threading

import pygame
import pytest

from errors import TransientError
from image_cache import ImageCache

A1 = "http://tv.test/uploads/a.png?v=1"
A2 = "http://tv.test/uploads/a.png?v=2"
BAD = "http://tv.test/uploads/bad.png"
GONE = "http://tv.test/uploads/gone.png"


def png_bytes(size=(4, 3)):
    surf = pygame.Surface(size)
    surf.fill((0, 128, 255))
    buf = io.BytesIO()
    pygame.image.save(surf, buf, "x.png")
    return buf.getvalue()


class Fetcher:
    def __init__(self, payloads):
        self.payloads = payloads
        self.calls = []

    def __call__(self, url):
        self.calls.append(url)
        data = self.payloads[url]
        if isinstance(data, Exception):
            raise data
        return data


@pytest.fixture
def fetch():
    return Fetcher({
        A1: png_bytes(),
        A2: png_bytes((8, 6)),
        BAD: b"not an image",
        GONE: TransientError("Failed to load image", 500),
    })


@pytest.fixture
def cache(fetch):
    c = ImageCache(fetch)
    yield c
    c.close()


def loaded(cache, url):
    cache.get(url)
    cache.join()
    return cache.get(url)


def test_decodes_and_caches(cache, fetch):
    assert cache.get(A1) is None            # queued, not fetched inline
    cache.join()
    assert cache.natural_size(A1) == (4, 3)
    assert cache.get(A1) is cache.get(A1)
    assert fetch.calls == [A1]


def test_get_does_not_wait_for_a_slow_server(fetch):
    release = threading.Event()

    def slow(url):
        release.wait(timeout=2)
        return fetch(url)

    cache = ImageCache(slow)
    try:
        assert cache.get(A1) is None
        assert cache.get(A1) is None
        assert not cache.failed(A1)
        release.set()
        cache.join()
        assert cache.get(A1) is not None
        assert fetch.calls == [A1]
    finally:
        cache.close()


def test_new_cache_buster_is_a_miss(cache, fetch):
    loaded(cache, A1)
    assert loaded(cache, A2).get_size() == (8, 6)
    assert len(fetch.calls) == 2


@pytest.mark.parametrize("url", [BAD, GONE])
def test_failures_are_remembered_until_refresh(cache, fetch, url):
    assert loaded(cache, url) is None
    cache.get(url)
    cache.join()
    assert cache.failed(url)
    assert fetch.calls == [url]

    cache.forget_failures()
    assert not cache.failed(url)
    cache.get(url)
    cache.join()
    assert fetch.calls == [url, url]


def test_refresh_recovers_a_transient_failure(cache, fetch):
    fetch.payloads[GONE] = TransientError("HTTP 503", 503)
    assert loaded(cache, GONE) is None
    fetch.payloads[GONE] = png_bytes()
    assert cache.get(GONE) is None
    cache.forget_failures()
    assert loaded(cache, GONE).get_size() == (4, 3)


def test_evicts_least_recently_used(fetch):
    cache = ImageCache(fetch, max_items=1)
    try:
        loaded(cache, A1)
        loaded(cache, A2)
        loaded(cache, A1)
        assert fetch.calls == [A1, A2, A1]
    finally:
        cache.close()
