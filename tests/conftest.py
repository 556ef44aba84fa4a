import os

# headless pygame, windowed display state
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
os.environ["FULLSCREEN"] = "false"

import pytest

from errors import NotFound
from models import TV, youtube_video_id
from sync_client import SyncClient
from timing import Scheduler


def tv_dict(tv_id, name="Lobby", images=(), image=None, youtube=None, interval=None,
            updated="2024-01-01T00:00:00.000Z"):
    return {
        "id": tv_id,
        "name": name,
        "images": list(images),
        "image": image,
        "youtubeLink": youtube,
        "slideshowInterval": interval,
        "createdAt": "2024-01-01T00:00:00.000Z",
        "updatedAt": updated,
    }


class FakeClock:
    def __init__(self, t=1000.0):
        self.t = t

    def __call__(self):
        return self.t

    def advance(self, secs):
        self.t += secs


class FakeHub:
    """In-memory relay: broadcasts to every connection, zoom commands to a room."""

    def __init__(self):
        self.connections = []

    def relay(self):
        r = FakeRelay(self)
        self.connections.append(r)
        return r

    def broadcast(self, frame):
        for r in list(self.connections):
            r.push(frame)

    def to_room(self, tv_id, frame):
        for r in list(self.connections):
            if tv_id in r.rooms:
                r.push(frame)


class FakeRelay:
    def __init__(self, hub=None, reachable=True):
        self.hub = hub
        self.reachable = reachable
        self.sent = []
        self.rooms = set()
        self.closed = 0
        self.on_frame = None

    def open(self, on_frame):
        if not self.reachable:
            return False
        self.on_frame = on_frame
        return True

    def send(self, frame):
        self.sent.append(frame)
        t = frame["type"]
        if t == "joinTvDisplay":
            self.rooms.add(frame["tvId"])
            self.push({"type": "joinedTvRoom", "tvId": frame["tvId"],
                       "roomName": f"tv-{frame['tvId']}"})
        elif t == "leaveTvDisplay":
            self.rooms.discard(frame["tvId"])
        elif t == "sendZoomCommand" and self.hub is not None:
            self.hub.to_room(frame["tvId"], {"type": "zoomCommand", "command": frame["command"]})
        return True

    def close(self):
        self.closed += 1
        if self.hub is not None and self in self.hub.connections:
            self.hub.connections.remove(self)
        self.on_frame = None

    def push(self, frame):
        if self.on_frame is not None:
            self.on_frame(frame)


class FakeApi:
    """Stands in for TVApiClient; broadcasts like the real server when given a hub."""

    def __init__(self, hub=None):
        self.hub = hub
        self.store = {}
        self.next_id = 1
        self.calls = []
        self.fail_next = None
        self.during_call = None      # runs inside the next mutating call

    def _enter(self, name):
        self.calls.append(name)
        if self.fail_next is not None:
            exc, self.fail_next = self.fail_next, None
            raise exc

    def _emit(self, frame):
        if self.hub is not None:
            self.hub.broadcast(frame)

    def _hook(self):
        if self.during_call is not None:
            hook, self.during_call = self.during_call, None
            hook()

    def put(self, data):
        self.store[data["id"]] = dict(data)
        self.next_id = max(self.next_id, data["id"] + 1)
        return TV.from_dict(data)

    def list_tvs(self):
        self._enter("list_tvs")
        return [TV.from_dict(d) for d in self.store.values()]

    def get_tv(self, tv_id):
        self._enter("get_tv")
        if tv_id not in self.store:
            raise NotFound("TV not found", 404)
        return TV.from_dict(self.store[tv_id])

    def create_tv(self, name):
        self._enter("create_tv")
        data = tv_dict(self.next_id, name=name, updated=None)
        self.put(data)
        tv = TV.from_dict(data)
        self._hook()
        self._emit({"type": "tvAdded", "tvData": data})
        return tv

    def _update(self, tv_id, event_type, **changes):
        if tv_id not in self.store:
            raise NotFound("TV not found", 404)
        data = self.store[tv_id]
        data.update(changes)
        data["updatedAt"] = f"2024-01-02T00:00:{len(self.calls):02d}.000Z"
        self._hook()
        self._emit({"type": event_type, "tvId": tv_id, "tvData": dict(data)})
        return TV.from_dict(data)

    def upload_images(self, tv_id, uploads):
        self._enter("upload_images")
        names = [u if isinstance(u, str) else u[0] for u in uploads]
        data = self.store.get(tv_id, {})
        images = list(data.get("images") or []) + [f"/uploads/{n}" for n in names]
        return self._update(tv_id, "imageUpdated", images=images, image=images[0])

    def set_youtube_link(self, tv_id, link):
        self._enter("set_youtube_link")
        return self._update(tv_id, "youtubeLinkUpdated", youtubeLink=link or None)

    def clear_images(self, tv_id):
        self._enter("clear_images")
        return self._update(tv_id, "imageUpdated", images=[], image=None)

    def delete_tv(self, tv_id):
        self._enter("delete_tv")
        if tv_id not in self.store:
            raise NotFound("TV not found", 404)
        del self.store[tv_id]
        self._hook()
        self._emit({"type": "tvDeleted", "tvId": tv_id})


class FakePlayer:
    def __init__(self, plays=False):
        self.plays = plays
        self.loaded = []
        self.reloaded = []
        self.stopped = 0

    def load(self, uri):
        self.loaded.append(uri)

    def reload(self, uri):
        self.reloaded.append(uri)
        self.plays = True

    def is_playing(self):
        return self.plays

    def stop(self):
        self.stopped += 1


class FakeResolver:
    """Answers stream lookups at once, or holds them until `finish()`."""

    def __init__(self, hold=False, fail=False):
        self.hold = hold
        self.fail = fail
        self.requests = []
        self._waiting = []

    def __call__(self, url, done):
        self.requests.append(url)
        if self.hold:
            self._waiting.append((url, done))
        else:
            done(self.stream_for(url))

    def stream_for(self, url):
        return None if self.fail else f"https://media.test/{youtube_video_id(url)}.m4a"

    def finish(self):
        waiting, self._waiting = self._waiting, []
        for url, done in waiting:
            done(self.stream_for(url))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def hub():
    return FakeHub()


@pytest.fixture
def api(hub):
    return FakeApi(hub)


@pytest.fixture
def scheduler(clock):
    return Scheduler(clock)


@pytest.fixture
def make_sync(api, hub):
    def _make(tv_id=None):
        return SyncClient(api, hub.relay(), tv_id=tv_id)
    return _make


