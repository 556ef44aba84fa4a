"""
models.py

TV records and the events that travel over the relay.

Wire payloads use the API's camelCase keys; everything in here is
snake_case.  `parse_event()` is the single translator from a decoded
relay frame to an Event object.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Union

import config
from errors import TransientError

# ── YouTube helpers ─────────────────────────────────────────────────────────
_YT_RE = re.compile(r"^.*(youtu\.be/|v/|u/\w/|embed/|watch\?v=|&v=)([^#&?]*).*")

EMBED_PARAMS = ("autoplay=1&mute=0&loop=1&playlist={vid}&controls=0&showinfo=0"
                "&autohide=1&modestbranding=1&rel=0&enablejsapi=1")


def youtube_video_id(url: str | None) -> Optional[str]:
    """Return the 11-char video id of a watch/short/embed URL, else None."""
    if not url:
        return None
    m = _YT_RE.match(url)
    if m and len(m.group(2)) == 11:
        return m.group(2)
    return None


def youtube_embed_url(url: str | None) -> Optional[str]:
    vid = youtube_video_id(url)
    if not vid:
        return None
    return f"https://www.youtube.com/embed/{vid}?" + EMBED_PARAMS.format(vid=vid)


# ── timestamps ──────────────────────────────────────────────────────────────
def parse_timestamp(value: str | None) -> Optional[datetime]:
    """ISO-8601 → aware datetime (UTC when the string has no offset)."""
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


# ── TV record ───────────────────────────────────────────────────────────────
@dataclass
class TV:
    id: int
    name: str
    images: List[str] = field(default_factory=list)
    image: Optional[str] = None          # legacy single image
    youtube_link: Optional[str] = None
    slideshow_interval: Optional[int] = None
    created_at: str = ""
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "TV":
        if not isinstance(data, dict):
            raise TransientError(f"TV payload is not an object: {data!r}")
        try:
            tv_id = int(data["id"])
        except (KeyError, TypeError, ValueError):
            raise TransientError(f"TV payload without a valid id: {data!r}")

        interval = data.get("slideshowInterval")
        try:
            interval = int(interval) if interval is not None else None
        except (TypeError, ValueError):
            interval = None

        return cls(
            id=tv_id,
            name=str(data.get("name") or ""),
            images=[str(i) for i in (data.get("images") or [])],
            image=data.get("image") or None,
            youtube_link=data.get("youtubeLink") or None,
            slideshow_interval=interval,
            created_at=data.get("createdAt") or "",
            updated_at=data.get("updatedAt") or None,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "images": list(self.images),
            "image": self.image,
            "youtubeLink": self.youtube_link,
            "slideshowInterval": self.slideshow_interval,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    # -------------------------------------------------------------- derived
    @property
    def effective_images(self) -> List[str]:
        """Presentation order: `images`, else the legacy `image`, else []."""
        if self.images:
            return list(self.images)
        if self.image:
            return [self.image]
        return []

    @property
    def effective_interval(self) -> float:
        if self.slideshow_interval and self.slideshow_interval > 0:
            return float(self.slideshow_interval)
        return config.DEFAULT_SLIDESHOW_INTERVAL

    @property
    def cache_buster(self) -> Optional[str]:
        dt = parse_timestamp(self.updated_at)
        return str(int(dt.timestamp() * 1000)) if dt else None

    def image_url(self, ref: str, base: str | None = None) -> str:
        """Absolute URL for *ref* with the `v=<updatedAt ms>` freshness param."""
        if ref.startswith(("http://", "https://")):
            url = ref
        else:
            base = (base if base is not None else config.API_BASE_URL).rstrip("/")
            url = f"{base}/{ref.lstrip('/')}"
        stamp = self.cache_buster
        if stamp:
            url += ("&" if "?" in url else "?") + f"v={stamp}"
        return url


# ── Events ──────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class TvAdded:
    tv: TV


@dataclass(frozen=True)
class ImageUpdated:
    tv_id: int
    tv: TV


@dataclass(frozen=True)
class YoutubeLinkUpdated:
    tv_id: int
    tv: TV


@dataclass(frozen=True)
class TvDeleted:
    tv_id: int


@dataclass(frozen=True)
class TvListSnapshot:
    tvs: tuple


@dataclass(frozen=True)
class ZoomCommand:
    command: str
    tv_id: Optional[int] = None


@dataclass(frozen=True)
class RoomJoined:
    tv_id: int
    room_name: str = ""


Event = Union[TvAdded, ImageUpdated, YoutubeLinkUpdated, TvDeleted,
              TvListSnapshot, ZoomCommand, RoomJoined]

ZOOM_COMMANDS = ("zoomIn", "zoomOut", "resetZoom", "fitToScreen", "stretchToScreen")
NAV_COMMANDS  = ("next", "previous", "pause", "resume", "refresh")


def _tv_id(frame: dict) -> int:
    try:
        return int(frame["tvId"])
    except (KeyError, TypeError, ValueError):
        raise TransientError(f"{frame.get('type')} without a valid tvId")


def parse_event(frame: dict) -> Optional[Event]:
    """
    Decoded relay frame → Event.

    Returns None for frame types that are not events (acks, unknown types).
    Raises TransientError for malformed payloads.
    """
    if not isinstance(frame, dict):
        raise TransientError(f"relay frame is not an object: {frame!r}")

    t = frame.get("type")
    if t == "tvAdded":
        return TvAdded(TV.from_dict(frame.get("tvData")))
    if t in ("imageUpdated", "youtubeLinkUpdated"):
        tv = TV.from_dict(frame.get("tvData"))
        tv_id = _tv_id(frame) if "tvId" in frame else tv.id
        cls = ImageUpdated if t == "imageUpdated" else YoutubeLinkUpdated
        return cls(tv_id, tv)
    if t == "tvDeleted":
        return TvDeleted(_tv_id(frame))
    if t == "tvListUpdate":
        tvs = frame.get("tvs")
        if not isinstance(tvs, list):
            raise TransientError("tvListUpdate without a tvs list")
        return TvListSnapshot(tuple(TV.from_dict(d) for d in tvs))
    if t == "zoomCommand":
        cmd = frame.get("command")
        if not isinstance(cmd, str) or not cmd:
            raise TransientError("zoomCommand without a command")
        return ZoomCommand(cmd, _tv_id(frame) if "tvId" in frame else None)
    if t == "joinedTvRoom":
        return RoomJoined(_tv_id(frame), str(frame.get("roomName") or ""))
    return None
