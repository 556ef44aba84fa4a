"""
audio_source.py – YouTube link → playable audio stream.

The embed URL a TV carries is an HTML page; GStreamer needs the media
URL behind it.  yt-dlp looks that up, which means network round trips,
so lookups run on a worker thread and the answer is handed back through
*deliver* (the app posts it to the main loop).
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from yt_dlp import YoutubeDL
from yt_dlp.utils import DownloadError

from models import youtube_video_id

log = logging.getLogger(__name__)

YDL_OPTS = {
    "quiet": True,
    "no_warnings": True,
    "skip_download": True,
    "noplaylist": True,
    "format": "bestaudio/best",
}

Done = Callable[[Optional[str]], None]


class StreamResolver:
    def __init__(self, deliver: Callable[[Callable[[], None]], None] | None = None, *,
                 ydl_class=YoutubeDL):
        self.deliver = deliver or (lambda fn: fn())
        self.ydl_class = ydl_class

    def request(self, url: str, done: Done) -> None:
        """Resolve *url* in the background; *done* gets the stream URL or None."""
        threading.Thread(target=self._run, args=(url, done),
                         name="audio-resolve", daemon=True).start()

    def resolve(self, url: str) -> Optional[str]:
        vid = youtube_video_id(url)
        if not vid:
            return None
        watch = f"https://www.youtube.com/watch?v={vid}"
        try:
            with self.ydl_class(YDL_OPTS) as ydl:
                info = ydl.extract_info(watch, download=False)
        except DownloadError as e:
            log.warning(f"no audio stream for {vid}: {e}")
            return None
        stream = (info or {}).get("url")
        if not stream:
            log.warning(f"no audio stream for {vid}: extractor returned no url")
            return None
        log.info(f"audio stream resolved for {vid}")
        return stream

    def _run(self, url: str, done: Done) -> None:
        stream = self.resolve(url)
        self.deliver(lambda: done(stream))
