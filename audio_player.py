# =========  audio_player.py  =========
"""
Invisible audio-only player for a TV's YouTube link.

A GStreamer playbin whose video goes to a fakesink: nothing is ever
drawn, only sound comes out.  It is handed the media URL that
audio_source.py resolved, never the embed page itself.

Public API
----------
load(uri)      → start playing a media URL (autoplay attempt)
reload(uri)    → tear down and load again from scratch
is_playing()   → True once the pipeline reached PLAYING
stop()
"""
import logging
import threading

import gi
gi.require_version("Gst", "1.0")
from gi.repository import Gst, GLib

log = logging.getLogger(__name__)


# ────────────────────────────────────────────────────────────────────────────
class AudioPlayer:
    def __init__(self, pipeline=None):
        Gst.init(None)

        self.player = pipeline or self._build_pipeline()

        self.uri = ""
        self._ml = None
        self._ml_thread = None
        self._bus_handler = None

    # ── public API ──────────────────────────────────────────────────────────
    def load(self, uri: str):
        self.stop()
        self.uri = uri
        self.player.set_property("uri", uri)
        ret = self.player.set_state(Gst.State.PLAYING)
        if ret == Gst.StateChangeReturn.FAILURE:
            log.warning(f"audio pipeline refused to start: {uri}")

        # bus watch in a side loop
        bus = self.player.get_bus()
        self._ml = GLib.MainLoop()
        bus.add_signal_watch()
        self._bus_handler = bus.connect("message", self._on_bus_msg)
        self._ml_thread = threading.Thread(target=self._ml.run, daemon=True)
        self._ml_thread.start()

    def reload(self, uri: str | None = None):
        self.load(uri or self.uri)

    def is_playing(self) -> bool:
        _, state, _ = self.player.get_state(0)
        return state == Gst.State.PLAYING

    def stop(self):
        bus = self.player.get_bus()
        if self._bus_handler is not None:
            bus.disconnect(self._bus_handler)
            self._bus_handler = None
        if self._ml:
            self._ml.quit()
            self._ml = None
            bus.remove_signal_watch()
        if self._ml_thread and threading.current_thread() is not self._ml_thread:
            self._ml_thread.join(timeout=0.5)
        self._ml_thread = None
        self.player.set_state(Gst.State.NULL)
        self.uri = ""

    # ── internals ───────────────────────────────────────────────────────────
    @staticmethod
    def _build_pipeline():
        player = Gst.ElementFactory.make("playbin", "player")
        player.set_property("video-sink", Gst.ElementFactory.make("fakesink", "novideo"))
        player.set_property("audio-sink", Gst.ElementFactory.make("autoaudiosink", "aud"))
        return player

    def _on_bus_msg(self, bus, msg):
        if msg.type == Gst.MessageType.EOS:
            # embedded links loop, so the stream restarts at the end
            self.player.seek_simple(Gst.Format.TIME, Gst.SeekFlags.FLUSH, 0)
        elif msg.type == Gst.MessageType.ERROR:
            err, dbg = msg.parse_error()
            log.warning(f"GStreamer error: {err} ({dbg})")
            self.player.set_state(Gst.State.NULL)
        return True
