# config.py
"""
Configuration settings for the TV display client.
"""
import logging
import os

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

FPS = 30

# ── Collaborator endpoints ─────────────────────────────────────────────────

# Base of the REST API, static image paths and the relay
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:1286").rstrip("/")

# Broadcast relay (JSON frames over a WebSocket)
RELAY_URL = os.getenv(
    "RELAY_URL",
    API_BASE_URL.replace("https://", "wss://", 1).replace("http://", "ws://", 1) + "/ws",
)

# Opened in a browser on "D"
DASHBOARD_URL = os.getenv("DASHBOARD_URL", API_BASE_URL + "/")

# TV presented when main.py is started without an argument
TV_ID = os.getenv("TV_ID")

HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", 10))

# ── Display settings ───────────────────────────────────────────────────────

FULLSCREEN = os.getenv("FULLSCREEN", "true").lower() == "true"
WINDOWED_SIZE = (800, 600)

# ── Presentation timing (seconds) ──────────────────────────────────────────

DEFAULT_SLIDESHOW_INTERVAL = 5.0
NOTIFICATION_DURATION      = 2.0   # zoom / fit toast on the display
CURSOR_HIDE_DELAY          = 3.0   # idle time before the pointer disappears
AUTOPLAY_GRACE             = 3.0   # wait for audio before asking for a tap
TOAST_DURATION             = 3.0   # controller notifications

# ── Zoom ───────────────────────────────────────────────────────────────────

ZOOM_STEP = 0.25
ZOOM_MIN  = 0.5
ZOOM_MAX  = 3.0

# ── Logging ────────────────────────────────────────────────────────────────

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
