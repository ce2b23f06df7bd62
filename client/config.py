"""Application-wide configuration constants."""

import os

# --- Backend ---
BACKEND_URL = os.environ.get("LANDROP_BACKEND_URL", "http://127.0.0.1:8080")
BACKEND_WS_URL = os.environ.get(
    "LANDROP_BACKEND_WS_URL",
    BACKEND_URL.replace("https://", "wss://").replace("http://", "ws://") + "/ws",
)
REQUEST_TIMEOUT = 10.0  # seconds
RETRY_DELAY = 2  # seconds between push channel reconnects

# --- UI server ---
API_HOST = os.environ.get("LANDROP_API_HOST", "127.0.0.1")
API_PORT = int(os.environ.get("LANDROP_API_PORT", "8765"))

# --- Discovery ---
POLL_INTERVAL = 2.0  # seconds

# --- Notifications ---
NOTIFICATION_TTL = 5.0  # seconds
TEXT_PREVIEW_LENGTH = 50  # characters

# --- File selection ---
FILE_FILTERS = [("All Files", "*")]
