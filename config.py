"""Crowd Pick – configuration."""

import os

# ── App identity ──────────────────────────────────────────────────────────────
APP_NAME = "Crowd Pick"
APP_VERSION = "0.1.0"

# ── Paths ────────────────────────────────────────────────────────────────────
DATA_DIR = os.environ.get(
    "CROWD_PICK_DATA_DIR", os.path.expanduser("~/.crowd_pick")
)
DB_PATH = os.environ.get(
    "CROWD_PICK_DB_PATH", os.path.join(DATA_DIR, "crowd_pick.db")
)
# Per-visitor stats blobs live here, one JSON file per visitor id
STATS_DIR = os.environ.get(
    "CROWD_PICK_STATS_DIR", os.path.join(DATA_DIR, "visitors")
)

# ── Server ───────────────────────────────────────────────────────────────────
API_HOST = os.environ.get("CROWD_PICK_HOST", "127.0.0.1")
API_PORT = int(os.environ.get("CROWD_PICK_PORT", "3000"))
API_URL = os.environ.get("CROWD_PICK_URL", f"http://{API_HOST}:{API_PORT}")

# ── Client ───────────────────────────────────────────────────────────────────
REQUEST_TIMEOUT_SECONDS = 10
VISITOR_ID_PREFIX = "sess-"
