"""Crowd Pick – per-visitor statistics blobs (one JSON file per visitor id).

Unreadable or corrupted blobs are treated as absent and replaced with fresh
defaults instead of raising.
"""

import json
import logging
import os
from urllib.parse import quote

from scoring import default_stats

logger = logging.getLogger(__name__)

_CURRENT_FILE = "current"


class StatsStore:
    def __init__(self, directory):
        os.makedirs(directory, exist_ok=True)
        self.directory = directory

    def _path(self, visitor_id):
        # percent-encoded, so distinct ids map to distinct files
        return os.path.join(self.directory, f"{quote(visitor_id, safe='')}.json")

    # ── Blobs ────────────────────────────────────────────────────────────
    def load(self, visitor_id):
        """Stored stats for ``visitor_id``, or defaults if missing or corrupt."""
        path = self._path(visitor_id)
        try:
            with open(path, encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return default_stats(visitor_id)
        except (OSError, ValueError) as exc:
            logger.warning("Discarding unreadable stats for %s: %s", visitor_id, exc)
            return self._replace(visitor_id)

        if not _well_formed(data):
            logger.warning("Discarding malformed stats for %s", visitor_id)
            return self._replace(visitor_id)

        stats = default_stats(visitor_id)
        stats.update(data)
        stats["sessionId"] = visitor_id
        return stats

    def save(self, stats):
        visitor_id = stats["sessionId"]
        path = self._path(visitor_id)
        tmp = path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as fh:
            json.dump(stats, fh)
        os.replace(tmp, path)
        self._set_current(visitor_id)

    def reset(self, visitor_id=None):
        """Start over with fresh defaults (and a new visitor id unless given)."""
        stats = default_stats(visitor_id)
        self.save(stats)
        return stats

    def _replace(self, visitor_id):
        try:
            os.remove(self._path(visitor_id))
        except OSError as exc:
            logger.debug("Could not remove stats for %s: %s", visitor_id, exc)
        return default_stats(visitor_id)

    # ── Current visitor on this machine ──────────────────────────────────
    def current_visitor(self):
        try:
            with open(os.path.join(self.directory, _CURRENT_FILE), encoding="utf-8") as fh:
                visitor_id = fh.read().strip()
        except OSError:
            return None
        return visitor_id or None

    def load_current(self):
        """Stats for the last visitor used here; a new visitor on first contact."""
        visitor_id = self.current_visitor()
        if visitor_id is None:
            return self.reset()
        return self.load(visitor_id)

    def _set_current(self, visitor_id):
        with open(os.path.join(self.directory, _CURRENT_FILE), "w", encoding="utf-8") as fh:
            fh.write(visitor_id)


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def _well_formed(data):
    """Every counter present is an int and the seen set is a list of ints."""
    if not isinstance(data, dict):
        return False
    for key, default in default_stats("_").items():
        if key not in data:
            continue
        value = data[key]
        if key == "interactedCharacters":
            if not isinstance(value, list) or not all(_is_int(v) for v in value):
                return False
        elif key == "sessionId":
            continue
        elif _is_int(default) and not _is_int(value):
            return False
    return True
