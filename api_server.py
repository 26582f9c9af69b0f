"""Crowd Pick – local HTTP server for the JSON voting API."""

import json
import logging
import re
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qs, unquote, urlsplit

import recorder
import selector
from errors import StorageUnavailable, ValidationError

logger = logging.getLogger(__name__)

_CHARACTER_ACTION = re.compile(r"^/api/character/([^/]+)/(vote|skip|results)$")
_USER_INTERACTIONS = re.compile(r"^/api/user/([^/]+)/interactions$")


class _ReusableHTTPServer(ThreadingHTTPServer):
    allow_reuse_address = True
    daemon_threads = True

    def __init__(self, address, handler, db):
        super().__init__(address, handler)
        self.db = db


# ── HTTP Handler ─────────────────────────────────────────────────────────────

class _Handler(BaseHTTPRequestHandler):
    """Routes /api/* requests to the selector and recorder."""

    def log_message(self, fmt, *args):
        logger.debug("%s – " + fmt, self.address_string(), *args)

    @property
    def db(self):
        return self.server.db

    def do_OPTIONS(self):
        self.send_response(204)
        self._cors_headers()
        self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.end_headers()

    def do_GET(self):
        url = urlsplit(self.path)
        if url.path == "/api/character/random":
            self._dispatch(self._handle_random, parse_qs(url.query))
            return
        if url.path == "/api/tags":
            self._dispatch(self._handle_tags)
            return
        match = _CHARACTER_ACTION.match(url.path)
        if match and match.group(2) == "results":
            self._dispatch(self._handle_results, unquote(match.group(1)))
            return
        match = _USER_INTERACTIONS.match(url.path)
        if match:
            self._dispatch(self._handle_interactions, unquote(match.group(1)))
            return
        self._json_response(404, {"error": "Not found"})

    def do_POST(self):
        match = _CHARACTER_ACTION.match(urlsplit(self.path).path)
        if match and match.group(2) == "vote":
            self._dispatch(self._handle_vote, unquote(match.group(1)))
        elif match and match.group(2) == "skip":
            self._dispatch(self._handle_skip, unquote(match.group(1)))
        else:
            self._json_response(404, {"error": "Not found"})

    # ── Routes ───────────────────────────────────────────────────────────
    def _handle_random(self, query):
        def first(key):
            return query.get(key, [""])[0]

        character = selector.select_random(
            self.db, first("tags"), first("exclude"), first("excludeIds")
        )
        if character is None:
            self._json_response(404, {"error": "No character found"})
        else:
            self._json_response(200, character)

    def _handle_vote(self, character_id):
        body = self._read_json()
        result = recorder.record_vote(
            self.db, character_id, body.get("sessionId"), body.get("voteType")
        )
        self._json_response(200, result)

    def _handle_skip(self, character_id):
        body = self._read_json()
        result = recorder.record_skip(self.db, character_id, body.get("sessionId"))
        self._json_response(200, result)

    def _handle_results(self, character_id):
        results = recorder.get_results(self.db, character_id)
        if results is None:
            self._json_response(404, {"error": "Character not found"})
        else:
            self._json_response(200, results)

    def _handle_tags(self):
        self._json_response(200, self.db.get_all_tags())

    def _handle_interactions(self, session_id):
        self._json_response(200, recorder.get_interactions(self.db, session_id))

    # ── Plumbing ─────────────────────────────────────────────────────────
    def _dispatch(self, handler, *args):
        try:
            handler(*args)
        except ValidationError as exc:
            self._json_response(400, {"error": str(exc)})
        except StorageUnavailable as exc:
            logger.error("Storage unavailable for %s %s: %s", self.command, self.path, exc)
            self._json_response(503, {"error": "Database error"})

    def _read_json(self):
        length = int(self.headers.get("Content-Length", 0) or 0)
        raw = self.rfile.read(length) if length else b""
        try:
            body = json.loads(raw or b"{}")
        except ValueError:
            raise ValidationError("Request body must be JSON") from None
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")
        return body

    def _cors_headers(self):
        self.send_header("Access-Control-Allow-Origin", "*")

    def _json_response(self, code, obj):
        payload = json.dumps(obj).encode()
        self.send_response(code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(payload)))
        self._cors_headers()
        self.end_headers()
        self.wfile.write(payload)


# ── Server lifecycle ─────────────────────────────────────────────────────────

def make_server(db, host, port):
    return _ReusableHTTPServer((host, port), _Handler, db)


def serve(db, host, port):
    """Run the API in the foreground until interrupted."""
    srv = make_server(db, host, port)
    logger.info("API server at http://%s:%s", host, srv.server_address[1])
    try:
        srv.serve_forever()
    finally:
        srv.server_close()


def start_api_server(db, host, port):
    """Start the API on a daemon thread and return the server (port 0 picks a free one)."""
    srv = make_server(db, host, port)
    logger.info("API server at http://%s:%s", host, srv.server_address[1])
    threading.Thread(target=srv.serve_forever, daemon=True).start()
    return srv
