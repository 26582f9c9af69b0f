"""Crowd Pick – HTTP client for the voting API."""

import logging
from urllib.parse import quote

import requests

from config import API_URL, REQUEST_TIMEOUT_SECONDS
from errors import StorageUnavailable, ValidationError
from tag_filter import query_params

logger = logging.getLogger(__name__)


class ApiClient:
    """Session backend that talks to api_server over HTTP."""

    def __init__(self, base_url=API_URL, timeout=REQUEST_TIMEOUT_SECONDS):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = requests.Session()

    def _request(self, method, path, not_found_ok=False, **kwargs):
        try:
            resp = self.http.request(
                method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs
            )
        except requests.RequestException as exc:
            raise StorageUnavailable(f"{method} {path} failed: {exc}") from exc

        if resp.status_code == 404 and not_found_ok:
            return None
        if resp.status_code == 400:
            raise ValidationError(self._error_text(resp))
        if resp.status_code != 200:
            raise StorageUnavailable(
                f"{method} {path} returned {resp.status_code}: {self._error_text(resp)}"
            )
        return resp.json()

    @staticmethod
    def _error_text(resp):
        try:
            return resp.json().get("error", resp.text)
        except ValueError:
            return resp.text

    # ── Backend interface ────────────────────────────────────────────────
    def get_tags(self):
        return self._request("GET", "/api/tags")

    def random_character(self, included, excluded, seen):
        params = query_params(included, excluded)
        if seen:
            params["excludeIds"] = ",".join(str(i) for i in seen)
        return self._request(
            "GET", "/api/character/random", not_found_ok=True, params=params
        )

    def vote(self, character_id, visitor_id, vote):
        return self._request(
            "POST",
            f"/api/character/{character_id}/vote",
            json={"sessionId": visitor_id, "voteType": vote},
        )

    def skip(self, character_id, visitor_id):
        return self._request(
            "POST",
            f"/api/character/{character_id}/skip",
            json={"sessionId": visitor_id},
        )

    def results(self, character_id):
        return self._request(
            "GET", f"/api/character/{character_id}/results", not_found_ok=True
        )

    def interactions(self, visitor_id):
        return self._request(
            "GET", f"/api/user/{quote(visitor_id, safe='')}/interactions"
        )
