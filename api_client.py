"""
api_client.py – the REST routes this client consumes.

Every failure leaves here as a SyncError subclass:

    404                    → NotFound
    400 / 422              → ValidationError
    anything else / I/O    → TransientError

The message is the API's `{"error": ...}` text when it sent one,
otherwise the per-action default passed by the caller.
"""

from __future__ import annotations

import logging
import mimetypes
import os
from typing import Iterable, List, Tuple, Union

import httpx

import config
from errors import NotFound, TransientError, ValidationError
from models import TV

log = logging.getLogger(__name__)

# (filename, raw bytes) or a path on disk
Upload = Union[str, Tuple[str, bytes]]


def _error_text(resp: httpx.Response) -> str | None:
    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return None


class TVApiClient:
    def __init__(self, base_url: str | None = None, *,
                 timeout: float | None = None,
                 transport: httpx.BaseTransport | None = None):
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self.client = httpx.Client(
            base_url=self.base_url,
            headers={"Accept": "application/json"},
            timeout=timeout if timeout is not None else config.HTTP_TIMEOUT,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    # ── plumbing ───────────────────────────────────────────────────────────
    def _request(self, method: str, url: str, default_error: str, **kw) -> httpx.Response:
        try:
            resp = self.client.request(method, url, **kw)
        except httpx.HTTPError as e:
            log.warning(f"{method} {url} failed: {e}")
            raise TransientError(default_error) from e

        if resp.is_success:
            return resp

        text = _error_text(resp) or default_error
        log.warning(f"{method} {url} → {resp.status_code} ({text})")
        if resp.status_code == 404:
            raise NotFound(text, resp.status_code)
        if resp.status_code in (400, 422):
            raise ValidationError(text, resp.status_code)
        raise TransientError(text, resp.status_code)

    @staticmethod
    def _tv(resp: httpx.Response, default_error: str) -> TV:
        try:
            return TV.from_dict(resp.json())
        except ValueError as e:
            raise TransientError(default_error) from e

    # ── collection ─────────────────────────────────────────────────────────
    def list_tvs(self) -> List[TV]:
        err = "Failed to load TV list"
        resp = self._request("GET", "/api/tvs", err)
        try:
            data = resp.json()
        except ValueError as e:
            raise TransientError(err) from e
        if not isinstance(data, list):
            raise TransientError(err)
        return [TV.from_dict(d) for d in data]

    def create_tv(self, name: str) -> TV:
        err = "Failed to add TV"
        return self._tv(self._request("POST", "/api/tvs", err, json={"name": name}), err)

    # ── single TV ──────────────────────────────────────────────────────────
    def get_tv(self, tv_id: int) -> TV:
        err = "Failed to load TV data"
        resp = self._request("GET", f"/api/tvs/{tv_id}", err)
        return self._tv(resp, err)

    def upload_images(self, tv_id: int, uploads: Iterable[Upload]) -> TV:
        err = "Failed to upload images"
        files = []
        for item in uploads:
            if isinstance(item, str):
                with open(item, "rb") as f:
                    name, data = os.path.basename(item), f.read()
            else:
                name, data = item
            ctype = mimetypes.guess_type(name)[0] or "application/octet-stream"
            files.append(("image", (name, data, ctype)))
        resp = self._request("POST", f"/api/tvs/{tv_id}/upload", err, files=files)
        return self._tv(resp, err)

    def set_youtube_link(self, tv_id: int, link: str) -> TV:
        err = "Failed to update YouTube link"
        resp = self._request("POST", f"/api/tvs/{tv_id}/youtube", err,
                             json={"youtubeLink": link})
        return self._tv(resp, err)

    def clear_images(self, tv_id: int) -> TV:
        err = "Failed to clear images"
        return self._tv(self._request("DELETE", f"/api/tvs/{tv_id}/images", err), err)

    def delete_tv(self, tv_id: int) -> None:
        self._request("DELETE", f"/api/tvs/{tv_id}", "Failed to delete TV")

    # ── static images ──────────────────────────────────────────────────────
    def fetch_bytes(self, url: str) -> bytes:
        resp = self._request("GET", url, "Failed to load image")
        return resp.content
