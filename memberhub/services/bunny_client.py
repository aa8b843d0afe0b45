from __future__ import annotations

"""
Bunny.net Stream API client (async, httpx)
==========================================

Thin wrapper over `https://video.bunnycdn.com/library/{libraryId}/videos`
authenticated with the `AccessKey` header.

- Missing API key or library id → `ConfigurationError` (checked per call so
  the app boots without Bunny credentials in dev).
- Transport failures and non-2xx answers → `BunnyAPIError` (HTTP 502 when
  surfaced through FastAPI).
- `transport=` lets tests plug in `httpx.MockTransport`.
"""

import logging
from typing import Any, AsyncIterator, Dict, Optional, Tuple, Union

import httpx

from memberhub.core.config import settings
from memberhub.core.exceptions import BunnyAPIError, ConfigurationError
from memberhub.schemas.media import BunnyVideo, BunnyVideoPage

logger = logging.getLogger(__name__)

UploadBody = Union[bytes, AsyncIterator[bytes]]


class BunnyStreamClient:
    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        library_id: Optional[str] = None,
        api_base_url: Optional[str] = None,
        embed_base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        upload_timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._library_id = library_id
        self._api_base_url = api_base_url
        self._embed_base_url = embed_base_url
        self._timeout = timeout
        self._upload_timeout = upload_timeout
        self._transport = transport

    # ── configuration ──────────────────────────────────────────────────────
    def _credentials(self) -> Tuple[str, str]:
        api_key = self._api_key if self._api_key is not None else settings.bunny_api_key
        library_id = self._library_id if self._library_id is not None else (settings.BUNNY_LIBRARY_ID or "")
        if not api_key:
            raise ConfigurationError("Bunny API key is not configured", setting="BUNNY_API_KEY")
        if not library_id:
            raise ConfigurationError("Bunny library id is not configured", setting="BUNNY_LIBRARY_ID")
        return api_key, library_id

    @property
    def library_id(self) -> str:
        return self._credentials()[1]

    def embed_url(self, video_id: str) -> str:
        base = (self._embed_base_url or settings.BUNNY_EMBED_BASE_URL).rstrip("/")
        return f"{base}/{self.library_id}/{video_id}"

    # ── transport ──────────────────────────────────────────────────────────
    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        content: Optional[UploadBody] = None,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        api_key, library_id = self._credentials()
        base = (self._api_base_url or settings.BUNNY_API_BASE_URL).rstrip("/")
        url = f"{base}/{library_id}/videos{path}"
        headers = {"AccessKey": api_key, "Accept": "application/json"}
        if content is not None:
            headers["Content-Type"] = "application/octet-stream"

        try:
            async with httpx.AsyncClient(
                timeout=timeout or self._timeout or settings.BUNNY_HTTP_TIMEOUT_SECONDS,
                transport=self._transport,
            ) as client:
                response = await client.request(method, url, headers=headers, json=json, params=params, content=content)
        except httpx.RequestError as e:
            logger.error("Bunny %s %s failed: %s", method, path or "/", e)
            raise BunnyAPIError("Video CDN is unreachable") from e

        if response.is_error:
            logger.warning("Bunny %s %s -> %s: %s", method, path or "/", response.status_code, response.text[:300])
            raise BunnyAPIError(
                f"Video CDN rejected {method} request ({response.status_code})",
                upstream_status=response.status_code,
            )
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise BunnyAPIError("Video CDN returned invalid JSON", upstream_status=response.status_code) from e
        if not isinstance(data, dict):
            raise BunnyAPIError("Video CDN returned an unexpected payload", upstream_status=response.status_code)
        return data

    # ── API ────────────────────────────────────────────────────────────────
    async def create_video(self, title: str) -> BunnyVideo:
        """Create an empty video object; the returned `guid` is the upload target."""
        response = await self._request("POST", "", json={"title": title})
        video = BunnyVideo.model_validate(self._json(response))
        logger.info("Created Bunny video %s", video.guid)
        return video

    async def update_video_title(self, video_id: str, title: str) -> None:
        await self._request("POST", f"/{video_id}", json={"title": title})

    async def get_video(self, video_id: str) -> BunnyVideo:
        response = await self._request("GET", f"/{video_id}")
        return BunnyVideo.model_validate(self._json(response))

    async def list_videos(self, page: int = 1, per_page: int = 100) -> BunnyVideoPage:
        response = await self._request("GET", "", params={"page": page, "itemsPerPage": per_page})
        data = self._json(response)
        items = [BunnyVideo.model_validate(item) for item in (data.get("items") or [])]
        return BunnyVideoPage(
            items=items,
            total_items=int(data.get("totalItems") or len(items)),
            page=int(data.get("currentPage") or page),
            per_page=int(data.get("itemsPerPage") or per_page),
        )

    async def delete_video(self, video_id: str) -> None:
        await self._request("DELETE", f"/{video_id}")
        logger.info("Deleted Bunny video %s", video_id)

    async def upload_video(self, video_id: str, data: UploadBody) -> None:
        """PUT the raw file bytes for an existing video."""
        await self._request(
            "PUT",
            f"/{video_id}",
            content=data,
            timeout=self._upload_timeout or settings.BUNNY_UPLOAD_TIMEOUT_SECONDS,
        )
        logger.info("Uploaded bytes for Bunny video %s", video_id)


bunny_client = BunnyStreamClient()


def get_bunny_client() -> BunnyStreamClient:
    """FastAPI dependency; tests override it with a MockTransport-backed client."""
    return bunny_client


__all__ = ["BunnyStreamClient", "bunny_client", "get_bunny_client"]
