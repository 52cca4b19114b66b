"""Asset materializer — downloads a finished task's tracks and covers to disk.

Layout::

    DOWNLOAD_DIR/<task_id>/1_My Song.mp3
    DOWNLOAD_DIR/<task_id>/1_My Song_source.mp3
    DOWNLOAD_DIR/<task_id>/1_My Song_cover.jpeg

Files that already exist (non-empty) are not fetched again, so running
materialization twice for the same task is safe. A failed asset is logged
and skipped; it never aborts the rest of the batch.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import httpx

from tracksync.models.task import AssetDescriptor, AssetKind, LocalFile

logger = logging.getLogger(__name__)

# Alternate field names seen across record-info payload versions
_URL_FIELDS: dict[AssetKind, tuple[str, ...]] = {
    AssetKind.AUDIO: ("audioUrl", "audio_url", "streamAudioUrl", "stream_audio_url"),
    AssetKind.AUDIO_SOURCE: ("sourceAudioUrl", "source_audio_url"),
    AssetKind.COVER: ("imageUrl", "image_url"),
    AssetKind.COVER_SOURCE: ("sourceImageUrl", "source_image_url"),
}

_FILENAME_SUFFIX: dict[AssetKind, str] = {
    AssetKind.AUDIO: "",
    AssetKind.AUDIO_SOURCE: "_source",
    AssetKind.COVER: "_cover",
    AssetKind.COVER_SOURCE: "_cover_source",
}

_UNSAFE_TITLE_CHARS = re.compile(r'[/\\?%*:|"<>]')
_UNSAFE_DIR_CHARS = re.compile(r"[^A-Za-z0-9._-]")
MAX_TITLE_LENGTH = 100
_CHUNK_SIZE = 64 * 1024


def _first_url(item: Mapping[str, Any], fields: Sequence[str]) -> str | None:
    for name in fields:
        value = item.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def sanitize_title(title: Any, ordinal: int) -> str:
    """Filesystem-safe track title, capped at MAX_TITLE_LENGTH."""
    text = str(title) if title not in (None, "") else f"track_{ordinal}"
    return _UNSAFE_TITLE_CHARS.sub("-", text)[:MAX_TITLE_LENGTH]


def resolve_assets(tracks: Sequence[Any]) -> list[AssetDescriptor]:
    """Expand upstream track records into per-file descriptors.

    A track yields up to four descriptors; the source cover is only used
    when the track has no regular cover.
    """
    descriptors: list[AssetDescriptor] = []
    for index, item in enumerate(tracks):
        ordinal = index + 1
        if not isinstance(item, Mapping):
            item = {}
        title = sanitize_title(item.get("title"), ordinal)

        urls = {kind: _first_url(item, fields) for kind, fields in _URL_FIELDS.items()}
        if urls[AssetKind.COVER]:
            urls[AssetKind.COVER_SOURCE] = None

        for kind in AssetKind:
            url = urls[kind]
            if url:
                descriptors.append(
                    AssetDescriptor(kind=kind, source_url=url, ordinal=ordinal, title=title)
                )
    return descriptors


def build_filename(asset: AssetDescriptor) -> str:
    """`{ordinal}_{title}{suffix}{ext}`, extension taken from the URL path."""
    ext = os.path.splitext(urlparse(asset.source_url).path)[1]
    if not ext:
        ext = ".png" if asset.kind.is_image else ".mp3"
    return f"{asset.ordinal}_{asset.title}{_FILENAME_SUFFIX[asset.kind]}{ext}"


class AssetMaterializer:
    """Downloads task assets into one directory per task id."""

    def __init__(
        self,
        root: str | Path,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
    ) -> None:
        self.root = Path(root).resolve()
        self._client = http_client
        self._own_client = http_client is None
        self._timeout = timeout

    def _get_http_client(self) -> httpx.AsyncClient:
        """Return the injected client, creating a private one on first use."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
        return self._client

    def task_dir(self, task_id: str) -> Path:
        safe = _UNSAFE_DIR_CHARS.sub("_", task_id).strip(".") or "_"
        return self.root / safe

    async def materialize(self, task_id: str, tracks: Sequence[Any]) -> list[LocalFile]:
        """Download every resolvable asset of a task; return the saved files."""
        if not tracks:
            return []
        assets = resolve_assets(tracks)
        if not assets:
            logger.info("[materialize] %s: no downloadable URLs in %d track(s)", task_id, len(tracks))
            return []

        task_dir = self.task_dir(task_id)
        task_dir.mkdir(parents=True, exist_ok=True)

        saved: list[LocalFile] = []
        for asset in assets:
            filename = build_filename(asset)
            dest = task_dir / filename
            try:
                await self.download(asset.source_url, dest)
            except Exception as e:
                logger.warning(
                    "[materialize] %s: %s #%d failed (%s): %s",
                    task_id, asset.kind.value, asset.ordinal, asset.source_url, e,
                )
                continue
            saved.append(LocalFile(kind=asset.kind.value, path=str(dest), name=filename))

        logger.info("[materialize] %s: %d/%d asset(s) saved to %s", task_id, len(saved), len(assets), task_dir)
        return saved

    async def download(self, url: str, dest: str | Path) -> Path:
        """Stream `url` to `dest` unless a non-empty file is already there."""
        dest = Path(dest)
        if dest.is_file() and dest.stat().st_size > 0:
            logger.debug("Already downloaded: %s", dest)
            return dest

        dest.parent.mkdir(parents=True, exist_ok=True)
        part = dest.with_name(dest.name + ".part")
        client = self._get_http_client()
        try:
            async with client.stream("GET", url, timeout=self._timeout) as response:
                response.raise_for_status()
                with open(part, "wb") as f:
                    async for chunk in response.aiter_bytes(_CHUNK_SIZE):
                        f.write(chunk)
            os.replace(part, dest)
        finally:
            if part.exists():
                part.unlink()
        return dest

    async def aclose(self) -> None:
        if self._own_client and self._client is not None:
            await self._client.aclose()
