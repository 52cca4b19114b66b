"""Batch-download finished tracks by URL.

Run with:
    python scripts/download_tracks.py URL[=NAME] [URL[=NAME] ...] [--out DIR]

Files are fetched one after another (redirects followed). Existing non-empty
files are kept. The first failure aborts the run with exit code 1.
URLs carrying a query string are saved under their path basename;
`=NAME` is only read from URLs without one.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import httpx

from tracksync.services.materializer import AssetMaterializer
from tracksync.services.task_tracker import attachment_filename

logger = logging.getLogger("download_tracks")


def parse_target(target: str) -> tuple[str, str]:
    """Split `URL=NAME`; without a name, the URL basename is used."""
    url, sep, name = target.rpartition("=")
    # Any "=" after a "?" belongs to the query string
    if not sep or not name or "?" in url or "/" in name:
        url, name = target, ""
    return url, name or attachment_filename(url, default="track.mp3")


async def download_all(
    targets: list[tuple[str, str]],
    out_dir: Path,
    http_client: httpx.AsyncClient | None = None,
) -> list[Path]:
    materializer = AssetMaterializer(out_dir, http_client=http_client)
    saved: list[Path] = []
    try:
        for url, name in targets:
            print("Downloading", name)
            path = await materializer.download(url, out_dir / name)
            print("Saved to", path)
            saved.append(path)
    finally:
        await materializer.aclose()
    return saved


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("targets", nargs="+", metavar="URL[=NAME]")
    parser.add_argument("--out", default="downloads", help="output directory (default: downloads)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    targets = [parse_target(t) for t in args.targets]
    try:
        asyncio.run(download_all(targets, Path(args.out)))
    except Exception as e:
        logger.error("Download failed: %s", e)
        return 1
    print("All done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
