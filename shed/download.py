"""
Dataset download
================

Fetches the compressed storm database over HTTP. The file is left
compressed; pandas reads .bz2/.gz directly.
"""

from __future__ import annotations
import logging
import os
from pathlib import Path

import requests

from .errors import ShedError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1 << 16


def download_dataset(url: str, dest: str, timeout: int = 120, force: bool = False) -> Path:
    """Download `url` to `dest` unless it is already there.

    The body is streamed to `<dest>.part` and renamed once complete, so an
    interrupted download never leaves a truncated file at `dest`.
    """
    dest_path = Path(dest)
    if dest_path.exists() and not force:
        logger.info("Using cached dataset %s", dest_path)
        return dest_path

    dest_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = dest_path.with_name(dest_path.name + ".part")

    logger.info("Downloading %s", url)
    done = False
    try:
        with requests.get(url, timeout=timeout, stream=True) as response:
            response.raise_for_status()
            # content-length counts encoded bytes when the server compresses the body
            encoded = bool(response.headers.get("content-encoding"))
            total_size = 0 if encoded else int(response.headers.get("content-length", 0))
            downloaded = 0
            with open(tmp_path, "wb") as f:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
                        downloaded += len(chunk)
        if total_size and downloaded != total_size:
            raise ShedError(f"Incomplete download for {url}: got {downloaded} of {total_size} bytes")
        os.replace(tmp_path, dest_path)
        done = True
    except requests.RequestException as e:
        raise ShedError(f"Download failed for {url}: {e}") from e
    finally:
        if not done and tmp_path.exists():
            tmp_path.unlink()

    logger.info("Saved %s (%.1f MB)", dest_path, downloaded / (1024 * 1024))
    return dest_path
