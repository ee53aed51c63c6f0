"""
Retrieve repomd.xml from the remote repository or from the local cache.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

import httpx

from yumrepo.exceptions import CacheIOError, FetchError

logger = logging.getLogger(__name__)


def fetch_remote_metadata(client: httpx.Client, url: str) -> bytes:
    """
    Download the metadata document at `url` and return its body.

    Raises:
        FetchError: on any transport error or non-2xx response.
    """
    logger.debug(f"Fetching remote metadata from {url}")
    try:
        response = client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise FetchError(f"failed to fetch {url}: {e}") from e
    return response.content


def read_local_metadata(path: Path) -> bytes:
    """
    Return the content of the cached metadata document.

    A missing file is not an error: it means nothing was cached yet and yields
    empty bytes, exactly like an empty file.

    Raises:
        CacheIOError: the file exists but cannot be read.
    """
    if not path.exists():
        return b""
    try:
        return path.read_bytes()
    except OSError as e:
        raise CacheIOError(f"failed to read {path}: {e}") from e


def write_local_metadata(path: Path, data: bytes) -> None:
    """
    Replace the cached metadata document with `data`.

    The bytes go to a temporary file first which is then moved over the
    previous copy, so readers never see a truncated document.

    Raises:
        CacheIOError: the file cannot be written.
    """
    tmp_path = path.with_name(f"{path.name}.tmp")
    try:
        tmp_path.write_bytes(data)
        os.replace(tmp_path, path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise CacheIOError(f"failed to write {path}: {e}") from e
