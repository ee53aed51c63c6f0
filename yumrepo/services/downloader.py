"""
Download repository database files into the local cache.
"""
from __future__ import annotations

import bz2
import logging
import lzma
import os
import zlib
from pathlib import Path
from typing import Callable, Optional

import httpx

from yumrepo.exceptions import DownloadError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class _Passthrough:
    eof = True

    def decompress(self, data: bytes) -> bytes:
        return data


def _decompressor_for(url: str):
    path = httpx.URL(url).path
    if path.endswith(".bz2"):
        return bz2.BZ2Decompressor()
    if path.endswith(".gz"):
        return zlib.decompressobj(16 + zlib.MAX_WBITS)
    if path.endswith(".xz"):
        return lzma.LZMADecompressor()
    return _Passthrough()


def download_file(
    client: httpx.Client,
    url: str,
    dest: Path,
    validate: Optional[Callable[[Path], None]] = None,
) -> Path:
    """
    Download `url` to `dest`, decompressing .bz2/.gz/.xz payloads on the fly.

    The data is written to `<dest>.tmp` first and only moved over `dest`
    once the whole body was received and `validate` (if given) accepted the
    staged file. On failure the staged file is removed and `dest` is left as
    it was.

    Returns:
        `dest`

    Raises:
        DownloadError
    """
    tmp_path = dest.with_name(f"{dest.name}.tmp")

    logger.info(f"Downloading {url} to {dest}")
    try:
        tmp_path.unlink(missing_ok=True)
        decompressor = _decompressor_for(url)
        downloaded = 0
        stored = 0
        with client.stream("GET", url) as response:
            response.raise_for_status()
            total_size = int(response.headers.get("content-length", 0))

            with tmp_path.open("wb") as f:
                for chunk in response.iter_bytes(CHUNK_SIZE):
                    data = decompressor.decompress(chunk)
                    f.write(data)
                    stored += len(data)
                    downloaded += len(chunk)
                    if total_size > 0:
                        logger.debug(f"{dest.name}: {downloaded * 100 / total_size:.1f}%")

        if not decompressor.eof:
            raise DownloadError(f"truncated compressed stream from {url}")

        if validate is not None:
            validate(tmp_path)

        os.replace(tmp_path, dest)
    except DownloadError:
        tmp_path.unlink(missing_ok=True)
        raise
    except (
        httpx.HTTPError,
        httpx.InvalidURL,
        httpx.StreamError,
        OSError,
        EOFError,
        ValueError,
        lzma.LZMAError,
        zlib.error,
    ) as e:
        tmp_path.unlink(missing_ok=True)
        raise DownloadError(f"failed to download {url}: {e}") from e

    logger.info(f"Stored {stored} bytes ({downloaded} received) from {url} at {dest}")
    return dest
