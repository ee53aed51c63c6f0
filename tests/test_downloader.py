import bz2
import gzip
import logging
import lzma
from pathlib import Path

import pytest

from yumrepo.exceptions import DownloadError
from yumrepo.services.downloader import download_file

from helpers import REPO_URL, FakeServer

PAYLOAD = b"package database contents\n" * 1000


@pytest.mark.parametrize(
    "suffix, encode",
    [
        ("", lambda b: b),
        (".gz", gzip.compress),
        (".bz2", bz2.compress),
        (".xz", lzma.compress),
    ],
)
def test_download_decompresses_by_suffix(tmp_path: Path, suffix, encode) -> None:
    url = f"{REPO_URL}/repodata/primary.sqlite{suffix}"
    dest = tmp_path / "primary.sqlite"

    result = download_file(FakeServer({url: encode(PAYLOAD)}).client(), url, dest)

    assert result == dest
    assert dest.read_bytes() == PAYLOAD


def test_truncated_archive_keeps_previous_file(tmp_path: Path) -> None:
    url = f"{REPO_URL}/repodata/primary.sqlite.bz2"
    dest = tmp_path / "primary.sqlite"
    dest.write_bytes(b"previous")

    with pytest.raises(DownloadError):
        download_file(FakeServer({url: bz2.compress(PAYLOAD)[:-10]}).client(), url, dest)

    assert dest.read_bytes() == b"previous"
    assert not (tmp_path / "primary.sqlite.tmp").exists()


def test_http_error_keeps_previous_file(tmp_path: Path) -> None:
    url = f"{REPO_URL}/repodata/primary.sqlite.bz2"
    dest = tmp_path / "primary.sqlite"
    dest.write_bytes(b"previous")

    with pytest.raises(DownloadError):
        download_file(FakeServer({url: 404}).client(), url, dest)

    assert dest.read_bytes() == b"previous"


def test_validation_failure_keeps_previous_file(tmp_path: Path) -> None:
    url = f"{REPO_URL}/repodata/primary.xml"
    dest = tmp_path / "primary.xml"
    dest.write_bytes(b"previous")

    def reject(path: Path) -> None:
        assert path.read_bytes() == PAYLOAD
        raise DownloadError("not what we expected")

    with pytest.raises(DownloadError, match="not what we expected"):
        download_file(FakeServer({url: PAYLOAD}).client(), url, dest, validate=reject)

    assert dest.read_bytes() == b"previous"
    assert not (tmp_path / "primary.xml.tmp").exists()


def test_invalid_url_is_download_error(tmp_path: Path) -> None:
    dest = tmp_path / "primary.sqlite"
    dest.write_bytes(b"previous")

    with pytest.raises(DownloadError):
        download_file(FakeServer().client(), f"{REPO_URL}/repodata/a\nb.sqlite", dest)

    assert dest.read_bytes() == b"previous"


def test_logged_size_is_decompressed_size(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    url = f"{REPO_URL}/repodata/primary.sqlite.bz2"
    compressed = bz2.compress(PAYLOAD)

    with caplog.at_level(logging.INFO, logger="yumrepo.services.downloader"):
        download_file(FakeServer({url: compressed}).client(), url, tmp_path / "primary.sqlite")

    assert f"Stored {len(PAYLOAD)} bytes ({len(compressed)} received)" in caplog.text
