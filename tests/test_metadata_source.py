from pathlib import Path

import httpx
import pytest

from yumrepo.data.metadata_source import fetch_remote_metadata, read_local_metadata, write_local_metadata
from yumrepo.exceptions import CacheIOError, FetchError

from helpers import REPOMD_URL, FakeServer


def test_missing_local_file_reads_as_empty(tmp_path: Path) -> None:
    assert read_local_metadata(tmp_path / "repomd.xml") == b""


def test_empty_local_file_reads_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "repomd.xml"
    path.write_bytes(b"")

    assert read_local_metadata(path) == b""


def test_unreadable_local_file_is_io_error(tmp_path: Path) -> None:
    path = tmp_path / "repomd.xml"
    path.mkdir()

    with pytest.raises(CacheIOError):
        read_local_metadata(path)


def test_write_local_metadata_replaces_previous_copy(tmp_path: Path) -> None:
    path = tmp_path / "repomd.xml"
    path.write_bytes(b"<repomd>old</repomd>")

    write_local_metadata(path, b"<repomd>new</repomd>")

    assert path.read_bytes() == b"<repomd>new</repomd>"
    assert not (tmp_path / "repomd.xml.tmp").exists()


def test_write_local_metadata_failure_is_io_error(tmp_path: Path) -> None:
    with pytest.raises(CacheIOError):
        write_local_metadata(tmp_path / "missing-dir" / "repomd.xml", b"<repomd/>")


def test_fetch_remote_metadata_returns_body() -> None:
    server = FakeServer({REPOMD_URL: b"<repomd/>"})

    assert fetch_remote_metadata(server.client(), REPOMD_URL) == b"<repomd/>"
    assert server.requests == [REPOMD_URL]


@pytest.mark.parametrize("response", [404, 503, httpx.ReadTimeout("timed out")])
def test_fetch_remote_metadata_failures(response) -> None:
    server = FakeServer({REPOMD_URL: response})

    with pytest.raises(FetchError):
        fetch_remote_metadata(server.client(), REPOMD_URL)
