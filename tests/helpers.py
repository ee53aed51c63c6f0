from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import httpx

from yumrepo.domain.entities import Repository
from yumrepo.domain.models import Package
from yumrepo.exceptions import DownloadError, LoadError
from yumrepo.storage.backend import InMemoryBackend
from yumrepo.storage.registry import BackendRegistry

REPO_URL = "http://repo.example.com/os/x86_64"
REPOMD_URL = f"{REPO_URL}/repodata/repomd.xml"


def make_repomd(entries: Dict[str, tuple]) -> bytes:
    """Build a repomd.xml document from {data_type: (timestamp, href)}."""
    data = "".join(
        f'  <data type="{dtype}">\n'
        f'    <checksum type="sha256">{dtype}-checksum</checksum>\n'
        f'    <location href="{href}"/>\n'
        f"    <timestamp>{ts}</timestamp>\n"
        f"  </data>\n"
        for dtype, (ts, href) in entries.items()
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<repomd xmlns="http://linux.duke.edu/metadata/repo">\n'
        "  <revision>1</revision>\n"
        f"{data}"
        "</repomd>\n"
    ).encode("utf-8")


class FakeServer:
    """httpx MockTransport serving canned responses and recording requests."""

    def __init__(self, routes: Optional[Dict[str, Union[bytes, int, Exception]]] = None):
        self.routes: Dict[str, Union[bytes, int, Exception]] = dict(routes or {})
        self.requests: List[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        value = self.routes.get(url, 404)
        if isinstance(value, Exception):
            raise value
        if isinstance(value, int):
            return httpx.Response(value)
        return httpx.Response(200, content=value)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


def offline_client() -> httpx.Client:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError(f"unexpected network access: {request.url}")

    return httpx.Client(transport=httpx.MockTransport(handler))


class FakeBackend(InMemoryBackend):
    """Scriptable backend recording every contract call into `events`."""

    def __init__(
        self,
        repo: Repository,
        name: str,
        data_type: str,
        events: List[tuple],
        db_present: bool = True,
        fail_download: bool = False,
        fail_load: bool = False,
        packages: Optional[List[Package]] = None,
    ):
        super().__init__(repo)
        self.name = name
        self._data_type = data_type
        self.events = events
        self.db_present = db_present
        self.fail_download = fail_download
        self.fail_load = fail_load
        self._available = list(packages or [])

    @property
    def yum_data_type(self) -> str:
        return self._data_type

    def has_db(self) -> bool:
        return self.db_present

    def get_latest_db(self, url: str) -> None:
        self.events.append(("download", self.name, url))
        if self.fail_download:
            raise DownloadError(f"cannot download {url}")
        self.db_present = True

    def load_db(self) -> None:
        self.events.append(("load", self.name))
        if self.fail_load:
            raise LoadError("corrupt database")
        self.packages = list(self._available)


def fake_factory(events: List[tuple], name: str, data_type: str, **kwargs) -> Callable[[Repository], FakeBackend]:
    def factory(repo: Repository) -> FakeBackend:
        events.append(("create", name))
        return FakeBackend(repo, name, data_type, events, **kwargs)

    return factory


def make_repo(
    cache_dir: Path,
    backends: List[str],
    registry: BackendRegistry,
    client: Optional[httpx.Client] = None,
) -> Repository:
    return Repository(
        "base",
        REPO_URL,
        cache_dir,
        backends,
        client=client or offline_client(),
        registry=registry,
    )
