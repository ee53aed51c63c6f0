from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Iterable, List, Optional, Union

import httpx

from yumrepo.data.metadata_source import (
    fetch_remote_metadata,
    read_local_metadata,
    write_local_metadata,
)
from yumrepo.domain.models import Package
from yumrepo.exceptions import CacheIOError, NoActiveBackendError
from yumrepo.services.synchronizer import BackendSynchronizer, SyncReport
from yumrepo.storage.backend import Backend
from yumrepo.storage.registry import BackendRegistry, default_registry

logger = logging.getLogger(__name__)

REPOMD_FILENAME = "repomd.xml"
DEFAULT_TIMEOUT = 60.0


class Repository:
    """
    A remote YUM repository, its local cache directory and the backend
    currently used to answer package queries.

    `backend` is only ever set by a synchronization run, and only to a backend
    that loaded successfully.
    """

    def __init__(
        self,
        name: str,
        url: str,
        cache_dir: Union[str, Path],
        backends: Iterable[str],
        client: Optional[httpx.Client] = None,
        registry: Optional[BackendRegistry] = None,
    ):
        self.name = name
        self.url = url.rstrip("/")
        self.repomd_url = f"{self.url}/repodata/{REPOMD_FILENAME}"
        self.cache_dir = Path(cache_dir)
        self.local_repomd_path = self.cache_dir / REPOMD_FILENAME
        self.backends = tuple(backends)
        self.backend: Optional[Backend] = None

        self.client = client or httpx.Client(follow_redirects=True, timeout=DEFAULT_TIMEOUT)
        self.registry = registry or default_registry()
        self.synchronizer = BackendSynchronizer(self.registry)
        # Serializes synchronization runs; they share staging files and `backend`.
        self._sync_lock = threading.Lock()

    def __repr__(self) -> str:
        return f"Repository(name={self.name!r}, url={self.url!r}, backend={self.backend_name!r})"

    @property
    def backend_name(self) -> Optional[str]:
        if self.backend is None:
            return None
        return self.backend.name or type(self.backend).__name__

    def close(self) -> None:
        self.client.close()

    # ========================================================================
    # Metadata
    # ========================================================================

    def remote_metadata(self) -> bytes:
        return fetch_remote_metadata(self.client, self.repomd_url)

    def local_metadata(self) -> bytes:
        return read_local_metadata(self.local_repomd_path)

    def save_local_metadata(self, data: bytes) -> None:
        write_local_metadata(self.local_repomd_path, data)

    def database_url(self, location: str) -> str:
        return f"{self.url}/{location}"

    # ========================================================================
    # Backend selection
    # ========================================================================

    def setup_backend_from_remote(self) -> SyncReport:
        with self._sync_lock:
            return self.synchronizer.sync_from_remote(self)

    def setup_backend_from_local(self) -> SyncReport:
        with self._sync_lock:
            return self.synchronizer.sync_from_local(self)

    def setup_backend(self, check_for_updates: bool = True) -> SyncReport:
        if check_for_updates:
            return self.setup_backend_from_remote()
        return self.setup_backend_from_local()

    # ========================================================================
    # Queries
    # ========================================================================

    def _active_backend(self) -> Backend:
        if self.backend is None:
            raise NoActiveBackendError(self.name)
        return self.backend

    def find_latest_matching_name(self, name: str, version: str = "", release: str = "") -> Package:
        """Latest package called `name`, optionally pinned to a version/release."""
        return self._active_backend().find_latest_matching_name(name, version, release)

    def find_latest_matching_require(self, requirement: str) -> Package:
        """Latest package providing `requirement`."""
        return self._active_backend().find_latest_matching_require(requirement)

    def get_packages(self) -> List[Package]:
        return self._active_backend().get_packages()


def create_repository(
    name: str,
    url: str,
    cache_dir: Union[str, Path],
    backends: Iterable[str],
    setup_backend: bool = True,
    check_for_updates: bool = True,
    client: Optional[httpx.Client] = None,
    registry: Optional[BackendRegistry] = None,
) -> Repository:
    """
    Create the cache directory and a Repository, then optionally select its
    backend (from the remote repository or from the local cache only).

    Raises:
        CacheIOError: the cache directory cannot be created.
        YumError: backend selection failed; see BackendSynchronizer.
    """
    cache_dir = Path(cache_dir)
    try:
        cache_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise CacheIOError(f"failed to create cache directory {cache_dir}: {e}") from e

    repo = Repository(name, url, cache_dir, backends, client=client, registry=registry)
    if setup_backend:
        try:
            repo.setup_backend(check_for_updates)
        except Exception:
            if client is None:
                repo.close()
            raise
    return repo
