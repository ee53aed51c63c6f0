"""
Select, update and load the backend of a repository.

Candidates are tried one at a time in the repository's configured order. Each
evaluation ends in a CandidateOutcome; the first SELECTED outcome becomes the
repository's active backend and the remaining candidates are never touched.

Only two kinds of errors leave this module:
- errors while retrieving or parsing repomd.xml, before any candidate is tried
- NoValidBackendError once every candidate was skipped
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional

from yumrepo.data.repomd import parse_repomd
from yumrepo.domain.models import RepoMD
from yumrepo.exceptions import (
    CacheIOError,
    DownloadError,
    LoadError,
    NoSuchBackendError,
    NoValidBackendError,
    YumError,
)
from yumrepo.storage.backend import Backend
from yumrepo.storage.registry import BackendRegistry

if TYPE_CHECKING:
    from yumrepo.domain.entities import Repository

logger = logging.getLogger(__name__)


class CandidateStatus(str, Enum):
    SELECTED = "selected"
    NO_SUCH_BACKEND = "no_such_backend"
    INSTANTIATION_FAILED = "instantiation_failed"
    MISSING_DATA_TYPE = "missing_data_type"
    DOWNLOAD_FAILED = "download_failed"
    PERSIST_FAILED = "persist_failed"
    LOAD_FAILED = "load_failed"


@dataclass
class CandidateOutcome:
    name: str
    status: CandidateStatus
    backend: Optional[Backend] = None
    updated: bool = False
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status is CandidateStatus.SELECTED


@dataclass
class SyncReport:
    """What happened to each candidate that was tried, in order."""

    repo_name: str
    remote: bool
    outcomes: List[CandidateOutcome] = field(default_factory=list)

    @property
    def selected(self) -> Optional[CandidateOutcome]:
        for outcome in self.outcomes:
            if outcome.ok:
                return outcome
        return None


def needs_update(backend: Backend, remote: RepoMD, local: Optional[RepoMD]) -> bool:
    """
    Whether the backend database must be downloaded again.

    A missing local database always forces a download. Otherwise only a remote
    record strictly newer than the cached one does; a data type that is absent
    from the cached repomd.xml does not force a download by itself.
    """
    if not backend.has_db():
        return True
    return local is not None and remote.is_newer_than(local)


class BackendSynchronizer:
    def __init__(self, registry: BackendRegistry):
        self.registry = registry

    # ========================================================================
    # Entry points
    # ========================================================================

    def sync_from_remote(self, repo: "Repository") -> SyncReport:
        """
        Pick a backend, refreshing its database from the remote repository
        when the remote repomd.xml is newer than the cached one.

        Raises:
            FetchError, CacheIOError, RepoMDParseError: metadata retrieval failed.
            NoValidBackendError: no candidate could be set up.
        """
        logger.info(f"Setting up backend for [{repo.name}] from remote {repo.repomd_url}")
        repo.backend = None

        remote_data = repo.remote_metadata()
        remote_md = parse_repomd(remote_data)
        local_md = parse_repomd(repo.local_metadata())

        report = SyncReport(repo_name=repo.name, remote=True)
        for bname in repo.backends:
            outcome = self._evaluate_remote(repo, bname, remote_data, remote_md, local_md)
            report.outcomes.append(outcome)
            if outcome.ok:
                break
        return self._commit(repo, report)

    def sync_from_local(self, repo: "Repository") -> SyncReport:
        """
        Pick a backend using only the cached repomd.xml and databases.
        Never touches the network.

        Raises:
            CacheIOError, RepoMDParseError: the cached metadata is unusable.
            NoValidBackendError: no candidate could be set up.
        """
        logger.info(f"Setting up backend for [{repo.name}] from local cache {repo.cache_dir}")
        repo.backend = None

        local_md = parse_repomd(repo.local_metadata())

        report = SyncReport(repo_name=repo.name, remote=False)
        for bname in repo.backends:
            outcome = self._evaluate_local(repo, bname, local_md)
            report.outcomes.append(outcome)
            if outcome.ok:
                break
        return self._commit(repo, report)

    # ========================================================================
    # Candidate evaluation
    # ========================================================================

    def _instantiate(self, repo: "Repository", bname: str) -> CandidateOutcome | Backend:
        logger.info(f"Checking availability of backend [{bname}]")
        try:
            return self.registry.create(bname, repo)
        except NoSuchBackendError as e:
            logger.warning(f"Skipping backend [{bname}]: {e}")
            return CandidateOutcome(bname, CandidateStatus.NO_SUCH_BACKEND, error=e)
        except (YumError, OSError) as e:
            logger.warning(f"Skipping backend [{bname}]: could not create it: {e}")
            return CandidateOutcome(bname, CandidateStatus.INSTANTIATION_FAILED, error=e)

    def _evaluate_remote(
        self,
        repo: "Repository",
        bname: str,
        remote_data: bytes,
        remote_md: Dict[str, RepoMD],
        local_md: Dict[str, RepoMD],
    ) -> CandidateOutcome:
        backend = self._instantiate(repo, bname)
        if isinstance(backend, CandidateOutcome):
            return backend

        remote_record = remote_md.get(backend.yum_data_type)
        if remote_record is None:
            logger.warning(f"Remote repository does not provide [{bname}] DB ({backend.yum_data_type})")
            return CandidateOutcome(bname, CandidateStatus.MISSING_DATA_TYPE, backend=backend)

        updated = False
        if needs_update(backend, remote_record, local_md.get(backend.yum_data_type)):
            url = repo.database_url(remote_record.location)
            logger.info(f"Updating the RPM database for [{bname}] from {url}")
            try:
                backend.get_latest_db(url)
            except DownloadError as e:
                logger.warning(f"Problem updating RPM database for backend [{bname}]: {e}")
                return CandidateOutcome(bname, CandidateStatus.DOWNLOAD_FAILED, backend=backend, error=e)

            try:
                repo.save_local_metadata(remote_data)
            except CacheIOError as e:
                logger.warning(f"Problem updating local repomd.xml file for backend [{bname}]: {e}")
                return CandidateOutcome(bname, CandidateStatus.PERSIST_FAILED, backend=backend, error=e)
            updated = True

        return self._load(bname, backend, updated)

    def _evaluate_local(
        self,
        repo: "Repository",
        bname: str,
        local_md: Dict[str, RepoMD],
    ) -> CandidateOutcome:
        backend = self._instantiate(repo, bname)
        if isinstance(backend, CandidateOutcome):
            return backend

        if backend.yum_data_type not in local_md:
            logger.warning(f"Local repository does not provide [{bname}] DB ({backend.yum_data_type})")
            return CandidateOutcome(bname, CandidateStatus.MISSING_DATA_TYPE, backend=backend)

        return self._load(bname, backend, updated=False)

    def _load(self, bname: str, backend: Backend, updated: bool) -> CandidateOutcome:
        try:
            backend.load_db()
        except LoadError as e:
            logger.warning(f"Problem loading data for backend [{bname}]: {e}")
            return CandidateOutcome(bname, CandidateStatus.LOAD_FAILED, backend=backend, updated=updated, error=e)
        return CandidateOutcome(bname, CandidateStatus.SELECTED, backend=backend, updated=updated)

    def _commit(self, repo: "Repository", report: SyncReport) -> SyncReport:
        selected = report.selected
        if selected is None:
            repo.backend = None
            logger.error(f"No valid backend found for repository [{repo.name}]")
            raise NoValidBackendError(repo.name)

        repo.backend = selected.backend
        logger.info(
            f"Repository [{repo.name}] - chosen backend [{selected.name}] "
            f"({type(selected.backend).__name__})"
        )
        return report
