from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from yumrepo.core.dependencies import get_repository
from yumrepo.domain.entities import Repository
from yumrepo.domain.models import Package
from yumrepo.services.synchronizer import SyncReport

logger = logging.getLogger(__name__)
router = APIRouter()


class RepositoryInfo(BaseModel):
    name: str
    url: str
    backends: List[str]
    active_backend: Optional[str] = None


class CandidateInfo(BaseModel):
    name: str
    status: str
    updated: bool = False
    error: Optional[str] = None


class SyncResult(BaseModel):
    remote: bool = Field(description="Whether the remote repomd.xml was consulted.")
    active_backend: Optional[str] = None
    candidates: List[CandidateInfo] = Field(default_factory=list)


def _repository_info(repo: Repository) -> RepositoryInfo:
    return RepositoryInfo(
        name=repo.name,
        url=repo.url,
        backends=list(repo.backends),
        active_backend=repo.backend_name,
    )


def _sync_result(repo: Repository, report: SyncReport) -> SyncResult:
    return SyncResult(
        remote=report.remote,
        active_backend=repo.backend_name,
        candidates=[
            CandidateInfo(
                name=o.name,
                status=o.status.value,
                updated=o.updated,
                error=str(o.error) if o.error is not None else None,
            )
            for o in report.outcomes
        ],
    )


@router.get("/repository")
def get_repository_info(repo: Repository = Depends(get_repository)) -> RepositoryInfo:
    return _repository_info(repo)


@router.post("/repository/sync")
def sync_repository(
    local_only: bool = Query(False, description="Use the cached metadata only, no network access."),
    repo: Repository = Depends(get_repository),
) -> SyncResult:
    """
    Re-run backend selection. Fails with 503 if no backend could be set up.
    """
    report = repo.setup_backend(check_for_updates=not local_only)
    return _sync_result(repo, report)


@router.get("/packages")
def list_packages(repo: Repository = Depends(get_repository)) -> List[Package]:
    return repo.get_packages()


@router.get("/packages/{name}")
def get_package(
    name: str,
    version: str = Query("", description="Exact version; empty matches any."),
    release: str = Query("", description="Exact release; empty matches any."),
    repo: Repository = Depends(get_repository),
) -> Package:
    """
    Latest package called `name`.
    """
    return repo.find_latest_matching_name(name, version, release)


@router.get("/provides/{requirement:path}")
def get_provider(requirement: str, repo: Repository = Depends(get_repository)) -> Package:
    """
    Latest package providing the capability `requirement` (e.g. `libc.so.6()(64bit)`).
    """
    return repo.find_latest_matching_require(requirement)
