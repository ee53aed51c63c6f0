from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List

from pydantic import BaseModel, ConfigDict, Field

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
NANOSECONDS_PER_SECOND = 1_000_000_000


class RepoMD(BaseModel):
    """
    One `<data>` entry of a repomd.xml document.

    The timestamp is kept as integer nanoseconds since the Unix epoch so that
    comparisons are exact; `datetime` only has microsecond resolution.
    """

    model_config = ConfigDict(frozen=True)

    checksum: str = Field(
        default="",
        description="Checksum of the referenced file, as published. Not verified.",
    )
    timestamp_ns: int = Field(
        default=0,
        description="Publication time in nanoseconds since the Unix epoch.",
    )
    location: str = Field(
        default="",
        description="Location of the file relative to the repository base URL.",
    )

    @property
    def seconds(self) -> int:
        return self.timestamp_ns // NANOSECONDS_PER_SECOND

    @property
    def nanoseconds(self) -> int:
        return self.timestamp_ns % NANOSECONDS_PER_SECOND

    @property
    def timestamp(self) -> datetime:
        """UTC datetime view of the timestamp (truncated to microseconds)."""
        return _EPOCH + timedelta(seconds=self.seconds, microseconds=self.nanoseconds // 1000)

    def is_newer_than(self, other: "RepoMD") -> bool:
        return self.timestamp_ns > other.timestamp_ns


class Package(BaseModel):
    """
    A single binary package as described by a repository database.
    """

    name: str
    epoch: int = 0
    version: str = ""
    release: str = ""
    arch: str = ""
    summary: str = ""
    location: str = Field(
        default="",
        description="Location of the RPM file relative to the repository base URL.",
    )
    provides: List[str] = Field(
        default_factory=list,
        description="Capability names this package provides.",
    )
    requires: List[str] = Field(
        default_factory=list,
        description="Capability names this package requires.",
    )

    @property
    def evr(self) -> str:
        evr = f"{self.version}-{self.release}" if self.release else self.version
        if self.epoch:
            evr = f"{self.epoch}:{evr}"
        return evr

    @property
    def nevra(self) -> str:
        nevra = f"{self.name}-{self.evr}"
        if self.arch:
            nevra = f"{nevra}.{self.arch}"
        return nevra


class RepositoryConfig(BaseModel):
    """
    Configuration describing the repository to synchronize.
    Persisted at: <DATA_DIR>/repository.json
    """

    name: str = Field(
        default="base",
        description="Display name of the repository, also used as its cache sub-directory.",
    )
    url: str = Field(
        default="http://mirror.centos.org/centos/7/os/x86_64",
        description="Base URL of the remote repository (without trailing /repodata).",
    )
    backends: List[str] = Field(
        default_factory=lambda: ["sqlite", "flat"],
        description="Candidate backends in priority order; the first one that works is used.",
    )
    setup_backend: bool = Field(
        default=True,
        description="Select and load a backend on startup.",
    )
    check_for_updates: bool = Field(
        default=True,
        description="Compare against the remote repomd.xml on startup instead of using the cache only.",
    )
    request_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Timeout applied to every HTTP request.",
    )
