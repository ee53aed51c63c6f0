from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, List

from yumrepo.domain.models import Package
from yumrepo.domain.version_utils import latest, matches_name, provides_capability
from yumrepo.exceptions import PackageNotFoundError

if TYPE_CHECKING:
    from yumrepo.domain.entities import Repository


class Backend(ABC):
    """
    Abstract base class for a package database backend.

    A backend is bound to one Repository and owns its database file(s) inside
    the repository's cache directory.
    """

    #: Registry name; informational only.
    name: str = ""

    def __init__(self, repo: "Repository"):
        self.repo = repo

    @property
    @abstractmethod
    def yum_data_type(self) -> str:
        """The `type` attribute of the repomd.xml entry this backend consumes."""
        pass

    @abstractmethod
    def has_db(self) -> bool:
        """Whether a local database is present. Must not have side effects."""
        pass

    @abstractmethod
    def get_latest_db(self, url: str) -> None:
        """
        Download the database from `url` and commit it locally.

        Must be safe to re-run, and must leave an existing database untouched
        if it fails.

        Raises:
            DownloadError
        """
        pass

    @abstractmethod
    def load_db(self) -> None:
        """
        Load the local database.

        Raises:
            LoadError: the database is missing, truncated or unparseable.
        """
        pass

    @abstractmethod
    def find_latest_matching_name(self, name: str, version: str = "", release: str = "") -> Package:
        """
        Latest package called `name`, optionally pinned to a version/release.

        Raises:
            PackageNotFoundError
        """
        pass

    @abstractmethod
    def find_latest_matching_require(self, requirement: str) -> Package:
        """
        Latest package providing `requirement`.

        Raises:
            PackageNotFoundError
        """
        pass

    @abstractmethod
    def get_packages(self) -> List[Package]:
        """All loaded packages; empty if nothing was loaded."""
        pass


class InMemoryBackend(Backend):
    """
    Backend that answers queries from a list of packages loaded by `load_db`.
    """

    def __init__(self, repo: "Repository"):
        super().__init__(repo)
        self.packages: List[Package] = []

    @property
    def db_path(self) -> Path:
        raise NotImplementedError

    def has_db(self) -> bool:
        return self.db_path.is_file()

    def find_latest_matching_name(self, name: str, version: str = "", release: str = "") -> Package:
        pkg = latest(p for p in self.packages if matches_name(p, name, version, release))
        if pkg is None:
            wanted = "-".join(part for part in (name, version, release) if part)
            raise PackageNotFoundError(f"no package matching [{wanted}]")
        return pkg

    def find_latest_matching_require(self, requirement: str) -> Package:
        pkg = latest(p for p in self.packages if provides_capability(p, requirement))
        if pkg is None:
            raise PackageNotFoundError(f"no package providing [{requirement}]")
        return pkg

    def get_packages(self) -> List[Package]:
        return list(self.packages)
