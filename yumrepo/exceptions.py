"""Exception hierarchy for yumrepo.

Every error carries a recommended HTTP status code so the API layer can turn
it into a response without knowing where it came from.
"""
from __future__ import annotations


class YumError(Exception):
    """Base exception for all yumrepo errors."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class FetchError(YumError):
    """The remote repomd.xml could not be retrieved."""

    status_code = 502


class CacheIOError(YumError):
    """A file in the local cache directory could not be read or written."""

    status_code = 500


class RepoMDParseError(YumError):
    """A repomd.xml document is malformed."""

    status_code = 502


class NoSuchBackendError(YumError):
    """No backend factory is registered under the requested name."""

    status_code = 404

    def __init__(self, name: str) -> None:
        super().__init__(f"yum: no such backend [{name}]")
        self.name = name


class DownloadError(YumError):
    """A backend could not download or persist its database."""

    status_code = 502


class LoadError(YumError):
    """A backend could not load its local database."""

    status_code = 500


class NoValidBackendError(YumError):
    """No candidate backend could be set up for a repository."""

    status_code = 503

    def __init__(self, repo_name: str) -> None:
        super().__init__(f"No valid backend found for repository [{repo_name}]")
        self.repo_name = repo_name


class NoActiveBackendError(YumError):
    """A query was issued against a repository without an active backend."""

    status_code = 503

    def __init__(self, repo_name: str) -> None:
        super().__init__(f"repository [{repo_name}] has no active backend")
        self.repo_name = repo_name


class PackageNotFoundError(YumError):
    """No package matches a query."""

    status_code = 404
