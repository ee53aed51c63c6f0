from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Dict, List

from yumrepo.exceptions import NoSuchBackendError
from yumrepo.storage.backend import Backend

if TYPE_CHECKING:
    from yumrepo.domain.entities import Repository

logger = logging.getLogger(__name__)

BackendFactory = Callable[["Repository"], Backend]


class BackendRegistry:
    """
    Maps backend names to factories building a backend bound to a repository.

    Each name can be registered once.
    """

    def __init__(self) -> None:
        self._factories: Dict[str, BackendFactory] = {}

    def register(self, name: str, factory: BackendFactory) -> None:
        if name in self._factories:
            raise ValueError(f"backend [{name}] is already registered")
        self._factories[name] = factory
        logger.debug(f"Registered backend [{name}]")

    def create(self, name: str, repo: "Repository") -> Backend:
        """
        Build the backend registered under `name` for `repo`.

        Raises:
            NoSuchBackendError: nothing is registered under `name`.
        """
        factory = self._factories.get(name)
        if factory is None:
            raise NoSuchBackendError(name)
        return factory(repo)

    def names(self) -> List[str]:
        return list(self._factories)

    def __contains__(self, name: object) -> bool:
        return name in self._factories


def default_registry() -> BackendRegistry:
    """
    Registry holding the backends shipped with yumrepo.
    """
    from yumrepo.storage.sqlite_backend import SqliteBackend
    from yumrepo.storage.xml_backend import XmlBackend

    registry = BackendRegistry()
    registry.register("sqlite", SqliteBackend)
    registry.register("flat", XmlBackend)
    return registry
