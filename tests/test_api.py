from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from yumrepo.core.dependencies import get_repository
from yumrepo.domain.models import Package
from yumrepo.main import app
from yumrepo.storage.registry import BackendRegistry

from helpers import fake_factory, make_repo, make_repomd

PACKAGES = [
    Package(name="bash", version="4.2.46", release="34.el7", provides=["/bin/sh"]),
    Package(name="bash", version="4.2.46", release="35.el7", provides=["/bin/sh"]),
    Package(name="glibc", version="2.17", release="317.el7", provides=["libc.so.6()(64bit)"]),
]


@pytest.fixture
def repo(events, cache_dir: Path):
    (cache_dir / "repomd.xml").write_bytes(make_repomd({"primary": (1700000000, "p.xml.gz")}))
    registry = BackendRegistry()
    registry.register("flat", fake_factory(events, "flat", "primary", packages=PACKAGES))
    repo = make_repo(cache_dir, ["flat"], registry)
    app.dependency_overrides[get_repository] = lambda: repo
    yield repo
    app.dependency_overrides.clear()


@pytest.fixture
def client() -> TestClient:
    # Not used as a context manager: startup would sync the configured repository.
    return TestClient(app)


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_queries_without_backend_are_unavailable(repo, client: TestClient) -> None:
    response = client.get("/packages/bash")

    assert response.status_code == 503
    assert response.json()["error"] == "NoActiveBackendError"


def test_sync_then_query(repo, client: TestClient) -> None:
    response = client.post("/repository/sync", params={"local_only": "true"})

    assert response.status_code == 200
    body = response.json()
    assert body["remote"] is False
    assert body["active_backend"] == "flat"
    assert body["candidates"] == [{"name": "flat", "status": "selected", "updated": False, "error": None}]

    info = client.get("/repository").json()
    assert info["active_backend"] == "flat"
    assert info["backends"] == ["flat"]

    assert len(client.get("/packages").json()) == 3

    bash = client.get("/packages/bash").json()
    assert bash["release"] == "35.el7"
    pinned = client.get("/packages/bash", params={"release": "34.el7"}).json()
    assert pinned["release"] == "34.el7"

    provider = client.get("/provides/libc.so.6()(64bit)").json()
    assert provider["name"] == "glibc"


def test_unknown_package_is_404(repo, client: TestClient) -> None:
    client.post("/repository/sync", params={"local_only": "true"})

    response = client.get("/packages/zsh")

    assert response.status_code == 404
    assert response.json()["error"] == "PackageNotFoundError"


def test_failed_sync_is_503(repo, client: TestClient) -> None:
    (repo.cache_dir / "repomd.xml").unlink()

    response = client.post("/repository/sync", params={"local_only": "true"})

    assert response.status_code == 503
    assert response.json()["error"] == "NoValidBackendError"
