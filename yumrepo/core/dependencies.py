from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

import httpx
from pydantic import ValidationError

from yumrepo.domain.entities import Repository
from yumrepo.domain.models import RepositoryConfig
from yumrepo.storage.registry import BackendRegistry, default_registry

logger = logging.getLogger(__name__)

DATA_ROOT_ENV_VAR = "YUMREPO_DATA_DIR"
_REPO_ROOT = Path(__file__).resolve().parents[2]
_DEFAULT_DATA_DIR = _REPO_ROOT / "data"

_repository_config: Optional[RepositoryConfig] = None
_backend_registry: Optional[BackendRegistry] = None
_http_client: Optional[httpx.Client] = None
_repository: Optional[Repository] = None


def get_data_dir() -> Path:
    """
    Determine the data directory path.

    Priority:
    1. Environment variable YUMREPO_DATA_DIR
    2. '<project root>/data'
    """
    env_path = os.environ.get(DATA_ROOT_ENV_VAR)
    if env_path:
        d = Path(env_path).expanduser()
    else:
        d = _DEFAULT_DATA_DIR
    d.mkdir(parents=True, exist_ok=True)
    return d


def _config_path() -> Path:
    return get_data_dir() / "repository.json"


def load_repository_config() -> RepositoryConfig:
    """
    Load repository.json, merging with defaults for any missing fields,
    and write it back so any new fields are persisted.
    """
    path = _config_path()
    if path.exists():
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            config = RepositoryConfig(**raw)
        except (OSError, ValueError, TypeError, ValidationError) as e:
            # Unusable file: fall back to defaults and overwrite it.
            logger.warning(f"Ignoring invalid {path}: {e}")
            config = RepositoryConfig()
    else:
        config = RepositoryConfig()

    path.write_text(config.model_dump_json(indent=2), encoding="utf-8")
    return config


def get_repository_config() -> RepositoryConfig:
    global _repository_config
    if _repository_config is None:
        _repository_config = load_repository_config()
    return _repository_config


def get_cache_dir(config: RepositoryConfig) -> Path:
    return get_data_dir() / "cache" / config.name


def get_backend_registry() -> BackendRegistry:
    global _backend_registry
    if _backend_registry is None:
        _backend_registry = default_registry()
    return _backend_registry


def get_http_client() -> httpx.Client:
    global _http_client
    if _http_client is None:
        config = get_repository_config()
        _http_client = httpx.Client(follow_redirects=True, timeout=config.request_timeout_seconds)
    return _http_client


def get_repository() -> Repository:
    """
    The process-wide repository. Built without selecting a backend; callers
    run the synchronization they need.
    """
    global _repository
    if _repository is None:
        config = get_repository_config()
        cache_dir = get_cache_dir(config)
        cache_dir.mkdir(parents=True, exist_ok=True)
        _repository = Repository(
            config.name,
            config.url,
            cache_dir,
            config.backends,
            client=get_http_client(),
            registry=get_backend_registry(),
        )
    return _repository


def reset() -> None:
    """Drop every cached singleton, closing the HTTP client."""
    global _repository_config, _backend_registry, _http_client, _repository
    if _http_client is not None:
        _http_client.close()
    _repository_config = None
    _backend_registry = None
    _http_client = None
    _repository = None
