"""
Backend reading the `primary_db` SQLite database published by createrepo.
"""
from __future__ import annotations

import logging
import sqlite3
from collections import defaultdict
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List

from yumrepo.domain.models import Package
from yumrepo.exceptions import DownloadError, LoadError
from yumrepo.services.downloader import download_file
from yumrepo.storage.backend import InMemoryBackend

if TYPE_CHECKING:
    from yumrepo.domain.entities import Repository

logger = logging.getLogger(__name__)

DB_FILENAME = "primary.sqlite"


def _connect(path: Path) -> sqlite3.Connection:
    # Read-only so a broken file is never "repaired" into an empty database.
    conn = sqlite3.connect(f"{path.resolve().as_uri()}?mode=ro", uri=True)
    conn.row_factory = sqlite3.Row
    return conn


def _check_db(path: Path) -> None:
    """Reject files that are not a primary_db database."""
    try:
        conn = _connect(path)
        try:
            conn.execute("SELECT pkgKey, name FROM packages LIMIT 1").fetchall()
        finally:
            conn.close()
    except sqlite3.Error as e:
        raise DownloadError(f"downloaded file is not a primary_db database: {e}") from e


class SqliteBackend(InMemoryBackend):
    """Reads the packages, provides and requires tables of primary.sqlite."""

    name = "sqlite"

    def __init__(self, repo: "Repository"):
        super().__init__(repo)
        self._db_path = Path(repo.cache_dir) / DB_FILENAME

    @property
    def yum_data_type(self) -> str:
        return "primary_db"

    @property
    def db_path(self) -> Path:
        return self._db_path

    def get_latest_db(self, url: str) -> None:
        download_file(self.repo.client, url, self.db_path, validate=_check_db)

    def load_db(self) -> None:
        if not self.db_path.is_file():
            logger.error(f"Package database not found: {self.db_path}")
            raise LoadError(f"package database not found: {self.db_path}")

        logger.debug(f"Connecting to package database: {self.db_path}")
        try:
            conn = _connect(self.db_path)
            try:
                packages = self._read_packages(conn)
            finally:
                conn.close()
        except (sqlite3.Error, ValueError) as e:
            logger.error(f"Database error loading {self.db_path}: {e}", exc_info=True)
            raise LoadError(f"failed to load {self.db_path}: {e}") from e

        self.packages = packages
        logger.info(f"Loaded {len(packages)} packages from {self.db_path}")

    def _read_packages(self, conn: sqlite3.Connection) -> List[Package]:
        provides = self._read_capabilities(conn, "provides")
        requires = self._read_capabilities(conn, "requires")

        packages: List[Package] = []
        cursor = conn.execute("""
            SELECT pkgKey, name, arch, epoch, version, release, summary, location_href
            FROM packages
        """)
        for row in cursor:
            packages.append(
                Package(
                    name=row["name"],
                    epoch=int(row["epoch"] or 0),
                    version=row["version"] or "",
                    release=row["release"] or "",
                    arch=row["arch"] or "",
                    summary=row["summary"] or "",
                    location=row["location_href"] or "",
                    provides=provides.get(row["pkgKey"], []),
                    requires=requires.get(row["pkgKey"], []),
                )
            )
        return packages

    def _read_capabilities(self, conn: sqlite3.Connection, table: str) -> Dict[int, List[str]]:
        caps: Dict[int, List[str]] = defaultdict(list)
        try:
            cursor = conn.execute(f"SELECT pkgKey, name FROM {table}")
        except sqlite3.OperationalError as e:
            # Minimal databases may lack the capability tables.
            logger.debug(f"No {table} table in {self.db_path}: {e}")
            return caps
        for row in cursor:
            caps[row["pkgKey"]].append(row["name"])
        return caps
