"""
Backend reading the flat `primary` XML metadata.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, List

from lxml import etree

from yumrepo.domain.models import Package
from yumrepo.exceptions import DownloadError, LoadError
from yumrepo.services.downloader import download_file
from yumrepo.storage.backend import InMemoryBackend

if TYPE_CHECKING:
    from yumrepo.domain.entities import Repository

logger = logging.getLogger(__name__)

DB_FILENAME = "primary.xml"


def _parser() -> etree.XMLParser:
    return etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)


def _check_xml(path: Path) -> None:
    try:
        root = etree.parse(str(path), parser=_parser()).getroot()
    except etree.XMLSyntaxError as e:
        raise DownloadError(f"downloaded file is not valid XML: {e}") from e
    if etree.QName(root).localname != "metadata":
        raise DownloadError(f"downloaded file is not primary metadata (root <{root.tag}>)")


def _entry_names(package_el: etree._Element, kind: str) -> List[str]:
    # Packages without a namespace are accepted for hand-written test repos.
    names = package_el.xpath(
        f"./*[local-name()='format']/*[local-name()='{kind}']/*[local-name()='entry']/@name"
    )
    return [str(n) for n in names]


def _text(package_el: etree._Element, tag: str) -> str:
    el = package_el.find(f"{{*}}{tag}")
    if el is None or el.text is None:
        return ""
    return el.text.strip()


def _to_package(package_el: etree._Element) -> Package:
    version_el = package_el.find("{*}version")
    location_el = package_el.find("{*}location")
    epoch = version_el.get("epoch", "0") if version_el is not None else "0"

    return Package(
        name=_text(package_el, "name"),
        epoch=int(epoch or 0),
        version=version_el.get("ver", "") if version_el is not None else "",
        release=version_el.get("rel", "") if version_el is not None else "",
        arch=_text(package_el, "arch"),
        summary=_text(package_el, "summary"),
        location=location_el.get("href", "") if location_el is not None else "",
        provides=_entry_names(package_el, "provides"),
        requires=_entry_names(package_el, "requires"),
    )


class XmlBackend(InMemoryBackend):
    """Parses every `<package>` of primary.xml into memory."""

    name = "flat"

    def __init__(self, repo: "Repository"):
        super().__init__(repo)
        self._db_path = Path(repo.cache_dir) / DB_FILENAME

    @property
    def yum_data_type(self) -> str:
        return "primary"

    @property
    def db_path(self) -> Path:
        return self._db_path

    def get_latest_db(self, url: str) -> None:
        download_file(self.repo.client, url, self.db_path, validate=_check_xml)

    def load_db(self) -> None:
        if not self.db_path.is_file():
            logger.error(f"Package metadata not found: {self.db_path}")
            raise LoadError(f"package metadata not found: {self.db_path}")

        try:
            root = etree.parse(str(self.db_path), parser=_parser()).getroot()
            packages = [_to_package(el) for el in root.iterfind("{*}package")]
        except (OSError, etree.XMLSyntaxError, ValueError) as e:
            logger.error(f"Failed to parse {self.db_path}: {e}", exc_info=True)
            raise LoadError(f"failed to load {self.db_path}: {e}") from e

        self.packages = packages
        logger.info(f"Loaded {len(packages)} packages from {self.db_path}")
