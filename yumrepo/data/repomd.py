"""
Parse repomd.xml documents.

A repomd.xml document lists, per data type, where the corresponding file lives
in the repository and when it was generated:

    <repomd xmlns="http://linux.duke.edu/metadata/repo">
      <data type="primary_db">
        <checksum type="sha256">...</checksum>
        <location href="repodata/...-primary.sqlite.bz2"/>
        <timestamp>1700000000.25</timestamp>
      </data>
    </repomd>
"""
from __future__ import annotations

import logging
import math
import re
from typing import Dict

from lxml import etree

from yumrepo.domain.models import NANOSECONDS_PER_SECOND, RepoMD
from yumrepo.exceptions import RepoMDParseError

logger = logging.getLogger(__name__)

# Elements are matched by local name so namespaced and bare documents both work.
_DATA = "{*}data"
_CHECKSUM = "{*}checksum"
_LOCATION = "{*}location"
_TIMESTAMP = "{*}timestamp"

# Plain decimal or exponent notation; no digit separators, no nan/inf.
_NUMBER_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?\Z")


def _parser() -> etree.XMLParser:
    return etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)


def decode_timestamp(value: float) -> int:
    """
    Convert fractional seconds since the epoch into integer nanoseconds.

    The seconds are floored and the fractional part is truncated (not rounded)
    to nanoseconds, so 1000.5 becomes 1000 s + 500000000 ns.
    """
    if not math.isfinite(value):
        raise RepoMDParseError(f"invalid repomd timestamp: {value!r}")
    sec = math.floor(value)
    nsec = int((value - sec) * 1e9)
    return sec * NANOSECONDS_PER_SECOND + nsec


def _parse_timestamp(text: str | None) -> int:
    if text is None or not text.strip():
        return 0
    text = text.strip()
    if not _NUMBER_RE.match(text):
        raise RepoMDParseError(f"invalid repomd timestamp {text!r}")
    return decode_timestamp(float(text))


def parse_repomd(data: bytes) -> Dict[str, RepoMD]:
    """
    Parse a repomd.xml document into a mapping of data type to RepoMD.

    Empty input means "no metadata yet" and yields an empty mapping.
    When a data type appears more than once, the last entry wins.

    Raises:
        RepoMDParseError: the document is not well-formed XML, its root is not
            `repomd`, or a timestamp is not a finite number.
    """
    if not data:
        return {}

    try:
        root = etree.fromstring(data, parser=_parser())
    except etree.XMLSyntaxError as e:
        raise RepoMDParseError(f"malformed repomd.xml: {e}") from e

    if etree.QName(root).localname != "repomd":
        raise RepoMDParseError(
            f"unexpected root element <{etree.QName(root).localname}> (expected <repomd>)"
        )

    db: Dict[str, RepoMD] = {}
    for entry in root.iterfind(_DATA):
        data_type = entry.get("type", "")

        checksum_el = entry.find(_CHECKSUM)
        location_el = entry.find(_LOCATION)
        timestamp_el = entry.find(_TIMESTAMP)

        record = RepoMD(
            checksum=(checksum_el.text or "").strip() if checksum_el is not None else "",
            location=location_el.get("href", "") if location_el is not None else "",
            timestamp_ns=_parse_timestamp(timestamp_el.text if timestamp_el is not None else None),
        )
        db[data_type] = record
        logger.debug(f">>> {data_type}: {record}")

    return db
