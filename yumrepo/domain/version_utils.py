import re
from typing import Iterable, Optional, Tuple

from yumrepo.domain.models import Package

_SEGMENT_RE = re.compile(r"\d+|[A-Za-z]+")


def version_key(v: Optional[str]) -> tuple:
    """
    Convert a version or release string into a sortable tuple.

    Separators are ignored; numeric segments compare numerically and sort
    after alphabetic ones, so "1.10" > "1.9" and "1.0" > "1.a".
    """
    parts = []
    for segment in _SEGMENT_RE.findall(str(v) if v is not None else ""):
        if segment.isdigit():
            parts.append((1, int(segment), ""))
        else:
            parts.append((0, 0, segment))
    return tuple(parts)


def package_key(pkg: Package) -> Tuple[int, tuple, tuple]:
    return (pkg.epoch, version_key(pkg.version), version_key(pkg.release))


def latest(packages: Iterable[Package]) -> Optional[Package]:
    """
    Return the highest-versioned package, or None for an empty iterable.
    """
    best: Optional[Package] = None
    for pkg in packages:
        if best is None or package_key(pkg) > package_key(best):
            best = pkg
    return best


def matches_name(pkg: Package, name: str, version: str = "", release: str = "") -> bool:
    # Empty version/release means "any".
    if pkg.name != name:
        return False
    if version and pkg.version != version:
        return False
    if release and pkg.release != release:
        return False
    return True


def provides_capability(pkg: Package, requirement: str) -> bool:
    return pkg.name == requirement or requirement in pkg.provides
