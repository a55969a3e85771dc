from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .errors import InvalidRequest


@dataclass(frozen=True)
class PackageRequest:
    """
    What the caller declared: package names, optional parallel versions,
    and the global choco arguments (source repo, free-form options).

    versions=None means no pin for any package; a None entry means no pin
    for that one package.
    """

    names: Sequence[str]
    versions: Optional[Sequence[Optional[str]]] = None
    source: Optional[str] = None
    options: Optional[str] = None

    @classmethod
    def from_lists(
        cls,
        names: Sequence[str],
        versions: Optional[Sequence[Optional[str]]] = None,
        source: Optional[str] = None,
        options: Optional[str] = None,
    ) -> "PackageRequest":
        """Build a request, treating blank version strings as "no pin"."""
        if versions is not None:
            versions = [v if v else None for v in versions]
        return cls(names=list(names), versions=versions, source=source or None, options=options or None)


def desired_name_versions(request: PackageRequest) -> Dict[str, Optional[str]]:
    """Map each declared name (case preserved) to its desired version."""
    if request.versions is None:
        return {name: None for name in request.names}

    if len(request.versions) != len(request.names):
        raise InvalidRequest(
            f"Got {len(request.names)} package name(s) but {len(request.versions)} version(s)"
        )
    return dict(zip(request.names, request.versions))


def versions_for(names: Sequence[str], desired: Dict[str, Optional[str]]) -> List[Optional[str]]:
    return [desired.get(name) for name in names]
