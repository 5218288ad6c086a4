"""
Version information for event graph formats.

Compiled graphs and persisted documents carry a format version string; the
runtime and the codec refuse versions outside the configured specifier.
"""

from dataclasses import dataclass
from functools import lru_cache
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

from eventgraph.configs import get_settings


@dataclass(frozen=True)
class VersionInfo:
    """Immutable version information container."""

    package: str
    compiled_format: str
    document_format: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {
            "package": self.package,
            "compiled_format": self.compiled_format,
            "document_format": self.document_format,
        }


def _get_package_version() -> str:
    try:
        return pkg_version("eventgraph")
    except PackageNotFoundError:
        return "unknown"


def is_supported_version(version: str, specifier: str) -> bool:
    """
    Check a format version against a specifier such as ``>=1.0,<2.0``.

    Unparseable versions are never supported. A caret constraint (``^1.0``)
    is accepted and means ``>=1.0,<2.0``.
    """
    try:
        parsed = Version(version)
        if specifier.startswith("^"):
            base = Version(specifier[1:])
            specifier = f">={base},<{base.major + 1}.0"
        return parsed in SpecifierSet(specifier)
    except (InvalidVersion, InvalidSpecifier):
        return False


@lru_cache(maxsize=1)
def get_version_info() -> VersionInfo:
    settings = get_settings()
    return VersionInfo(
        package=_get_package_version(),
        compiled_format=settings.compiled_version,
        document_format=settings.document_version,
    )
