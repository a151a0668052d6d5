"""gitsemver - Semantic versions derived from git history and notes."""

from gitsemver._version import __version__
from gitsemver.derive import CountMethod, DerivationEngine, Version, derive_version
from gitsemver.errors import (
    GitSemverError,
    InvalidCountMethodError,
    InvalidVersionError,
    NoCommitsError,
    RepositoryAccessError,
)

__all__ = [
    "__version__",
    "CountMethod",
    "DerivationEngine",
    "Version",
    "derive_version",
    "GitSemverError",
    "InvalidCountMethodError",
    "InvalidVersionError",
    "NoCommitsError",
    "RepositoryAccessError",
]
