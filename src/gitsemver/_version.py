"""Version calculation for gitsemver.

gitsemver versions itself: when running from a source checkout, the version
is derived from the checkout's own history and notes with the engine this
package provides. Installed copies without a checkout report 0.0.0.
"""

from __future__ import annotations

from pathlib import Path

FALLBACK_VERSION = "0.0.0"

# src/gitsemver/_version.py -> checkout root
_CHECKOUT_ROOT = Path(__file__).resolve().parents[2]


def get_version() -> str:
    """Get the full version string.

    Returns:
        Version string in format "MAJOR.MINOR.PATCH[-PRERELEASE]"
        or "0.0.0" if no source checkout is available.
    """
    if not (_CHECKOUT_ROOT / ".git").exists():
        return FALLBACK_VERSION

    from git.exc import GitError

    from gitsemver.derive import DerivationEngine
    from gitsemver.errors import GitSemverError
    from gitsemver.graph import GitCommitGraph

    try:
        with GitCommitGraph(_CHECKOUT_ROOT, search_parent_directories=False) as graph:
            return str(DerivationEngine(graph).derive())
    except (GitSemverError, GitError, ValueError, OSError):
        # Any failure reading the checkout falls back rather than breaking import
        return FALLBACK_VERSION


# Calculate version once at import time
__version__ = get_version()
