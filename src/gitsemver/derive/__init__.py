"""Version derivation from commit history."""

from gitsemver.derive.engine import DerivationEngine, derive_version
from gitsemver.derive.folder import FoldState, FoldStep, StepEffect, VersionFolder
from gitsemver.derive.models import (
    CommandKind,
    CountMethod,
    DerivationReport,
    DerivationStep,
    Version,
    VersionCommand,
)
from gitsemver.derive.resolver import CommandResolver, ResolutionRule, build_rules

__all__ = [
    # Orchestration
    "DerivationEngine",
    "derive_version",
    "DerivationReport",
    "DerivationStep",
    # Resolution
    "CommandResolver",
    "ResolutionRule",
    "build_rules",
    "CommandKind",
    "VersionCommand",
    # Folding
    "VersionFolder",
    "FoldState",
    "FoldStep",
    "StepEffect",
    "CountMethod",
    "Version",
]
