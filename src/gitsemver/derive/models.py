"""Data models for version derivation."""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from gitsemver.errors import InvalidCountMethodError, InvalidVersionError

_IDENTIFIER = r"(?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*)"

# Semantic Versioning 2.0.0; build metadata is accepted and dropped
_SEMVER_RE = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    rf"(?:-(?P<prerelease>{_IDENTIFIER}(?:\.{_IDENTIFIER})*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)

# Prerelease labels: dot-separated alphanumeric/hyphen segments
_LABEL_RE = re.compile(r"^[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*$")


class CountMethod(str, Enum):
    """Which implicit patch bumps are counted."""

    MERGE = "merge"
    COMMIT = "commit"
    MANUAL = "manual"

    @classmethod
    def coerce(cls, value: CountMethod | str) -> CountMethod:
        """Convert a policy name (case-insensitive) to a CountMethod.

        Raises:
            InvalidCountMethodError: If the value names no known policy.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidCountMethodError(value)


class CommandKind(str, Enum):
    """The kinds of version commands a commit can produce."""

    INC_MAJOR = "inc-major"
    INC_MINOR = "inc-minor"
    INC_PATCH_FROM_MERGE = "inc-patch-merge"
    INC_PATCH_FROM_LINEAR_COMMIT = "inc-patch-commit"
    INC_PATCH_MANUAL = "inc-patch-manual"
    SET_VERSION = "set-version"
    SET_PRERELEASE_LABEL = "set-prerelease"
    CLEAR_PRERELEASE_LABEL = "clear-prerelease"


class VersionCommand(BaseModel):
    """A typed command resolved from one commit."""

    model_config = ConfigDict(frozen=True)

    kind: CommandKind
    argument: str | None = None
    commit_id: str = ""

    @property
    def is_implicit(self) -> bool:
        """Check if this command was inferred from topology, not an annotation."""
        return self.kind in (
            CommandKind.INC_PATCH_FROM_MERGE,
            CommandKind.INC_PATCH_FROM_LINEAR_COMMIT,
        )

    @property
    def description(self) -> str:
        """Get the command with its argument for display."""
        if self.argument is not None:
            return f"{self.kind.value} {self.argument}"
        return self.kind.value


class Version(BaseModel):
    """A semantic version value."""

    model_config = ConfigDict(frozen=True)

    major: int = Field(default=0, ge=0)
    minor: int = Field(default=0, ge=0)
    patch: int = Field(default=0, ge=0)
    prerelease: tuple[str, ...] = ()

    @classmethod
    def parse(cls, text: str) -> Version:
        """Parse a semantic version string.

        Args:
            text: Version text such as "1.2.3" or "2.5.0-beta.1".

        Returns:
            The parsed version.

        Raises:
            InvalidVersionError: If the text is not a valid semantic version.
        """
        match = _SEMVER_RE.match(text.strip())
        if not match:
            raise InvalidVersionError(text)
        prerelease = match.group("prerelease")
        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(match.group("patch")),
            prerelease=tuple(prerelease.split(".")) if prerelease else (),
        )

    def bump_major(self) -> Version:
        return Version(major=self.major + 1)

    def bump_minor(self) -> Version:
        return Version(major=self.major, minor=self.minor + 1)

    def bump_patch(self) -> Version:
        return Version(major=self.major, minor=self.minor, patch=self.patch + 1)

    def with_prerelease(self, label: str) -> Version:
        """Replace the prerelease with ``label`` (dot-separated identifiers)."""
        if not _LABEL_RE.match(label):
            raise ValueError(f"Invalid prerelease label: {label!r}")
        return self.model_copy(update={"prerelease": tuple(label.split("."))})

    def without_prerelease(self) -> Version:
        return self.model_copy(update={"prerelease": ()})

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            return f"{base}-{'.'.join(self.prerelease)}"
        return base


# ============================================================================
# Derivation Report Models
# ============================================================================


class DerivationStep(BaseModel):
    """One command replayed during a derivation."""

    commit_id: str
    command: VersionCommand
    version: Version
    effect: str = "applied"  # "applied", "suppressed" or "ignored"

    @property
    def short_id(self) -> str:
        """Get the abbreviated commit identity."""
        return self.commit_id[:10]


class DerivationReport(BaseModel):
    """Full account of how a version was derived."""

    head: str
    count_method: CountMethod
    version: Version
    commits_walked: int
    steps: list[DerivationStep] = Field(default_factory=list)

    @property
    def annotated_steps(self) -> list[DerivationStep]:
        """Steps that came from an annotation rather than topology."""
        return [step for step in self.steps if not step.command.is_implicit]

    @property
    def counted_steps(self) -> int:
        """Number of steps that changed the version."""
        return sum(1 for step in self.steps if step.effect == "applied")

    @property
    def suppressed_merges(self) -> int:
        """Number of merge patches swallowed after a major/minor bump."""
        return sum(1 for step in self.steps if step.effect == "suppressed")
