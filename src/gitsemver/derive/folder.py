"""Fold an ordered sequence of version commands into a version.

The fold starts from 0.0.0 and applies commands oldest first. Alongside the
version it carries one flag: after a major or minor bump, the next implicit
merge patch is swallowed, because that merge usually just lands the branch
that carried the bump. The flag is a single boolean, not a counter.

Count methods decide which patch bumps are counted:

    command            merge   commit   manual
    merge patch          x
    linear patch                 x
    manual patch                 x        x
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field, replace
from enum import Enum

from gitsemver.derive.models import CommandKind, CountMethod, Version, VersionCommand
from gitsemver.errors import InvalidVersionError


class StepEffect(str, Enum):
    """What a single command did to the fold state."""

    APPLIED = "applied"
    SUPPRESSED = "suppressed"  # merge patch consumed by the suppression flag
    IGNORED = "ignored"  # patch bump not counted under the active count method


@dataclass(frozen=True)
class FoldState:
    """Accumulator threaded through the fold."""

    version: Version = field(default_factory=Version)
    suppress_next_merge_patch: bool = False


@dataclass(frozen=True)
class FoldStep:
    """One applied command and the state it produced."""

    command: VersionCommand
    state: FoldState
    effect: StepEffect


_Transition = Callable[[FoldState, VersionCommand], tuple[FoldState, StepEffect]]


class VersionFolder:
    """State machine that replays version commands under a count method."""

    def __init__(self, count_method: CountMethod | str = CountMethod.MERGE) -> None:
        """Initialize the folder.

        Args:
            count_method: Counting policy. Strings are accepted case-insensitively.

        Raises:
            InvalidCountMethodError: If the count method is unknown.
        """
        self.count_method = CountMethod.coerce(count_method)
        self._transitions: dict[CommandKind, _Transition] = {
            CommandKind.INC_MAJOR: self._inc_major,
            CommandKind.INC_MINOR: self._inc_minor,
            CommandKind.INC_PATCH_FROM_MERGE: self._inc_patch_from_merge,
            CommandKind.INC_PATCH_FROM_LINEAR_COMMIT: self._inc_patch_from_linear_commit,
            CommandKind.INC_PATCH_MANUAL: self._inc_patch_manual,
            CommandKind.SET_VERSION: self._set_version,
            CommandKind.SET_PRERELEASE_LABEL: self._set_prerelease_label,
            CommandKind.CLEAR_PRERELEASE_LABEL: self._clear_prerelease_label,
        }

    def step(self, state: FoldState, command: VersionCommand) -> tuple[FoldState, StepEffect]:
        """Apply one command, reporting what it did."""
        return self._transitions[command.kind](state, command)

    def apply(self, state: FoldState, command: VersionCommand) -> FoldState:
        """Apply one command to the state."""
        return self.step(state, command)[0]

    def trace(
        self,
        commands: Iterable[VersionCommand],
        initial: FoldState | None = None,
    ) -> Iterator[FoldStep]:
        """Apply commands in order, yielding each step.

        Args:
            commands: Commands in chronological (oldest first) order.
            initial: Starting state. Defaults to 0.0.0 with the flag clear.
        """
        state = initial or FoldState()
        for command in commands:
            state, effect = self.step(state, command)
            yield FoldStep(command=command, state=state, effect=effect)

    def fold(self, commands: Iterable[VersionCommand]) -> Version:
        """Replay commands (oldest first) and return the resulting version.

        Raises:
            InvalidVersionError: If a set-version command carries bad text.
        """
        state = FoldState()
        for command in commands:
            state = self.apply(state, command)
        return state.version

    # Transitions

    def _inc_major(self, state: FoldState, command: VersionCommand) -> tuple[FoldState, StepEffect]:
        return FoldState(state.version.bump_major(), True), StepEffect.APPLIED

    def _inc_minor(self, state: FoldState, command: VersionCommand) -> tuple[FoldState, StepEffect]:
        return FoldState(state.version.bump_minor(), True), StepEffect.APPLIED

    def _inc_patch_from_merge(
        self, state: FoldState, command: VersionCommand
    ) -> tuple[FoldState, StepEffect]:
        if state.suppress_next_merge_patch:
            return replace(state, suppress_next_merge_patch=False), StepEffect.SUPPRESSED
        if self.count_method is CountMethod.MERGE:
            return replace(state, version=state.version.bump_patch()), StepEffect.APPLIED
        return state, StepEffect.IGNORED

    def _inc_patch_from_linear_commit(
        self, state: FoldState, command: VersionCommand
    ) -> tuple[FoldState, StepEffect]:
        if self.count_method is CountMethod.COMMIT:
            return replace(state, version=state.version.bump_patch()), StepEffect.APPLIED
        return state, StepEffect.IGNORED

    def _inc_patch_manual(
        self, state: FoldState, command: VersionCommand
    ) -> tuple[FoldState, StepEffect]:
        if self.count_method in (CountMethod.MANUAL, CountMethod.COMMIT):
            return replace(state, version=state.version.bump_patch()), StepEffect.APPLIED
        return state, StepEffect.IGNORED

    def _set_version(self, state: FoldState, command: VersionCommand) -> tuple[FoldState, StepEffect]:
        text = command.argument or ""
        try:
            version = Version.parse(text)
        except InvalidVersionError as e:
            raise InvalidVersionError(text, command.commit_id or None) from e
        return replace(state, version=version), StepEffect.APPLIED

    def _set_prerelease_label(
        self, state: FoldState, command: VersionCommand
    ) -> tuple[FoldState, StepEffect]:
        label = command.argument or ""
        try:
            version = state.version.with_prerelease(label)
        except ValueError as e:
            raise InvalidVersionError(label, command.commit_id or None, "prerelease label") from e
        return replace(state, version=version), StepEffect.APPLIED

    def _clear_prerelease_label(
        self, state: FoldState, command: VersionCommand
    ) -> tuple[FoldState, StepEffect]:
        return replace(state, version=state.version.without_prerelease()), StepEffect.APPLIED
