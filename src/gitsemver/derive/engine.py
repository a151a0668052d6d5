"""Version derivation: walk, resolve, replay."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from gitsemver.config import KeywordsConfig
from gitsemver.derive.folder import StepEffect, VersionFolder
from gitsemver.derive.models import (
    CountMethod,
    DerivationReport,
    DerivationStep,
    Version,
    VersionCommand,
)
from gitsemver.derive.resolver import CommandResolver
from gitsemver.errors import NoCommitsError
from gitsemver.graph import CommitGraphReader, GitCommitGraph
from gitsemver.statistics import DerivationStatistics


class DerivationEngine:
    """Derive a semantic version from a commit graph."""

    def __init__(
        self,
        reader: CommitGraphReader,
        resolver: CommandResolver | None = None,
        progress_callback: Callable[[str, int, int], None] | None = None,
        statistics: DerivationStatistics | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            reader: Source of commits and annotations.
            resolver: Annotation resolver. Defaults to the built-in keywords.
            progress_callback: Optional callback for progress updates.
                Signature: (stage: str, current: int, total: int)
            statistics: Optional statistics collector.
        """
        self.reader = reader
        self.resolver = resolver or CommandResolver()
        self._progress = progress_callback or (lambda *args: None)
        self.stats = statistics

    def derive(
        self,
        head: str = "HEAD",
        count_method: CountMethod | str = CountMethod.MERGE,
    ) -> Version:
        """Derive the version at ``head``.

        Args:
            head: Reference or commit identity to start from.
            count_method: Counting policy for implicit and manual patch bumps.

        Returns:
            The derived version.

        Raises:
            InvalidCountMethodError: If the count method is unknown (raised
                before the graph is read).
            NoCommitsError: If ``head`` has no reachable commit.
            InvalidVersionError: If a set-version annotation is malformed.
            RepositoryAccessError: If the graph cannot be read.
        """
        folder = VersionFolder(count_method)
        _, commands = self._collect(head)

        if self.stats:
            self.stats.start_phase("Replaying commands")
        version = folder.fold(commands)
        if self.stats:
            self.stats.end_phase(item_count=len(commands))
        return version

    def explain(
        self,
        head: str = "HEAD",
        count_method: CountMethod | str = CountMethod.MERGE,
    ) -> DerivationReport:
        """Derive the version at ``head`` and report every replayed step.

        Raises the same errors as ``derive``.
        """
        folder = VersionFolder(count_method)
        commits_walked, commands = self._collect(head)

        if self.stats:
            self.stats.start_phase("Replaying commands")
        steps: list[DerivationStep] = []
        version = Version()
        for step in folder.trace(commands):
            version = step.state.version
            steps.append(
                DerivationStep(
                    commit_id=step.command.commit_id,
                    command=step.command,
                    version=version,
                    effect=step.effect.value,
                )
            )
            if self.stats and step.effect is StepEffect.SUPPRESSED:
                self.stats.suppressed_merges += 1
        if self.stats:
            self.stats.end_phase(item_count=len(commands))

        return DerivationReport(
            head=head,
            count_method=folder.count_method,
            version=version,
            commits_walked=commits_walked,
            steps=steps,
        )

    def resolve_commands(self, head: str = "HEAD") -> list[VersionCommand]:
        """Resolve every commit reachable from ``head`` into commands.

        Returns:
            Commands in chronological (oldest first) order.
        """
        return self._collect(head)[1]

    def _collect(self, head: str) -> tuple[int, list[VersionCommand]]:
        """Walk the graph and resolve commands.

        Returns:
            Tuple of (commits walked, commands oldest first).
        """
        self._progress("Walking history...", 0, 0)
        if self.stats:
            self.stats.start_phase("Walking history")
        commits = self.reader.commits_from_head(head)
        if not commits:
            raise NoCommitsError(head)
        if self.stats:
            self.stats.end_phase(item_count=len(commits))
            self.stats.start_phase("Resolving annotations")

        # Walk order is newest first
        commands: list[VersionCommand] = []
        total = len(commits)
        for i, commit in enumerate(commits):
            self._progress("Resolving annotations", i + 1, total)
            annotation = self.reader.annotation_of(commit.id)
            command = self.resolver.resolve(commit, annotation)
            if self.stats:
                self.stats.record_commit(commit, annotation, command)
            if command is not None:
                commands.append(command)

        if self.stats:
            self.stats.end_phase(item_count=len(commands))

        commands.reverse()
        return total, commands


def derive_version(
    path: str | Path | None = None,
    head: str = "HEAD",
    count_method: CountMethod | str = CountMethod.MERGE,
    notes_ref: str | None = None,
    keywords: KeywordsConfig | None = None,
) -> Version:
    """Derive the version of a git repository.

    Args:
        path: Path inside the repository. Defaults to the current directory.
        head: Reference to derive the version at.
        count_method: Counting policy.
        notes_ref: Notes reference holding the annotations.
        keywords: Annotation keywords to recognize.

    Returns:
        The derived version.
    """
    method = CountMethod.coerce(count_method)
    with GitCommitGraph(path, notes_ref=notes_ref) as graph:
        engine = DerivationEngine(graph, CommandResolver(keywords))
        return engine.derive(head, method)
