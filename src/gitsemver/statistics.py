"""Statistics tracking for derivations.

Tracks commits walked, annotations found, commands resolved and timing
information to provide a summary after a derivation.
"""

from __future__ import annotations

import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rich.console import Console

    from gitsemver.derive.models import VersionCommand
    from gitsemver.graph.models import Commit


@dataclass
class PhaseStats:
    """Statistics for a single derivation phase."""

    name: str
    started_at: float = 0.0
    ended_at: float = 0.0
    item_count: int = 0

    @property
    def duration(self) -> timedelta:
        """Get the duration of this phase."""
        if self.ended_at == 0:
            return timedelta(seconds=time.time() - self.started_at)
        return timedelta(seconds=self.ended_at - self.started_at)


@dataclass
class DerivationStatistics:
    """Statistics for one derivation.

        stats = DerivationStatistics()
        engine = DerivationEngine(reader, statistics=stats)
        engine.derive()
        stats.print_summary(console)
    """

    commits_walked: int = 0
    annotated_commits: int = 0
    merge_commits: int = 0
    root_commits: int = 0
    unmatched_annotations: int = 0
    suppressed_merges: int = 0
    commands: Counter[str] = field(default_factory=Counter)

    phases: list[PhaseStats] = field(default_factory=list)
    _current_phase: PhaseStats | None = field(default=None, repr=False)

    def start_phase(self, name: str) -> None:
        """Start a new phase, ending the current one."""
        if self._current_phase:
            self.end_phase()
        self._current_phase = PhaseStats(name=name, started_at=time.time())

    def end_phase(self, item_count: int = 0) -> None:
        """End the current phase.

        Args:
            item_count: Number of items processed in this phase.
        """
        if self._current_phase:
            self._current_phase.ended_at = time.time()
            self._current_phase.item_count = item_count
            self.phases.append(self._current_phase)
            self._current_phase = None

    def record_commit(
        self,
        commit: Commit,
        annotation: str | None,
        command: VersionCommand | None,
    ) -> None:
        """Record one resolved commit."""
        self.commits_walked += 1
        if commit.is_merge:
            self.merge_commits += 1
        if commit.is_root:
            self.root_commits += 1
        if annotation is not None and annotation.strip():
            self.annotated_commits += 1
            if command is None:
                self.unmatched_annotations += 1
        if command is not None:
            self.commands[command.kind.value] += 1

    @property
    def total_duration(self) -> timedelta:
        """Get the summed duration of all finished phases."""
        return sum((phase.duration for phase in self.phases), timedelta(0))

    def _format_duration(self, td: timedelta) -> str:
        """Format a timedelta for display."""
        total_seconds = td.total_seconds()
        if total_seconds < 1:
            return f"{total_seconds * 1000:.0f}ms"
        return f"{total_seconds:.1f}s"

    def print_summary(self, console: Console) -> None:
        """Print a summary of statistics to the console.

        Args:
            console: Rich console for output.
        """
        console.print()
        console.print("[bold]Derivation Summary[/bold]")
        console.print()

        if self.phases:
            console.print("[dim]Phases:[/dim]")
            for phase in self.phases:
                duration_str = self._format_duration(phase.duration)
                if phase.item_count > 0:
                    console.print(f"  {phase.name}: {phase.item_count} items ({duration_str})")
                else:
                    console.print(f"  {phase.name}: {duration_str}")
            console.print()

        console.print(f"[bold]Commits walked:[/bold] {self.commits_walked}")
        console.print(f"  Merges: {self.merge_commits}")
        console.print(f"  Roots: {self.root_commits}")
        console.print(f"  Annotated: {self.annotated_commits}")
        if self.unmatched_annotations:
            console.print(
                f"  [yellow]Annotations without a command:[/yellow] {self.unmatched_annotations}"
            )

        if self.commands:
            console.print("[bold]Commands:[/bold]")
            for kind, count in sorted(self.commands.items()):
                console.print(f"  {kind}: {count}")

        if self.suppressed_merges:
            console.print(f"[bold]Suppressed merge patches:[/bold] {self.suppressed_merges}")
