"""Git repository reader backed by GitPython."""

from __future__ import annotations

import os
from pathlib import Path

from git import Repo
from git.exc import BadName, GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from gitsemver.errors import NoCommitsError, RepositoryAccessError
from gitsemver.graph.models import Commit
from gitsemver.graph.reader import CommitGraphReader, topological_order

DEFAULT_NOTES_REF = "refs/notes/semver"


class GitCommitGraph(CommitGraphReader):
    """Commit graph of a git repository, with annotations stored as git notes."""

    def __init__(
        self,
        path: str | Path | None = None,
        notes_ref: str | None = None,
        search_parent_directories: bool = True,
    ) -> None:
        """Initialize the reader.

        Args:
            path: Path inside the repository. Defaults to the current directory.
            notes_ref: Notes reference holding the annotations. If not provided,
                reads from GITSEMVER_NOTES_REF env var, then falls back to
                refs/notes/semver.
            search_parent_directories: Look for the repository in parent
                directories of ``path`` as well.
        """
        self.path = Path(path) if path else Path.cwd()
        self.notes_ref = self._normalize_notes_ref(
            notes_ref or os.environ.get("GITSEMVER_NOTES_REF") or DEFAULT_NOTES_REF
        )
        self._search_parents = search_parent_directories
        self._repo: Repo | None = None
        self._notes: dict[str, str] | None = None

    def _normalize_notes_ref(self, ref: str) -> str:
        """Expand short notes names ("semver") to full refs."""
        if ref.startswith("refs/"):
            return ref
        return f"refs/notes/{ref}"

    def open(self) -> None:
        """Open the repository.

        Raises:
            RepositoryAccessError: If no repository is found at the path.
        """
        try:
            self._repo = Repo(self.path, search_parent_directories=self._search_parents)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise RepositoryAccessError(f"Not a git repository: {self.path}") from e

    def close(self) -> None:
        """Release the repository handles."""
        if self._repo is not None:
            self._repo.close()
            self._repo = None
        self._notes = None

    def __enter__(self) -> GitCommitGraph:
        self.open()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @property
    def repo(self) -> Repo:
        """Get the opened repository, opening it if necessary."""
        if self._repo is None:
            self.open()
        return self._repo  # type: ignore[return-value]

    @property
    def head_name(self) -> str:
        """Get the full name of the reference HEAD points to."""
        if self.repo.head.is_detached:
            return "HEAD"
        return self.repo.head.ref.path

    def commits_from_head(self, head: str = "HEAD") -> list[Commit]:
        try:
            tip = self.repo.commit(head)
        except (BadName, ValueError) as e:
            if head == "HEAD" or not self.repo.head.is_valid():
                raise NoCommitsError(head) from e
            raise RepositoryAccessError(f"Unknown reference '{head}'") from e

        parents: dict[str, tuple[str, ...]] = {}
        stack = [tip]
        try:
            while stack:
                commit = stack.pop()
                if commit.hexsha in parents:
                    continue
                parents[commit.hexsha] = tuple(p.hexsha for p in commit.parents)
                stack.extend(p for p in commit.parents if p.hexsha not in parents)
        except (GitCommandError, ValueError, OSError) as e:
            raise RepositoryAccessError(f"Failed to read history from '{head}': {e}") from e

        return [
            Commit(id=commit_id, parents=parents[commit_id])
            for commit_id in topological_order(parents, tip.hexsha)
        ]

    def annotation_of(self, commit_id: str) -> str | None:
        if self._notes is None:
            self._notes = self._load_notes()
        return self._notes.get(commit_id)

    def _load_notes(self) -> dict[str, str]:
        """Read every note under the notes reference.

        Note paths may be fanned out into directories ("ab/cdef..."), so the
        commit identity is the blob path with separators removed.

        Returns:
            Map of commit identity to note text. Empty if the ref is missing.
        """
        notes: dict[str, str] = {}
        try:
            ref = next((r for r in self.repo.refs if r.path == self.notes_ref), None)
            if ref is None:
                return notes
            for item in ref.commit.tree.traverse():
                if item.type != "blob":
                    continue
                commit_id = item.path.replace("/", "")
                notes[commit_id] = item.data_stream.read().decode("utf-8", errors="replace")
        except (GitCommandError, ValueError, OSError) as e:
            raise RepositoryAccessError(f"Failed to read notes from '{self.notes_ref}': {e}") from e

        return notes
