"""Commit graph reader interface and in-memory implementation.

Readers expose two things to the derivation engine: the commits reachable
from a head reference in newest-first topological order, and the annotation
attached to a commit. Ordering is shared by every reader through
``topological_order`` so the same history always produces the same sequence.
"""

from __future__ import annotations

import heapq
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence

from gitsemver.errors import NoCommitsError, RepositoryAccessError
from gitsemver.graph.models import Commit


def topological_order(parents: Mapping[str, Sequence[str]], head: str) -> list[str]:
    """Order the commits reachable from ``head``, newest first.

    A commit is only emitted once all of its children inside the reachable
    set have been emitted. When several commits are ready at once, the one
    with the smallest identity goes first.

    Args:
        parents: Map of commit identity to its parent identities.
        head: Identity of the starting commit.

    Returns:
        Commit identities in newest-first topological order.

    Raises:
        RepositoryAccessError: If a reachable commit is missing from ``parents``.
    """
    if head not in parents:
        raise RepositoryAccessError(f"Unknown commit: {head}")

    # Collect the reachable set and count children per commit
    children_count: dict[str, int] = {head: 0}
    stack = [head]
    while stack:
        commit_id = stack.pop()
        for parent_id in dict.fromkeys(parents[commit_id]):
            if parent_id not in parents:
                raise RepositoryAccessError(
                    f"Commit {commit_id} references unknown parent {parent_id}"
                )
            if parent_id in children_count:
                children_count[parent_id] += 1
            else:
                children_count[parent_id] = 1
                stack.append(parent_id)

    order: list[str] = []
    ready = [head]
    while ready:
        commit_id = heapq.heappop(ready)
        order.append(commit_id)
        for parent_id in dict.fromkeys(parents[commit_id]):
            children_count[parent_id] -= 1
            if children_count[parent_id] == 0:
                heapq.heappush(ready, parent_id)

    return order


class CommitGraphReader(ABC):
    """Read-only access to a commit graph and its annotations."""

    @abstractmethod
    def commits_from_head(self, head: str = "HEAD") -> list[Commit]:
        """Get the commits reachable from ``head``, newest first.

        Raises:
            NoCommitsError: If ``head`` has no reachable commit.
            RepositoryAccessError: If the graph cannot be read.
        """

    @abstractmethod
    def annotation_of(self, commit_id: str) -> str | None:
        """Get the annotation text attached to a commit, if any."""


class InMemoryCommitGraph(CommitGraphReader):
    """A synthetic commit graph held entirely in memory.

    ``HEAD`` follows the most recently added commit unless set explicitly::

        graph = InMemoryCommitGraph()
        graph.add_commit("a")
        graph.add_commit("b", parents=["a"], annotation="+semver: minor")
        graph.commits_from_head()  # [b, a]
    """

    def __init__(
        self,
        commits: Iterable[Commit] = (),
        annotations: Mapping[str, str] | None = None,
        refs: Mapping[str, str] | None = None,
    ) -> None:
        self._commits: dict[str, Commit] = {}
        self._annotations: dict[str, str] = dict(annotations or {})
        self._refs: dict[str, str] = {}

        for commit in commits:
            self._commits[commit.id] = commit
            self._refs["HEAD"] = commit.id
        self._refs.update(refs or {})

    def add_commit(
        self,
        commit_id: str,
        parents: Sequence[str] = (),
        annotation: str | None = None,
        move_head: bool = True,
    ) -> Commit:
        """Add a commit to the graph.

        Args:
            commit_id: Identity of the new commit.
            parents: Identities of its parents (first parent first).
            annotation: Optional annotation text for the commit.
            move_head: Point ``HEAD`` at the new commit.

        Returns:
            The created commit.
        """
        commit = Commit(id=commit_id, parents=tuple(parents))
        self._commits[commit_id] = commit
        if annotation is not None:
            self._annotations[commit_id] = annotation
        if move_head:
            self._refs["HEAD"] = commit_id
        return commit

    def set_ref(self, name: str, commit_id: str) -> None:
        """Point a named reference at a commit."""
        self._refs[name] = commit_id

    def annotate(self, commit_id: str, text: str) -> None:
        """Attach (or replace) the annotation of a commit."""
        self._annotations[commit_id] = text

    def _resolve(self, head: str) -> str:
        if head in self._refs:
            return self._refs[head]
        if head in self._commits:
            return head
        if head == "HEAD":
            raise NoCommitsError(head)
        raise RepositoryAccessError(f"Unknown reference '{head}'")

    def commits_from_head(self, head: str = "HEAD") -> list[Commit]:
        if not self._commits:
            raise NoCommitsError(head)

        tip = self._resolve(head)
        parents = {commit_id: c.parents for commit_id, c in self._commits.items()}
        return [self._commits[commit_id] for commit_id in topological_order(parents, tip)]

    def annotation_of(self, commit_id: str) -> str | None:
        return self._annotations.get(commit_id)
