"""Commit graph access."""

from gitsemver.graph.models import Commit
from gitsemver.graph.reader import CommitGraphReader, InMemoryCommitGraph, topological_order
from gitsemver.graph.repository import DEFAULT_NOTES_REF, GitCommitGraph

__all__ = [
    "Commit",
    "CommitGraphReader",
    "InMemoryCommitGraph",
    "GitCommitGraph",
    "DEFAULT_NOTES_REF",
    "topological_order",
]
