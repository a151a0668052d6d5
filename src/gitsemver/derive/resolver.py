"""Resolve commit annotations into version commands."""

from __future__ import annotations

import re
from dataclasses import dataclass

from gitsemver.config import KeywordsConfig
from gitsemver.derive.models import CommandKind, VersionCommand
from gitsemver.graph.models import Commit

# Payloads run to the next whitespace and are validated whole by the folder
_VERSION_ARGUMENT = r"\s+(\d\S*)"
_LABEL_ARGUMENT = r"\s+(\S+)"


@dataclass(frozen=True)
class ResolutionRule:
    """One entry of the priority chain: a command kind and the text it matches.

    Patterns with a capture group pass the captured text on as the command's
    argument.
    """

    kind: CommandKind
    pattern: re.Pattern[str]

    def apply(self, text: str, commit_id: str = "") -> VersionCommand | None:
        match = self.pattern.search(text)
        if match is None:
            return None
        argument = match.group(1) if self.pattern.groups else None
        return VersionCommand(kind=self.kind, argument=argument, commit_id=commit_id)


def build_rules(keywords: KeywordsConfig) -> list[ResolutionRule]:
    """Build the resolution rules in priority order (first match wins)."""
    return [
        ResolutionRule(CommandKind.INC_MAJOR, re.compile(re.escape(keywords.major))),
        ResolutionRule(CommandKind.INC_MINOR, re.compile(re.escape(keywords.minor))),
        ResolutionRule(
            CommandKind.SET_VERSION,
            re.compile(re.escape(keywords.set_version) + _VERSION_ARGUMENT),
        ),
        ResolutionRule(
            CommandKind.SET_PRERELEASE_LABEL,
            re.compile(re.escape(keywords.set_prerelease) + _LABEL_ARGUMENT),
        ),
        ResolutionRule(
            CommandKind.CLEAR_PRERELEASE_LABEL,
            re.compile(re.escape(keywords.clear_prerelease)),
        ),
        ResolutionRule(CommandKind.INC_PATCH_MANUAL, re.compile(re.escape(keywords.patch))),
    ]


class CommandResolver:
    """Turn a commit and its annotation into zero or one version command."""

    def __init__(self, keywords: KeywordsConfig | None = None) -> None:
        """Initialize the resolver.

        Args:
            keywords: Annotation keywords to recognize. Defaults to the
                built-in "+semver: ..." vocabulary.
        """
        self.keywords = keywords or KeywordsConfig()
        self.rules = build_rules(self.keywords)

    def resolve(self, commit: Commit, annotation: str | None) -> VersionCommand | None:
        """Resolve one commit.

        An annotation, when present, decides the command on its own: a note
        that matches no rule produces nothing rather than an implicit bump.
        Blank notes count as absent.

        Args:
            commit: The commit being resolved.
            annotation: Its annotation text, if any.

        Returns:
            The resolved command, or None.
        """
        if annotation is not None and annotation.strip():
            return self.resolve_annotation(annotation, commit.id)
        return self.infer(commit)

    def resolve_annotation(self, text: str, commit_id: str = "") -> VersionCommand | None:
        """Run the annotation text through the priority chain."""
        for rule in self.rules:
            command = rule.apply(text, commit_id)
            if command is not None:
                return command
        return None

    def infer(self, commit: Commit) -> VersionCommand | None:
        """Infer an implicit patch bump from the commit's parent count."""
        if commit.is_merge:
            return VersionCommand(kind=CommandKind.INC_PATCH_FROM_MERGE, commit_id=commit.id)
        if commit.is_root:
            return None
        return VersionCommand(kind=CommandKind.INC_PATCH_FROM_LINEAR_COMMIT, commit_id=commit.id)
