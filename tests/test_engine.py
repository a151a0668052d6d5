"""Tests for the derivation engine."""

from unittest.mock import MagicMock

import pytest

from gitsemver.config import KeywordsConfig
from gitsemver.derive import (
    CommandKind,
    CommandResolver,
    CountMethod,
    DerivationEngine,
    Version,
)
from gitsemver.errors import InvalidCountMethodError, InvalidVersionError, NoCommitsError
from gitsemver.graph import Commit, CommitGraphReader, InMemoryCommitGraph
from gitsemver.statistics import DerivationStatistics


def linear_graph(length: int) -> InMemoryCommitGraph:
    """Build a chain of ``length`` unannotated commits."""
    graph = InMemoryCommitGraph()
    previous: list[str] = []
    for i in range(length):
        commit_id = f"c{i:03d}"
        graph.add_commit(commit_id, parents=previous)
        previous = [commit_id]
    return graph


def single_merge_graph(branch_note: str | None = None) -> InMemoryCommitGraph:
    """Root, one commit on a side branch, and a merge of that branch."""
    graph = InMemoryCommitGraph()
    graph.add_commit("root")
    graph.add_commit("side", parents=["root"], annotation=branch_note)
    graph.add_commit("merge", parents=["root", "side"])
    return graph


def derive(graph: CommitGraphReader, method: CountMethod | str = CountMethod.MERGE) -> str:
    return str(DerivationEngine(graph).derive("HEAD", method))


class TestLinearHistory:
    """Tests for histories without merges."""

    @pytest.mark.parametrize("length", [1, 2, 5, 20])
    def test_commit_count(self, length: int) -> None:
        """Test N commits under commit counting give 0.0.(N-1)."""
        assert derive(linear_graph(length), CountMethod.COMMIT) == f"0.0.{length - 1}"

    def test_merge_count_ignores_linear(self) -> None:
        """Test linear commits are not counted under merge counting."""
        assert derive(linear_graph(6), CountMethod.MERGE) == "0.0.0"


class TestMergeHistory:
    """Tests for histories with a merged branch."""

    @pytest.mark.parametrize(
        ("method", "expected"),
        [
            (CountMethod.MERGE, "0.0.1"),
            (CountMethod.COMMIT, "0.0.1"),
            (CountMethod.MANUAL, "0.0.0"),
        ],
    )
    def test_single_merge(self, method: CountMethod, expected: str) -> None:
        """Test root + branch commit + merge under each policy."""
        assert derive(single_merge_graph(), method) == expected

    def test_minor_on_branch_suppresses_merge(self) -> None:
        """Test a merged minor bump is counted once."""
        assert derive(single_merge_graph("+semver: minor"), CountMethod.MERGE) == "0.1.0"

    def test_major_on_branch_suppresses_merge(self) -> None:
        """Test a merged major bump is counted once."""
        assert derive(single_merge_graph("+semver: major"), CountMethod.MERGE) == "1.0.0"

    def test_later_merges_still_count(self) -> None:
        """Test merges after the suppressed one are counted."""
        graph = single_merge_graph("+semver: minor")
        graph.add_commit("fix", parents=["merge"])
        graph.add_commit("merge2", parents=["merge", "fix"])
        assert derive(graph, CountMethod.MERGE) == "0.1.1"

    def test_annotated_merge(self) -> None:
        """Test an annotation on the merge replaces its implicit bump."""
        graph = single_merge_graph()
        graph.annotate("merge", "+semver: set-prerelease rc.1")
        assert derive(graph, CountMethod.MERGE) == "0.0.0-rc.1"

    @pytest.mark.parametrize("branches", [1, 3, 8])
    def test_manual_ignores_implicit(self, branches: int) -> None:
        """Test manual counting ignores any shape of implicit history."""
        graph = InMemoryCommitGraph()
        graph.add_commit("root")
        tip = "root"
        for i in range(branches):
            graph.add_commit(f"b{i}-1", parents=[tip], move_head=False)
            graph.add_commit(f"b{i}-2", parents=[f"b{i}-1"], move_head=False)
            graph.add_commit(f"m{i}", parents=[tip, f"b{i}-2"])
            tip = f"m{i}"
        assert derive(graph, CountMethod.MANUAL) == "0.0.0"

    def test_manual_counts_patch_annotations(self) -> None:
        """Test manual counting counts manual patch annotations."""
        graph = single_merge_graph("+semver: patch")
        assert derive(graph, CountMethod.MANUAL) == "0.0.1"


class TestExplicitVersion:
    """Tests for set-version annotations."""

    def test_set_version_then_minor(self) -> None:
        """Test a minor bump after set-version builds on it."""
        graph = InMemoryCommitGraph()
        graph.add_commit("root")
        graph.add_commit("a", parents=["root"], annotation="+semver: set-version 2.5.0-beta")
        assert derive(graph) == "2.5.0-beta"

        graph.add_commit("b", parents=["a"], annotation="+semver: minor")
        assert derive(graph) == "2.6.0"

    def test_set_version_on_root(self) -> None:
        """Test root commits can carry annotations."""
        graph = InMemoryCommitGraph()
        graph.add_commit("root", annotation="+semver: set-version 1.0.0")
        graph.add_commit("a", parents=["root"])
        assert derive(graph, CountMethod.COMMIT) == "1.0.1"

    def test_invalid_set_version(self) -> None:
        """Test a malformed set-version fails with the commit identity."""
        graph = InMemoryCommitGraph()
        graph.add_commit("root")
        graph.add_commit("bad", parents=["root"], annotation="+semver: set-version 1.02.0")
        with pytest.raises(InvalidVersionError) as exc_info:
            derive(graph)
        assert exc_info.value.commit_id == "bad"

    @pytest.mark.parametrize("payload", ["1.2.3.4", "1.2.3-beta_1"])
    def test_malformed_set_version_not_truncated(self, payload: str) -> None:
        """Test a malformed version is reported rather than cut to a valid prefix."""
        graph = InMemoryCommitGraph()
        graph.add_commit("root")
        graph.add_commit("a", parents=["root"], annotation=f"+semver: set-version {payload}")
        with pytest.raises(InvalidVersionError) as exc_info:
            derive(graph)
        assert exc_info.value.text == payload
        assert exc_info.value.commit_id == "a"

    def test_prerelease_with_leading_zero(self) -> None:
        """Test labels follow the alphanumeric/hyphen segment grammar."""
        graph = InMemoryCommitGraph()
        graph.add_commit("root")
        graph.add_commit("a", parents=["root"], annotation="+semver: set-prerelease rc.01")
        assert derive(graph) == "0.0.0-rc.01"

    def test_malformed_prerelease_reported(self) -> None:
        """Test a label outside the segment grammar is reported."""
        graph = InMemoryCommitGraph()
        graph.add_commit("root")
        graph.add_commit("a", parents=["root"], annotation="+semver: set-prerelease beta_1")
        with pytest.raises(InvalidVersionError) as exc_info:
            derive(graph)
        assert exc_info.value.text == "beta_1"
        assert exc_info.value.commit_id == "a"
        assert exc_info.value.what == "prerelease label"


class TestEngine:
    """Tests for orchestration behavior."""

    def test_empty_repository(self) -> None:
        """Test an empty repository fails with NoCommitsError."""
        with pytest.raises(NoCommitsError):
            derive(InMemoryCommitGraph())

    def test_reader_returning_nothing(self) -> None:
        """Test an empty walk from a reader is treated as no commits."""
        reader = MagicMock(spec=CommitGraphReader)
        reader.commits_from_head.return_value = []
        with pytest.raises(NoCommitsError):
            DerivationEngine(reader).derive()

    def test_invalid_count_method_before_walk(self) -> None:
        """Test a bad count method is rejected before reading the graph."""
        reader = MagicMock(spec=CommitGraphReader)
        with pytest.raises(InvalidCountMethodError):
            DerivationEngine(reader).derive("HEAD", "fortnightly")
        reader.commits_from_head.assert_not_called()

    def test_deterministic(self) -> None:
        """Test repeated derivations give identical results."""
        graph = single_merge_graph("+semver: minor")
        engine = DerivationEngine(graph)
        assert engine.derive() == engine.derive()
        assert engine.explain() == engine.explain()

    def test_named_head(self) -> None:
        """Test deriving at a reference other than HEAD."""
        graph = linear_graph(4)
        graph.set_ref("release", "c001")
        engine = DerivationEngine(graph)
        assert engine.derive("release", CountMethod.COMMIT) == Version(patch=1)
        assert engine.derive("HEAD", CountMethod.COMMIT) == Version(patch=3)

    def test_resolve_commands_chronological(self) -> None:
        """Test commands come back oldest first."""
        graph = InMemoryCommitGraph()
        graph.add_commit("root")
        graph.add_commit("a", parents=["root"], annotation="+semver: major")
        graph.add_commit("b", parents=["a"], annotation="+semver: minor")
        graph.add_commit("c", parents=["b"])

        commands = DerivationEngine(graph).resolve_commands()

        assert [c.commit_id for c in commands] == ["a", "b", "c"]
        assert [c.kind for c in commands] == [
            CommandKind.INC_MAJOR,
            CommandKind.INC_MINOR,
            CommandKind.INC_PATCH_FROM_LINEAR_COMMIT,
        ]

    def test_custom_resolver(self) -> None:
        """Test the engine uses the given resolver's keywords."""
        graph = InMemoryCommitGraph()
        graph.add_commit("root")
        graph.add_commit("a", parents=["root"], annotation="BREAKING")
        engine = DerivationEngine(graph, CommandResolver(KeywordsConfig(major="BREAKING")))
        assert str(engine.derive()) == "1.0.0"

    def test_progress_callback(self) -> None:
        """Test progress is reported per resolved commit."""
        calls: list[tuple[str, int, int]] = []
        engine = DerivationEngine(
            linear_graph(3),
            progress_callback=lambda stage, current, total: calls.append((stage, current, total)),
        )
        engine.derive()
        assert ("Resolving annotations", 3, 3) in calls


class TestExplain:
    """Tests for derivation reports."""

    def test_report(self) -> None:
        """Test the report lists every step in order."""
        graph = single_merge_graph("+semver: minor")
        graph.add_commit("fix", parents=["merge"])

        report = DerivationEngine(graph).explain("HEAD", "merge")

        assert report.head == "HEAD"
        assert report.count_method is CountMethod.MERGE
        assert report.commits_walked == 4
        assert str(report.version) == "0.1.0"
        assert [step.commit_id for step in report.steps] == ["side", "merge", "fix"]
        assert [step.effect for step in report.steps] == ["applied", "suppressed", "ignored"]
        assert [str(step.version) for step in report.steps] == ["0.1.0", "0.1.0", "0.1.0"]
        assert report.suppressed_merges == 1
        assert report.counted_steps == 1
        assert len(report.annotated_steps) == 1

    def test_report_matches_derive(self) -> None:
        """Test explain and derive agree."""
        graph = single_merge_graph("+semver: patch")
        engine = DerivationEngine(graph)
        for method in CountMethod:
            assert engine.explain("HEAD", method).version == engine.derive("HEAD", method)

    def test_statistics(self) -> None:
        """Test statistics are recorded during a derivation."""
        graph = single_merge_graph("+semver: minor")
        graph.add_commit("noted", parents=["merge"], annotation="just a comment")
        stats = DerivationStatistics()

        DerivationEngine(graph, statistics=stats).explain()

        assert stats.commits_walked == 4
        assert stats.merge_commits == 1
        assert stats.root_commits == 1
        assert stats.annotated_commits == 2
        assert stats.unmatched_annotations == 1
        assert stats.suppressed_merges == 1
        assert stats.commands["inc-minor"] == 1
        assert [phase.name for phase in stats.phases] == [
            "Walking history",
            "Resolving annotations",
            "Replaying commands",
        ]


def test_graph_from_commit_models() -> None:
    """Test readers built from Commit models behave like built graphs."""
    graph = InMemoryCommitGraph(
        commits=[Commit(id="r"), Commit(id="a", parents=("r",))],
        annotations={"a": "+semver: minor"},
    )
    assert derive(graph) == "0.1.0"
