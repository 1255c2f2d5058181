"""
Tests for HistoryService.

Tests cover:
- Fetch ordering and the git invocations issued
- Lenient parsing of range output
- Summary-based duplicate suppression
- Real repository scenarios (ranges, backports, empty ranges)
"""

import pytest
from unittest.mock import call

from commitlog.domain import CommitRecord, LOG_FORMAT
from commitlog.exit_codes import GitCommandError
from commitlog.services import HistoryService


def range_line(sha, summary, ref="", date="2024-01-15"):
    return f"hash<{sha}> ref<{ref}> message<{summary}> date<{date}>"


def fake_lines(range_output, branch_output=None):
    """Side effect routing `git log` calls by their range argument."""
    branch_output = branch_output or {}

    def lines(ctx, args):
        spec = args[-1]
        if spec.startswith("origin/master..origin/"):
            return branch_output.get(spec[len("origin/master..origin/"):], [])
        return range_output

    return lines


class TestListCommitsMocked:
    """HistoryService with a mock git client."""

    def test_fetches_before_querying(self, ctx, mock_git_client):
        mock_git_client.lines.side_effect = fake_lines([range_line("a1", "Fix bug")])
        service = HistoryService(ctx, git_client=mock_git_client)

        service.list_commits("v1.0.0", "v1.1.0")

        assert mock_git_client.mock_calls[0] == call.fetch(ctx)
        mock_git_client.fetch.assert_called_once_with(ctx)

    def test_range_invocation(self, ctx, mock_git_client):
        mock_git_client.lines.return_value = []
        service = HistoryService(ctx, git_client=mock_git_client)

        service.list_commits("v1.0.0", "v1.1.0")

        mock_git_client.lines.assert_called_once_with(ctx, [
            "log",
            "--oneline",
            f"--pretty={LOG_FORMAT}",
            "--date=short",
            "v1.0.0..v1.1.0",
        ])

    def test_empty_to_means_current_position(self, ctx, mock_git_client):
        mock_git_client.lines.return_value = []
        service = HistoryService(ctx, git_client=mock_git_client)

        service.list_commits("v1.0.0")

        assert mock_git_client.lines.call_args.args[1][-1] == "v1.0.0.."

    def test_no_fetch(self, ctx, mock_git_client):
        mock_git_client.lines.return_value = []
        service = HistoryService(ctx, git_client=mock_git_client, fetch=False)

        service.list_commits("v1.0.0")

        mock_git_client.fetch.assert_not_called()

    def test_fetch_failure_propagates(self, ctx, mock_git_client):
        mock_git_client.fetch.side_effect = GitCommandError(["fetch"], 128, "fatal: unable to access")
        service = HistoryService(ctx, git_client=mock_git_client)

        with pytest.raises(GitCommandError):
            service.list_commits("v1.0.0", "v1.1.0", ["release-1.x"])

        mock_git_client.fetch.assert_called_once()
        mock_git_client.lines.assert_not_called()

    def test_parses_in_order(self, ctx, mock_git_client):
        mock_git_client.lines.side_effect = fake_lines([
            range_line("c3", "Third", ref="HEAD -> master", date="2024-01-03"),
            range_line("c2", "Second", date="2024-01-02"),
            range_line("c1", "First", ref="tag: v1.0.1", date="2024-01-01"),
        ])
        service = HistoryService(ctx, git_client=mock_git_client)

        commits = service.list_commits("v1.0.0")

        assert commits == [
            CommitRecord("c3", "HEAD -> master", "Third", "2024-01-03"),
            CommitRecord("c2", "", "Second", "2024-01-02"),
            CommitRecord("c1", "tag: v1.0.1", "First", "2024-01-01"),
        ]

    def test_malformed_lines_dropped(self, ctx, mock_git_client):
        mock_git_client.lines.side_effect = fake_lines([
            range_line("c3", "Third"),
            "hash<c2> ref<> message<Trunc",
            "garbage",
            range_line("c1", "First"),
        ])
        service = HistoryService(ctx, git_client=mock_git_client)

        commits = service.list_commits("v1.0.0")

        assert [c.sha for c in commits] == ["c3", "c1"]

    def test_no_branches_never_filters(self, ctx, mock_git_client):
        output = [range_line(f"s{i}", "Same message") for i in range(4)]
        mock_git_client.lines.side_effect = fake_lines(output)
        service = HistoryService(ctx, git_client=mock_git_client)

        commits = service.list_commits("v1.0.0", "v1.1.0", [])

        assert len(commits) == 4
        # Only the range query ran
        assert mock_git_client.lines.call_count == 1

    def test_duplicate_summary_suppressed(self, ctx, mock_git_client):
        mock_git_client.lines.side_effect = fake_lines(
            [
                range_line("aaa111", "Update docs"),
                range_line("bbb222", "Backport: fix bug"),
                range_line("ccc333", "Add feature"),
            ],
            {"release-1.x": ["Backport: fix bug"]},
        )
        service = HistoryService(ctx, git_client=mock_git_client)

        commits = service.list_commits("v1.0.0", "v1.1.0", ["release-1.x"])

        assert [c.summary for c in commits] == ["Update docs", "Add feature"]
        mock_git_client.lines.assert_any_call(
            ctx, ["log", "--oneline", "--pretty=%s", "origin/master..origin/release-1.x"]
        )

    def test_suppression_is_exact_match(self, ctx, mock_git_client):
        mock_git_client.lines.side_effect = fake_lines(
            [
                range_line("a1", "Fix bug"),
                range_line("a2", "fix bug"),
                range_line("a3", "Fix bug (#12)"),
            ],
            {"release-1.x": ["Fix bug"]},
        )
        service = HistoryService(ctx, git_client=mock_git_client)

        commits = service.list_commits("v1.0.0", "", ["release-1.x"])

        assert [c.sha for c in commits] == ["a2", "a3"]

    def test_all_commits_sharing_summary_suppressed(self, ctx, mock_git_client):
        mock_git_client.lines.side_effect = fake_lines(
            [range_line("a1", "Bump version"), range_line("a2", "Bump version")],
            {"release-1.x": ["Bump version"]},
        )
        service = HistoryService(ctx, git_client=mock_git_client)

        assert service.list_commits("v1.0.0", "", ["release-1.x"]) == []

    def test_multiple_branches_union(self, ctx, mock_git_client):
        mock_git_client.lines.side_effect = fake_lines(
            [range_line("a1", "One"), range_line("a2", "Two"), range_line("a3", "Three")],
            {"release-1.x": ["One"], "release-2.x": ["Three", "One"]},
        )
        service = HistoryService(ctx, git_client=mock_git_client)

        forward = service.list_commits("v1.0.0", "", ["release-1.x", "release-2.x"])
        backward = service.list_commits("v1.0.0", "", ["release-2.x", "release-1.x"])

        assert [c.summary for c in forward] == ["Two"]
        assert forward == backward

    def test_custom_remote_and_mainline(self, mock_git_client):
        from commitlog.domain import RepoContext

        ctx = RepoContext(root="/repo", remote="upstream", mainline="main")
        mock_git_client.lines.return_value = []
        service = HistoryService(ctx, git_client=mock_git_client)

        service.duplicate_summaries(["release-1.x"])

        mock_git_client.lines.assert_called_once_with(
            ctx, ["log", "--oneline", "--pretty=%s", "upstream/main..upstream/release-1.x"]
        )

    def test_unknown_branch_propagates(self, ctx, mock_git_client):
        mock_git_client.lines.side_effect = GitCommandError(["log"], 128, "fatal: ambiguous argument")
        service = HistoryService(ctx, git_client=mock_git_client)

        with pytest.raises(GitCommandError):
            service.list_commits("v1.0.0", "", ["no-such-branch"])


class TestListCommitsRepo:
    """HistoryService against a real repository with an origin remote."""

    def test_range_between_tags(self, git_repo):
        commits = HistoryService(git_repo.ctx).list_commits("v1.0.0", "v1.1.0")

        assert [c.summary for c in commits] == ["Update docs", "Backport: fix bug", "Add feature"]
        assert commits[0].sha == git_repo.shas["docs"]
        assert "tag: v1.1.0" in commits[0].ref_name
        assert commits[0].tags == ("v1.1.0",)
        for commit in commits:
            assert len(commit.date) == 10
            assert commit.date[4] == "-" and commit.date[7] == "-"

    def test_backport_suppressed(self, git_repo):
        commits = HistoryService(git_repo.ctx).list_commits("v1.0.0", "v1.1.0", ["release-1.x"])

        assert [c.summary for c in commits] == ["Update docs", "Add feature"]
        # Suppressed by message, although the shas differ
        assert git_repo.shas["backport"] != git_repo.shas["release_backport"]

    def test_empty_range(self, git_repo):
        assert HistoryService(git_repo.ctx).list_commits("v1.1.0", "v1.1.0") == []

    def test_open_range_to_head(self, git_repo):
        commits = HistoryService(git_repo.ctx).list_commits("v1.1.0")

        assert {c.summary for c in commits} == {"Merge feature", "Mainline work", "Feature work"}
        assert commits[0].sha == git_repo.shas["merge"]

    def test_invalid_reference(self, git_repo):
        with pytest.raises(GitCommandError):
            HistoryService(git_repo.ctx).list_commits("v9.9.9", "v1.1.0")

    def test_unknown_duplicate_branch(self, git_repo):
        with pytest.raises(GitCommandError):
            HistoryService(git_repo.ctx).list_commits("v1.0.0", "v1.1.0", ["no-such-branch"])

    def test_duplicate_summaries(self, git_repo):
        service = HistoryService(git_repo.ctx, fetch=False)
        assert service.duplicate_summaries(["release-1.x"]) == {"Backport: fix bug"}
