"""
Commit history service for commitlog.

Reads the commits of a range, parses each line of marker-formatted
log output into a CommitRecord and suppresses entries that already
appear on duplicate-check branches (e.g. backports shipped from a
release branch).

Duplicate detection compares commit summaries as plain strings, not
commit identifiers: a cherry-picked commit has a new sha but keeps its
message. Two distinct commits sharing a summary are therefore treated
as the same change; matching stays summary-based, not sha or patch-id.
"""

from typing import Iterable, List, Optional, Set
import logging

from ..domain import RepoContext, CommitRecord, parse_log_line, LOG_FORMAT
from ..infra import GitClient

logger = logging.getLogger(__name__)


class HistoryService:
    """
    Service for listing the commits between two references.

    Example:
        service = HistoryService(RepoContext.from_path("."))
        for commit in service.list_commits("v1.0.0", "v1.1.0", ["release-1.x"]):
            print(commit.sha, commit.summary)
    """

    def __init__(
        self,
        ctx: RepoContext,
        git_client: Optional[GitClient] = None,
        fetch: bool = True
    ):
        """
        Initialize HistoryService.

        Args:
            ctx: Repository to query
            git_client: Git client instance (creates default if None)
            fetch: Fetch from the remote before each listing
        """
        self.ctx = ctx
        self.git = git_client or GitClient()
        self.fetch = fetch

    def duplicate_summaries(self, branches: Iterable[str]) -> Set[str]:
        """
        Summaries of commits that exist only on the given branches.

        For each branch, collects `<remote>/<mainline>..<remote>/<branch>`.
        Branch order does not matter.

        Raises:
            GitCommandError: If a branch has no remote-tracking reference
        """
        summaries: Set[str] = set()
        for branch in branches:
            range_spec = f"{self.ctx.mainline_ref}..{self.ctx.remote_ref(branch)}"
            branch_summaries = self.git.lines(
                self.ctx, ["log", "--oneline", "--pretty=%s", range_spec]
            )
            logger.debug(f"{len(branch_summaries)} commits only on {self.ctx.remote_ref(branch)}")
            summaries.update(branch_summaries)
        return summaries

    def read_range(self, from_ref: str, to_ref: str = "") -> List[CommitRecord]:
        """
        Parse every well-formed commit line of `from_ref..to_ref`.

        An empty to_ref means the current position. Lines that do not
        match the marker format are skipped.
        """
        output = self.git.lines(self.ctx, [
            "log",
            "--oneline",
            f"--pretty={LOG_FORMAT}",
            "--date=short",
            f"{from_ref}..{to_ref}",
        ])

        commits = []
        for line in output:
            commit = parse_log_line(line)
            if commit is None:
                logger.debug(f"Skipping unparseable log line: {line!r}")
                continue
            commits.append(commit)
        return commits

    def list_commits(
        self,
        from_ref: str,
        to_ref: str = "",
        duplicate_check_branches: Iterable[str] = ()
    ) -> List[CommitRecord]:
        """
        Commits in `from_ref..to_ref`, newest first.

        Args:
            from_ref: Exclusive lower bound (tag, branch, sha)
            to_ref: Inclusive upper bound; empty means the current position
            duplicate_check_branches: Branches whose unique commits should
                not be listed again

        Returns:
            CommitRecords in the order git produced them, minus any whose
            summary exactly matches a commit unique to a duplicate-check branch

        Raises:
            GitCommandError: On fetch failure, bad references or a broken repository
        """
        if self.fetch:
            self.git.fetch(self.ctx)

        excluded = self.duplicate_summaries(duplicate_check_branches)
        commits = self.read_range(from_ref, to_ref)

        if not excluded:
            return commits

        kept = [commit for commit in commits if commit.summary not in excluded]
        if len(kept) != len(commits):
            logger.info(f"Suppressed {len(commits) - len(kept)} duplicate commits")
        return kept
