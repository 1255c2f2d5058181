"""
Commit record domain object for commitlog.

History is read from git with one commit per line in a marker format:

    hash<abc123> ref<tag: v1.2.0> message<Fix bug> date<2024-01-15>

A CommitRecord is only built from a line that matches the whole format.
Blank, truncated or otherwise corrupted lines yield None and are dropped
by the caller, so a result sequence never holds placeholder records.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple
import json
import re

# Field markers understood by `git log --pretty=...`
LOG_FORMAT = "hash<%h> ref<%D> message<%s> date<%cd>"

LOG_LINE_RE = re.compile(r"hash<(.+)> ref<(.*)> message<(.*)> date<(.*)>")

TAG_PREFIX = "tag: "


@dataclass(frozen=True)
class CommitRecord:
    """
    One commit in a history range.

    Attributes:
        sha: Short commit identifier
        ref_name: Raw decoration string (branches/tags pointing here), may be empty
        summary: First line of the commit message
        date: Commit date as YYYY-MM-DD
    """

    sha: str
    ref_name: str
    summary: str
    date: str

    @property
    def tags(self) -> Tuple[str, ...]:
        """Tag names decorating this commit, in decoration order."""
        if not self.ref_name:
            return ()
        return tuple(
            ref[len(TAG_PREFIX):].strip()
            for ref in (part.strip() for part in self.ref_name.split(','))
            if ref.startswith(TAG_PREFIX)
        )

    def to_log_line(self) -> str:
        """Serialize back into the marker format read from git."""
        return f"hash<{self.sha}> ref<{self.ref_name}> message<{self.summary}> date<{self.date}>"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'sha': self.sha,
            'ref_name': self.ref_name,
            'summary': self.summary,
            'date': self.date,
        }

    def to_jsonl(self) -> str:
        """Convert to single-line JSON for streaming output."""
        return json.dumps(self.to_dict(), ensure_ascii=False)

    def __str__(self) -> str:
        return f"{self.sha} {self.date} {self.summary}"


def parse_log_line(line: str) -> Optional[CommitRecord]:
    """
    Parse one line of marker-formatted log output.

    Args:
        line: Raw output line

    Returns:
        CommitRecord, or None if the line does not match the format
    """
    match = LOG_LINE_RE.search(line)
    if not match:
        return None

    sha, ref_name, summary, date = match.groups()
    return CommitRecord(sha=sha, ref_name=ref_name, summary=summary, date=date)
