"""Per-file aggregate of commit history."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Set

from maintsight.models.commit_record import CommitRecord


@dataclass
class FileStats:
    """Running totals for one file path within the analyzed window.

    Totals only ever grow (sums) or widen (first/last commit), so folding
    the same commits in any order yields the same result.
    """

    path: str
    first_commit: datetime
    last_commit: datetime
    lines_added: int = 0
    lines_removed: int = 0
    commits: int = 0
    authors: Set[str] = field(default_factory=set)
    bug_commits: int = 0
    feature_commits: int = 0
    refactor_commits: int = 0

    @classmethod
    def first_seen(cls, path: str, commit: CommitRecord) -> "FileStats":
        return cls(path=path, first_commit=commit.timestamp, last_commit=commit.timestamp)

    @property
    def num_authors(self) -> int:
        return len(self.authors)

    @property
    def churn(self) -> int:
        return self.lines_added + self.lines_removed

    def record(self, commit: CommitRecord, added: int, removed: int) -> None:
        """Fold one numstat line of ``commit`` into the totals."""
        if added < 0 or removed < 0:
            raise ValueError(f"Negative line counts for {self.path}: +{added}/-{removed}")

        self.lines_added += added
        self.lines_removed += removed
        self.commits += 1
        self.authors.add(commit.author)

        if commit.is_bug_fix:
            self.bug_commits += 1
        if commit.is_feature:
            self.feature_commits += 1
        if commit.is_refactor:
            self.refactor_commits += 1

        if commit.timestamp < self.first_commit:
            self.first_commit = commit.timestamp
        if commit.timestamp > self.last_commit:
            self.last_commit = commit.timestamp
