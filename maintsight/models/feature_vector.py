"""Engineered feature record for one file."""

from dataclasses import dataclass
from typing import List

# Order is the contract with the model's feature_names list.
FEATURE_NAMES = (
    "lines_added",
    "lines_deleted",
    "churn",
    "commits",
    "authors",
    "bug_commits",
    "refactor_commits",
    "feature_commits",
    "lines_per_author",
    "churn_per_commit",
    "bug_ratio",
    "days_active",
    "commits_per_day",
    "net_lines",
    "code_stability",
    "is_high_churn_commit",
    "bug_commit_rate",
    "author_concentration",
    "lines_per_commit",
    "churn_rate",
    "modification_ratio",
    "churn_per_author",
    "deletion_rate",
    "commit_density",
)


@dataclass(frozen=True)
class FeatureVector:
    """Base counts and derived ratios for a single module."""

    module: str
    lines_added: int
    lines_deleted: int
    churn: int
    commits: int
    authors: int
    bug_commits: int
    refactor_commits: int
    feature_commits: int
    lines_per_author: float
    churn_per_commit: float
    bug_ratio: float
    days_active: int
    commits_per_day: float
    net_lines: int
    code_stability: float
    is_high_churn_commit: int
    bug_commit_rate: float
    author_concentration: float
    lines_per_commit: float
    churn_rate: float
    modification_ratio: float
    churn_per_author: float
    deletion_rate: float
    commit_density: float

    @classmethod
    def feature_names(cls) -> List[str]:
        return list(FEATURE_NAMES)

    def to_feature_vector(self) -> List[float]:
        """Plain numeric vector in FEATURE_NAMES order."""
        return [float(getattr(self, name)) for name in FEATURE_NAMES]

    def to_dict(self) -> dict:
        record = {"module": self.module}
        record.update({name: getattr(self, name) for name in FEATURE_NAMES})
        return record
