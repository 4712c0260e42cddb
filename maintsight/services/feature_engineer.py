"""Feature engineering service turning FileStats into model features."""

import math
from typing import Iterable, List, Mapping, Union

import pandas as pd

from maintsight.models import FEATURE_NAMES, FeatureVector, FileStats
from maintsight.utils.logger import Logger

SECONDS_PER_DAY = 86400
HIGH_CHURN_PER_COMMIT = 50


class FeatureEngineer:
    """Transforms per-file commit aggregates into model feature vectors."""

    def __init__(self):
        self.logger = Logger('FeatureEngineer')

    def transform(
        self, file_stats: Union[Mapping[str, FileStats], Iterable[FileStats]]
    ) -> List[FeatureVector]:
        """Generate all features used by the model.

        Args:
            file_stats: Mapping of path to FileStats, or FileStats objects

        Returns:
            One FeatureVector per aggregate, in input order
        """
        if isinstance(file_stats, Mapping):
            file_stats = file_stats.values()
        stats_list = list(file_stats)
        self.logger.info(f"Generating features for {len(stats_list)} files...", '⚙️')
        return [self.build_features(stats) for stats in stats_list]

    @staticmethod
    def build_features(stats: FileStats) -> FeatureVector:
        lines_added = stats.lines_added
        lines_deleted = stats.lines_removed
        commits = stats.commits
        authors = stats.num_authors
        bug_commits = stats.bug_commits

        # Floors keep every ratio defined for zero-commit/zero-author records.
        safe_commits = max(commits, 1)
        safe_authors = max(authors, 1)

        churn = lines_added + lines_deleted
        churn_per_commit = churn / safe_commits
        span_days = (stats.last_commit - stats.first_commit).total_seconds() / SECONDS_PER_DAY
        days_active = max(1, math.ceil(span_days))
        net_lines = lines_added - lines_deleted

        return FeatureVector(
            module=stats.path,
            lines_added=lines_added,
            lines_deleted=lines_deleted,
            churn=churn,
            commits=commits,
            authors=authors,
            bug_commits=bug_commits,
            refactor_commits=stats.refactor_commits,
            # Everything not classified as a bug fix counts as feature work;
            # refactors overlap and are tracked on their own.
            feature_commits=commits - bug_commits,
            lines_per_author=churn / safe_authors,
            churn_per_commit=churn_per_commit,
            bug_ratio=bug_commits / safe_commits,
            days_active=days_active,
            commits_per_day=commits / days_active,
            net_lines=net_lines,
            code_stability=1.0 / (1.0 + churn_per_commit),
            is_high_churn_commit=1 if churn_per_commit > HIGH_CHURN_PER_COMMIT else 0,
            bug_commit_rate=bug_commits / days_active,
            author_concentration=1.0 / safe_authors,
            lines_per_commit=churn / safe_commits,
            churn_rate=churn / max(1, net_lines),
            modification_ratio=lines_deleted / max(1, lines_added),
            churn_per_author=churn / safe_authors,
            deletion_rate=lines_deleted / max(1, churn),
            commit_density=commits / days_active,
        )

    def get_feature_names(self) -> List[str]:
        """Feature names in the order the model expects them."""
        return list(FEATURE_NAMES)

    def extract_feature_vector(self, features: FeatureVector) -> List[float]:
        """Plain numeric vector in get_feature_names() order."""
        return features.to_feature_vector()

    def to_dataframe(self, features: Iterable[FeatureVector]) -> pd.DataFrame:
        """Feature table indexed by module, columns in model order."""
        records = [f.to_dict() for f in features]
        if not records:
            return pd.DataFrame(columns=self.get_feature_names())
        return pd.DataFrame(records).set_index('module')[self.get_feature_names()]
