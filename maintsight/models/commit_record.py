"""A single commit read from git log output."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List

BUG_FIX_KEYWORDS = ("fix", "bug", "patch", "hotfix", "bugfix")
FEATURE_KEYWORDS = ("feat", "feature", "add", "implement")
REFACTOR_KEYWORDS = ("refactor", "clean", "improve")


@dataclass
class CommitRecord:
    """Commit header context that numstat lines are folded under."""

    author: str
    timestamp: datetime
    message: str
    is_bug_fix: bool = field(init=False)
    is_feature: bool = field(init=False)
    is_refactor: bool = field(init=False)

    def __post_init__(self):
        message = self.message.lower()
        self.is_bug_fix = any(kw in message for kw in BUG_FIX_KEYWORDS)
        self.is_feature = any(kw in message for kw in FEATURE_KEYWORDS)
        self.is_refactor = any(kw in message for kw in REFACTOR_KEYWORDS)

    @property
    def categories(self) -> List[str]:
        names = []
        if self.is_bug_fix:
            names.append("bug_fix")
        if self.is_feature:
            names.append("feature")
        if self.is_refactor:
            names.append("refactor")
        return names
