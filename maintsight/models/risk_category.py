"""Risk categories for maintenance risk classification."""

from enum import Enum
from typing import Sequence


class RiskCategory(Enum):
    """Risk categories assigned from the model's score thresholds."""

    NO_RISK = "no_risk"
    LOW_RISK = "low_risk"
    MEDIUM_RISK = "medium_risk"
    HIGH_RISK = "high_risk"

    def __str__(self) -> str:
        return self.value

    @property
    def display_name(self) -> str:
        """Human-readable display name."""
        return self.value.replace("_", " ").title()

    @classmethod
    def from_score(cls, score: float, thresholds: Sequence[float]) -> "RiskCategory":
        """Categorize a risk score against ascending thresholds.

        Args:
            score: Logistic risk score in [0, 1]
            thresholds: Ascending boundaries; the first three split the buckets

        Returns:
            RiskCategory, with scores exactly on a boundary falling into the lower bucket
        """
        if score <= thresholds[0]:
            return cls.NO_RISK
        elif score <= thresholds[1]:
            return cls.LOW_RISK
        elif score <= thresholds[2]:
            return cls.MEDIUM_RISK
        else:
            return cls.HIGH_RISK


class DegradationCategory(Enum):
    """Buckets for calibrated scores, which are centred on the training mean."""

    IMPROVED = "improved"
    STABLE = "stable"
    DEGRADED = "degraded"
    SEVERELY_DEGRADED = "severely_degraded"

    def __str__(self) -> str:
        return self.value

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()

    @classmethod
    def from_score(cls, score: float) -> "DegradationCategory":
        """Negative scores improved; up to 0.1 is stable, up to 0.2 degraded."""
        if score < 0.0:
            return cls.IMPROVED
        if score <= 0.1:
            return cls.STABLE
        if score <= 0.2:
            return cls.DEGRADED
        return cls.SEVERELY_DEGRADED
