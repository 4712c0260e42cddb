"""Risk prediction result model."""

from dataclasses import dataclass
from typing import Optional

from maintsight.models.risk_category import DegradationCategory, RiskCategory


@dataclass(frozen=True)
class RiskPrediction:
    """Result of maintenance risk prediction for a file."""

    module: str
    risk_score: float
    risk_category: RiskCategory
    raw_prediction: Optional[float] = None
    degradation_score: Optional[float] = None
    degradation_category: Optional[DegradationCategory] = None

    @property
    def is_calibrated(self) -> bool:
        return self.degradation_score is not None

    @property
    def needs_attention(self) -> bool:
        """True for medium/high risk, or a degraded calibrated score."""
        if self.risk_category in (RiskCategory.MEDIUM_RISK, RiskCategory.HIGH_RISK):
            return True
        return self.degradation_category in (
            DegradationCategory.DEGRADED,
            DegradationCategory.SEVERELY_DEGRADED,
        )

    def to_dict(self) -> dict:
        record = {
            "module": self.module,
            "risk_score": round(self.risk_score, 4),
            "risk_category": self.risk_category.value,
        }
        if self.is_calibrated:
            record["raw_prediction"] = round(self.raw_prediction, 4)
            record["degradation_score"] = round(self.degradation_score, 4)
            record["degradation_category"] = self.degradation_category.value
        return record

    def __str__(self) -> str:
        """String representation of the prediction."""
        return (
            f"{self.module}: {self.risk_category.display_name} "
            f"(score: {self.risk_score:.4f})"
        )
