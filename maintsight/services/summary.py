"""Aggregate views over a batch of predictions."""

from collections import Counter
from typing import Any, Dict, List

from maintsight.models import DegradationCategory, RiskCategory, RiskPrediction
from maintsight.services.xgboost_predictor import summarize_scores


def summarize_predictions(predictions: List[RiskPrediction]) -> Dict[str, Any]:
    """Category distribution and score statistics for a prediction batch."""
    total = len(predictions)
    risk_counts = Counter(p.risk_category for p in predictions)
    summary: Dict[str, Any] = {
        'total': total,
        'risk_distribution': {
            category.value: risk_counts.get(category, 0) for category in RiskCategory
        },
        'scores': summarize_scores([p.risk_score for p in predictions]) if total else None,
        'needs_attention': sum(1 for p in predictions if p.needs_attention),
    }

    calibrated = [p for p in predictions if p.is_calibrated]
    if calibrated:
        degradation_counts = Counter(p.degradation_category for p in calibrated)
        summary['degradation_distribution'] = {
            category.value: degradation_counts.get(category, 0) for category in DegradationCategory
        }
        summary['degradation_scores'] = summarize_scores([p.degradation_score for p in calibrated])

    return summary


def top_risks(predictions: List[RiskPrediction], limit: int = 20) -> List[RiskPrediction]:
    """Highest-scoring files first."""
    return sorted(predictions, key=lambda p: p.risk_score, reverse=True)[:limit]
