"""Service modules for MaintSight."""

from .git_commit_collector import GitCommitCollector, parse_log
from .feature_engineer import FeatureEngineer
from .score_calibrator import ScoreCalibrator
from .xgboost_predictor import XGBoostPredictor
from .summary import summarize_predictions, top_risks

__all__ = [
    "GitCommitCollector",
    "parse_log",
    "FeatureEngineer",
    "ScoreCalibrator",
    "XGBoostPredictor",
    "summarize_predictions",
    "top_risks",
]
