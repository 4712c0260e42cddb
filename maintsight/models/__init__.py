"""Data models and types for MaintSight."""

from .risk_category import DegradationCategory, RiskCategory
from .commit_record import CommitRecord
from .file_stats import FileStats
from .feature_vector import FEATURE_NAMES, FeatureVector
from .risk_prediction import RiskPrediction
from .xgboost_model import XGBoostModel, XGBoostTree

__all__ = [
    "RiskCategory",
    "DegradationCategory",
    "CommitRecord",
    "FileStats",
    "FEATURE_NAMES",
    "FeatureVector",
    "RiskPrediction",
    "XGBoostModel",
    "XGBoostTree",
]
