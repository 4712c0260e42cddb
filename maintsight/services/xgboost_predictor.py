"""XGBoost prediction service for maintenance risk analysis."""

import json
import math
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

import joblib
import numpy as np

from maintsight.config import metadata_path_for, resolve_model_path
from maintsight.errors import (
    CalibrationError,
    FeatureMismatchError,
    ModelLoadError,
    ModelNotFoundError,
    ModelNotLoadedError,
)
from maintsight.models import (
    DegradationCategory,
    FileStats,
    RiskCategory,
    RiskPrediction,
    XGBoostModel,
    XGBoostTree,
)
from maintsight.services.feature_engineer import FeatureEngineer
from maintsight.services.score_calibrator import ScoreCalibrator
from maintsight.utils.logger import Logger

PICKLE_SUFFIXES = {'.pkl', '.pickle', '.joblib'}


def sigmoid(x: float) -> float:
    """Logistic transform that does not overflow for large negative margins."""
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


class XGBoostPredictor:
    """Evaluates a serialized XGBoost ensemble over engineered file features.

    A predictor starts unloaded; score(), classify() and predict() only work
    after a successful load_model().
    """

    def __init__(
        self,
        model_path: Optional[str] = None,
        metadata_path: Optional[str] = None,
        calibrate: bool = True,
    ):
        """Initialize predictor.

        Args:
            model_path: Path to model file. If given, the model is loaded immediately.
            metadata_path: Calibration metadata. Defaults to <model stem>_metadata.json.
            calibrate: Apply score calibration when metadata is available.
        """
        self.model: Optional[XGBoostModel] = None
        self.model_path: Optional[Path] = None
        self.calibrator: Optional[ScoreCalibrator] = None
        self.calibrate = calibrate
        self.feature_engineer = FeatureEngineer()
        self.last_stats: Optional[Dict[str, float]] = None
        self.logger = Logger('XGBoostPredictor')

        if model_path:
            self.load_model(model_path, metadata_path)

    @property
    def is_loaded(self) -> bool:
        return self.model is not None

    def load_model(self, model_path: Optional[str] = None, metadata_path: Optional[str] = None) -> None:
        """Load an XGBoost model description from JSON or a joblib pickle.

        Args:
            model_path: Path to model file. If None, uses $MAINTSIGHT_MODEL_PATH or the bundled model.
            metadata_path: Calibration metadata path; looked up next to the model if None.

        Raises:
            ModelNotFoundError: the model file does not exist
            ModelLoadError: the file cannot be read or is not a valid model
            CalibrationError: explicitly requested metadata is missing or invalid
        """
        path = resolve_model_path(model_path)
        if not path.exists():
            raise ModelNotFoundError(str(path))

        self.logger.info(f"Loading model from {path}", '🤖')
        model = XGBoostModel.from_dict(self._read_model_file(path))
        if not model.trees:
            self.logger.warn("No trees found in model - using base score only")
        calibrator = self._load_calibrator(path, metadata_path)

        self.model = model
        self.model_path = path
        self.calibrator = calibrator
        self.logger.success(
            f"Model loaded successfully ({len(model.trees)} trees, {model.feature_count} features)", '✅'
        )

    def _read_model_file(self, path: Path):
        if path.suffix.lower() in PICKLE_SUFFIXES:
            try:
                data = joblib.load(path)
            except Exception as e:
                raise ModelLoadError(f"Failed to load model {path}: {e}")
        else:
            try:
                data = json.loads(path.read_text(encoding='utf-8'))
            except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
                raise ModelLoadError(f"Failed to load model {path}: {e}")

        if isinstance(data, dict) and 'risk_thresholds' not in data:
            self.logger.warn("Model has no risk_thresholds, using defaults")
        return data

    def _load_calibrator(self, model_path: Path, metadata_path: Optional[str]) -> Optional[ScoreCalibrator]:
        if not self.calibrate:
            return None

        if metadata_path is not None:
            if not Path(metadata_path).exists():
                raise CalibrationError(f"Calibration metadata not found: {metadata_path}")
            return ScoreCalibrator.from_metadata_file(metadata_path)

        default_path = metadata_path_for(model_path)
        if not default_path.exists():
            self.logger.debug(f"No calibration metadata at {default_path}")
            return None
        self.logger.info(f"Loaded calibration stats from {default_path}", '📊')
        return ScoreCalibrator.from_metadata_file(default_path)

    def _require_model(self) -> XGBoostModel:
        if self.model is None:
            raise ModelNotLoadedError()
        return self.model

    def score(self, features: Sequence[float]) -> float:
        """Logistic score of the ensemble for one feature vector.

        Args:
            features: Numeric features in the model's feature order

        Returns:
            sigmoid(base_score + sum of tree leaf weights)
        """
        model = self._require_model()
        if model.feature_names and len(features) != model.feature_count:
            raise FeatureMismatchError(
                f"Model expects {model.feature_count} features, got {len(features)}"
            )

        margin = model.base_score
        for tree in model.trees:
            margin += self._predict_tree(tree, features)
        return sigmoid(margin)

    def _predict_tree(self, tree: XGBoostTree, features: Sequence[float]) -> float:
        """Walk one tree from the root to a leaf and return its weight."""
        node_id = 0

        while not tree.is_leaf(node_id):
            feature_idx = tree.split_indices[node_id]
            if feature_idx >= len(features):
                raise FeatureMismatchError(
                    f"Tree splits on feature {feature_idx} but the vector has {len(features)} values"
                )

            if features[feature_idx] < tree.split_conditions[node_id]:
                node_id = tree.left_children[node_id]
            else:
                node_id = tree.right_children[node_id]

        return tree.base_weights[node_id]

    def classify(self, score: float) -> RiskCategory:
        """Bucket a score with the model's thresholds; boundaries go to the lower bucket."""
        return RiskCategory.from_score(score, self._require_model().risk_thresholds)

    def _check_feature_names(self, model: XGBoostModel) -> None:
        expected = list(model.feature_names)
        ours = self.feature_engineer.get_feature_names()
        if not expected or expected == ours:
            return

        missing = [name for name in expected if name not in ours]
        extra = [name for name in ours if name not in expected]
        details = []
        if missing:
            details.append(f"missing {missing}")
        if extra:
            details.append(f"unexpected {extra}")
        if not details:
            details.append("same features in a different order")
        raise FeatureMismatchError(
            f"Model expects {len(expected)} features, engineer produces {len(ours)}: {'; '.join(details)}"
        )

    def predict(
        self, file_stats: Union[Mapping[str, FileStats], Iterable[FileStats]]
    ) -> List[RiskPrediction]:
        """Predict maintenance risk for every aggregated file.

        Args:
            file_stats: Output of GitCommitCollector.fetch_commit_data()

        Returns:
            List of RiskPrediction objects, one per file
        """
        model = self._require_model()
        self._check_feature_names(model)

        features = self.feature_engineer.transform(file_stats)
        if not features:
            self.last_stats = None
            self.logger.warn("No files to score")
            return []

        self.logger.info(f"Running inference on {len(features)} files...", '🔮')
        raw_scores = np.array([
            self.score(self.feature_engineer.extract_feature_vector(f)) for f in features
        ])

        self.last_stats = summarize_scores(raw_scores)
        self.logger.info(f"Mean risk score: {self.last_stats['mean']:.3f}", '📊')
        self.logger.info(f"Std dev: {self.last_stats['std']:.3f}", '📊')
        self.logger.info(
            f"Min: {self.last_stats['min']:.3f}, Max: {self.last_stats['max']:.3f}", '📊'
        )

        degradation_scores = None
        if self.calibrator is not None:
            degradation_scores = self.calibrator.calibrate(raw_scores)

        predictions = []
        for i, feature in enumerate(features):
            risk_score = float(raw_scores[i])
            if degradation_scores is None:
                predictions.append(RiskPrediction(
                    module=feature.module,
                    risk_score=risk_score,
                    risk_category=self.classify(risk_score),
                ))
                continue

            degradation_score = float(degradation_scores[i])
            predictions.append(RiskPrediction(
                module=feature.module,
                risk_score=risk_score,
                risk_category=self.classify(risk_score),
                raw_prediction=risk_score,
                degradation_score=degradation_score,
                degradation_category=DegradationCategory.from_score(degradation_score),
            ))

        self.logger.success("Predictions complete", '✅')
        return predictions


def summarize_scores(scores: Sequence[float]) -> Dict[str, float]:
    """Mean, population std dev, min and max of a non-empty score batch."""
    values = np.asarray(scores, dtype=float)
    return {
        'mean': float(values.mean()),
        'std': float(values.std()),
        'min': float(values.min()),
        'max': float(values.max()),
    }
