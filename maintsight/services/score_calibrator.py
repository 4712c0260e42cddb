"""Optional post-processing that maps model scores onto the training distribution."""

import json
from pathlib import Path
from typing import Union

import numpy as np

from maintsight.errors import CalibrationError
from maintsight.utils.logger import Logger

CLIP_MARGIN = 0.1


class ScoreCalibrator:
    """Rescales a batch of scores to the mean/std of the training predictions."""

    def __init__(self, mean: float, std: float, min_score: float, max_score: float):
        if std < 0:
            raise CalibrationError(f"Calibration std must be non-negative, got {std}")
        if min_score > max_score:
            raise CalibrationError(f"Calibration min {min_score} is greater than max {max_score}")
        self.mean = mean
        self.std = std
        self.min_score = min_score
        self.max_score = max_score
        self.logger = Logger('ScoreCalibrator')

    @classmethod
    def from_metadata_file(cls, path: Union[str, Path]) -> "ScoreCalibrator":
        """Load training prediction statistics saved next to the model."""
        try:
            with open(path, "r") as f:
                stats = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CalibrationError(f"Failed to read calibration metadata {path}: {e}")
        if not isinstance(stats, dict):
            raise CalibrationError(f"Calibration metadata must be an object: {path}")

        missing = [key for key in ("mean", "std", "min", "max") if key not in stats]
        if missing:
            raise CalibrationError(f"Calibration metadata {path} is missing {', '.join(missing)}")
        try:
            values = [float(stats[key]) for key in ("mean", "std", "min", "max")]
        except (TypeError, ValueError) as e:
            raise CalibrationError(f"Invalid calibration metadata {path}: {e}")
        return cls(*values)

    def calibrate(self, predictions: np.ndarray) -> np.ndarray:
        """Z-score the batch, then scale it to the training distribution.

        The result is clipped to the training range widened by CLIP_MARGIN.
        A batch with no spread is pinned to the training mean.
        """
        predictions = np.asarray(predictions, dtype=float)
        if predictions.size == 0:
            return predictions

        raw_mean = predictions.mean()
        raw_std = predictions.std()

        if raw_std > 0:
            z_scores = (predictions - raw_mean) / raw_std
            calibrated = z_scores * self.std + self.mean
            calibrated = np.clip(calibrated, self.min_score - CLIP_MARGIN, self.max_score + CLIP_MARGIN)
        else:
            calibrated = np.full_like(predictions, self.mean)

        self.logger.info(
            f"Calibration: shifted mean from {raw_mean:.3f} to {calibrated.mean():.3f}", '📊'
        )
        return calibrated
