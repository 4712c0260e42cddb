"""Default settings shared by the CLI and the services."""

import os
from pathlib import Path
from typing import Optional

DEFAULT_BRANCH = "main"
DEFAULT_MAX_COMMITS = 10000
DEFAULT_WINDOW_DAYS = 150

MODEL_PATH_ENV = "MAINTSIGHT_MODEL_PATH"
BUNDLED_MODEL_PATH = Path(__file__).parent / "data" / "xgboost_maintenance_model.json"


def resolve_model_path(model_path: Optional[str] = None) -> Path:
    """Pick the model file: explicit path, then $MAINTSIGHT_MODEL_PATH, then the bundled model."""
    if model_path:
        return Path(model_path)
    env_path = os.environ.get(MODEL_PATH_ENV)
    if env_path:
        return Path(env_path)
    return BUNDLED_MODEL_PATH


def metadata_path_for(model_path: Path) -> Path:
    """Calibration metadata sits next to the model as <stem>_metadata.json."""
    return model_path.parent / (model_path.stem + "_metadata.json")
