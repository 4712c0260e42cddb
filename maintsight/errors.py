"""Exceptions raised by the MaintSight pipeline."""


class MaintSightError(Exception):
    """Base class for all MaintSight errors."""


class RepositoryNotFoundError(MaintSightError, ValueError):
    def __init__(self, repo_path):
        self.repo_path = repo_path
        super().__init__(f"Repository path does not exist: {repo_path}")


class InvalidRepositoryError(MaintSightError, ValueError):
    def __init__(self, repo_path):
        self.repo_path = repo_path
        super().__init__(f"Not a git repository: {repo_path}")


class BranchNotFoundError(MaintSightError, ValueError):
    def __init__(self, branch, repo_path):
        self.branch = branch
        self.repo_path = repo_path
        super().__init__(f"Branch '{branch}' not found in {repo_path}")


class GitCommandFailedError(MaintSightError, RuntimeError):
    """git exited with an error while reading history."""


class ModelNotFoundError(MaintSightError, FileNotFoundError):
    def __init__(self, model_path):
        self.model_path = model_path
        super().__init__(f"Model not found: {model_path}")


class ModelLoadError(MaintSightError, RuntimeError):
    """Model file could not be read or does not have the expected structure."""


class ModelNotLoadedError(MaintSightError, RuntimeError):
    def __init__(self):
        super().__init__("Model not loaded. Call load_model() first.")


class FeatureMismatchError(MaintSightError, ValueError):
    """Feature vector does not line up with the model's feature names."""


class CalibrationError(MaintSightError, ValueError):
    """Calibration metadata is missing required statistics."""
