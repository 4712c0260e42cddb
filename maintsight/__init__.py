"""MaintSight - AI-powered maintenance risk predictor for git repositories."""

__version__ = "0.2.0"
