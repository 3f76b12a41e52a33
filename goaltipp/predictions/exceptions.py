"""Errors raised by the prediction services and translated by the API views."""


class PredictionError(Exception):
    """Base class for rejected prediction or scoring requests."""


class PredictionClosedError(PredictionError):
    """Raised when a prediction is submitted outside its prediction window."""

    def __init__(self, message: str = "Predictions are closed for this match") -> None:
        super().__init__(message)


class InvalidScoreError(PredictionError, ValueError):
    """Raised for missing, negative or non-integer scores."""


class InvalidScoringRule(PredictionError, ValueError):
    """Raised when a scoring rule configuration cannot be saved."""


class InvalidSelectionError(PredictionError, ValueError):
    """Raised when a team or player does not belong to the tournament."""
