"""Custom exceptions for the RecomEngine training pipeline.

Every error carries the pipeline stage it was raised in, so callers (the CLI
and the scoring API) can report which step failed without inspecting types.
"""

from typing import Any, Dict, Optional, Sequence


class RecomEngineError(Exception):
    """Base exception for RecomEngine errors."""

    stage = "pipeline"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize exception.

        Args:
            message: Human-readable error message
            details: Additional error details for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class MalformedRecordError(RecomEngineError):
    """Raised when an input line cannot be parsed into an interaction."""

    stage = "parse"

    def __init__(
        self,
        line: str,
        reason: str,
        line_number: Optional[int] = None,
        source: Optional[str] = None,
    ):
        location = ""
        if line_number is not None:
            location = f"line {line_number}"
            if source is not None:
                location = f"{source}, {location}"
            location = f" ({location})"
        super().__init__(
            message=f"Malformed record{location}: {reason}: {line!r}",
            details={
                "line": line,
                "reason": reason,
                "line_number": line_number,
                "source": source,
            },
        )
        self.line = line
        self.reason = reason
        self.line_number = line_number
        self.source = source


class InvalidRatioError(RecomEngineError):
    """Raised when split ratios are empty, non-positive or do not sum to 1."""

    stage = "split"

    def __init__(self, ratios: Sequence[float], reason: str):
        super().__init__(
            message=f"Invalid split ratios {list(ratios)}: {reason}",
            details={"ratios": list(ratios), "reason": reason},
        )


class InvalidHyperparameterError(RecomEngineError):
    """Raised when a training hyperparameter is out of range."""

    stage = "train"

    def __init__(self, name: str, value: Any, reason: str):
        super().__init__(
            message=f"Invalid hyperparameter {name}={value!r}: {reason}",
            details={"name": name, "value": value, "reason": reason},
        )


class EmptyTrainingSetError(RecomEngineError):
    """Raised when the training subset holds no records."""

    stage = "train"

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="Cannot train on an empty training subset",
            details=details,
        )


class NoScorableRecordsError(RecomEngineError):
    """Raised when every test record maps to an absent prediction."""

    stage = "evaluate"

    def __init__(self, n_records: int):
        super().__init__(
            message=(
                f"No scorable records in test subset of {n_records} records; "
                "every user or item is missing from the trained model"
            ),
            details={"n_records": n_records},
        )


class StorageWriteError(RecomEngineError):
    """Raised when a model cannot be written to disk."""

    stage = "save"

    def __init__(self, path: str, error: Exception):
        super().__init__(
            message=f"Failed to save model to '{path}': {error}",
            details={
                "path": path,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )


class StorageReadError(RecomEngineError):
    """Raised when a saved model is missing, unreadable or incompatible."""

    stage = "load"

    def __init__(self, path: str, reason: str):
        super().__init__(
            message=f"Failed to load model from '{path}': {reason}",
            details={"path": path, "reason": reason},
        )
