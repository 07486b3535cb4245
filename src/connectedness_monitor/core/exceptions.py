"""
Custom exceptions for Connectedness Monitor.

Exception Hierarchy:
    ConnectednessError (Base)
    ├── ConfigurationError
    │   ├── ConfigNotFoundError
    │   └── ConfigValidationError
    ├── DataLoadError
    │   ├── InvalidFormatError
    │   └── MissingColumnError
    ├── AnalysisError
    │   ├── InsufficientDataError
    │   ├── NetworkConstructionError
    │   ├── ModelFitError
    │   ├── NumericalInstabilityError
    │   └── WindowComputationError
    └── RunCancelledError
"""

from typing import Any, Dict, Optional, List, Tuple


def _rebuild(cls, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> 'ConnectednessError':
    return cls(*args, **kwargs)


class ConnectednessError(Exception):
    """
    Base exception for all Connectedness Monitor errors.

    Constructor arguments are kept so every subclass can be pickled
    across worker processes.
    """

    def __new__(cls, *args, **kwargs):
        instance = super().__new__(cls, *args)
        instance._init_args = args
        instance._init_kwargs = kwargs
        return instance

    def __init__(self, message: str, details: Optional[str] = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __reduce__(self):
        return _rebuild, (type(self), self._init_args, self._init_kwargs), self.__dict__

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}\nDetails: {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(ConnectednessError):
    """Configuration related errors."""
    pass


class ConfigNotFoundError(ConfigurationError):
    """Config file not found."""

    def __init__(self, path: str):
        super().__init__(
            f"Configuration file not found: {path}",
            "Please provide a valid config file path or use default configuration."
        )
        self.path = path


class ConfigValidationError(ConfigurationError):
    """Config validation failed."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        error_list = "\n  - ".join(errors)
        super().__init__(
            f"Configuration validation failed with {len(errors)} error(s)",
            f"Errors:\n  - {error_list}"
        )


# =============================================================================
# Data Load Errors
# =============================================================================

class DataLoadError(ConnectednessError):
    """Data loading related errors."""
    pass


class InvalidFormatError(DataLoadError):
    """Data file has invalid format."""

    def __init__(self, filepath: str, expected_format: str, actual_issue: str):
        self.filepath = filepath
        self.expected_format = expected_format
        self.actual_issue = actual_issue
        super().__init__(
            f"Invalid data format in {filepath}",
            f"Expected: {expected_format}\nIssue: {actual_issue}"
        )


class MissingColumnError(DataLoadError):
    """Required column is missing from data."""

    def __init__(self, column: str, available_columns: Optional[List[str]] = None):
        self.column = column
        self.available_columns = available_columns
        details = None
        if available_columns:
            available = ", ".join(str(c) for c in available_columns[:10])
            if len(available_columns) > 10:
                available += f"... ({len(available_columns)} total)"
            details = f"Available columns: {available}"
        super().__init__(
            f"Required column '{column}' not found in data",
            details
        )


# =============================================================================
# Analysis Errors
# =============================================================================

class AnalysisError(ConnectednessError):
    """Analysis related errors."""
    pass


class InsufficientDataError(AnalysisError):
    """Not enough data for analysis."""

    def __init__(self, required: int, actual: int, analysis_type: str = "analysis"):
        self.required = required
        self.actual = actual
        self.analysis_type = analysis_type
        super().__init__(
            f"Insufficient data for {analysis_type}",
            f"Required: {required} observations, Actual: {actual} observations"
        )


class NetworkConstructionError(AnalysisError):
    """Adjacency matrix is not a usable network."""

    def __init__(self, reason: str, node_count: Optional[int] = None):
        self.reason = reason
        self.node_count = node_count
        details = f"Node count: {node_count}" if node_count is not None else None
        super().__init__(
            f"Failed to construct network: {reason}",
            details
        )


class ModelFitError(AnalysisError):
    """VAR model could not be estimated on the given data."""

    def __init__(self, reason: str, observations: Optional[int] = None, lags: Optional[int] = None):
        self.reason = reason
        self.observations = observations
        self.lags = lags
        details = None
        if observations is not None and lags is not None:
            details = f"Observations: {observations}, Lags: {lags}"
        super().__init__(
            f"Failed to fit VAR model: {reason}",
            details
        )


class NumericalInstabilityError(AnalysisError):
    """A numerical routine failed or produced an unusable result."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(
            f"Numerical failure during {operation}",
            reason
        )


class WindowComputationError(AnalysisError):
    """A rolling-window task failed, aborting the whole run."""

    def __init__(self, window_index: int, reason: str):
        self.window_index = window_index
        self.reason = reason
        super().__init__(
            f"Computation failed for rolling window {window_index}",
            reason
        )


# =============================================================================
# Run Control
# =============================================================================

class RunCancelledError(ConnectednessError):
    """The run was cancelled before every window completed."""

    def __init__(self, completed: int, total: int):
        self.completed = completed
        self.total = total
        super().__init__(
            "Connectedness run cancelled",
            f"Completed windows: {completed}/{total} (results discarded)"
        )


# =============================================================================
# Utility Functions
# =============================================================================

def format_exception_chain(exc: Exception) -> str:
    """Format exception with cause chain for logging."""
    messages = [str(exc)]
    current = exc.__cause__
    while current:
        messages.append(f"  Caused by: {current}")
        current = current.__cause__
    return "\n".join(messages)
