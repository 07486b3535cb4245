"""Tests for the exception hierarchy."""

import pickle

import pytest

from connectedness_monitor.core.exceptions import (
    AnalysisError,
    ConfigNotFoundError,
    ConfigValidationError,
    ConfigurationError,
    ConnectednessError,
    DataLoadError,
    InsufficientDataError,
    InvalidFormatError,
    MissingColumnError,
    ModelFitError,
    NetworkConstructionError,
    NumericalInstabilityError,
    RunCancelledError,
    WindowComputationError,
    format_exception_chain,
)


EXCEPTIONS = [
    ConnectednessError("Base failure", "some details"),
    ConfigurationError("Bad config"),
    ConfigNotFoundError("missing.yaml"),
    ConfigValidationError(["'bandwidth' must be >= 30", "'k' out of range"]),
    DataLoadError("Cannot read file"),
    InvalidFormatError("returns.csv", "numeric values", "non-numeric values in: A"),
    MissingColumnError("Date", ["A", "B"]),
    MissingColumnError("Date", available_columns=["A"]),
    AnalysisError("Analysis failed"),
    InsufficientDataError(5, 3, "Granger causality test"),
    NetworkConstructionError("matrix is not square", node_count=4),
    ModelFitError("too few observations", observations=8, lags=2),
    NumericalInstabilityError("Katz centrality", "singular system"),
    WindowComputationError(7, "LinAlgError: singular matrix"),
    RunCancelledError(3, 49),
]


class TestPickling:
    """Errors raised in worker processes must reach the parent intact."""

    @pytest.mark.parametrize("error", EXCEPTIONS, ids=lambda e: type(e).__name__)
    def test_round_trip(self, error):
        restored = pickle.loads(pickle.dumps(error))

        assert type(restored) is type(error)
        assert str(restored) == str(error)
        assert restored.__dict__ == error.__dict__

    def test_attributes_survive(self):
        restored = pickle.loads(pickle.dumps(WindowComputationError(12, "boom")))

        assert restored.window_index == 12
        assert restored.reason == "boom"
        assert restored.details == "boom"


class TestHierarchy:

    def test_message_and_details(self):
        error = InsufficientDataError(252, 100, "rolling windows")

        assert isinstance(error, AnalysisError)
        assert isinstance(error, ConnectednessError)
        assert "rolling windows" in str(error)
        assert "Required: 252" in str(error)

    def test_format_exception_chain(self):
        try:
            try:
                raise NumericalInstabilityError("Katz centrality", "singular system")
            except NumericalInstabilityError as e:
                raise WindowComputationError(2, str(e)) from e
        except WindowComputationError as e:
            chain = format_exception_chain(e)

        assert "rolling window 2" in chain
        assert "Caused by: Numerical failure during Katz centrality" in chain
