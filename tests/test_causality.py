"""Tests for Granger causality adjacency construction."""

import pytest
import numpy as np

from connectedness_monitor.analysis.causality import (
    CausalAdjacencyBuilder,
    causal_adjacency,
    granger_pvalue,
)
from connectedness_monitor.core.exceptions import (
    AnalysisError,
    ConfigValidationError,
    InsufficientDataError,
    NumericalInstabilityError,
)


class TestGrangerPvalue:
    """Tests for the pairwise test."""

    def test_detects_lagged_cause(self, block_causal_returns):
        values = block_causal_returns.to_numpy()
        assert granger_pvalue(values[:, 0], values[:, 2]) < 0.001

    @pytest.mark.parametrize("robust", [True, False])
    def test_both_covariance_types(self, block_causal_returns, robust):
        values = block_causal_returns.to_numpy()
        p = granger_pvalue(values[:, 1], values[:, 3], robust=robust)
        assert 0.0 <= p < 0.001


class TestCausalAdjacencyBuilder:
    """Tests for CausalAdjacencyBuilder class."""

    def test_block_structure(self, block_causal_returns):
        adjacency = CausalAdjacencyBuilder(0.05).build(block_causal_returns)

        assert adjacency.shape == (5, 5)
        # row = cause, column = effect
        np.testing.assert_array_equal(adjacency[:2, 2:], np.ones((2, 3)))

    def test_zero_diagonal_and_binary(self, block_causal_returns):
        adjacency = causal_adjacency(block_causal_returns)

        np.testing.assert_array_equal(np.diag(adjacency), np.zeros(5))
        assert set(np.unique(adjacency)) <= {0.0, 1.0}

    def test_pvalues_diagonal_is_nan(self, sample_returns):
        pvalues = CausalAdjacencyBuilder().pvalues(sample_returns)

        assert np.all(np.isnan(np.diag(pvalues)))
        off_diagonal = pvalues[~np.eye(4, dtype=bool)]
        assert np.all((off_diagonal >= 0) & (off_diagonal <= 1))

    def test_constant_column_is_handled(self, sample_returns):
        data = sample_returns.copy()
        data["D"] = 0.0

        adjacency = CausalAdjacencyBuilder(rng=np.random.default_rng(0)).build(data)

        assert adjacency.shape == (4, 4)
        assert np.all(np.isfinite(adjacency))

    def test_lower_significance_never_adds_edges(self, block_causal_returns):
        loose = CausalAdjacencyBuilder(0.10).build(block_causal_returns)
        strict = CausalAdjacencyBuilder(0.01).build(block_causal_returns)

        assert np.all(strict <= loose)

    def test_too_short_window(self):
        with pytest.raises(InsufficientDataError):
            CausalAdjacencyBuilder().build(np.zeros((3, 4)))

    def test_window_must_be_two_dimensional(self):
        with pytest.raises(AnalysisError):
            CausalAdjacencyBuilder().build(np.zeros(40))

    @pytest.mark.parametrize("bad_value", [np.nan, np.inf])
    def test_non_finite_window(self, sample_returns, bad_value):
        data = sample_returns.copy()
        data.iloc[10, 1] = bad_value

        with pytest.raises(NumericalInstabilityError):
            CausalAdjacencyBuilder().build(data)

    @pytest.mark.parametrize("significance", [0.0, 0.25])
    def test_invalid_significance(self, significance):
        with pytest.raises(ConfigValidationError):
            CausalAdjacencyBuilder(significance)
