"""
Granger causality network construction.

Builds a binary directed adjacency matrix from pairwise linear Granger
causality tests. Convention: row = cause, column = effect, so entry (i, j) = 1
means the past of entity i helps predict entity j.
"""

from typing import Optional
import logging

import numpy as np
import statsmodels.api as sm

from ..core.config import validate_parameters
from ..core.constants import DEFAULT_SIGNIFICANCE, DEFAULT_ROBUST
from ..core.exceptions import ConfigValidationError, InsufficientDataError, NumericalInstabilityError
from .preprocessing import ArrayLike, as_matrix, jitter_constant_columns

logger = logging.getLogger(__name__)

# Observations needed for a 3-parameter regression on lagged data
MIN_GRANGER_OBSERVATIONS = 5


def granger_pvalue(cause: np.ndarray, effect: np.ndarray, robust: bool = True) -> float:
    """
    P-value of the lag-1 linear Granger causality test cause -> effect.

    Regresses effect(t) on a constant, effect(t-1) and cause(t-1) and tests the
    coefficient of cause(t-1).

    Args:
        cause: Candidate causing series
        effect: Candidate caused series
        robust: Use heteroskedasticity-robust (HC0) standard errors

    Returns:
        Two-sided p-value (NaN when the test is undefined)
    """
    y = effect[1:]
    x = sm.add_constant(np.column_stack([effect[:-1], cause[:-1]]), has_constant='add')

    model = sm.OLS(y, x).fit(cov_type='HC0' if robust else 'nonrobust')
    return float(model.pvalues[2])


class CausalAdjacencyBuilder:
    """
    Pairwise Granger causality adjacency builder.

    Runs N * (N - 1) independent tests, one per ordered pair of entities,
    and keeps the edges whose p-value falls below the significance level.
    """

    def __init__(
        self,
        significance: float = DEFAULT_SIGNIFICANCE,
        robust: bool = DEFAULT_ROBUST,
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Initialize builder.

        Args:
            significance: Significance level in (0, 0.20]
            robust: Use robust p-values
            rng: Random generator for the zero-variance jitter

        Raises:
            ConfigValidationError: If significance is out of range
        """
        errors = validate_parameters(significance=significance)
        if errors:
            raise ConfigValidationError(errors)

        self.significance = significance
        self.robust = robust
        self.rng = rng

    def pvalues(self, window: ArrayLike) -> np.ndarray:
        """
        Compute the p-value of every ordered pair.

        Args:
            window: T x N returns

        Returns:
            N x N matrix, entry (i, j) for the test i -> j, NaN on the diagonal

        Raises:
            InsufficientDataError: If the window is too short
            NumericalInstabilityError: If the window contains NaN or infinite values
        """
        values = as_matrix(window)
        if not np.isfinite(values).all():
            raise NumericalInstabilityError("Granger causality test", "window contains non-finite values")

        values = jitter_constant_columns(values, self.rng)
        t, n = values.shape

        if t < MIN_GRANGER_OBSERVATIONS:
            raise InsufficientDataError(MIN_GRANGER_OBSERVATIONS, t, "Granger causality test")

        pvalues = np.full((n, n), np.nan)

        for i in range(n):
            for j in range(n):
                if i == j:
                    continue
                pvalues[i, j] = granger_pvalue(values[:, i], values[:, j], self.robust)

        return pvalues

    def build(self, window: ArrayLike) -> np.ndarray:
        """
        Build the causal adjacency matrix of a window.

        Args:
            window: T x N returns

        Returns:
            N x N float matrix of 0/1 with zero diagonal
        """
        pvalues = self.pvalues(window)

        # NaN compares False, so undefined tests never create an edge
        with np.errstate(invalid='ignore'):
            adjacency = (pvalues < self.significance).astype(float)

        np.fill_diagonal(adjacency, 0.0)

        logger.debug(f"Causal adjacency: {int(adjacency.sum())} edges among {adjacency.shape[0]} entities")
        return adjacency


def causal_adjacency(
    window: ArrayLike,
    significance: float = DEFAULT_SIGNIFICANCE,
    robust: bool = DEFAULT_ROBUST,
) -> np.ndarray:
    """Convenience wrapper around CausalAdjacencyBuilder.build."""
    return CausalAdjacencyBuilder(significance, robust).build(window)
