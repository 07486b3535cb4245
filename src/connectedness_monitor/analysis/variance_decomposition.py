"""
Forecast error variance decomposition module.

Fits a VAR(p) model to a window of returns and decomposes each entity's
h-step forecast error variance across the shocks of every entity, using either
the generalized (order invariant) or the orthogonal (Cholesky) identification.

Convention: in the decomposition matrix, row i is the entity whose variance is
decomposed and column j the shock source; every row sums to 1.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence
import logging

import numpy as np
import pandas as pd
from statsmodels.tsa.api import VAR

from ..core.config import validate_parameters
from ..core.constants import DEFAULT_LAGS, DEFAULT_STANDALONE_HORIZON, DEFAULT_GENERALIZED
from ..core.exceptions import ConfigValidationError, ModelFitError
from .preprocessing import ArrayLike, as_matrix, jitter_constant_columns

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VarianceDecomposition:
    """Result of a forecast error variance decomposition."""
    matrix: np.ndarray              # (N, N) decomposition at the final horizon
    by_horizon: np.ndarray          # (h, N, N) decomposition at every step
    impulse_responses: np.ndarray   # (h, N, N) responses[j, row, shock]
    ma_coefficients: np.ndarray     # (h, N, N) MA_0 .. MA_{h-1}
    covariance: np.ndarray          # (N, N) residual covariance
    lags: int
    horizon: int
    generalized: bool
    names: Optional[List[str]] = None

    def to_frame(self) -> pd.DataFrame:
        """Decomposition matrix labelled by entity (rows: receivers, columns: shocks)."""
        names = self.names or [f"X{i + 1}" for i in range(self.matrix.shape[0])]
        return pd.DataFrame(self.matrix, index=names, columns=names)


@dataclass(frozen=True)
class SpilloverSummary:
    """Directional spillover measures derived from a decomposition matrix."""
    total: float            # off-diagonal share of total forecast error variance
    to_others: pd.Series    # contribution of each entity's shocks to the others
    from_others: pd.Series  # share of each entity's variance coming from the others
    net: pd.Series          # to_others - from_others


def companion_matrix(coefs: np.ndarray) -> np.ndarray:
    """
    Build the lag-1 companion matrix of a VAR(p).

    Args:
        coefs: (p, N, N) AR coefficient matrices A_1 .. A_p

    Returns:
        (pN, pN) matrix with [A_1 ... A_p] in the first block row and an
        identity block shifting the lags below it
    """
    coefs = np.asarray(coefs, dtype=float)
    p, n, _ = coefs.shape

    companion = np.zeros((n * p, n * p))
    companion[:n, :] = np.hstack(list(coefs))

    if p > 1:
        companion[n:, :-n] = np.eye((p - 1) * n)

    return companion


def ma_coefficients(companion: np.ndarray, n: int, horizon: int) -> np.ndarray:
    """
    Moving-average coefficients MA_i = (companion^i)[:N, :N] for i = 0..h-1.

    Returns:
        (h, N, N) array with MA_0 = I
    """
    ma = np.empty((horizon, n, n))
    power = np.eye(companion.shape[0])

    for i in range(horizon):
        ma[i] = power[:n, :n]
        power = power @ companion

    return ma


def decompose_from_parameters(
    coefs: np.ndarray,
    covariance: np.ndarray,
    horizon: int,
    generalized: bool = True,
) -> VarianceDecomposition:
    """
    Compute the variance decomposition from known VAR parameters.

    Args:
        coefs: (p, N, N) AR coefficient matrices
        covariance: (N, N) residual covariance matrix
        horizon: Forecast horizon h
        generalized: Generalized FEVD if True, orthogonal (Cholesky) otherwise

    Returns:
        VarianceDecomposition

    Raises:
        ModelFitError: If the covariance cannot identify the shocks
    """
    coefs = np.asarray(coefs, dtype=float)
    covariance = np.asarray(covariance, dtype=float)
    p, n, _ = coefs.shape

    ma = ma_coefficients(companion_matrix(coefs), n, horizon)

    if generalized:
        variances = np.diag(covariance)
        if np.any(variances <= 0) or not np.all(np.isfinite(variances)):
            raise ModelFitError("residual covariance has non-positive diagonal entries")
        impact = covariance / np.sqrt(variances)[np.newaxis, :]
    else:
        try:
            impact = np.linalg.cholesky(covariance)
        except np.linalg.LinAlgError as e:
            raise ModelFitError("residual covariance is not positive definite") from e

    # responses[j, row, shock] = (MA_j @ impact)[row, shock]
    responses = ma @ impact
    cumulative = np.cumsum(responses ** 2, axis=0)
    totals = cumulative.sum(axis=2, keepdims=True)

    with np.errstate(divide='ignore', invalid='ignore'):
        by_horizon = cumulative / totals

    if not np.all(np.isfinite(by_horizon)):
        raise ModelFitError("variance decomposition is undefined (zero forecast error variance)")

    return VarianceDecomposition(
        matrix=by_horizon[-1].copy(),
        by_horizon=by_horizon,
        impulse_responses=responses,
        ma_coefficients=ma,
        covariance=covariance,
        lags=p,
        horizon=horizon,
        generalized=generalized,
    )


class VarianceDecomposer:
    """
    VAR-based forecast error variance decomposer.

    Implements:
    - VAR(p) estimation with a constant term
    - Companion-form moving-average representation
    - Generalized (Pesaran-Shin) and orthogonal (Cholesky) FEVD
    """

    def __init__(
        self,
        lags: int = DEFAULT_LAGS,
        horizon: int = DEFAULT_STANDALONE_HORIZON,
        generalized: bool = DEFAULT_GENERALIZED,
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Initialize decomposer.

        Args:
            lags: VAR lag order in [1, 5]
            horizon: Forecast horizon in [1, 15]
            generalized: Use the generalized FEVD
            rng: Random generator for the zero-variance jitter

        Raises:
            ConfigValidationError: If lags or horizon are out of range
        """
        errors = validate_parameters(lags=lags, horizon=horizon)
        if errors:
            raise ConfigValidationError(errors)

        self.lags = lags
        self.horizon = horizon
        self.generalized = generalized
        self.rng = rng

    @classmethod
    def from_config(cls, config, rng: Optional[np.random.Generator] = None) -> 'VarianceDecomposer':
        """Create a decomposer from the ``spillover`` section of a Config."""
        spill = config.spillover
        return cls(spill.lags, spill.horizon, spill.generalized, rng=rng)

    def fit(self, data: ArrayLike):
        """
        Fit the VAR(p) model.

        Args:
            data: T x N returns (DataFrame or array)

        Returns:
            statsmodels VARResults

        Raises:
            ModelFitError: If the model cannot be estimated
        """
        values = jitter_constant_columns(as_matrix(data), self.rng)
        t, n = values.shape

        if n < 2:
            raise ModelFitError("a VAR needs at least two series", t, self.lags)

        # Each equation estimates a constant plus N * p slopes
        if t - self.lags <= n * self.lags + 1:
            raise ModelFitError("too few observations for the lag order", t, self.lags)

        try:
            return VAR(values).fit(maxlags=self.lags, ic=None, trend='c')
        except (np.linalg.LinAlgError, ValueError) as e:
            raise ModelFitError(str(e), t, self.lags) from e

    def decompose(self, data: ArrayLike) -> VarianceDecomposition:
        """
        Fit the VAR and decompose the forecast error variance.

        Args:
            data: T x N returns (DataFrame or array)

        Returns:
            VarianceDecomposition at the configured horizon
        """
        results = self.fit(data)

        decomposition = decompose_from_parameters(
            results.coefs,
            results.sigma_u_mle,
            self.horizon,
            self.generalized,
        )

        names = list(data.columns) if isinstance(data, pd.DataFrame) else None
        logger.debug(
            f"FEVD ({'generalized' if self.generalized else 'orthogonal'}, "
            f"p={self.lags}, h={self.horizon}) on {results.nobs} observations"
        )

        return VarianceDecomposition(
            matrix=decomposition.matrix,
            by_horizon=decomposition.by_horizon,
            impulse_responses=decomposition.impulse_responses,
            ma_coefficients=decomposition.ma_coefficients,
            covariance=decomposition.covariance,
            lags=self.lags,
            horizon=self.horizon,
            generalized=self.generalized,
            names=[str(c) for c in names] if names is not None else None,
        )


def variance_decomposition(
    data: ArrayLike,
    lags: int = DEFAULT_LAGS,
    horizon: int = DEFAULT_STANDALONE_HORIZON,
    generalized: bool = DEFAULT_GENERALIZED,
) -> np.ndarray:
    """Convenience wrapper returning only the N x N decomposition matrix."""
    return VarianceDecomposer(lags, horizon, generalized).decompose(data).matrix


def spillover_summary(
    matrix: np.ndarray,
    names: Optional[Sequence[str]] = None,
) -> SpilloverSummary:
    """
    Summarize a row-normalized decomposition matrix into spillover measures.

    Args:
        matrix: (N, N) decomposition (rows sum to 1)
        names: Entity labels

    Returns:
        SpilloverSummary
    """
    matrix = np.asarray(matrix, dtype=float)
    n = matrix.shape[0]
    names = list(names) if names is not None else [f"X{i + 1}" for i in range(n)]

    off_diagonal = matrix - np.diag(np.diag(matrix))
    to_others = pd.Series(off_diagonal.sum(axis=0), index=names, name='to_others')
    from_others = pd.Series(off_diagonal.sum(axis=1), index=names, name='from_others')

    return SpilloverSummary(
        total=float(off_diagonal.sum() / matrix.sum()),
        to_others=to_others,
        from_others=from_others,
        net=(to_others - from_others).rename('net'),
    )
