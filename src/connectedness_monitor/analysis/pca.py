"""
Principal component analysis helper.

Thin wrapper around scikit-learn's PCA returning the coefficient, explained
variance (percent) and score arrays used by the connectedness results.
"""

from dataclasses import dataclass

import numpy as np
from sklearn.decomposition import PCA

from ..core.exceptions import NumericalInstabilityError


@dataclass(frozen=True)
class PCAResult:
    """Principal component outputs."""
    coefficients: np.ndarray  # (N, K) loadings, one column per component
    explained: np.ndarray     # (K,) explained variance in percent
    scores: np.ndarray        # (T, K) component scores

    @property
    def explained_sums(self) -> np.ndarray:
        """
        Cumulative explained variance stack for plotting.

        Returns:
            [100, PC1-3 cumulative, PC1-2 cumulative, PC1] in percent
        """
        cumulative = np.cumsum(self.explained[:3])
        if cumulative.size < 3:
            cumulative = np.pad(cumulative, (0, 3 - cumulative.size), mode='edge')
        return np.array([100.0, cumulative[2], cumulative[1], cumulative[0]])


def compute_pca(data) -> PCAResult:
    """
    Run a full PCA on a T x N matrix.

    Raises:
        NumericalInstabilityError: If the decomposition fails
    """
    values = np.asarray(data, dtype=float)

    try:
        pca = PCA()
        scores = pca.fit_transform(values)
    except (ValueError, np.linalg.LinAlgError) as e:
        raise NumericalInstabilityError("principal component analysis", str(e)) from e

    explained = pca.explained_variance_ratio_ * 100.0
    # All-zero input yields NaN ratios
    explained = np.nan_to_num(explained, nan=0.0)

    return PCAResult(
        coefficients=pca.components_.T.copy(),
        explained=explained,
        scores=scores,
    )
