"""
Window preprocessing helpers shared by the model-based analyses.
"""

from typing import Optional, Union
import logging

import numpy as np
import pandas as pd

from ..core.constants import JITTER_LOW, JITTER_HIGH
from ..core.exceptions import AnalysisError

logger = logging.getLogger(__name__)

ArrayLike = Union[np.ndarray, pd.DataFrame]


def as_matrix(data: ArrayLike) -> np.ndarray:
    """
    Return a 2D float copy of a DataFrame or array.

    Raises:
        AnalysisError: If the input is not two-dimensional
    """
    values = data.to_numpy(dtype=float) if isinstance(data, pd.DataFrame) else np.asarray(data, dtype=float)
    if values.ndim != 2:
        raise AnalysisError("Expected a 2D matrix", f"Got {values.ndim} dimension(s)")
    return values.copy()


def jitter_constant_columns(
    data: np.ndarray,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """
    Perturb zero-variance columns with a tiny uniform jitter.

    A constant column makes the residual covariance of any regression on it
    singular. Column order is preserved.

    Args:
        data: T x N matrix (modified copy is returned)
        rng: Random generator (default: fresh unseeded generator)

    Returns:
        T x N matrix with no zero-variance column
    """
    data = np.array(data, dtype=float, copy=True)
    constant = np.var(data, axis=0) == 0

    if constant.any():
        rng = rng if rng is not None else np.random.default_rng()
        noise = rng.uniform(JITTER_LOW, JITTER_HIGH, size=(data.shape[0], int(constant.sum())))
        data[:, constant] += noise
        logger.debug(f"Jittered {int(constant.sum())} zero-variance column(s)")

    return data


def normalize_window(window: np.ndarray) -> np.ndarray:
    """
    Standardize every column to zero mean and unit variance.

    Degenerate (zero-variance) columns are zero-filled instead.
    """
    window = np.asarray(window, dtype=float)
    centered = window - window.mean(axis=0)
    std = window.std(axis=0, ddof=1)

    with np.errstate(divide='ignore', invalid='ignore'):
        normalized = centered / std

    normalized[~np.isfinite(normalized)] = 0.0
    return normalized
