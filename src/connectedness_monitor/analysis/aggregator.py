"""
Rolling-window result aggregation.

Places per-window outputs at their time offsets, averages the adjacency
matrices into a representative network and runs the overall PCA.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
import logging

import numpy as np
import pandas as pd

from ..core.constants import (
    CENTRALITY_MEASURES,
    DEGREE_VECTORS,
    INDICATOR_COLUMNS,
    DEFAULT_SIGNIFICANCE,
    DEFAULT_ROBUST,
    DEFAULT_K,
)
from ..core.exceptions import AnalysisError
from .centrality import CentralityEngine, CentralityResult
from .indicators import GroupPartition
from .pca import PCAResult, compute_pca
from .windows import WindowResult, count_windows

logger = logging.getLogger(__name__)


@dataclass
class AggregatedDataset:
    """
    Time-aligned output of a connectedness run.

    Every per-window series has one row per observation date; rows before
    ``bandwidth - 1`` are missing (pd.NA) since no full window ends there.
    """
    dates: pd.Index
    firm_names: List[str]
    bandwidth: int
    significance: float
    robust: bool
    k: float
    indicators: pd.DataFrame
    centralities: Dict[str, pd.DataFrame]
    adjacency_matrices: List[np.ndarray]
    average_adjacency: np.ndarray
    average_centralities: CentralityResult
    pca_coefficients: List[np.ndarray]
    pca_explained: List[np.ndarray]
    pca_scores: List[np.ndarray]
    pca_explained_sums: pd.DataFrame
    pca_overall: PCAResult
    partition: GroupPartition = field(default_factory=GroupPartition)

    @property
    def n_windows(self) -> int:
        return len(self.adjacency_matrices)

    @property
    def first_offset(self) -> int:
        """Row of the first computed window."""
        return self.bandwidth - 1

    @property
    def threshold_breaches(self) -> pd.Series:
        """Dates where the DCI reaches the causality threshold k."""
        return (self.indicators['DCI'] >= self.k).fillna(False).astype(bool)

    def average_adjacency_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.average_adjacency, index=self.firm_names, columns=self.firm_names)

    def average_centralities_frame(self) -> pd.DataFrame:
        return self.average_centralities.to_frame(self.firm_names)

    def pca_overall_explained_frame(self) -> pd.DataFrame:
        explained = self.pca_overall.explained
        return pd.DataFrame(
            {'Explained': explained},
            index=[f"PC{i + 1}" for i in range(len(explained))],
        )

    def pca_overall_coefficients_frame(self) -> pd.DataFrame:
        coefficients = self.pca_overall.coefficients
        return pd.DataFrame(
            coefficients,
            index=self.firm_names,
            columns=[f"PC{i + 1}" for i in range(coefficients.shape[1])],
        )

    def pca_overall_scores_frame(self) -> pd.DataFrame:
        scores = self.pca_overall.scores
        return pd.DataFrame(
            scores,
            index=self.dates,
            columns=[f"PC{i + 1}" for i in range(scores.shape[1])],
        )


def average_adjacency(matrices: Sequence[np.ndarray]) -> np.ndarray:
    """
    Binarize the element-wise mean of adjacency matrices.

    An entry becomes 1 where the mean reaches the overall mean of the averaged
    matrix. A network with no edges in any window stays empty.
    """
    mean = np.mean(np.stack(matrices), axis=0)
    threshold = mean.mean()

    if threshold == 0:
        return np.zeros_like(mean)

    return (mean >= threshold).astype(float)


def _nullable_frame(values: np.ndarray, index, columns) -> pd.DataFrame:
    # NaN placeholders become pd.NA
    return pd.DataFrame(values, index=index, columns=columns).astype('Float64')


class ResultAggregator:
    """Combines ordered WindowResults into an AggregatedDataset."""

    def __init__(
        self,
        bandwidth: int,
        significance: float = DEFAULT_SIGNIFICANCE,
        robust: bool = DEFAULT_ROBUST,
        k: float = DEFAULT_K,
        partition: Optional[GroupPartition] = None,
    ):
        self.bandwidth = bandwidth
        self.significance = significance
        self.robust = robust
        self.k = k
        self.partition = partition if partition is not None else GroupPartition()

    def aggregate(self, returns, results: Sequence[WindowResult]) -> AggregatedDataset:
        """
        Aggregate window results.

        Args:
            returns: T x N returns DataFrame (or array) the windows were cut from
            results: One WindowResult per window, in window order

        Returns:
            AggregatedDataset

        Raises:
            AnalysisError: If results are missing or out of order
        """
        if isinstance(returns, pd.DataFrame):
            frame = returns
        else:
            frame = pd.DataFrame(np.asarray(returns, dtype=float))
        dates = frame.index
        firm_names = [str(c) for c in frame.columns]
        t, n = frame.shape

        expected = count_windows(t, self.bandwidth)
        if len(results) != expected or expected == 0:
            raise AnalysisError(
                "Window results do not cover the return series",
                f"Expected {expected} windows, got {len(results)}"
            )
        for position, result in enumerate(results):
            if result is None or result.index != position:
                raise AnalysisError("Window results are incomplete or out of order", f"Position {position}")

        offset = self.bandwidth - 1

        indicators = np.full((t, len(INDICATOR_COLUMNS)), np.nan)
        series = {name: np.full((t, n), np.nan) for name in CENTRALITY_MEASURES + DEGREE_VECTORS}
        explained_sums = np.full((t, 4), np.nan)

        for result in results:
            row = offset + result.index
            other = result.connections_in_out_other
            indicators[row] = [
                result.dci,
                result.connections_in_out,
                np.nan if other is None else other,
            ]
            for name, vector in result.centralities.as_dict().items():
                series[name][row] = vector
            explained_sums[row] = result.pca.explained_sums

        centralities = {
            name: _nullable_frame(values, dates, firm_names)
            for name, values in series.items()
        }

        matrices = [result.adjacency for result in results]
        averaged = average_adjacency(matrices)
        average_centralities = CentralityEngine().compute(averaged)

        logger.info(
            f"Aggregated {len(results)} windows; average network has "
            f"{int(averaged.sum())} edges"
        )

        return AggregatedDataset(
            dates=dates,
            firm_names=firm_names,
            bandwidth=self.bandwidth,
            significance=self.significance,
            robust=self.robust,
            k=self.k,
            indicators=_nullable_frame(indicators, dates, INDICATOR_COLUMNS),
            centralities=centralities,
            adjacency_matrices=matrices,
            average_adjacency=averaged,
            average_centralities=average_centralities,
            pca_coefficients=[result.pca.coefficients for result in results],
            pca_explained=[result.pca.explained for result in results],
            pca_scores=[result.pca.scores for result in results],
            pca_explained_sums=_nullable_frame(
                explained_sums, dates, ['Total', 'PC1-3', 'PC1-2', 'PC1']
            ),
            pca_overall=compute_pca(frame.to_numpy(dtype=float)),
            partition=self.partition,
        )
