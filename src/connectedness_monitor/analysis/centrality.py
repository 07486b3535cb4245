"""
Network centrality analysis module.

Computes the centrality suite of a directed adjacency matrix: betweenness,
closeness, degree, eigenvector, Katz and clustering coefficient. All measures
are pure functions of a single adjacency snapshot (row = source, column = target).
"""

from dataclasses import dataclass, fields
from typing import Dict, List, Optional, Sequence
import logging

import numpy as np
import pandas as pd
from scipy.sparse.csgraph import dijkstra

from ..core.constants import (
    KATZ_ALPHA,
    BETWEENNESS_MAX_DEPTH,
    CENTRALITY_MEASURES,
    CENTRALITY_LABELS,
)
from ..core.exceptions import NetworkConstructionError, NumericalInstabilityError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CentralityResult:
    """Container for the centrality suite of one adjacency matrix."""
    betweenness: np.ndarray
    closeness: np.ndarray
    degree: np.ndarray
    eigenvector: np.ndarray
    katz: np.ndarray
    clustering: np.ndarray
    degrees_in: np.ndarray
    degrees_out: np.ndarray
    degrees: np.ndarray

    def as_dict(self) -> Dict[str, np.ndarray]:
        """All vectors keyed by measure name."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def to_frame(self, names: Optional[Sequence[str]] = None) -> pd.DataFrame:
        """The six centrality measures as an N x 6 DataFrame."""
        data = {CENTRALITY_LABELS[m]: getattr(self, m) for m in CENTRALITY_MEASURES}
        index = list(names) if names is not None else None
        return pd.DataFrame(data, index=index)


def _is_symmetric(matrix: np.ndarray) -> bool:
    return matrix.shape[0] == matrix.shape[1] and np.array_equal(matrix, matrix.T)


class CentralityEngine:
    """
    Centrality calculator for directed networks.

    Implements:
    - Degree centrality (in, out and total degree)
    - Closeness centrality (Dijkstra shortest paths)
    - Betweenness centrality (layered Brandes accumulation)
    - Eigenvector centrality (dominant eigenvector magnitude)
    - Katz centrality (fixed damping factor)
    - Clustering coefficient
    """

    @staticmethod
    def validate_adjacency(adjacency) -> np.ndarray:
        """
        Check an adjacency matrix and return it as a float array.

        Raises:
            NetworkConstructionError: If the matrix is not square and finite
        """
        matrix = np.asarray(adjacency, dtype=float)

        if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
            raise NetworkConstructionError(f"adjacency matrix must be square, got shape {matrix.shape}")
        if matrix.shape[0] == 0:
            raise NetworkConstructionError("adjacency matrix is empty", 0)
        if not np.all(np.isfinite(matrix)):
            raise NetworkConstructionError("adjacency matrix contains non-finite values", matrix.shape[0])

        return matrix

    @staticmethod
    def degree(adjacency: np.ndarray):
        """
        Compute degree vectors and degree centrality.

        Returns:
            Tuple of (degrees_in, degrees_out, degrees, degree_centrality)
        """
        n = adjacency.shape[0]
        degrees_in = adjacency.sum(axis=0)
        degrees_out = adjacency.sum(axis=1)

        if _is_symmetric(adjacency):
            degrees = degrees_in + np.diag(adjacency)
        else:
            degrees = degrees_in + degrees_out

        centrality = degrees / (n - 1) if n > 1 else np.zeros(n)
        return degrees_in, degrees_out, degrees, centrality

    @staticmethod
    def closeness(adjacency: np.ndarray) -> np.ndarray:
        """
        Compute closeness centrality from outgoing shortest paths.

        closeness(i) = (N - 1) / sum of finite distances from i, 0 when i
        reaches no other node.
        """
        n = adjacency.shape[0]
        distances = dijkstra(adjacency, directed=True)

        finite = np.where(np.isfinite(distances), distances, 0.0)
        sums = finite.sum(axis=1)

        closeness = np.zeros(n)
        reachable = sums != 0
        closeness[reachable] = (n - 1) / sums[reachable]
        return closeness

    @staticmethod
    def betweenness(adjacency: np.ndarray, max_depth: int = BETWEENNESS_MAX_DEPTH) -> np.ndarray:
        """
        Compute betweenness centrality.

        For every source a breadth-first search records shortest-path counts
        layer by layer; dependencies are then propagated back from the deepest
        layer. Each node starts every accumulation at 1, hence the final
        subtraction of N.

        Args:
            adjacency: N x N adjacency matrix
            max_depth: Maximum number of BFS layers per source

        Returns:
            Betweenness vector scaled by 2 / ((N - 1)(N - 2))
        """
        n = adjacency.shape[0]
        if n < 3:
            return np.zeros(n)

        totals = np.zeros(n)

        for source in range(n):
            paths = np.zeros(n)
            paths[source] = 1.0

            layers: List[np.ndarray] = []
            fringe = adjacency[source].copy()
            depth = 0

            while np.count_nonzero(fringe) > 0 and depth <= max_depth:
                depth += 1
                paths += fringe
                layers.append(fringe != 0)
                fringe = (fringe @ adjacency) * (paths == 0)

            inverse = np.zeros(n)
            reached = paths != 0
            inverse[reached] = 1.0 / paths[reached]

            dependency = np.ones(n)
            for d in range(len(layers) - 1, 0, -1):
                w = layers[d] * inverse * dependency
                dependency = dependency + (adjacency @ w) * layers[d - 1] * paths

            totals += dependency

        totals -= n
        return totals * 2.0 / ((n - 1) * (n - 2))

    @staticmethod
    def eigenvector(adjacency: np.ndarray) -> np.ndarray:
        """
        Compute eigenvector centrality.

        Uses the eigenvector of the eigenvalue with the largest real part,
        takes element-wise magnitudes and normalizes them to sum to 1.

        Raises:
            NumericalInstabilityError: If the eigen solver fails
        """
        try:
            values, vectors = np.linalg.eig(adjacency)
        except np.linalg.LinAlgError as e:
            raise NumericalInstabilityError("eigenvector centrality", str(e)) from e

        index = int(np.argmax(values.real))
        centrality = np.abs(vectors[:, index])
        total = centrality.sum()

        if not np.isfinite(total) or total == 0:
            raise NumericalInstabilityError("eigenvector centrality", "dominant eigenvector is degenerate")

        return centrality / total

    @staticmethod
    def katz(adjacency: np.ndarray, alpha: float = KATZ_ALPHA) -> np.ndarray:
        """
        Compute Katz centrality.

        Solves (I - alpha * A) x = 1 and scales x by sign(sum(x)) * ||x||.

        Raises:
            NumericalInstabilityError: If the linear system is singular
        """
        n = adjacency.shape[0]

        try:
            x = np.linalg.solve(np.eye(n) - alpha * adjacency, np.ones(n))
        except np.linalg.LinAlgError as e:
            raise NumericalInstabilityError("Katz centrality", str(e)) from e

        sign = np.sign(x.sum())
        norm = np.linalg.norm(x)

        if sign == 0 or norm == 0 or not np.all(np.isfinite(x)):
            raise NumericalInstabilityError("Katz centrality", "solution cannot be normalized")

        return x / (sign * norm)

    @staticmethod
    def clustering(adjacency: np.ndarray, degrees: np.ndarray) -> np.ndarray:
        """
        Compute clustering coefficients.

        Args:
            adjacency: N x N adjacency matrix
            degrees: Total degree vector

        Returns:
            Coefficient per node (0 when the degree is below 2)
        """
        n = adjacency.shape[0]
        coefficient = 2.0 if _is_symmetric(adjacency) else 1.0
        result = np.zeros(n)

        for i in range(n):
            degree = degrees[i]
            if degree == 0 or degree == 1:
                continue

            neighbors = np.flatnonzero(adjacency[i] != 0)
            subgraph = adjacency[np.ix_(neighbors, neighbors)]

            if _is_symmetric(subgraph):
                trace = np.trace(subgraph)
                if trace == 0:
                    edges = subgraph.sum() / 2.0
                else:
                    edges = (subgraph.sum() - trace) / 2.0 + trace
            else:
                edges = subgraph.sum()

            result[i] = (coefficient * edges) / (degree * (degree - 1))

        return result

    def compute(self, adjacency) -> CentralityResult:
        """
        Compute the full centrality suite.

        Args:
            adjacency: N x N adjacency matrix

        Returns:
            CentralityResult with one length-N vector per measure
        """
        matrix = self.validate_adjacency(adjacency)

        degrees_in, degrees_out, degrees, degree = self.degree(matrix)

        return CentralityResult(
            betweenness=self.betweenness(matrix),
            closeness=self.closeness(matrix),
            degree=degree,
            eigenvector=self.eigenvector(matrix),
            katz=self.katz(matrix),
            clustering=self.clustering(matrix, degrees),
            degrees_in=degrees_in,
            degrees_out=degrees_out,
            degrees=degrees,
        )


def calculate_centralities(adjacency) -> CentralityResult:
    """Convenience wrapper around CentralityEngine.compute."""
    return CentralityEngine().compute(adjacency)
