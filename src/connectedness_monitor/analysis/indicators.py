"""
Connectedness indicators module.

Computes the Dynamic Causality Index and the in/out connection counts of a
causal network, optionally excluding connections inside entity groups.
"""

from bisect import bisect_right
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple
import logging

import numpy as np

from ..core.exceptions import ConfigValidationError, NetworkConstructionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GroupPartition:
    """
    Contiguous partition of the entities into groups.

    ``delimiters`` holds the exclusive end index of every group except the
    last: delimiters (2, 5) over 7 entities give groups [0, 2), [2, 5), [5, 7).
    An empty partition means no grouping.
    """
    delimiters: Tuple[int, ...] = ()
    names: Tuple[str, ...] = ()

    def __post_init__(self):
        delimiters = tuple(int(d) for d in self.delimiters)
        errors = []
        if any(b <= a for a, b in zip(delimiters, delimiters[1:])):
            errors.append(f"Group delimiters must be strictly increasing: {delimiters}")
        if delimiters and delimiters[0] <= 0:
            errors.append("Group delimiters must be positive")
        if self.names and len(self.names) != len(delimiters) + 1:
            errors.append(f"Expected {len(delimiters) + 1} group names, got {len(self.names)}")
        if errors:
            raise ConfigValidationError(errors)
        object.__setattr__(self, 'delimiters', delimiters)
        object.__setattr__(self, 'names', tuple(self.names))

    @classmethod
    def from_sizes(cls, sizes: Sequence[int], names: Sequence[str] = ()) -> 'GroupPartition':
        """Build a partition from consecutive group sizes."""
        delimiters = tuple(int(d) for d in np.cumsum(sizes)[:-1])
        return cls(delimiters, tuple(names))

    @property
    def is_empty(self) -> bool:
        return not self.delimiters

    @property
    def n_groups(self) -> int:
        return len(self.delimiters) + 1 if self.delimiters else 0

    def group_range(self, index: int, n: int) -> Tuple[int, int]:
        """
        Half-open index range of the group containing an entity.

        Args:
            index: Entity index (0-based)
            n: Total number of entities

        Returns:
            (begin, end) of the entity's group
        """
        position = bisect_right(self.delimiters, index)
        begin = self.delimiters[position - 1] if position > 0 else 0
        end = self.delimiters[position] if position < len(self.delimiters) else n
        return begin, end

    def group_of(self, index: int) -> int:
        """Group number (0-based) of an entity."""
        return bisect_right(self.delimiters, index)

    def validate(self, n: int) -> None:
        """Check the partition fits N entities."""
        if self.delimiters and self.delimiters[-1] >= n:
            raise NetworkConstructionError(
                f"group delimiter {self.delimiters[-1]} leaves the last group empty", n
            )


@dataclass(frozen=True)
class ConnectednessIndicators:
    """Network-wide connectedness indicators of one adjacency matrix."""
    dci: float
    connections_in_out: float
    connections_in_out_other: Optional[float] = None


class IndicatorCalculator:
    """
    Connectedness indicator calculator.

    Implements:
    - Dynamic Causality Index (share of possible causal edges present)
    - In & Out connections
    - In & Out connections to and from other groups
    """

    def __init__(self, partition: Optional[GroupPartition] = None):
        """
        Initialize calculator.

        Args:
            partition: Optional entity grouping for the "other" variant
        """
        self.partition = partition if partition is not None else GroupPartition()

    @staticmethod
    def dci(adjacency: np.ndarray) -> float:
        """Dynamic Causality Index: edges / (N^2 - N)."""
        n = adjacency.shape[0]
        return float(adjacency.sum() / (n ** 2 - n))

    @staticmethod
    def connections_in_out(adjacency: np.ndarray) -> float:
        """Total in and out connections normalized by 2 (N - 1)."""
        n = adjacency.shape[0]
        degrees_in = adjacency.sum(axis=0)
        degrees_out = adjacency.sum(axis=1)
        return float((degrees_in.sum() + degrees_out.sum()) / (2 * (n - 1)))

    def connections_in_out_other(self, adjacency: np.ndarray) -> Optional[float]:
        """
        In and out connections that cross group boundaries.

        Returns:
            Normalized count, or None without a partition
        """
        if self.partition.is_empty:
            return None

        n = adjacency.shape[0]
        self.partition.validate(n)

        degrees_in = adjacency.sum(axis=0)
        degrees_out = adjacency.sum(axis=1)

        from_other = np.zeros(n)
        to_other = np.zeros(n)

        for i in range(n):
            begin, end = self.partition.group_range(i, n)
            from_other[i] = degrees_in[i] - adjacency[begin:end, i].sum()
            to_other[i] = degrees_out[i] - adjacency[i, begin:end].sum()

        n_groups = self.partition.n_groups
        average_size = n / n_groups

        return float((from_other.sum() + to_other.sum()) / (2 * n_groups * average_size))

    def compute(self, adjacency) -> ConnectednessIndicators:
        """
        Compute all indicators.

        Args:
            adjacency: N x N adjacency matrix (row = cause, column = effect)

        Returns:
            ConnectednessIndicators
        """
        matrix = np.asarray(adjacency, dtype=float)
        if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1] or matrix.shape[0] < 2:
            raise NetworkConstructionError(f"indicators need a square matrix with N >= 2, got {matrix.shape}")

        return ConnectednessIndicators(
            dci=self.dci(matrix),
            connections_in_out=self.connections_in_out(matrix),
            connections_in_out_other=self.connections_in_out_other(matrix),
        )
