"""Analysis module - Variance decomposition, causal networks, centralities, rolling windows"""

from .variance_decomposition import (
    VarianceDecomposer,
    VarianceDecomposition,
    SpilloverSummary,
    variance_decomposition,
    spillover_summary,
)
from .causality import CausalAdjacencyBuilder, causal_adjacency
from .centrality import CentralityEngine, CentralityResult, calculate_centralities
from .indicators import GroupPartition, ConnectednessIndicators, IndicatorCalculator
from .pca import PCAResult, compute_pca
from .windows import (
    CancellationToken,
    RunState,
    WindowOrchestrator,
    WindowResult,
    extract_rolling_windows,
    run_connectedness,
)
from .aggregator import AggregatedDataset, ResultAggregator

__all__ = [
    "VarianceDecomposer",
    "VarianceDecomposition",
    "SpilloverSummary",
    "variance_decomposition",
    "spillover_summary",
    "CausalAdjacencyBuilder",
    "causal_adjacency",
    "CentralityEngine",
    "CentralityResult",
    "calculate_centralities",
    "GroupPartition",
    "ConnectednessIndicators",
    "IndicatorCalculator",
    "PCAResult",
    "compute_pca",
    "CancellationToken",
    "RunState",
    "WindowOrchestrator",
    "WindowResult",
    "extract_rolling_windows",
    "run_connectedness",
    "AggregatedDataset",
    "ResultAggregator",
]
