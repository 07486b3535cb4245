"""
Rolling-window orchestration module.

Slices the return matrix into overlapping windows, computes the causal network
of every window in a worker pool and gathers the results in window order.
"""

from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional
import logging
import os
import threading

import numpy as np
import pandas as pd

from ..core.config import Config, validate_parameters
from ..core.constants import DEFAULT_BANDWIDTH, DEFAULT_SIGNIFICANCE, DEFAULT_ROBUST, DEFAULT_K
from ..utils.logging import LogContext
from ..core.exceptions import (
    ConfigValidationError,
    InsufficientDataError,
    RunCancelledError,
    WindowComputationError,
)
from .causality import CausalAdjacencyBuilder
from .centrality import CentralityEngine, CentralityResult
from .indicators import ConnectednessIndicators, GroupPartition, IndicatorCalculator
from .pca import PCAResult, compute_pca
from .preprocessing import normalize_window

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


class RunState(Enum):
    """Lifecycle of an orchestrated run."""
    IDLE = 'idle'
    DISPATCHING = 'dispatching'
    AWAITING = 'awaiting'
    AGGREGATING = 'aggregating'
    CANCELLED = 'cancelled'
    FAILED = 'failed'
    DONE = 'done'


class CancellationToken:
    """Thread-safe cooperative cancellation flag."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class WindowResult:
    """Everything computed for one rolling window."""
    index: int
    adjacency: np.ndarray
    indicators: ConnectednessIndicators
    centralities: CentralityResult
    pca: PCAResult

    @property
    def dci(self) -> float:
        return self.indicators.dci

    @property
    def connections_in_out(self) -> float:
        return self.indicators.connections_in_out

    @property
    def connections_in_out_other(self) -> Optional[float]:
        return self.indicators.connections_in_out_other


def count_windows(observations: int, bandwidth: int) -> int:
    """Number of rolling windows: T - bandwidth + 1 (0 when T < bandwidth)."""
    return max(observations - bandwidth + 1, 0)


def extract_rolling_windows(returns, bandwidth: int) -> List[np.ndarray]:
    """
    Slice a T x N matrix into read-only windows of ``bandwidth`` rows.

    Raises:
        InsufficientDataError: If T < bandwidth
    """
    values = np.array(returns, dtype=float)
    values.setflags(write=False)

    total = count_windows(values.shape[0], bandwidth)
    if total == 0:
        raise InsufficientDataError(bandwidth, values.shape[0], "rolling windows")

    return [values[i:i + bandwidth] for i in range(total)]


def compute_window(
    index: int,
    window: np.ndarray,
    partition: GroupPartition,
    significance: float,
    robust: bool,
    seed: Optional[int] = None,
) -> WindowResult:
    """
    Compute the causal network, indicators, centralities and PCA of a window.

    Runs inside a worker; every argument is picklable.
    """
    rng = np.random.default_rng(None if seed is None else seed + index)

    adjacency = CausalAdjacencyBuilder(significance, robust, rng=rng).build(window)
    indicators = IndicatorCalculator(partition).compute(adjacency)
    centralities = CentralityEngine().compute(adjacency)
    pca = compute_pca(normalize_window(window))

    return WindowResult(
        index=index,
        adjacency=adjacency,
        indicators=indicators,
        centralities=centralities,
        pca=pca,
    )


class WindowOrchestrator:
    """
    Scatter/gather runner for rolling-window connectedness.

    One task per window is submitted to a process (or thread) pool. Results
    are collected as they complete and stored by window index, so the output
    order never depends on completion order. Cancellation is cooperative and
    checked before and after each retrieved result.
    """

    def __init__(
        self,
        bandwidth: int = DEFAULT_BANDWIDTH,
        significance: float = DEFAULT_SIGNIFICANCE,
        robust: bool = DEFAULT_ROBUST,
        k: float = DEFAULT_K,
        partition: Optional[GroupPartition] = None,
        max_workers: Optional[int] = None,
        use_processes: bool = True,
        seed: Optional[int] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            bandwidth: Window length (>= 30)
            significance: Granger test significance in (0, 0.20]
            robust: Use robust p-values
            k: Causality threshold in (0, 0.20], kept for the aggregated output
            partition: Optional entity grouping
            max_workers: Pool size (default: available CPUs)
            use_processes: Process pool if True, thread pool otherwise
            seed: Base seed for the zero-variance jitter

        Raises:
            ConfigValidationError: If any parameter is out of range
        """
        errors = validate_parameters(bandwidth=bandwidth, significance=significance, k=k)
        if max_workers is not None and max_workers < 1:
            errors.append("'max_workers' must be a positive integer")
        if errors:
            raise ConfigValidationError(errors)

        self.bandwidth = bandwidth
        self.significance = significance
        self.robust = robust
        self.k = k
        self.partition = partition if partition is not None else GroupPartition()
        self.max_workers = max_workers or os.cpu_count() or 1
        self.use_processes = use_processes
        self.seed = seed
        self.state = RunState.IDLE

    @classmethod
    def from_config(cls, config: Config, partition: Optional[GroupPartition] = None) -> 'WindowOrchestrator':
        """Create an orchestrator from a validated Config."""
        config.validate()
        conn = config.connectedness
        execution = config.execution
        return cls(
            bandwidth=conn.bandwidth,
            significance=conn.significance,
            robust=conn.robust,
            k=conn.k,
            partition=partition,
            max_workers=execution.max_workers,
            use_processes=execution.use_processes,
            seed=execution.seed,
        )

    def _executor(self):
        if self.use_processes:
            return ProcessPoolExecutor(max_workers=self.max_workers)
        return ThreadPoolExecutor(max_workers=self.max_workers)

    def run_windows(
        self,
        returns,
        progress_callback: Optional[ProgressCallback] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> List[WindowResult]:
        """
        Compute every rolling window.

        Args:
            returns: T x N returns (DataFrame or array)
            progress_callback: Called with the fraction of windows reached
            cancellation: Token polled between retrievals

        Returns:
            WindowResults ordered by window index

        Raises:
            RunCancelledError: If cancellation was requested
            WindowComputationError: If any window task failed
        """
        cancellation = cancellation if cancellation is not None else CancellationToken()

        windows = extract_rolling_windows(returns, self.bandwidth)
        total = len(windows)
        self.partition.validate(windows[0].shape[1])

        slots: List[Optional[WindowResult]] = [None] * total
        futures = {}
        completed = 0
        furthest = 0
        aborted = False

        logger.info(
            f"Dispatching {total} windows (bandwidth={self.bandwidth}, workers={self.max_workers}, "
            f"{'processes' if self.use_processes else 'threads'})"
        )

        executor = self._executor()
        try:
            self.state = RunState.DISPATCHING
            futures = {
                executor.submit(
                    compute_window, index, window, self.partition,
                    self.significance, self.robust, self.seed,
                ): index
                for index, window in enumerate(windows)
            }

            self.state = RunState.AWAITING
            if cancellation.is_cancelled:
                raise RunCancelledError(completed, total)

            for future in as_completed(futures):
                if cancellation.is_cancelled:
                    raise RunCancelledError(completed, total)

                index = futures[future]
                try:
                    slots[index] = future.result()
                except Exception as e:
                    raise WindowComputationError(index, f"{type(e).__name__}: {e}") from e

                completed += 1
                furthest = max(furthest, index + 1)
                if progress_callback is not None:
                    progress_callback(furthest / total)

                if cancellation.is_cancelled:
                    raise RunCancelledError(completed, total)

        except RunCancelledError:
            aborted = True
            self.state = RunState.CANCELLED
            logger.warning(f"Run cancelled after {completed}/{total} windows")
            raise
        except WindowComputationError as e:
            aborted = True
            self.state = RunState.FAILED
            logger.error(str(e))
            raise
        finally:
            for future in futures:
                future.cancel()
            executor.shutdown(wait=not aborted, cancel_futures=True)

        logger.info(f"Completed {completed} windows")
        return slots

    def execute(
        self,
        returns: pd.DataFrame,
        progress_callback: Optional[ProgressCallback] = None,
        cancellation: Optional[CancellationToken] = None,
    ):
        """
        Run every window and aggregate the results.

        Args:
            returns: T x N returns DataFrame (index = dates, columns = entities)
            progress_callback: Called with the fraction of windows reached
            cancellation: Token polled between retrievals

        Returns:
            AggregatedDataset

        Raises:
            RunCancelledError: If cancellation was requested (no dataset is built)
            WindowComputationError: If any window task failed
        """
        from .aggregator import ResultAggregator

        results = self.run_windows(returns, progress_callback, cancellation)

        self.state = RunState.AGGREGATING
        with LogContext(logger, f"Aggregating {len(results)} windows", level=logging.DEBUG):
            dataset = ResultAggregator(
                bandwidth=self.bandwidth,
                significance=self.significance,
                robust=self.robust,
                k=self.k,
                partition=self.partition,
            ).aggregate(returns, results)

        self.state = RunState.DONE
        return dataset


def run_connectedness(
    returns: pd.DataFrame,
    config: Config,
    partition: Optional[GroupPartition] = None,
    progress_callback: Optional[ProgressCallback] = None,
    cancellation: Optional[CancellationToken] = None,
):
    """
    Run the rolling-window connectedness analysis.

    Returns:
        AggregatedDataset, or None when the run was cancelled
    """
    orchestrator = WindowOrchestrator.from_config(config, partition)

    try:
        return orchestrator.execute(returns, progress_callback, cancellation)
    except RunCancelledError as e:
        logger.info(str(e))
        return None
