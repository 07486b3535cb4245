"""Tests for rolling-window result aggregation."""

import pytest
import numpy as np
import pandas as pd

from connectedness_monitor.analysis.aggregator import (
    AggregatedDataset,
    ResultAggregator,
    average_adjacency,
)
from connectedness_monitor.analysis.centrality import CentralityEngine
from connectedness_monitor.analysis.indicators import GroupPartition, IndicatorCalculator
from connectedness_monitor.analysis.pca import compute_pca
from connectedness_monitor.analysis.windows import WindowResult
from connectedness_monitor.core.constants import CENTRALITY_MEASURES, DEGREE_VECTORS
from connectedness_monitor.core.exceptions import AnalysisError

BANDWIDTH = 30


def make_result(index, adjacency, window, partition=None):
    partition = partition or GroupPartition()
    return WindowResult(
        index=index,
        adjacency=adjacency,
        indicators=IndicatorCalculator(partition).compute(adjacency),
        centralities=CentralityEngine().compute(adjacency),
        pca=compute_pca(window),
    )


@pytest.fixture
def returns():
    rng = np.random.default_rng(11)
    dates = pd.date_range("2020-01-01", periods=BANDWIDTH + 4, freq="B")
    return pd.DataFrame(rng.standard_normal((BANDWIDTH + 4, 4)), index=dates, columns=list("ABCD"))


@pytest.fixture
def chain():
    adjacency = np.zeros((4, 4))
    adjacency[0, 1] = adjacency[1, 2] = adjacency[2, 3] = 1.0
    return adjacency


def results_for(returns, adjacencies, partition=None):
    values = returns.to_numpy()
    return [
        make_result(i, adjacency, values[i:i + BANDWIDTH], partition)
        for i, adjacency in enumerate(adjacencies)
    ]


class TestAverageAdjacency:

    def test_identical_matrices_reproduce(self, chain):
        np.testing.assert_array_equal(average_adjacency([chain] * 4), chain)

    def test_empty_networks_stay_empty(self):
        zeros = np.zeros((3, 3))
        np.testing.assert_array_equal(average_adjacency([zeros, zeros]), zeros)

    def test_threshold_is_mean_of_mean(self):
        a = np.zeros((2, 2))
        b = np.zeros((2, 2))
        a[0, 1] = b[0, 1] = 1.0
        a[1, 0] = 1.0

        # mean = [[0, 1], [0.5, 0]], threshold 0.375
        np.testing.assert_array_equal(average_adjacency([a, b]), [[0.0, 1.0], [1.0, 0.0]])


class TestResultAggregator:
    """Tests for ResultAggregator class."""

    def test_offsets(self, returns, chain):
        dataset = ResultAggregator(BANDWIDTH).aggregate(returns, results_for(returns, [chain] * 5))

        assert isinstance(dataset, AggregatedDataset)
        assert dataset.n_windows == 5
        assert dataset.first_offset == BANDWIDTH - 1
        assert dataset.indicators.shape == (len(returns), 3)
        assert dataset.indicators.iloc[:BANDWIDTH - 1].isna().all().all()
        assert dataset.indicators["DCI"].iloc[BANDWIDTH - 1:].notna().all()
        assert list(dataset.indicators.index) == list(returns.index)

    def test_values_land_on_their_row(self, returns, chain):
        empty = np.zeros((4, 4))
        adjacencies = [empty, chain, empty, chain, empty]

        dataset = ResultAggregator(BANDWIDTH).aggregate(returns, results_for(returns, adjacencies))
        dci = dataset.indicators["DCI"].iloc[BANDWIDTH - 1:].astype(float).to_numpy()

        np.testing.assert_allclose(dci, [0.0, 0.25, 0.0, 0.25, 0.0])

    def test_other_column_missing_without_groups(self, returns, chain):
        dataset = ResultAggregator(BANDWIDTH).aggregate(returns, results_for(returns, [chain] * 5))

        assert dataset.indicators["Connections_InOutOther"].isna().all()

    def test_other_column_with_groups(self, returns, chain):
        partition = GroupPartition((2,), ("X", "Y"))
        results = results_for(returns, [chain] * 5, partition)

        dataset = ResultAggregator(BANDWIDTH, partition=partition).aggregate(returns, results)

        assert dataset.indicators["Connections_InOutOther"].iloc[BANDWIDTH - 1:].notna().all()
        assert dataset.partition.names == ("X", "Y")

    def test_centrality_series(self, returns, chain):
        dataset = ResultAggregator(BANDWIDTH).aggregate(returns, results_for(returns, [chain] * 5))

        assert set(dataset.centralities) == set(CENTRALITY_MEASURES + DEGREE_VECTORS)
        for frame in dataset.centralities.values():
            assert frame.shape == (len(returns), 4)
            assert list(frame.columns) == list("ABCD")
            assert frame.iloc[:BANDWIDTH - 1].isna().all().all()

    def test_average_network_and_centralities(self, returns, chain):
        dataset = ResultAggregator(BANDWIDTH).aggregate(returns, results_for(returns, [chain] * 5))

        np.testing.assert_array_equal(dataset.average_adjacency, chain)
        np.testing.assert_allclose(
            dataset.average_centralities.degree,
            CentralityEngine().compute(chain).degree,
        )
        assert dataset.average_adjacency_frame().loc["A", "B"] == 1.0

    def test_pca_outputs(self, returns, chain):
        dataset = ResultAggregator(BANDWIDTH).aggregate(returns, results_for(returns, [chain] * 5))

        assert len(dataset.pca_coefficients) == 5
        assert dataset.pca_scores[0].shape == (BANDWIDTH, 4)
        assert list(dataset.pca_explained_sums.columns) == ["Total", "PC1-3", "PC1-2", "PC1"]
        assert (dataset.pca_explained_sums["Total"].iloc[BANDWIDTH - 1:] == 100.0).all()
        assert dataset.pca_overall.scores.shape == (len(returns), 4)
        assert list(dataset.pca_overall_explained_frame().index) == ["PC1", "PC2", "PC3", "PC4"]

    def test_threshold_breaches(self, returns, chain):
        empty = np.zeros((4, 4))
        adjacencies = [empty, chain, empty, chain, empty]

        dataset = ResultAggregator(BANDWIDTH, k=0.06).aggregate(returns, results_for(returns, adjacencies))
        breaches = dataset.threshold_breaches

        assert breaches.dtype == bool
        assert not breaches.iloc[:BANDWIDTH].any()
        assert breaches.iloc[BANDWIDTH - 1:].tolist() == [False, True, False, True, False]

    def test_missing_window(self, returns, chain):
        results = results_for(returns, [chain] * 5)

        with pytest.raises(AnalysisError):
            ResultAggregator(BANDWIDTH).aggregate(returns, results[:4])

    def test_out_of_order(self, returns, chain):
        results = results_for(returns, [chain] * 5)
        results[1], results[2] = results[2], results[1]

        with pytest.raises(AnalysisError):
            ResultAggregator(BANDWIDTH).aggregate(returns, results)
