"""Tests for the PCA helper."""

import pytest
import numpy as np

from connectedness_monitor.analysis.pca import PCAResult, compute_pca


class TestComputePCA:

    def test_shapes(self, sample_returns):
        result = compute_pca(sample_returns)

        assert result.coefficients.shape == (4, 4)
        assert result.explained.shape == (4,)
        assert result.scores.shape == (120, 4)

    def test_explained_is_percent(self, sample_returns):
        result = compute_pca(sample_returns)

        assert result.explained.sum() == pytest.approx(100.0)
        assert np.all(np.diff(result.explained) <= 1e-12)

    def test_common_factor_dominates(self):
        rng = np.random.default_rng(0)
        factor = rng.standard_normal((200, 1))
        data = factor + 0.1 * rng.standard_normal((200, 5))

        assert compute_pca(data).explained[0] > 90.0


class TestExplainedSums:

    def test_order(self):
        result = PCAResult(
            coefficients=np.eye(4),
            explained=np.array([50.0, 25.0, 15.0, 10.0]),
            scores=np.zeros((1, 4)),
        )

        np.testing.assert_allclose(result.explained_sums, [100.0, 90.0, 75.0, 50.0])

    def test_fewer_than_three_components(self):
        result = PCAResult(
            coefficients=np.eye(2),
            explained=np.array([70.0, 30.0]),
            scores=np.zeros((1, 2)),
        )

        np.testing.assert_allclose(result.explained_sums, [100.0, 100.0, 100.0, 70.0])
