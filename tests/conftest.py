"""Pytest configuration and fixtures."""

import matplotlib

matplotlib.use("Agg")

import pytest
import pandas as pd
import numpy as np
from pathlib import Path


FIRMS = ["BANK_A", "BANK_B", "INS_A", "INS_B", "INS_C"]


def make_block_causal_returns(periods: int = 300, seed: int = 42) -> pd.DataFrame:
    """
    Returns where the first two firms lead the other three by one day.

    firm 0, 1: white noise
    firm 2..4: 0.5 * firm0(t-1) + 0.5 * firm1(t-1) + noise
    """
    rng = np.random.default_rng(seed)
    dates = pd.date_range("2020-01-01", periods=periods, freq="B")

    drivers = rng.standard_normal((periods, 2)) * 0.01
    followers = rng.standard_normal((periods, 3)) * 0.01
    followers[1:] += 0.5 * drivers[:-1, [0]] + 0.5 * drivers[:-1, [1]]

    return pd.DataFrame(np.hstack([drivers, followers]), index=dates, columns=FIRMS)


@pytest.fixture
def block_causal_returns():
    """300 observations, firms 0-1 Granger-cause firms 2-4."""
    return make_block_causal_returns()


@pytest.fixture
def sample_returns():
    """Independent returns for shape-only tests."""
    rng = np.random.default_rng(7)
    dates = pd.date_range("2021-01-01", periods=120, freq="B")
    return pd.DataFrame(rng.standard_normal((120, 4)) * 0.01, index=dates,
                        columns=["A", "B", "C", "D"])


@pytest.fixture
def sample_config_dict():
    """Sample configuration dictionary."""
    return {
        "connectedness": {
            "bandwidth": 252,
            "significance": 0.05,
            "robust": True,
            "k": 0.06,
        },
        "spillover": {
            "lags": 2,
            "horizon": 4,
            "generalized": True,
        },
        "execution": {
            "max_workers": 2,
            "use_processes": False,
            "seed": 1,
        },
        "data": {
            "sheet": "Returns",
            "date_column": "Date",
            "input": "returns",
            "groups": {
                "Banks": ["BANK_A", "BANK_B"],
                "Insurers": ["INS_A", "INS_B", "INS_C"],
            },
        },
        "output": {
            "results_prefix": "test",
            "save_results": True,
            "save_plots": False,
        },
    }


@pytest.fixture
def temp_config_file(tmp_path, sample_config_dict):
    """Create temporary config file."""
    import yaml

    config_path = tmp_path / "config.yaml"
    with open(config_path, "w") as f:
        yaml.dump(sample_config_dict, f)

    return config_path


@pytest.fixture
def returns_csv(tmp_path, block_causal_returns):
    """Block-causal returns written as CSV with dd/mm/yyyy dates."""
    frame = block_causal_returns.copy()
    frame.insert(0, "Date", frame.index.strftime("%d/%m/%Y"))

    path = tmp_path / "returns.csv"
    frame.to_csv(path, index=False)
    return path


@pytest.fixture
def aggregated_dataset(block_causal_returns):
    """Small grouped run: 60 observations, bandwidth 40, thread pool."""
    from connectedness_monitor.analysis import GroupPartition, WindowOrchestrator

    orchestrator = WindowOrchestrator(
        bandwidth=40,
        partition=GroupPartition((2,), ("Banks", "Insurers")),
        max_workers=2,
        use_processes=False,
        seed=1,
    )
    return orchestrator.execute(block_causal_returns.iloc[:60])
