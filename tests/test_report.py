"""Tests for results workbook, text report and charts."""

import pytest
import numpy as np
import pandas as pd

from connectedness_monitor.analysis.variance_decomposition import VarianceDecomposer, spillover_summary
from connectedness_monitor.core.config import Config
from connectedness_monitor.core.constants import RESULT_SHEETS, SHEET_INDICATORS, SHEET_AVERAGE_ADJACENCY
from connectedness_monitor.core.exceptions import ConnectednessError
from connectedness_monitor.report import ReportGenerator, ResultsWriter, Visualizer


class TestResultsWriter:
    """Tests for ResultsWriter class."""

    @pytest.mark.parametrize("name,expected", [
        ("results", "results.xlsx"),
        ("results.xlsx", "results.xlsx"),
        ("run.2020", "run.2020.xlsx"),
    ])
    def test_resolve_path(self, tmp_path, name, expected):
        assert ResultsWriter.resolve_path(tmp_path / name).name == expected

    def test_six_sheets(self, aggregated_dataset, tmp_path):
        path = ResultsWriter().write(aggregated_dataset, tmp_path / "nested" / "dir" / "results")

        assert path == tmp_path / "nested" / "dir" / "results.xlsx"
        sheets = pd.read_excel(path, sheet_name=None, index_col=0)
        assert list(sheets) == RESULT_SHEETS

    def test_sheet_contents(self, aggregated_dataset, tmp_path):
        path = ResultsWriter().write(aggregated_dataset, tmp_path / "results.xlsx")

        indicators = pd.read_excel(path, sheet_name=SHEET_INDICATORS, index_col=0)
        assert len(indicators) == 60
        assert indicators.index[0] == aggregated_dataset.dates[0].strftime("%d/%m/%Y")
        assert indicators["DCI"].iloc[:39].isna().all()
        np.testing.assert_allclose(
            indicators["DCI"].iloc[39:].to_numpy(),
            aggregated_dataset.indicators["DCI"].iloc[39:].astype(float).to_numpy(),
        )

        adjacency = pd.read_excel(path, sheet_name=SHEET_AVERAGE_ADJACENCY, index_col=0)
        np.testing.assert_array_equal(adjacency.to_numpy(), aggregated_dataset.average_adjacency)
        assert list(adjacency.index) == aggregated_dataset.firm_names

    def test_unwritable_target(self, aggregated_dataset, tmp_path):
        target = tmp_path / "taken.xlsx"
        target.mkdir()

        with pytest.raises(ConnectednessError):
            ResultsWriter().write(aggregated_dataset, target)


class TestReportGenerator:
    """Tests for ReportGenerator class."""

    def test_run_report(self, aggregated_dataset):
        report = ReportGenerator(Config(), top_n=3).generate(aggregated_dataset)

        assert "CONNECTEDNESS MONITOR REPORT" in report
        assert "DYNAMIC CAUSALITY INDEX" in report
        assert "Windows:           21" in report
        assert "Banks, Insurers" in report
        assert "Katz" in report

    def test_spillover_table(self, block_causal_returns):
        decomposition = VarianceDecomposer(lags=1, horizon=5).decompose(block_causal_returns)
        summary = spillover_summary(decomposition.matrix, decomposition.names)

        table = ReportGenerator(Config()).generate_spillover(decomposition, summary)

        assert "GENERALIZED VARIANCE DECOMPOSITION (p=1, h=5)" in table
        assert "Total spillover index" in table
        for name in block_causal_returns.columns:
            assert name in table


class TestVisualizer:
    """Smoke tests for chart rendering."""

    def test_create_all(self, aggregated_dataset, tmp_path):
        paths = Visualizer(Config()).create_all(aggregated_dataset, tmp_path / "charts", "smoke")

        assert [p.name for p in paths] == [
            "smoke_indicators.png",
            "smoke_network.png",
            "smoke_adjacency.png",
            "smoke_centralities.png",
            "smoke_pca.png",
        ]
        for path in paths:
            assert path.exists()
            assert path.stat().st_size > 0
