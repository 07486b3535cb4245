"""
Results workbook writer.

Serializes an AggregatedDataset into a six-sheet Excel workbook.
"""

from typing import Dict
from pathlib import Path
import logging

import pandas as pd

from ..analysis.aggregator import AggregatedDataset
from ..core.constants import (
    DATE_STRING_FORMAT,
    SHEET_INDICATORS,
    SHEET_AVERAGE_ADJACENCY,
    SHEET_AVERAGE_CENTRALITIES,
    SHEET_PCA_EXPLAINED,
    SHEET_PCA_COEFFICIENTS,
    SHEET_PCA_SCORES,
)
from ..core.exceptions import ConnectednessError

logger = logging.getLogger(__name__)


def _date_labels(index: pd.Index) -> pd.Index:
    if isinstance(index, pd.DatetimeIndex):
        return pd.Index(index.strftime(DATE_STRING_FORMAT), name='Date')
    return index


class ResultsWriter:
    """Writes connectedness results to an .xlsx workbook (openpyxl engine)."""

    @staticmethod
    def resolve_path(path) -> Path:
        """Append the .xlsx extension when missing."""
        path = Path(path)
        if path.suffix.lower() != '.xlsx':
            path = path.with_name(path.name + '.xlsx')
        return path

    @staticmethod
    def build_sheets(dataset: AggregatedDataset) -> Dict[str, pd.DataFrame]:
        """Build the sheet name -> table mapping."""
        indicators = dataset.indicators.astype(float)
        indicators.index = _date_labels(indicators.index)

        scores = dataset.pca_overall_scores_frame()
        scores.index = _date_labels(scores.index)

        return {
            SHEET_INDICATORS: indicators,
            SHEET_AVERAGE_ADJACENCY: dataset.average_adjacency_frame(),
            SHEET_AVERAGE_CENTRALITIES: dataset.average_centralities_frame(),
            SHEET_PCA_EXPLAINED: dataset.pca_overall_explained_frame(),
            SHEET_PCA_COEFFICIENTS: dataset.pca_overall_coefficients_frame(),
            SHEET_PCA_SCORES: scores,
        }

    def write(self, dataset: AggregatedDataset, path) -> Path:
        """
        Write the results workbook.

        Args:
            dataset: Aggregated run output
            path: Target file (".xlsx" appended when missing)

        Returns:
            Path of the written workbook

        Raises:
            ConnectednessError: If the workbook cannot be written
        """
        path = self.resolve_path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        sheets = self.build_sheets(dataset)

        try:
            with pd.ExcelWriter(path, engine='openpyxl') as writer:
                for name, frame in sheets.items():
                    frame.to_excel(writer, sheet_name=name)
        except PermissionError as e:
            raise ConnectednessError(
                f"Cannot write results file: {path}",
                "File may be open in another application"
            ) from e
        except OSError as e:
            raise ConnectednessError(f"Failed to write results file: {e}") from e

        logger.info(f"Results saved: {path}")
        return path
