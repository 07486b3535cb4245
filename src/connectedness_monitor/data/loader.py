"""
Data loading module for Connectedness Monitor.

Reads a return (or price) table from an Excel workbook or CSV file, applies
the configured entity groups and validates the result for a rolling-window run.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from pathlib import Path
import logging

import numpy as np
import pandas as pd

from ..analysis.indicators import GroupPartition
from ..core.config import Config
from ..core.constants import (
    CAPITALIZATIONS_SHEET,
    DATE_STRING_FORMAT,
    MIN_FIRMS,
    UNGROUPED_NAME,
)
from ..core.exceptions import (
    DataLoadError,
    InvalidFormatError,
    MissingColumnError,
    InsufficientDataError,
)

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = ('.xlsx', '.xlsm', '.xls')
CSV_SUFFIXES = ('.csv', '.txt')


@dataclass
class ReturnDataset:
    """Container for a loaded return series."""
    returns: pd.DataFrame
    partition: GroupPartition = field(default_factory=GroupPartition)
    capitalizations: Optional[pd.DataFrame] = None

    @property
    def dates(self) -> pd.DatetimeIndex:
        return self.returns.index

    @property
    def date_strings(self) -> List[str]:
        return [d.strftime(DATE_STRING_FORMAT) for d in self.dates]

    @property
    def firm_names(self) -> List[str]:
        return [str(c) for c in self.returns.columns]

    @property
    def T(self) -> int:
        return self.returns.shape[0]

    @property
    def N(self) -> int:
        return self.returns.shape[1]

    @property
    def period(self) -> Tuple[pd.Timestamp, pd.Timestamp]:
        return self.dates[0], self.dates[-1]

    def __repr__(self) -> str:
        return (
            f"ReturnDataset(firms={self.N}, observations={self.T}, "
            f"period={self.period[0].date()} ~ {self.period[1].date()}, "
            f"groups={self.partition.n_groups})"
        )


class DataLoader:
    """
    Loader for return datasets.

    Expected layout: one date column followed by one numeric column per firm.
    Excel workbooks are read from the configured sheet; an optional
    "Capitalizations" sheet with the same layout is picked up when present.
    """

    def __init__(self, filepath: Path, config: Config, require_bandwidth: bool = True):
        """
        Initialize data loader.

        Args:
            filepath: Path to an .xlsx or .csv file
            config: Configuration object
            require_bandwidth: Reject series shorter than the rolling bandwidth
        """
        self.filepath = Path(filepath)
        self.config = config
        self.require_bandwidth = require_bandwidth
        self._data: Optional[ReturnDataset] = None

    @property
    def data(self) -> ReturnDataset:
        """Get loaded data, loading if necessary."""
        if self._data is None:
            self._data = self.load()
        return self._data

    def load(self) -> ReturnDataset:
        """
        Load, preprocess and validate the dataset.

        Returns:
            ReturnDataset

        Raises:
            DataLoadError: If the file cannot be read or is malformed
            InsufficientDataError: If there are fewer rows than the bandwidth
        """
        raw, raw_caps = self._read()
        self._data = self.prepare(raw, raw_caps)
        return self._data

    def prepare(self, raw: pd.DataFrame, raw_caps: Optional[pd.DataFrame] = None) -> ReturnDataset:
        """
        Turn a raw table into a validated ReturnDataset.

        Args:
            raw: Table with a date column and one column per firm
            raw_caps: Optional capitalizations table with the same layout

        Returns:
            ReturnDataset
        """
        values = self._parse(raw)

        if self.config.data.input == 'prices':
            values = self._calculate_returns(values)

        self._check_missing(values)

        values, partition = self._apply_groups(values, self.config.data.groups)
        self._validate(values)

        capitalizations = None
        if raw_caps is not None:
            capitalizations = self._parse(raw_caps).reindex(index=values.index, columns=values.columns)

        dataset = ReturnDataset(returns=values, partition=partition, capitalizations=capitalizations)
        logger.info(f"Loaded data: {dataset}")
        return dataset

    def _read(self) -> Tuple[pd.DataFrame, Optional[pd.DataFrame]]:
        """
        Read the raw table(s) from disk.

        Raises:
            DataLoadError: If the file is missing or unreadable
        """
        logger.info(f"Loading data from {self.filepath}")

        if not self.filepath.exists():
            raise DataLoadError(
                f"Data file not found: {self.filepath}",
                "Please provide a valid path to a returns workbook or CSV file"
            )

        suffix = self.filepath.suffix.lower()

        try:
            if suffix in CSV_SUFFIXES:
                return pd.read_csv(self.filepath), None

            if suffix in EXCEL_SUFFIXES:
                with pd.ExcelFile(self.filepath) as workbook:
                    sheet = self.config.data.sheet
                    if sheet not in workbook.sheet_names:
                        logger.warning(
                            f"Sheet '{sheet}' not found, using '{workbook.sheet_names[0]}'"
                        )
                        sheet = workbook.sheet_names[0]
                    raw = workbook.parse(sheet)
                    caps = None
                    if CAPITALIZATIONS_SHEET in workbook.sheet_names:
                        caps = workbook.parse(CAPITALIZATIONS_SHEET)
                return raw, caps

        except PermissionError:
            raise DataLoadError(
                f"Cannot read file: {self.filepath}",
                "File may be open in another application"
            )
        except Exception as e:
            raise DataLoadError(f"Failed to read data file: {e}") from e

        raise InvalidFormatError(
            str(self.filepath),
            f"one of {EXCEL_SUFFIXES + CSV_SUFFIXES}",
            f"unsupported file extension '{suffix}'"
        )

    def _parse(self, raw: pd.DataFrame) -> pd.DataFrame:
        """
        Index by date and coerce firm columns to floats.

        Raises:
            MissingColumnError: If the date column is absent
            InvalidFormatError: If dates or values cannot be parsed
        """
        date_column = self.config.data.date_column
        if date_column not in raw.columns:
            raise MissingColumnError(date_column, [str(c) for c in raw.columns])

        data = raw.dropna(how='all').copy()

        try:
            data[date_column] = self._parse_dates(data[date_column])
        except (ValueError, TypeError) as e:
            raise InvalidFormatError(
                str(self.filepath),
                f"Date column parseable as datetime ({DATE_STRING_FORMAT})",
                f"Failed to parse dates: {e}"
            ) from e

        data = data.set_index(date_column).sort_index()
        data.index.name = 'Date'
        data.columns = [str(c).strip() for c in data.columns]

        numeric = data.apply(pd.to_numeric, errors='coerce')
        invalid = [c for c in data.columns if numeric[c].isna().sum() > data[c].isna().sum()]
        if invalid:
            raise InvalidFormatError(
                str(self.filepath),
                "numeric values in every firm column",
                f"non-numeric values in: {', '.join(invalid[:10])}"
            )

        logger.debug(f"Parsed {len(numeric)} rows, {len(numeric.columns)} columns")
        return numeric.astype(float)

    @staticmethod
    def _parse_dates(dates: pd.Series) -> pd.Series:
        """Parse dd/mm/yyyy strings, falling back to ISO 8601."""
        if pd.api.types.is_datetime64_any_dtype(dates):
            return pd.to_datetime(dates)
        try:
            return pd.to_datetime(dates, format=DATE_STRING_FORMAT)
        except ValueError:
            return pd.to_datetime(dates, format="ISO8601")

    def _calculate_returns(self, prices: pd.DataFrame) -> pd.DataFrame:
        """Log returns of a price table (first row dropped)."""
        if (prices <= 0).any().any():
            raise InvalidFormatError(
                str(self.filepath),
                "strictly positive prices",
                "prices contain zero or negative values"
            )
        returns = np.log(prices / prices.shift(1))
        return returns.iloc[1:]

    def _check_missing(self, values: pd.DataFrame) -> None:
        missing = values.isna().sum()
        missing = missing[missing > 0]
        if not missing.empty:
            raise InvalidFormatError(
                str(self.filepath),
                "no missing values",
                f"missing values in: {', '.join(missing.index[:10])}"
            )

    def _apply_groups(
        self,
        values: pd.DataFrame,
        groups: Dict[str, List[str]],
    ) -> Tuple[pd.DataFrame, GroupPartition]:
        """
        Reorder firms so that every group is contiguous.

        Firms missing from every group form a trailing group.

        Returns:
            Tuple of (reordered DataFrame, GroupPartition)
        """
        if not groups:
            return values, GroupPartition()

        order: List[str] = []
        sizes: List[int] = []
        names: List[str] = []

        for name, firms in groups.items():
            for firm in firms:
                if firm not in values.columns:
                    raise MissingColumnError(str(firm), list(values.columns))
            order.extend(firms)
            sizes.append(len(firms))
            names.append(str(name))

        remaining = [c for c in values.columns if c not in order]
        if remaining:
            logger.warning(f"{len(remaining)} firms not assigned to a group, grouped as '{UNGROUPED_NAME}'")
            order.extend(remaining)
            sizes.append(len(remaining))
            names.append(UNGROUPED_NAME)

        partition = GroupPartition.from_sizes(sizes, names)
        if partition.is_empty:
            logger.warning("Single group configured, cross-group indicator will be missing")

        logger.info(f"Applied {len(names)} groups: {', '.join(names)}")
        return values[order], partition

    def _validate(self, values: pd.DataFrame) -> None:
        if values.shape[1] < MIN_FIRMS:
            raise InvalidFormatError(
                str(self.filepath),
                f"at least {MIN_FIRMS} firm columns",
                f"found {values.shape[1]}"
            )

        bandwidth = self.config.connectedness.bandwidth
        if self.require_bandwidth and len(values) < bandwidth:
            raise InsufficientDataError(bandwidth, len(values), "data loading")
