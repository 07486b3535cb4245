"""
Configuration management for Connectedness Monitor.

Provides dataclass-based configuration with YAML loading and validation.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from pathlib import Path
import yaml
import logging

from .exceptions import (
    ConfigurationError,
    ConfigNotFoundError,
    ConfigValidationError,
)
from .constants import (
    DEFAULT_BANDWIDTH,
    MIN_BANDWIDTH,
    DEFAULT_SIGNIFICANCE,
    DEFAULT_ROBUST,
    DEFAULT_K,
    MAX_PROBABILITY_THRESHOLD,
    DEFAULT_LAGS,
    MIN_LAGS,
    MAX_LAGS,
    DEFAULT_HORIZON,
    MIN_HORIZON,
    MAX_HORIZON,
    DEFAULT_GENERALIZED,
    DEFAULT_DATE_COLUMN,
    DEFAULT_RETURNS_SHEET,
    DEFAULT_FIGSIZE,
    DEFAULT_DPI,
    COLORS,
    DEFAULT_RESULTS_PREFIX,
)

logger = logging.getLogger(__name__)

INPUT_KINDS = ('returns', 'prices')


# =============================================================================
# Config Dataclasses
# =============================================================================

@dataclass
class ConnectednessConfig:
    """Rolling-window Granger causality parameters."""
    bandwidth: int = DEFAULT_BANDWIDTH
    significance: float = DEFAULT_SIGNIFICANCE
    robust: bool = DEFAULT_ROBUST
    k: float = DEFAULT_K


@dataclass
class SpilloverConfig:
    """VAR / FEVD parameters."""
    lags: int = DEFAULT_LAGS
    horizon: int = DEFAULT_HORIZON
    generalized: bool = DEFAULT_GENERALIZED


@dataclass
class ExecutionConfig:
    """Worker pool configuration."""
    max_workers: Optional[int] = None
    use_processes: bool = True
    seed: Optional[int] = None


@dataclass
class DataConfig:
    """Dataset layout configuration."""
    sheet: str = DEFAULT_RETURNS_SHEET
    date_column: str = DEFAULT_DATE_COLUMN
    input: str = 'returns'
    groups: Dict[str, List[str]] = field(default_factory=dict)


@dataclass
class VisualizationConfig:
    """Visualization configuration."""
    figsize: Tuple[int, int] = DEFAULT_FIGSIZE
    dpi: int = DEFAULT_DPI
    colors: Dict[str, str] = field(default_factory=lambda: COLORS.copy())


@dataclass
class OutputConfig:
    """Output configuration."""
    results_prefix: str = DEFAULT_RESULTS_PREFIX
    save_results: bool = True
    save_plots: bool = True


@dataclass
class Config:
    """Main configuration container."""

    connectedness: ConnectednessConfig = field(default_factory=ConnectednessConfig)
    spillover: SpilloverConfig = field(default_factory=SpilloverConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    data: DataConfig = field(default_factory=DataConfig)
    visualization: VisualizationConfig = field(default_factory=VisualizationConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    @property
    def has_groups(self) -> bool:
        """Check if entity groups are configured."""
        return bool(self.data.groups)

    def validate(self) -> None:
        """
        Re-check parameter ranges of an already built config.

        Raises:
            ConfigValidationError: If any parameter is out of range
        """
        errors = validate_parameters(
            bandwidth=self.connectedness.bandwidth,
            significance=self.connectedness.significance,
            k=self.connectedness.k,
            lags=self.spillover.lags,
            horizon=self.spillover.horizon,
        )
        if self.data.input not in INPUT_KINDS:
            errors.append(f"'data.input' must be one of {INPUT_KINDS}, got {self.data.input!r}")
        if self.execution.max_workers is not None and self.execution.max_workers < 1:
            errors.append("'execution.max_workers' must be a positive integer")
        if errors:
            raise ConfigValidationError(errors)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_parameters(
    bandwidth: Optional[int] = None,
    significance: Optional[float] = None,
    k: Optional[float] = None,
    lags: Optional[int] = None,
    horizon: Optional[int] = None,
) -> List[str]:
    """
    Check analysis parameters against their allowed ranges.

    Only the parameters that are passed are checked.

    Returns:
        List of error messages (empty when everything is valid)
    """
    errors = []

    if bandwidth is not None:
        if not _is_int(bandwidth) or bandwidth < MIN_BANDWIDTH:
            errors.append(f"'bandwidth' must be an integer >= {MIN_BANDWIDTH}, got {bandwidth!r}")

    for name, value in (('significance', significance), ('k', k)):
        if value is None:
            continue
        if not _is_number(value) or not (0 < value <= MAX_PROBABILITY_THRESHOLD):
            errors.append(f"'{name}' must be in (0, {MAX_PROBABILITY_THRESHOLD}], got {value!r}")

    if lags is not None:
        if not _is_int(lags) or not (MIN_LAGS <= lags <= MAX_LAGS):
            errors.append(f"'lags' must be an integer in [{MIN_LAGS}, {MAX_LAGS}], got {lags!r}")

    if horizon is not None:
        if not _is_int(horizon) or not (MIN_HORIZON <= horizon <= MAX_HORIZON):
            errors.append(f"'horizon' must be an integer in [{MIN_HORIZON}, {MAX_HORIZON}], got {horizon!r}")

    return errors


# =============================================================================
# Config Loader
# =============================================================================

class ConfigLoader:
    """Configuration file loader and validator."""

    SECTIONS = ['connectedness', 'spillover', 'execution', 'data', 'visualization', 'output']

    @classmethod
    def load(cls, path: Path) -> Config:
        """
        Load configuration from YAML file.

        Args:
            path: Path to YAML config file

        Returns:
            Config object

        Raises:
            ConfigNotFoundError: If file doesn't exist
            ConfigValidationError: If validation fails
        """
        path = Path(path)
        if not path.exists():
            raise ConfigNotFoundError(str(path))

        logger.info(f"Loading configuration from {path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse YAML: {e}")

        if raw_config is None:
            raw_config = {}

        cls.validate(raw_config)
        return cls._build_config(raw_config)

    @classmethod
    def load_or_default(cls, path: Optional[Path] = None) -> Config:
        """
        Load config from path, falling back to default if not found.

        Args:
            path: Optional path to config file

        Returns:
            Config object (from file or default)
        """
        if path:
            try:
                return cls.load(path)
            except ConfigNotFoundError:
                logger.warning(f"Config not found at {path}, using default")

        default_paths = [
            Path('config/config.yaml'),
            Path('./config.yaml'),
        ]

        for p in default_paths:
            if p.exists():
                logger.info(f"Found config at {p}")
                return cls.load(p)

        logger.info("Using default configuration")
        return cls.get_default()

    @classmethod
    def validate(cls, raw_config: dict) -> None:
        """
        Validate raw configuration dictionary.

        Args:
            raw_config: Dictionary from YAML

        Raises:
            ConfigValidationError: If validation fails
        """
        errors = []

        if not isinstance(raw_config, dict):
            raise ConfigValidationError(["Configuration root must be a mapping"])

        for key in raw_config:
            if key not in cls.SECTIONS:
                errors.append(f"Unknown section: '{key}'")

        for section in cls.SECTIONS:
            if section in raw_config and not isinstance(raw_config[section], dict):
                errors.append(f"'{section}' must be a dictionary")

        if errors:
            raise ConfigValidationError(errors)

        conn = raw_config.get('connectedness', {})
        spill = raw_config.get('spillover', {})

        errors.extend(validate_parameters(
            bandwidth=conn.get('bandwidth'),
            significance=conn.get('significance'),
            k=conn.get('k'),
            lags=spill.get('lags'),
            horizon=spill.get('horizon'),
        ))

        for section, key in (('connectedness', 'robust'), ('spillover', 'generalized'),
                             ('execution', 'use_processes')):
            value = raw_config.get(section, {}).get(key)
            if value is not None and not isinstance(value, bool):
                errors.append(f"'{section}.{key}' must be a boolean")

        workers = raw_config.get('execution', {}).get('max_workers')
        if workers is not None and (not _is_int(workers) or workers < 1):
            errors.append("'execution.max_workers' must be a positive integer")

        data = raw_config.get('data', {})
        if 'input' in data and data['input'] not in INPUT_KINDS:
            errors.append(f"'data.input' must be one of {INPUT_KINDS}")

        groups = data.get('groups')
        if groups is not None:
            if not isinstance(groups, dict):
                errors.append("'data.groups' must be a dictionary of group name -> firm list")
            else:
                seen = set()
                for name, firms in groups.items():
                    if not isinstance(firms, list) or not firms:
                        errors.append(f"Group '{name}' must be a non-empty list of firms")
                        continue
                    for firm in firms:
                        if firm in seen:
                            errors.append(f"Firm '{firm}' assigned to more than one group")
                        seen.add(firm)

        if errors:
            raise ConfigValidationError(errors)

    @classmethod
    def _build_config(cls, raw: dict) -> Config:
        """Build Config object from raw dictionary."""
        return Config(
            connectedness=cls._build_connectedness_config(raw.get('connectedness', {})),
            spillover=cls._build_spillover_config(raw.get('spillover', {})),
            execution=cls._build_execution_config(raw.get('execution', {})),
            data=cls._build_data_config(raw.get('data', {})),
            visualization=cls._build_viz_config(raw.get('visualization', {})),
            output=cls._build_output_config(raw.get('output', {})),
        )

    @classmethod
    def _build_connectedness_config(cls, raw: dict) -> ConnectednessConfig:
        """Build ConnectednessConfig from raw dict."""
        return ConnectednessConfig(
            bandwidth=raw.get('bandwidth', DEFAULT_BANDWIDTH),
            significance=raw.get('significance', DEFAULT_SIGNIFICANCE),
            robust=raw.get('robust', DEFAULT_ROBUST),
            k=raw.get('k', DEFAULT_K),
        )

    @classmethod
    def _build_spillover_config(cls, raw: dict) -> SpilloverConfig:
        """Build SpilloverConfig from raw dict."""
        return SpilloverConfig(
            lags=raw.get('lags', DEFAULT_LAGS),
            horizon=raw.get('horizon', DEFAULT_HORIZON),
            generalized=raw.get('generalized', DEFAULT_GENERALIZED),
        )

    @classmethod
    def _build_execution_config(cls, raw: dict) -> ExecutionConfig:
        """Build ExecutionConfig from raw dict."""
        return ExecutionConfig(
            max_workers=raw.get('max_workers'),
            use_processes=raw.get('use_processes', True),
            seed=raw.get('seed'),
        )

    @classmethod
    def _build_data_config(cls, raw: dict) -> DataConfig:
        """Build DataConfig from raw dict."""
        return DataConfig(
            sheet=raw.get('sheet', DEFAULT_RETURNS_SHEET),
            date_column=raw.get('date_column', DEFAULT_DATE_COLUMN),
            input=raw.get('input', 'returns'),
            groups=dict(raw.get('groups') or {}),
        )

    @classmethod
    def _build_viz_config(cls, raw: dict) -> VisualizationConfig:
        """Build VisualizationConfig from raw dict."""
        figsize = raw.get('figsize', DEFAULT_FIGSIZE)
        if isinstance(figsize, list):
            figsize = tuple(figsize)

        colors = COLORS.copy()
        if 'colors' in raw:
            colors.update(raw['colors'])

        return VisualizationConfig(
            figsize=figsize,
            dpi=raw.get('dpi', DEFAULT_DPI),
            colors=colors,
        )

    @classmethod
    def _build_output_config(cls, raw: dict) -> OutputConfig:
        """Build OutputConfig from raw dict."""
        return OutputConfig(
            results_prefix=raw.get('results_prefix', DEFAULT_RESULTS_PREFIX),
            save_results=raw.get('save_results', True),
            save_plots=raw.get('save_plots', True),
        )

    @classmethod
    def get_default(cls) -> Config:
        """Get default configuration."""
        return Config()
