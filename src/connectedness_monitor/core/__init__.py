"""Core module - Configuration, Constants, and Exceptions"""

from .config import (
    Config,
    ConfigLoader,
    ConnectednessConfig,
    SpilloverConfig,
    ExecutionConfig,
    DataConfig,
)
from .constants import *
from .exceptions import (
    ConnectednessError,
    ConfigurationError,
    DataLoadError,
    AnalysisError,
    InsufficientDataError,
    ModelFitError,
    NumericalInstabilityError,
    WindowComputationError,
    RunCancelledError,
)

__all__ = [
    "Config",
    "ConfigLoader",
    "ConnectednessConfig",
    "SpilloverConfig",
    "ExecutionConfig",
    "DataConfig",
    "ConnectednessError",
    "ConfigurationError",
    "DataLoadError",
    "AnalysisError",
    "InsufficientDataError",
    "ModelFitError",
    "NumericalInstabilityError",
    "WindowComputationError",
    "RunCancelledError",
]
