"""
Connectedness Monitor - Rolling-Window Causal Network Analysis

A Python package for measuring interconnectedness among financial entities
through Granger-causality networks, centrality measures and VAR-based
forecast error variance decompositions.
"""

from .core.constants import VERSION

__version__ = VERSION
__author__ = "Connectedness Monitor Team"

from .core.config import Config, ConfigLoader
from .core.exceptions import ConnectednessError

__all__ = [
    "Config",
    "ConfigLoader",
    "ConnectednessError",
    "__version__",
]
