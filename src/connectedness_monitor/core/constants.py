"""
Constants for Connectedness Monitor.

All magic numbers and hardcoded values should be defined here.
This makes the codebase more maintainable and configurable.
"""

from typing import Dict, List

# =============================================================================
# Version Info
# =============================================================================

VERSION = "1.2.0"
VERSION_NAME = "Connectedness Monitor"

# =============================================================================
# Rolling Window / Granger Causality Constants
# =============================================================================

DEFAULT_BANDWIDTH = 252
MIN_BANDWIDTH = 30

DEFAULT_SIGNIFICANCE = 0.05
DEFAULT_ROBUST = True

# Granger-causality threshold for "no causal relationships" (display only)
DEFAULT_K = 0.06

# Upper bound shared by significance and k
MAX_PROBABILITY_THRESHOLD = 0.20

# =============================================================================
# Variance Decomposition Constants
# =============================================================================

DEFAULT_LAGS = 2
MIN_LAGS = 1
MAX_LAGS = 5

# Horizon used inside the connectedness run and standalone respectively
DEFAULT_HORIZON = 4
DEFAULT_STANDALONE_HORIZON = 12
MIN_HORIZON = 1
MAX_HORIZON = 15

DEFAULT_GENERALIZED = True

# Jitter added to zero-variance columns before any model fit: U[low, high)
JITTER_LOW = 1e-10
JITTER_HIGH = 1e-8

# =============================================================================
# Centrality Constants
# =============================================================================

# Katz attenuation factor
KATZ_ALPHA = 0.1

# Depth cap for the layered BFS in betweenness centrality
BETWEENNESS_MAX_DEPTH = 250

CENTRALITY_MEASURES: List[str] = [
    'betweenness',
    'closeness',
    'degree',
    'eigenvector',
    'katz',
    'clustering',
]

DEGREE_VECTORS: List[str] = ['degrees_in', 'degrees_out', 'degrees']

CENTRALITY_LABELS: Dict[str, str] = {
    'betweenness': 'BetweennessCentrality',
    'closeness': 'ClosenessCentrality',
    'degree': 'DegreeCentrality',
    'eigenvector': 'EigenvectorCentrality',
    'katz': 'KatzCentrality',
    'clustering': 'ClusteringCoefficient',
}

# =============================================================================
# Indicator Columns
# =============================================================================

INDICATOR_COLUMNS: List[str] = ['DCI', 'Connections_InOut', 'Connections_InOutOther']

# =============================================================================
# Data Loading Constants
# =============================================================================

DEFAULT_DATE_COLUMN = 'Date'
DEFAULT_RETURNS_SHEET = 'Returns'
CAPITALIZATIONS_SHEET = 'Capitalizations'
UNGROUPED_NAME = 'Other'
DATE_STRING_FORMAT = '%d/%m/%Y'
MIN_FIRMS = 3

# =============================================================================
# Results Workbook Sheets
# =============================================================================

SHEET_INDICATORS = 'Indicators'
SHEET_AVERAGE_ADJACENCY = 'Average Adjacency Matrix'
SHEET_AVERAGE_CENTRALITIES = 'Average Centrality Measures'
SHEET_PCA_EXPLAINED = 'PCA Overall Explained'
SHEET_PCA_COEFFICIENTS = 'PCA Overall Coefficients'
SHEET_PCA_SCORES = 'PCA Overall Scores'

RESULT_SHEETS: List[str] = [
    SHEET_INDICATORS,
    SHEET_AVERAGE_ADJACENCY,
    SHEET_AVERAGE_CENTRALITIES,
    SHEET_PCA_EXPLAINED,
    SHEET_PCA_COEFFICIENTS,
    SHEET_PCA_SCORES,
]

# =============================================================================
# Visualization Colors (Dark Theme - GitHub Style)
# =============================================================================

COLORS: Dict[str, str] = {
    'bg': '#0d1117',
    'panel': '#161b22',
    'text': '#e6edf3',
    'grid': '#30363d',
    'danger': '#f85149',
    'warning': '#d29922',
    'safe': '#3fb950',
    'accent': '#58a6ff',
    'muted': '#8b949e',
}

# Cycled when coloring entity groups
GROUP_PALETTE: List[str] = [
    '#58a6ff',
    '#3fb950',
    '#f78166',
    '#d29922',
    '#a5d6ff',
    '#f85149',
    '#8b949e',
]

DEFAULT_FIGSIZE = (16, 10)
DEFAULT_DPI = 150

# =============================================================================
# File Output Constants
# =============================================================================

DEFAULT_RESULTS_PREFIX = "connectedness"
DEFAULT_OUTPUT_DIR = "./output"
