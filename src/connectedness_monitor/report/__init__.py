"""Report module - Report generation, results workbook and visualization"""

from .generator import ReportGenerator
from .visualizer import Visualizer
from .writer import ResultsWriter

__all__ = [
    "ReportGenerator",
    "Visualizer",
    "ResultsWriter",
]
