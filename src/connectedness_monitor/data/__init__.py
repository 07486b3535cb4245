"""Data module - Data loading and preprocessing"""

from .loader import DataLoader, ReturnDataset

__all__ = [
    "DataLoader",
    "ReturnDataset",
]
