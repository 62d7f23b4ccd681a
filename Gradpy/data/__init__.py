"""
Gradpy.data
"""

from .dataset import Dataset, MoonDataset, make_moons

__all__ = [
    "Dataset",
    "MoonDataset",
    "make_moons",
]
