"""Pathway representation built on the spline kernel.

- MolecularPath: centre line and radius profile of a pathway
- PathMappingParameters: options for mapping positions onto a pathway
- CentreLineSearch: nearest path point lookup used during mapping
- read_path_csv / read_path_frames / sample_profile: optional I/O helpers
"""

from .io import read_path_csv, read_path_frames, sample_profile
from .molecular_path import MolecularPath, PathMappingParameters
from .neighbour_search import CentreLineSearch, NeighbourPair

__all__ = [
    "CentreLineSearch",
    "MolecularPath",
    "NeighbourPair",
    "PathMappingParameters",
    "read_path_csv",
    "read_path_frames",
    "sample_profile",
]
