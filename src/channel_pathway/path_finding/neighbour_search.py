"""Nearest neighbour search against the points of a pathway centre line."""

from __future__ import annotations

from typing import NamedTuple

import numpy as np
from numpy.typing import ArrayLike
from scipy.spatial import cKDTree


class NeighbourPair(NamedTuple):
    """A reference point found by `CentreLineSearch`."""

    ref_index: int
    distance_sq: float


class CentreLineSearch:
    """Finds the reference point closest to a query point.

    Args:
        reference_points: Array with shape (n, 3).
        cutoff: Points further than this from every reference point have no
            neighbour. None searches without a cutoff.
    """

    def __init__(self, reference_points: ArrayLike, cutoff: float | None = None):
        self.reference_points = np.asarray(reference_points, dtype=float)
        self.cutoff = np.inf if cutoff is None else float(cutoff)
        self._tree = cKDTree(self.reference_points)

    def nearest(self, point: ArrayLike) -> NeighbourPair | None:
        """Nearest reference point to a single query point, or None."""
        return self.query(np.atleast_2d(point))[0]

    def query(self, points: ArrayLike) -> list[NeighbourPair | None]:
        """Nearest reference point for each row of points.

        Returns:
            One entry per query point, None where nothing lies within the cutoff.
        """
        points = np.asarray(points, dtype=float).reshape(-1, 3)
        if points.shape[0] == 0:
            return []
        distances, indices = self._tree.query(
            points, k=1, distance_upper_bound=self.cutoff
        )
        return [
            NeighbourPair(int(idx), float(dist**2)) if np.isfinite(dist) else None
            for dist, idx in zip(distances, indices, strict=True)
        ]
