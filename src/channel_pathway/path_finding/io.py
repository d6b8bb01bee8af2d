"""I/O utilities for building pathways from path finder output on disk."""

from __future__ import annotations

from pathlib import Path

import numpy as np

from ..constants import DEFAULT_EXTRAP_DIST
from .molecular_path import MolecularPath

PATH_COLUMNS = ["x", "y", "z", "radius"]


def read_path_csv(csvfile: Path) -> MolecularPath:
    """Build a pathway from a csv file of centre line points and radii.

    Args:
        csvfile: Path to a csv file with columns x, y, z and radius, one row per
            path point in order along the pathway.

    Returns:
        The interpolated pathway.

    Raises:
        ImportError: If pandas is not installed.
        FileNotFoundError: If the csv file does not exist.
        ValueError: If a required column is missing.
    """
    try:
        import pandas as pd
    except ImportError as e:
        raise ImportError(
            "pandas is required to read CSV files. "
            "Install with: pip install channel-pathway[io]"
        ) from e

    csvfile = Path(csvfile)
    if not csvfile.exists():
        raise FileNotFoundError(f"Path csv {csvfile} does not exist")

    df = pd.read_csv(csvfile)
    df.columns = df.columns.str.lower()
    missing = [col for col in PATH_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(f"Path csv {csvfile} is missing columns {missing}")
    return MolecularPath(df[["x", "y", "z"]].to_numpy(), df["radius"].to_numpy())


def read_path_frames(
    zarr_path: Path, frame_range: tuple[int, int] | None = None
) -> dict[int, MolecularPath]:
    """Build one pathway per trajectory frame from a zarr group.

    The group should hold an array "points" with dimensions (t, n, 3) and an
    array "radii" with dimensions (t, n), for t frames of n path points each.

    Args:
        zarr_path: The path to the zarr group (include groups in the path).
        frame_range: Optional tuple to limit the returned pathways to the given
            frame range. Output frames will start at zero. Defaults to None
            (all frames).

    Returns:
        A dictionary from frame (starting at 0) to pathway.

    Raises:
        ImportError: If zarr is not installed.
    """
    try:
        import zarr
    except ImportError as e:
        raise ImportError(
            "zarr is required to read zarr arrays. "
            "Install with: pip install channel-pathway[io]"
        ) from e

    group = zarr.open(str(zarr_path), mode="r")
    if frame_range is not None:
        points = group["points"][frame_range[0] : frame_range[1]]
        radii = group["radii"][frame_range[0] : frame_range[1]]
    else:
        points = group["points"][:]
        radii = group["radii"][:]

    paths = {}
    for frame, (frame_points, frame_radii) in enumerate(zip(points, radii, strict=True)):
        paths[frame] = MolecularPath(np.asarray(frame_points), np.asarray(frame_radii))
    return paths


def sample_profile(
    path: MolecularPath, n_points: int, extrap_dist: float = DEFAULT_EXTRAP_DIST
):
    """Tabulate the pathway profile at equally spaced arc lengths.

    Args:
        path: The pathway to sample.
        n_points: Number of samples, at least 2.
        extrap_dist: Distance to extend sampling beyond each opening.

    Returns:
        A pandas DataFrame with columns s, x, y, z and radius.

    Raises:
        ImportError: If pandas is not installed.
    """
    try:
        import pandas as pd
    except ImportError as e:
        raise ImportError(
            "pandas is required to tabulate pathway profiles. "
            "Install with: pip install channel-pathway[io]"
        ) from e

    s = path.sample_arc_length(n_points, extrap_dist)
    points = path.sample_points(s)
    return pd.DataFrame(
        {
            "s": s,
            "x": points[:, 0],
            "y": points[:, 1],
            "z": points[:, 2],
            "radius": path.sample_radii(s),
        }
    )
