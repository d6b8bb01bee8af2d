"""Evaluation of B-spline basis functions and their derivatives.

The i-th basis spline of degree k over a knot vector t is given by the
Cox-de Boor recursion

    B[i,k](x) = (x - t[i]) / (t[i+k] - t[i]) * B[i,k-1](x)
              + (t[i+k+1] - x) / (t[i+k+1] - t[i+1]) * B[i+1,k-1](x)

with the piecewise constant functions B[i,0](x) = 1 if t[i] <= x < t[i+1] and
0 otherwise at the bottom of the recursion. A zero division is defined as
0/0 = 0. Derivatives follow from

    d/dx B[i,k](x) = k * (B[i,k-1](x) / (t[i+k] - t[i])
                        - B[i+1,k-1](x) / (t[i+k+1] - t[i+1]))

applied to itself for higher orders.

All functions are pure: the padded knot vector is rebuilt on every call.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike

from ..errors import SplineConfigurationError

_EPS = np.finfo(float).eps


def clamp_knot_vector(knots: ArrayLike, degree: int) -> np.ndarray:
    """Pad a knot vector so both boundary knots have multiplicity degree + 1.

    A vector of distinct breakpoints gains exactly `degree` copies of its first
    and last value. A vector that is already clamped is returned unchanged.

    Args:
        knots: Non-decreasing sequence of knots.
        degree: Polynomial degree of the basis.

    Returns:
        The clamped knot vector as a new float array.
    """
    if degree < 0:
        raise SplineConfigurationError(
            f"Polynomial degree must not be negative, got {degree}"
        )
    t = np.asarray(knots, dtype=float)
    if t.ndim != 1 or t.size == 0:
        raise SplineConfigurationError("Knot vector must be a non-empty 1D sequence")

    lo_mult = int(np.searchsorted(t, t[0], side="right"))
    hi_mult = t.size - int(np.searchsorted(t, t[-1], side="left"))
    n_lo = max(degree + 1 - lo_mult, 0)
    n_hi = max(degree + 1 - hi_mult, 0)
    return np.concatenate([np.full(n_lo, t[0]), t, np.full(n_hi, t[-1])])


def _last_interval(t: np.ndarray) -> int:
    """Index of the last knot interval with non-zero width, or -1."""
    widths = np.nonzero(np.diff(t) > 0.0)[0]
    if widths.size == 0:
        return -1
    return int(widths[-1])


def _cox_de_boor(t: np.ndarray, k: int, i: int, x: float, closed: int) -> float:
    # `closed` is the interval treated as right-closed when x sits on the last
    # knot, -1 otherwise
    if k == 0:
        if t[i] <= x < t[i + 1] or i == closed:
            return 1.0
        return 0.0

    frst_den = t[i + k] - t[i]
    scnd_den = t[i + k + 1] - t[i + 1]
    frst_fac = (x - t[i]) / frst_den if frst_den >= _EPS else 0.0
    scnd_fac = (t[i + k + 1] - x) / scnd_den if scnd_den >= _EPS else 0.0

    value = 0.0
    if frst_fac != 0.0:
        value += frst_fac * _cox_de_boor(t, k - 1, i, x, closed)
    if scnd_fac != 0.0:
        value += scnd_fac * _cox_de_boor(t, k - 1, i + 1, x, closed)
    return value


def _derivative(
    t: np.ndarray, k: int, i: int, x: float, order: int, closed: int
) -> float:
    if order == 0:
        return _cox_de_boor(t, k, i, x, closed)
    if k == 0:
        return 0.0

    frst_den = t[i + k] - t[i]
    scnd_den = t[i + k + 1] - t[i + 1]
    frst = 0.0
    scnd = 0.0
    if frst_den >= _EPS:
        frst = _derivative(t, k - 1, i, x, order - 1, closed) / frst_den
    if scnd_den >= _EPS:
        scnd = _derivative(t, k - 1, i + 1, x, order - 1, closed) / scnd_den
    return k * (frst - scnd)


def basis_spline(knots: ArrayLike, degree: int, index: int, x: float) -> float:
    """Evaluate the basis spline of given degree and index at x.

    Args:
        knots: Knot vector. It is clamped with `clamp_knot_vector` first, so
            both a plain breakpoint sequence and a full clamped vector work.
        degree: Polynomial degree, must not be negative.
        index: Index of the basis function.
        x: Evaluation point.

    Returns:
        Value of the basis function. Indices outside the basis evaluate to 0.

    Raises:
        SplineConfigurationError: If degree is negative.
    """
    t = clamp_knot_vector(knots, degree)
    last_index = t.size - degree - 2
    if index < 0 or index > last_index:
        return 0.0

    # only the last basis function is non-zero on the upper boundary knot
    if x == t[-1]:
        return 1.0 if index == last_index else 0.0

    return _cox_de_boor(t, degree, index, float(x), -1)


def basis_spline_derivative(
    knots: ArrayLike, degree: int, index: int, x: float, order: int = 1
) -> float:
    """Evaluate a derivative of the basis spline of given degree and index at x.

    Lower degree basis functions are evaluated on the knot vector clamped for
    `degree`. On the upper boundary knot the last non-empty knot interval is
    treated as closed, which yields the one-sided derivative from the left.

    Args:
        knots: Knot vector, clamped as in `basis_spline`.
        degree: Polynomial degree, must not be negative.
        index: Index of the basis function.
        x: Evaluation point.
        order: Order of the derivative. Zero gives `basis_spline` exactly.

    Returns:
        Value of the derivative. Orders above the degree evaluate to 0.

    Raises:
        SplineConfigurationError: If degree or order is negative.
    """
    if order < 0:
        raise SplineConfigurationError(
            f"Derivative order must not be negative, got {order}"
        )
    if order == 0:
        return basis_spline(knots, degree, index, x)

    t = clamp_knot_vector(knots, degree)
    if index < 0 or index > t.size - degree - 2:
        return 0.0

    closed = _last_interval(t) if x == t[-1] else -1
    return _derivative(t, degree, index, float(x), order, closed)
