"""Small dense linear-algebra kernels for least-squares fitting.

Matrices are accepted as lists of rows or 2-D numpy arrays and returned
as float numpy arrays. The kernels are meant for the small systems that
Savitzky-Golay windows and low-order polynomial baselines produce.
"""

import logging

import numpy as np

from lasqc.contracts.failure import SingularMatrixError

__all__ = [
    "PIVOT_TOLERANCE",
    "transpose",
    "multiply",
    "inverse",
    "solve_normal_equations",
    "vandermonde",
    "polynomial_fit",
    "polynomial_eval",
]

logger = logging.getLogger(__name__)

PIVOT_TOLERANCE = 1e-12


def _as_matrix(m, name="matrix"):
    arr = np.array(m, dtype=float)
    if arr.ndim != 2:
        raise ValueError(f"{name} must be 2-D, got shape {arr.shape}")
    return arr


def transpose(m):
    return _as_matrix(m).T.copy()


def multiply(a, b):
    """Matrix product with an explicit dimension check."""
    a = _as_matrix(a, "left operand")
    b = _as_matrix(b, "right operand")
    if a.shape[1] != b.shape[0]:
        raise ValueError(f"cannot multiply {a.shape} by {b.shape}: inner dimensions differ")
    return a @ b


def inverse(m):
    """Invert a square matrix by Gauss-Jordan elimination.

    Each column selects the row with the largest remaining magnitude as
    pivot (partial pivoting).

    Raises
    ------
    ValueError
        If the matrix is not square.
    SingularMatrixError
        If a pivot magnitude falls below ``PIVOT_TOLERANCE``.
    """
    a = _as_matrix(m)
    n, cols = a.shape
    if n != cols:
        raise ValueError(f"cannot invert non-square matrix of shape {a.shape}")

    aug = np.hstack([a, np.eye(n)])
    for col in range(n):
        pivot_row = col + int(np.argmax(np.abs(aug[col:, col])))
        pivot = aug[pivot_row, col]
        if abs(pivot) < PIVOT_TOLERANCE:
            raise SingularMatrixError(f"singular matrix (pivot {pivot:.3e} in column {col})")
        if pivot_row != col:
            aug[[col, pivot_row]] = aug[[pivot_row, col]]
        aug[col] /= pivot
        for row in range(n):
            if row != col:
                factor = aug[row, col]
                if factor != 0.0:
                    aug[row] -= factor * aug[col]
    return aug[:, n:]


def solve_normal_equations(a, b):
    """Least-squares solution of ``a x = b`` via ``(AᵗA)⁻¹ Aᵗ b``."""
    a = _as_matrix(a)
    b = np.asarray(b, dtype=float).reshape(-1, 1)
    at = transpose(a)
    return multiply(multiply(inverse(multiply(at, a)), at), b).ravel()


def vandermonde(x, order):
    """Rows ``[1, x, x², ..., x^order]`` for each sample of ``x``."""
    x = np.asarray(x, dtype=float)
    return np.vander(x, order + 1, increasing=True)


def polynomial_fit(x, y, order):
    """Fit polynomial coefficients (lowest power first) by least squares.

    Parameters
    ----------
    x, y : array-like
        Sample positions and values, same length.
    order : int
        Polynomial degree.

    Returns
    -------
    np.ndarray
        ``order + 1`` coefficients, constant term first.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.shape != y.shape:
        raise ValueError(f"x and y lengths differ: {x.shape} vs {y.shape}")
    return solve_normal_equations(vandermonde(x, order), y)


def polynomial_eval(coeffs, x):
    x = np.asarray(x, dtype=float)
    result = np.zeros_like(x)
    for c in reversed(np.asarray(coeffs, dtype=float)):
        result = result * x + c
    return result
