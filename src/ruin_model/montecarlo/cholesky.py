# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Cholesky factorization of asset class correlation matrices.

The factor is computed once per run and shared read-only by every path, so
any failure here is a configuration error raised before simulation starts.
"""

import math

import numpy as np

from .config import ConfigurationError

# Radicands in (-TOLERANCE, 0) are rounding noise on a singular matrix
TOLERANCE = 1e-12


def cholesky_decompose(matrix: np.ndarray) -> np.ndarray:
    """Decompose a symmetric positive semi-definite matrix.

    Uses row-by-row forward substitution so that L @ L.T == matrix.

    Args:
        matrix: NxN symmetric matrix (e.g. a correlation matrix)

    Returns:
        Lower-triangular NxN numpy array

    Raises:
        ConfigurationError: If the matrix is not square or not positive
            semi-definite
    """
    m = np.asarray(matrix, dtype=float)
    if m.ndim != 2 or m.shape[0] != m.shape[1]:
        raise ConfigurationError(f"Matrix must be square, got shape {m.shape}")

    n = m.shape[0]
    L = np.zeros((n, n))

    for i in range(n):
        for j in range(i + 1):
            total = 0.0
            for k in range(j):
                total += L[i, k] * L[j, k]

            if i == j:
                radicand = m[i, i] - total
                if radicand < 0:
                    if radicand < -TOLERANCE:
                        raise ConfigurationError(
                            "Correlation matrix is not positive semi-definite "
                            f"(negative pivot {radicand:.6g} at row {i})"
                        )
                    radicand = 0.0
                L[i, j] = math.sqrt(radicand)
            else:
                numerator = m[i, j] - total
                if L[j, j] == 0:
                    if abs(numerator) > TOLERANCE:
                        raise ConfigurationError(
                            "Correlation matrix is not positive semi-definite "
                            f"(zero pivot at row {j})"
                        )
                    L[i, j] = 0.0
                else:
                    L[i, j] = numerator / L[j, j]

    return L
