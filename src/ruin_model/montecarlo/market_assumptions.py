# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Market assumptions for the three asset classes.

This module contains the MarketAssumptions class which holds annual real
return, volatility, and correlation assumptions for equity, bonds and
property, along with the Cholesky factor used to draw correlated returns.
"""

from dataclasses import dataclass
from typing import Dict, List
import numpy as np

from .cholesky import cholesky_decompose
from .config import ConfigurationError

EQUITY = "equity"
BOND = "bond"
PROPERTY = "property"
ASSET_CLASS_ORDER = [EQUITY, BOND, PROPERTY]


@dataclass
class AssetClassAssumptions:
    """Return and volatility assumptions for a single asset class.

    Attributes:
        name: Asset class identifier (e.g., "equity")
        expected_return: Annual expected real return as decimal (e.g., 0.08 for 8%)
        volatility: Annual standard deviation as decimal (e.g., 0.18 for 18%)
    """
    name: str
    expected_return: float
    volatility: float

    def __post_init__(self):
        if self.volatility < 0:
            raise ConfigurationError(f"Volatility cannot be negative: {self.volatility}")


class MarketAssumptions:
    """Return, volatility and correlation assumptions for the asset classes.

    The Cholesky factor of the correlation matrix is computed once here, so a
    matrix that is not positive semi-definite is rejected before any path runs.

    Example:
        >>> assumptions = MarketAssumptions.create_default()
        >>> print(assumptions.asset_class_order)
        ['equity', 'bond', 'property']
        >>> print(assumptions.get_returns_vector())
        [0.08 0.03 0.05]
    """

    def __init__(self,
                 asset_classes: Dict[str, AssetClassAssumptions],
                 correlation_matrix: np.ndarray,
                 asset_class_order: List[str] = None,
                 risk_free_rate: float = 0.02):
        """Initialize market assumptions.

        Args:
            asset_classes: Dict mapping asset class name to its assumptions
            correlation_matrix: 3x3 correlation matrix for asset classes
            asset_class_order: Order of asset classes in the correlation matrix
            risk_free_rate: Annual rate used as the Sharpe ratio hurdle

        Raises:
            ConfigurationError: If dimensions don't match, asset classes are
                missing, or the matrix is not a valid correlation matrix
        """
        self.asset_classes = asset_classes
        self.correlation_matrix = np.asarray(correlation_matrix, dtype=float)
        self.asset_class_order = list(asset_class_order or ASSET_CLASS_ORDER)
        self.risk_free_rate = risk_free_rate
        self._validate()
        self._cholesky = cholesky_decompose(self.correlation_matrix)
        self._cholesky.flags.writeable = False
        self._covariance_matrix = self._compute_covariance_matrix()

    def _validate(self):
        """Validate that all inputs are consistent."""
        n = len(self.asset_class_order)

        if n != len(ASSET_CLASS_ORDER):
            raise ConfigurationError(
                f"Exactly {len(ASSET_CLASS_ORDER)} asset classes are supported, got {n}"
            )

        if self.correlation_matrix.shape != (n, n):
            raise ConfigurationError(
                f"Correlation matrix shape {self.correlation_matrix.shape} "
                f"doesn't match {n} asset classes"
            )

        missing = [name for name in self.asset_class_order
                   if name not in self.asset_classes]
        if missing:
            raise ConfigurationError(f"Asset classes missing from assumptions: {missing}")

        # Check correlation matrix is symmetric and has 1s on diagonal
        if not np.allclose(self.correlation_matrix, self.correlation_matrix.T):
            raise ConfigurationError("Correlation matrix must be symmetric")

        if not np.allclose(np.diag(self.correlation_matrix), 1.0):
            raise ConfigurationError("Correlation matrix diagonal must be 1.0")

        if np.any(np.abs(self.correlation_matrix) > 1.0):
            raise ConfigurationError("Correlations must lie in [-1, 1]")

    def _compute_covariance_matrix(self) -> np.ndarray:
        """Compute covariance matrix from correlation and volatilities.

        Cov = diag(sigma) @ Corr @ diag(sigma)
        """
        vol_diag = np.diag(self.get_volatilities_vector())
        return vol_diag @ self.correlation_matrix @ vol_diag

    @property
    def cholesky_factor(self) -> np.ndarray:
        """Read-only lower-triangular factor of the correlation matrix."""
        return self._cholesky

    @property
    def covariance_matrix(self) -> np.ndarray:
        """Get the covariance matrix for asset classes."""
        return self._covariance_matrix

    def get_returns_vector(self) -> np.ndarray:
        """Get expected returns as numpy array in asset_class_order."""
        return np.array([self.asset_classes[name].expected_return
                         for name in self.asset_class_order])

    def get_volatilities_vector(self) -> np.ndarray:
        """Get volatilities as numpy array in asset_class_order."""
        return np.array([self.asset_classes[name].volatility
                         for name in self.asset_class_order])

    @classmethod
    def create_default(cls) -> 'MarketAssumptions':
        """Create default real-return assumptions for equity, bonds and property.

        Returns:
            MarketAssumptions with long-run annualized real return parameters.
        """
        asset_classes = {
            EQUITY: AssetClassAssumptions(EQUITY, 0.08, 0.18),
            BOND: AssetClassAssumptions(BOND, 0.03, 0.06),
            PROPERTY: AssetClassAssumptions(PROPERTY, 0.05, 0.12),
        }

        # Equity-bond slightly negative (flight to safety), equity-property
        # positive, bond-property low
        corr = np.array([
            [1.0, -0.2, 0.6],   # Equity
            [-0.2, 1.0, 0.1],   # Bond
            [0.6, 0.1, 1.0],    # Property
        ])

        return cls(asset_classes, corr, list(ASSET_CLASS_ORDER))
