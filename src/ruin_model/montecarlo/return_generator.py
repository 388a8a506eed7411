# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Correlated return generator for asset classes.

This module generates correlated random annual returns for the asset classes
using the Cholesky factor held by MarketAssumptions. Independent normals are
drawn from an explicit random stream with the Box-Muller transform, so a
fixed or mocked stream gives fully deterministic returns.
"""

import math
from typing import List, Protocol
import numpy as np

from .market_assumptions import MarketAssumptions


class RandomStream(Protocol):
    """Source of uniform variates in [0, 1), e.g. numpy.random.Generator."""

    def random(self) -> float:
        ...


class CorrelatedReturnGenerator:
    """Generates correlated annual returns for the asset classes.

    Each call consumes exactly two uniform draws per asset class from the
    stream. The generator is an infinite iterator; it cannot be rewound, and
    two generators must not share a stream concurrently.

    Example:
        >>> market = MarketAssumptions.create_default()
        >>> gen = CorrelatedReturnGenerator(market, np.random.default_rng(42))
        >>> returns = gen.generate_yearly_returns()
        >>> print(returns)  # e.g., [ 0.12 -0.01  0.07]
    """

    def __init__(self, market_assumptions: MarketAssumptions, stream: RandomStream):
        """Initialize the return generator.

        Args:
            market_assumptions: Asset class parameters and Cholesky factor
            stream: Uniform random source shared with nothing else in this path
        """
        self.market = market_assumptions
        self.stream = stream
        self._cholesky = market_assumptions.cholesky_factor
        self._means = market_assumptions.get_returns_vector()
        self._vols = market_assumptions.get_volatilities_vector()

    def _standard_normal(self) -> float:
        # 1 - raw keeps the log argument in (0, 1]
        u1 = 1.0 - self.stream.random()
        u2 = 1.0 - self.stream.random()
        return math.sqrt(-2.0 * math.log(u1)) * math.sin(2.0 * math.pi * u2)

    def generate_yearly_returns(self) -> np.ndarray:
        """Generate one year of correlated returns for all asset classes.

        Returns:
            Array of annual returns in asset_class_order, in decimal form
            (e.g., 0.08 for 8% return).
        """
        n = len(self._means)

        # Generate uncorrelated standard normal samples
        uncorrelated_z = np.array([self._standard_normal() for _ in range(n)])

        # Transform to correlated samples using Cholesky: z_corr = L @ z_uncorr
        correlated_z = self._cholesky @ uncorrelated_z

        # Transform to asset returns: R_i = mu_i + sigma_i * z_i
        return self._means + correlated_z * self._vols

    def generate_multi_year_returns(self, num_years: int) -> List[np.ndarray]:
        """Generate multiple years of correlated returns.

        Args:
            num_years: Number of years to generate returns for

        Returns:
            List of yearly return vectors
        """
        return [self.generate_yearly_returns() for _ in range(num_years)]

    def __iter__(self):
        return self

    def __next__(self) -> np.ndarray:
        return self.generate_yearly_returns()
