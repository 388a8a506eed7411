# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""Fixed-allocation strategies compared by the simulator."""

from dataclasses import dataclass
from typing import List, Tuple
import numpy as np

from .config import ConfigurationError


@dataclass(frozen=True)
class Strategy:
    """A fixed asset allocation with a flat annual fee.

    Attributes:
        name: Label used in reports
        allocation: Weights for (equity, bond, property), summing to 1.0
        fee_rate: Annual fee as decimal (e.g., 0.013 for 1.3%)
    """
    name: str
    allocation: Tuple[float, float, float]
    fee_rate: float

    def __post_init__(self):
        if len(self.allocation) != 3:
            raise ConfigurationError(
                f"Allocation for {self.name!r} must have 3 weights, got {len(self.allocation)}"
            )
        if any(w < 0 for w in self.allocation):
            raise ConfigurationError(f"Allocation for {self.name!r} has negative weights")
        total = sum(self.allocation)
        if abs(total - 1.0) > 0.001:
            raise ConfigurationError(
                f"Allocation for {self.name!r} must sum to 1.0, got {total}"
            )
        if self.fee_rate < 0:
            raise ConfigurationError(f"Fee rate for {self.name!r} cannot be negative")

    @property
    def weights(self) -> np.ndarray:
        return np.array(self.allocation, dtype=float)


LOW_COST_EQUITY = Strategy("100% Equity (0.15% fees)", (1.0, 0.0, 0.0), 0.0015)

DIVERSIFIED_MANAGED = Strategy("Diversified Managed (1.3% fees)", (0.78, 0.146, 0.074), 0.013)


def default_strategies() -> List[Strategy]:
    """The two presets in run order."""
    return [LOW_COST_EQUITY, DIVERSIFIED_MANAGED]
