# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""Configuration for Monte Carlo simulations."""

from dataclasses import dataclass
from typing import Optional


class ConfigurationError(ValueError):
    """Raised when simulation inputs violate a precondition.

    Configuration errors are detected before any path runs and abort the
    whole run. They are never clamped or repaired silently.
    """


@dataclass
class MonteCarloConfig:
    """Configuration for Monte Carlo simulation parameters.

    Attributes:
        num_simulations: Number of trials. Each trial runs one path per strategy.
        years: Number of simulated years per path.
        initial_value: Starting total wealth (cash buffers included).
        random_seed: Optional seed for reproducible results. Default None.
        n_workers: Worker processes. With 1 (default) all trials share a single
                   random stream in a fixed order. With more than 1 each trial
                   gets an independent stream spawned from the seed, so results
                   differ numerically from a sequential run with the same seed.
        chunk_size: Trials per worker task in parallel mode.
        progress_interval: Trials between progress callbacks.
    """
    num_simulations: int = 40000
    years: int = 40
    initial_value: float = 2500000
    random_seed: Optional[int] = 42
    n_workers: int = 1
    chunk_size: int = 1000
    progress_interval: int = 1000

    def __post_init__(self):
        if self.num_simulations < 1:
            raise ConfigurationError("num_simulations must be at least 1")
        if self.years < 1:
            raise ConfigurationError("years must be at least 1")
        if self.initial_value <= 0:
            raise ConfigurationError(f"initial_value must be positive: {self.initial_value}")
        if self.n_workers < 1:
            raise ConfigurationError("n_workers must be at least 1")
        if self.chunk_size < 1:
            raise ConfigurationError("chunk_size must be at least 1")
        if self.progress_interval < 1:
            raise ConfigurationError("progress_interval must be at least 1")

    @property
    def is_parallel(self) -> bool:
        """Whether trials are spread across worker processes."""
        return self.n_workers > 1
