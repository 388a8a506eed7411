# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Portfolio Survival Engine

Monte Carlo projection of a drawdown portfolio across tax wrappers, with
correlated equity, bond and property returns, fees, cash buffers and an
inflation-linked withdrawal schedule.

Example usage:
    from ruin_model import MonteCarloSimulator, MonteCarloConfig

    simulator = MonteCarloSimulator(config=MonteCarloConfig(num_simulations=1000))
    run = simulator.run()
    comparison = run.compare()
    print(f"Ruin probability: {run.results[run.strategy_names[0]].ruin_probability():.2%}")
"""

# Monte Carlo Simulation
from .montecarlo import (
    MonteCarloSimulator,
    MonteCarloConfig,
    ConfigurationError,
    MonteCarloResults,
    StrategyComparison,
    SimulationRun,
    OutcomeRecord,
    MarketAssumptions,
    AssetClassAssumptions,
    CorrelatedReturnGenerator,
    ScheduleConfig,
    Strategy,
    default_strategies,
    simulate,
    cholesky_decompose,
)

# Version
from .__meta__ import __version__

__all__ = [
    # Monte Carlo
    'MonteCarloSimulator', 'MonteCarloConfig', 'ConfigurationError',
    'MonteCarloResults', 'StrategyComparison', 'SimulationRun', 'OutcomeRecord',
    'MarketAssumptions', 'AssetClassAssumptions', 'CorrelatedReturnGenerator',
    'ScheduleConfig', 'Strategy', 'default_strategies', 'simulate',
    'cholesky_decompose',
    # Version
    '__version__',
]
