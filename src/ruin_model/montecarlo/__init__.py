# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Monte Carlo simulation module for portfolio survival.

This module projects a portfolio through many simulated lives with correlated
asset class returns, fees, tax wrappers, cash buffers and an inflation-linked
withdrawal schedule, and aggregates the outcome of each path.
"""

from .config import MonteCarloConfig, ConfigurationError
from .market_assumptions import MarketAssumptions, AssetClassAssumptions
from .cholesky import cholesky_decompose
from .return_generator import CorrelatedReturnGenerator
from .schedule import (
    ScheduleConfig,
    Wrapper,
    FallbackTaxPolicy,
    SpendingBand,
    LumpSumEvent,
    RecurringObligation,
)
from .wrappers import WrapperState, CashBuffers, WithdrawalResult, WithdrawalSource, withdraw
from .path_simulator import PathState, simulate
from .strategies import Strategy, LOW_COST_EQUITY, DIVERSIFIED_MANAGED, default_strategies
from .results import OutcomeRecord, MonteCarloResults, StrategyComparison
from .simulator import MonteCarloSimulator, SimulationRun
from .reporting import print_results, print_comparison

__all__ = [
    'MonteCarloConfig',
    'ConfigurationError',
    'MarketAssumptions',
    'AssetClassAssumptions',
    'cholesky_decompose',
    'CorrelatedReturnGenerator',
    'ScheduleConfig',
    'Wrapper',
    'FallbackTaxPolicy',
    'SpendingBand',
    'LumpSumEvent',
    'RecurringObligation',
    'WrapperState',
    'CashBuffers',
    'WithdrawalResult',
    'WithdrawalSource',
    'withdraw',
    'PathState',
    'simulate',
    'Strategy',
    'LOW_COST_EQUITY',
    'DIVERSIFIED_MANAGED',
    'default_strategies',
    'OutcomeRecord',
    'MonteCarloResults',
    'StrategyComparison',
    'MonteCarloSimulator',
    'SimulationRun',
    'print_results',
    'print_comparison',
]
