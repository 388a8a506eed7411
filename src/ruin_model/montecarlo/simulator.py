# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Monte Carlo simulation orchestrator.

This module provides the MonteCarloSimulator class which runs every strategy
once per trial with correlated stochastic returns and collects the outcome
records into one MonteCarloResults per strategy.
"""

from concurrent.futures import ProcessPoolExecutor, as_completed
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from .config import ConfigurationError, MonteCarloConfig
from .market_assumptions import MarketAssumptions
from .path_simulator import simulate
from .results import MonteCarloResults, OutcomeRecord, StrategyComparison
from .return_generator import CorrelatedReturnGenerator
from .schedule import ScheduleConfig
from .strategies import Strategy, default_strategies

ProgressCallback = Callable[[int, int], None]


class SimulationRun:
    """Results of one Monte Carlo run, keyed by strategy name."""

    def __init__(self, results: Dict[str, MonteCarloResults], config: MonteCarloConfig,
                 schedule: ScheduleConfig):
        self.results = results
        self.config = config
        self.schedule = schedule

    @property
    def strategy_names(self) -> List[str]:
        return list(self.results)

    def __getitem__(self, name: str) -> MonteCarloResults:
        return self.results[name]

    def compare(self, first: Optional[str] = None, second: Optional[str] = None) -> StrategyComparison:
        """Compare two strategies, by default the first two that were run."""
        names = self.strategy_names
        if len(names) < 2 and (first is None or second is None):
            raise ValueError("At least two strategies are needed for a comparison")
        first = first or names[0]
        second = second or names[1]
        return StrategyComparison(self.results[first], self.results[second])

    def __repr__(self) -> str:
        return f"SimulationRun(strategies={self.strategy_names}, num_simulations={self.config.num_simulations})"


def _run_trial(stream, market: MarketAssumptions, strategies: Sequence[Strategy],
               schedule: ScheduleConfig, config: MonteCarloConfig) -> List[OutcomeRecord]:
    """One trial: every strategy in order, all drawing from the same stream."""
    returns = CorrelatedReturnGenerator(market, stream)
    return [
        simulate(config.initial_value, config.years, strategy.weights, strategy.fee_rate,
                 returns, schedule)
        for strategy in strategies
    ]


def _run_chunk(seeds: List[np.random.SeedSequence], market: MarketAssumptions,
               strategies: Sequence[Strategy], schedule: ScheduleConfig,
               config: MonteCarloConfig) -> List[List[OutcomeRecord]]:
    """Worker entry point: run a block of trials, each on its own stream."""
    return [_run_trial(np.random.default_rng(seed), market, strategies, schedule, config)
            for seed in seeds]


class MonteCarloSimulator:
    """Runs fixed-allocation strategies through many simulated life paths.

    The workflow:
    1. Validate market assumptions, strategies and schedule (the Cholesky
       factor is computed once, before any path runs)
    2. For each trial, simulate one path per strategy
    3. Collect one MonteCarloResults per strategy

    In sequential mode every path draws from one random stream, strategies
    interleaved in run order within each trial. In parallel mode each trial
    gets an independent stream spawned from the seed, which changes results
    relative to sequential mode.

    Example:
        >>> simulator = MonteCarloSimulator(config=MonteCarloConfig(num_simulations=500))
        >>> run = simulator.run()
        >>> comparison = run.compare()
        >>> print(f"Outperformance: {comparison.outperformance_rate():.1%}")
    """

    def __init__(self,
                 market_assumptions: Optional[MarketAssumptions] = None,
                 config: Optional[MonteCarloConfig] = None,
                 schedule: Optional[ScheduleConfig] = None):
        """Initialize the simulator.

        Args:
            market_assumptions: Asset class assumptions. If None, uses defaults.
            config: Simulation configuration. If None, uses defaults.
            schedule: Withdrawal and tax schedule. If None, uses defaults.
        """
        self.market = market_assumptions or MarketAssumptions.create_default()
        self.config = config or MonteCarloConfig()
        self.schedule = schedule or ScheduleConfig()

    def run(self, strategies: Optional[Sequence[Strategy]] = None,
            progress_callback: Optional[ProgressCallback] = None) -> SimulationRun:
        """Run Monte Carlo simulation.

        Args:
            strategies: Strategies to simulate. If None, the two default presets.
            progress_callback: Called with (completed_trials, total_trials)

        Returns:
            SimulationRun with one MonteCarloResults per strategy

        Raises:
            ConfigurationError: If strategy names are not unique
        """
        strategies = list(strategies or default_strategies())
        names = [s.name for s in strategies]
        if not strategies or len(set(names)) != len(names):
            raise ConfigurationError(f"Strategy names must be unique and non-empty: {names}")

        if self.config.is_parallel:
            trials = self._run_parallel(strategies, progress_callback)
        else:
            trials = self._run_sequential(strategies, progress_callback)

        results = {
            strategy.name: MonteCarloResults([trial[i] for trial in trials],
                                             self.config.years, strategy.name)
            for i, strategy in enumerate(strategies)
        }
        return SimulationRun(results, self.config, self.schedule)

    def _run_sequential(self, strategies: Sequence[Strategy],
                        progress_callback: Optional[ProgressCallback]) -> List[List[OutcomeRecord]]:
        stream = np.random.default_rng(self.config.random_seed)
        total = self.config.num_simulations
        trials = []

        for sim_idx in range(total):
            if progress_callback is not None and sim_idx % self.config.progress_interval == 0:
                progress_callback(sim_idx, total)
            trials.append(_run_trial(stream, self.market, strategies, self.schedule, self.config))

        if progress_callback is not None:
            progress_callback(total, total)
        return trials

    def _run_parallel(self, strategies: Sequence[Strategy],
                      progress_callback: Optional[ProgressCallback]) -> List[List[OutcomeRecord]]:
        total = self.config.num_simulations
        seeds = np.random.SeedSequence(self.config.random_seed).spawn(total)
        chunk_size = self.config.chunk_size
        chunks = {start: seeds[start:start + chunk_size] for start in range(0, total, chunk_size)}

        completed: Dict[int, List[List[OutcomeRecord]]] = {}
        done = 0
        if progress_callback is not None:
            progress_callback(0, total)

        with ProcessPoolExecutor(max_workers=self.config.n_workers) as executor:
            futures = {
                executor.submit(_run_chunk, chunk, self.market, strategies,
                                self.schedule, self.config): start
                for start, chunk in chunks.items()
            }
            for future in as_completed(futures):
                start = futures[future]
                completed[start] = future.result()
                done += len(completed[start])
                if progress_callback is not None:
                    progress_callback(done, total)

        trials = []
        for start in sorted(completed):
            trials.extend(completed[start])
        return trials

    def run_single(self, strategy: Strategy, stream=None) -> OutcomeRecord:
        """Run a single path for one strategy.

        Useful for debugging or detailed analysis of a single run.

        Args:
            strategy: Strategy to simulate
            stream: Uniform random source. If None, seeded from the config.

        Returns:
            OutcomeRecord of the path
        """
        if stream is None:
            stream = np.random.default_rng(self.config.random_seed)
        returns = CorrelatedReturnGenerator(self.market, stream)
        return simulate(self.config.initial_value, self.config.years, strategy.weights,
                        strategy.fee_rate, returns, self.schedule)
