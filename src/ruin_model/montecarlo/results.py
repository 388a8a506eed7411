# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Monte Carlo simulation results aggregation and analysis.

This module provides the OutcomeRecord produced by each simulated path, the
MonteCarloResults class for analyzing all paths of one strategy (percentiles,
ruin probability, drawdown and tax statistics), and StrategyComparison for
comparing two strategies trial by trial.
"""

from dataclasses import asdict, dataclass, fields
from typing import Dict, List, Optional
import pandas as pd
import numpy as np


@dataclass(frozen=True)
class OutcomeRecord:
    """Result of one completed or depleted path. Never mutated after creation.

    Attributes:
        final_value: Total wealth (invested plus cash) at the end, 0 if depleted
        max_drawdown: Largest fractional fall from the running peak, in [0, 1]
        years_in_drawdown: Years spent below the running peak
        sharpe_ratio: Excess mean annual return over its volatility (NaN if flat)
        annualized_return: Compound annual growth of total wealth
        years_survived: Years simulated before completion or depletion
        cut_years: Years in which the spending cut applied
        final_permanent_cash: Permanent cash at the end
        final_dynamic_cash: Dynamic skim buffer at the end
        total_tax_paid: Lifetime withdrawal tax
        start_value: Initial total wealth
        withdrawal_start_year: First withdrawal year of the schedule
        start_draw: Base annual draw of the schedule
    """
    final_value: float
    max_drawdown: float
    years_in_drawdown: int
    sharpe_ratio: float
    annualized_return: float
    years_survived: int
    cut_years: int
    final_permanent_cash: float
    final_dynamic_cash: float
    total_tax_paid: float
    start_value: float = 0.0
    withdrawal_start_year: int = 0
    start_draw: float = 0.0

    def depleted(self, target_years: int) -> bool:
        """Whether the path ran out before the target horizon."""
        return self.years_survived < target_years


RECORD_FIELDS = [f.name for f in fields(OutcomeRecord)]


class MonteCarloResults:
    """Aggregates and analyzes the outcome records of one strategy.

    Example:
        >>> results = MonteCarloResults(records, target_years=40, name="Equity")
        >>> print(f"Ruin probability: {results.ruin_probability():.2%}")
        >>> print(results.percentile('final_value', 0.5))
    """

    # Standard percentile levels for analysis
    PERCENTILES = {
        "Top 10%": 0.90,
        "Top 25%": 0.75,
        "Median": 0.50,
        "Bottom 25%": 0.25,
        "Bottom 10%": 0.10,
    }

    def __init__(self, records: List[OutcomeRecord], target_years: int, name: str = ""):
        """Initialize with simulation results.

        Args:
            records: One OutcomeRecord per simulated path
            target_years: Horizon every path was asked to survive
            name: Strategy label used in reports
        """
        self.records = list(records)
        self.target_years = target_years
        self.name = name
        self.num_simulations = len(self.records)

    def values(self, field: str) -> np.ndarray:
        """Get one field from every record as a numpy array.

        Raises:
            ValueError: If field is not an OutcomeRecord field
        """
        if field not in RECORD_FIELDS:
            raise ValueError(f"Field '{field}' not found. Available: {RECORD_FIELDS}")
        return np.array([getattr(r, field) for r in self.records], dtype=float)

    def to_dataframe(self) -> pd.DataFrame:
        """All records as a DataFrame, one row per path."""
        if self.num_simulations == 0:
            return pd.DataFrame(columns=RECORD_FIELDS)
        return pd.DataFrame([asdict(r) for r in self.records], columns=RECORD_FIELDS)

    @staticmethod
    def _sorted_percentile(sorted_values: np.ndarray, pct: float) -> float:
        idx = int(len(sorted_values) * pct)
        idx = min(idx, len(sorted_values) - 1)
        return float(sorted_values[idx])

    def percentile(self, field: str, pct: float) -> float:
        """Nearest-rank percentile of a field, NaN when there are no records.

        Args:
            field: OutcomeRecord field name
            pct: Percentile as decimal (e.g., 0.5 for the median)
        """
        if self.num_simulations == 0:
            return float('nan')
        return self._sorted_percentile(np.sort(self.values(field)), pct)

    def get_percentile_data(self, field: str = 'final_value') -> Dict[str, float]:
        """Get the standard percentile bands for a field."""
        return {name: self.percentile(field, pct) for name, pct in self.PERCENTILES.items()}

    def get_statistics(self, field: str = 'final_value') -> Dict[str, float]:
        """Get summary statistics for a field.

        Returns:
            Dict with mean, std, min, max, and percentile values
        """
        if self.num_simulations == 0:
            return {}

        values = self.values(field)

        return {
            'mean': float(np.nanmean(values)),
            'std': float(np.nanstd(values)),
            'min': float(np.nanmin(values)),
            'max': float(np.nanmax(values)),
            'p10': self.percentile(field, 0.10),
            'p50': self.percentile(field, 0.50),
            'p90': self.percentile(field, 0.90),
            'p95': self.percentile(field, 0.95),
        }

    def depleted_records(self) -> List[OutcomeRecord]:
        return [r for r in self.records if r.depleted(self.target_years)]

    def survivor_records(self) -> List[OutcomeRecord]:
        return [r for r in self.records if not r.depleted(self.target_years)]

    def num_depleted(self) -> int:
        return len(self.depleted_records())

    def ruin_probability(self) -> float:
        """Share of paths depleted before the target horizon."""
        if self.num_simulations == 0:
            return 0.0
        return self.num_depleted() / self.num_simulations

    def ruin_before(self, year: int) -> float:
        """Share of paths depleted within the first `year` years."""
        if self.num_simulations == 0:
            return 0.0
        return sum(1 for r in self.records if r.years_survived < year) / self.num_simulations

    def median_depletion_year(self) -> Optional[float]:
        """Median years survived among depleted paths, None if none depleted."""
        depleted = self.depleted_records()
        if not depleted:
            return None
        years = np.sort(np.array([r.years_survived for r in depleted], dtype=float))
        return self._sorted_percentile(years, 0.5)

    def average_cut_years(self) -> float:
        if self.num_simulations == 0:
            return 0.0
        return float(np.mean(self.values('cut_years')))

    def survivor_cash_buffers(self) -> Optional[Dict[str, float]]:
        """Average final cash buffers of surviving paths, None if none survived."""
        survivors = self.survivor_records()
        if not survivors:
            return None
        return {
            'permanent': float(np.mean([r.final_permanent_cash for r in survivors])),
            'dynamic': float(np.mean([r.final_dynamic_cash for r in survivors])),
        }

    def average_tax(self, per_year: bool = False) -> float:
        """Average lifetime tax paid, or per target year when per_year is set."""
        if self.num_simulations == 0:
            return 0.0
        tax = self.values('total_tax_paid')
        if per_year:
            tax = tax / self.target_years
        return float(np.mean(tax))

    def mean_sharpe(self) -> float:
        """Mean Sharpe ratio, ignoring paths with an undefined ratio."""
        sharpe = self.values('sharpe_ratio')
        if self.num_simulations == 0 or np.all(np.isnan(sharpe)):
            return float('nan')
        return float(np.nanmean(sharpe))

    def mean(self, field: str) -> float:
        if self.num_simulations == 0:
            return float('nan')
        return float(np.mean(self.values(field)))

    def summary(self) -> Dict[str, Optional[float]]:
        """Headline figures for this strategy."""
        return {
            'simulations': self.num_simulations,
            'median_final_value': self.percentile('final_value', 0.5),
            'p10_final_value': self.percentile('final_value', 0.1),
            'p90_final_value': self.percentile('final_value', 0.9),
            'mean_final_value': self.mean('final_value'),
            'ruin_probability': self.ruin_probability(),
            'num_depleted': self.num_depleted(),
            'median_depletion_year': self.median_depletion_year(),
            'average_cut_years': self.average_cut_years(),
            'median_annualized_return': self.percentile('annualized_return', 0.5),
            'mean_annualized_return': self.mean('annualized_return'),
            'median_max_drawdown': self.percentile('max_drawdown', 0.5),
            'p95_max_drawdown': self.percentile('max_drawdown', 0.95),
            'mean_max_drawdown': self.mean('max_drawdown'),
            'average_years_in_drawdown': self.mean('years_in_drawdown'),
            'mean_sharpe_ratio': self.mean_sharpe(),
            'average_lifetime_tax': self.average_tax(),
            'average_annual_tax': self.average_tax(per_year=True),
        }

    def __repr__(self) -> str:
        return (f"MonteCarloResults(name={self.name!r}, num_simulations={self.num_simulations}, "
                f"target_years={self.target_years})")


class StrategyComparison:
    """Trial-by-trial comparison of two strategies run on the same trials.

    Example:
        >>> comparison = StrategyComparison(equity_results, managed_results)
        >>> print(f"Outperforms in {comparison.outperformance_rate():.1%} of trials")
    """

    def __init__(self, first: MonteCarloResults, second: MonteCarloResults):
        """
        Args:
            first: Results of the strategy being evaluated
            second: Results of the benchmark strategy

        Raises:
            ValueError: If the two result sets have different sizes
        """
        if first.num_simulations != second.num_simulations:
            raise ValueError(
                f"Cannot compare {first.num_simulations} paths with {second.num_simulations}"
            )
        self.first = first
        self.second = second

    def outperformance_count(self) -> int:
        """Trials in which the first strategy ends with more wealth."""
        return int(np.sum(self.first.values('final_value') > self.second.values('final_value')))

    def outperformance_rate(self) -> float:
        if self.first.num_simulations == 0:
            return 0.0
        return self.outperformance_count() / self.first.num_simulations

    def median_difference(self) -> float:
        return (self.first.percentile('final_value', 0.5)
                - self.second.percentile('final_value', 0.5))

    def mean_difference(self) -> float:
        if self.first.num_simulations == 0:
            return 0.0
        diff = self.first.values('final_value') - self.second.values('final_value')
        return float(np.mean(diff))

    def terminal_volatility(self) -> Dict[str, float]:
        """Population standard deviation of final wealth for each side."""
        return {
            'first': float(np.std(self.first.values('final_value'))),
            'second': float(np.std(self.second.values('final_value'))),
        }

    def volatility_reduction(self) -> float:
        """Fractional reduction in terminal volatility of the second strategy."""
        vol = self.terminal_volatility()
        if vol['first'] == 0:
            return float('nan')
        return 1 - vol['second'] / vol['first']

    def fee_impact(self) -> float:
        """Median terminal wealth given up by the second strategy, as a fraction."""
        first_median = self.first.percentile('final_value', 0.5)
        if not first_median:
            return float('nan')
        return self.median_difference() / first_median

    def to_dataframe(self) -> pd.DataFrame:
        """Side-by-side summary of both strategies."""
        return pd.DataFrame({
            self.first.name or 'first': self.first.summary(),
            self.second.name or 'second': self.second.summary(),
        })
