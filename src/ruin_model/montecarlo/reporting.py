# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Console reports for Monte Carlo results.

Consumes MonteCarloResults and StrategyComparison only; nothing here feeds
back into sampling or withdrawals.
"""

import pandas as pd

from ..utils import format_money, format_pct
from .results import MonteCarloResults, StrategyComparison

# Early-ruin horizon reported next to the full-horizon figure
DEFAULT_RUIN_CHECK_YEAR = 21


def print_results(results: MonteCarloResults, ruin_check_year: int = DEFAULT_RUIN_CHECK_YEAR):
    """Print the full report for one strategy.

    Args:
        results: Outcome records of one strategy
        ruin_check_year: Extra horizon for an early-ruin probability line
    """
    title = results.name or "Strategy"
    print(title)
    print("-" * len(title))

    if results.num_simulations == 0:
        print("No simulations to summarize")
        return

    first = results.records[0]
    target = results.target_years

    print("Assumptions:")
    print(f"  Start value:    {format_money(first.start_value)}")
    print(f"  Start year:     {first.withdrawal_start_year}")
    print(f"  Start draw:     {format_money(first.start_draw)}")

    print("Terminal Value:")
    percentiles = pd.Series(results.get_percentile_data('final_value'))
    percentiles['Mean'] = results.mean('final_value')
    print(percentiles.map(format_money).to_string())

    print("\nSurvival Analysis:")
    print(f"  Probability of ruin (before year {target}): {format_pct(results.ruin_probability())}")
    print(f"  Simulations depleted: {results.num_depleted():,} of {results.num_simulations:,}")
    median_depletion = results.median_depletion_year()
    if median_depletion is not None:
        print(f"  Median year of depletion (if depleted): Year {median_depletion:.0f}")
    print(f"  Probability of ruin before year {ruin_check_year}: "
          f"{format_pct(results.ruin_before(ruin_check_year))}")
    print(f"  Avg. years with spending cut: {results.average_cut_years():.1f}")

    buffers = results.survivor_cash_buffers()
    if buffers is not None:
        print("\nCash Buffer Analysis (survivors only):")
        print(f"  Avg final permanent cash: {format_money(buffers['permanent'])}")
        print(f"  Avg final dynamic buffer: {format_money(buffers['dynamic'])}")

    print("\nAnnualized Return:")
    print(f"  Median: {format_pct(results.percentile('annualized_return', 0.5))}")
    print(f"  Mean:   {format_pct(results.mean('annualized_return'))}")

    print("\nMaximum Drawdown:")
    print(f"  Median:       {format_pct(results.percentile('max_drawdown', 0.5), 1)}")
    print(f"  Worst (95th): {format_pct(results.percentile('max_drawdown', 0.95), 1)}")
    print(f"  Mean:         {format_pct(results.mean('max_drawdown'), 1)}")

    print(f"\nAvg Years in Drawdown: {results.mean('years_in_drawdown'):.1f}")
    print(f"Sharpe Ratio (mean): {results.mean_sharpe():.2f}")

    print("\nTax Impact:")
    print(f"  Avg lifetime tax paid: {format_money(results.average_tax())}")
    print(f"  Avg annual tax: {format_money(results.average_tax(per_year=True))}")


def print_comparison(comparison: StrategyComparison):
    """Print the head-to-head comparison of two strategies."""
    first, second = comparison.first, comparison.second
    print("Comparative Analysis")
    print("=" * 20)

    print(f"{first.name} outperforms in {comparison.outperformance_count():,} of "
          f"{first.num_simulations:,} simulations ({format_pct(comparison.outperformance_rate(), 1)})")
    print(f"\nMedian terminal value difference: {format_money(comparison.median_difference())}")
    print(f"Mean terminal value difference:   {format_money(comparison.mean_difference())}")

    vol = comparison.terminal_volatility()
    print("\nTerminal value volatility:")
    print(f"  {first.name}: {format_money(vol['first'])}")
    print(f"  {second.name}: {format_money(vol['second'])}")
    print(f"  Difference: {format_pct(comparison.volatility_reduction(), 1)} lower for {second.name}")

    print(f"\nFee impact over {first.target_years} years:")
    print(f"  {second.name} gives up approximately {format_pct(comparison.fee_impact(), 1)} "
          f"of median terminal wealth")

    print("\nKey Metrics:")
    print(comparison.to_dataframe().round(4).to_string())
