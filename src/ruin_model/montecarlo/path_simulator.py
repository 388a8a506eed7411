# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Single-path portfolio simulation.

This module runs one simulated life year by year: scheduled injections,
a correlated return draw, fee and drag, growth of every wrapper, skimming of
excess gains into the dynamic cash buffer, rebuilding of permanent cash,
the withdrawal waterfall, the depletion check and drawdown tracking. The
order of these steps is fixed; changing it changes outcomes.
"""

import math
from typing import List, Optional, Sequence
import numpy as np

from .config import ConfigurationError
from .results import OutcomeRecord
from .return_generator import CorrelatedReturnGenerator
from .schedule import ScheduleConfig
from .wrappers import CashBuffers, WithdrawalResult, WrapperState, withdraw


class PathState:
    """Mutable state threaded through one simulated life.

    Attributes:
        wrappers: Tax wrapper balances
        cash: Permanent and dynamic cash buffers
        high_water_mark: Invested wealth reference for skimming
        peak_value: Running peak of total wealth for drawdown
        max_drawdown: Largest fractional fall from peak so far
        years_in_drawdown: Completed drawdown streaks, in years
        current_drawdown_years: Length of the open drawdown streak
        total_tax_paid: Lifetime withdrawal tax
        cut_years: Years with the down-year spending cut
        yearly_returns: Realized portfolio return of each year
    """

    def __init__(self, initial_value: float, schedule: ScheduleConfig):
        permanent = initial_value * schedule.permanent_cash_seed_ratio
        self.wrappers = WrapperState.from_split(initial_value - permanent, schedule.wrapper_split)
        self.cash = CashBuffers(permanent=permanent)
        self.high_water_mark = self.wrappers.invested
        self.peak_value = initial_value
        self.max_drawdown = 0.0
        self.years_in_drawdown = 0
        self.current_drawdown_years = 0
        self.total_tax_paid = 0.0
        self.cut_years = 0
        self.yearly_returns: List[float] = []

    @property
    def invested(self) -> float:
        return self.wrappers.invested

    @property
    def total_wealth(self) -> float:
        """Invested wealth plus both cash buffers."""
        return self.wrappers.invested + self.cash.permanent + self.cash.dynamic

    def is_depleted(self) -> bool:
        return self.invested <= 0 and self.cash.permanent <= 0 and self.cash.dynamic <= 0

    def apply_injections(self, year: int, schedule: ScheduleConfig):
        """Credit one-off lump sums and reset the skim baseline."""
        events = schedule.lump_sums_for(year)
        for event in events:
            self.wrappers.credit(event.wrapper, event.amount)
        if events:
            self.high_water_mark = self.invested

    def portfolio_return(self, allocation: np.ndarray, asset_returns: np.ndarray,
                         fee_rate: float, schedule: ScheduleConfig) -> float:
        """Blended return for the year after fees and taxable drag."""
        year_return = float(np.dot(allocation, asset_returns)) - fee_rate
        # Realized-gain drag only hits the taxable share, only in gain years
        if year_return > 0:
            year_return -= schedule.cgt_drag_rate * self.wrappers.taxable_weight()
        return year_return

    def skim(self, schedule: ScheduleConfig) -> float:
        """Move gains above the trigger into the dynamic buffer.

        Returns:
            Amount skimmed (0 if the trigger was not reached)
        """
        invested = self.invested
        if invested <= self.high_water_mark * schedule.skim_trigger_ratio:
            return 0.0
        excess = invested - self.high_water_mark * schedule.skim_target_ratio
        skimmed = self.wrappers.scale(excess / invested)
        self.cash.dynamic += skimmed
        self.high_water_mark = self.invested
        return skimmed

    def rebuild(self, year_return: float, schedule: ScheduleConfig) -> float:
        """Top up permanent cash in strong years.

        Returns:
            Amount moved into permanent cash
        """
        target = self.total_wealth * schedule.permanent_cash_target_ratio
        invested = self.invested
        if year_return <= schedule.strong_year_threshold or self.cash.permanent >= target:
            return 0.0
        if invested <= 0:
            return 0.0
        top_up = min(target - self.cash.permanent, invested * schedule.rebuild_cap_ratio)
        moved = self.wrappers.scale(top_up / invested)
        self.cash.permanent += moved
        return moved

    def spending_need(self, year: int, year_return: float, schedule: ScheduleConfig) -> float:
        """Net amount to spend this year, counting a down-year cut."""
        need = schedule.base_need(year)
        if year_return < 0:
            need *= (1 - schedule.down_year_cut)
            self.cut_years += 1
        return need + schedule.obligations_for(year)

    def take_withdrawal(self, need: float, schedule: ScheduleConfig) -> WithdrawalResult:
        result = withdraw(need, self.wrappers, self.cash, schedule)
        self.total_tax_paid += result.tax
        return result

    def track_drawdown(self):
        """Update peak, drawdown streaks and max drawdown from total wealth."""
        total = self.total_wealth
        if total > self.peak_value:
            self.peak_value = total
            if self.current_drawdown_years > 0:
                self.years_in_drawdown += self.current_drawdown_years
                self.current_drawdown_years = 0
        else:
            self.current_drawdown_years += 1
            if self.peak_value > 0:
                drawdown = (self.peak_value - total) / self.peak_value
                self.max_drawdown = max(self.max_drawdown, min(drawdown, 1.0))


def simulate(initial_value: float,
             years: int,
             allocation: Sequence[float],
             fee_rate: float,
             returns: CorrelatedReturnGenerator,
             schedule: ScheduleConfig,
             risk_free_rate: Optional[float] = None) -> OutcomeRecord:
    """Simulate one life path and summarize it.

    Args:
        initial_value: Starting total wealth, cash buffers included
        years: Number of years to simulate
        allocation: Weights for (equity, bond, property)
        fee_rate: Flat annual fee deducted from the blended return
        returns: Correlated return generator bound to this path's stream
        schedule: Withdrawal, tax and buffer parameters
        risk_free_rate: Sharpe ratio hurdle. Defaults to the market assumption.

    Returns:
        OutcomeRecord for the path, emitted early if wealth is exhausted

    Raises:
        ConfigurationError: If initial_value is not positive or years < 1
    """
    if initial_value <= 0:
        raise ConfigurationError(f"initial_value must be positive: {initial_value}")
    if years < 1:
        raise ConfigurationError("years must be at least 1")
    if risk_free_rate is None:
        risk_free_rate = returns.market.risk_free_rate

    weights = np.asarray(allocation, dtype=float)
    state = PathState(initial_value, schedule)

    for year in range(years):
        state.apply_injections(year, schedule)

        year_return = state.portfolio_return(weights, returns.generate_yearly_returns(),
                                             fee_rate, schedule)
        state.yearly_returns.append(year_return)
        state.wrappers.apply_return(year_return)

        state.skim(schedule)
        state.rebuild(year_return, schedule)

        if year >= schedule.withdrawal_start_year:
            need = state.spending_need(year, year_return, schedule)
            state.take_withdrawal(need, schedule)

        if state.is_depleted():
            return _depleted_record(state, year, initial_value, schedule)

        state.track_drawdown()

    return _completed_record(state, years, initial_value, schedule, risk_free_rate)


def _depleted_record(state: PathState, year: int, initial_value: float,
                     schedule: ScheduleConfig) -> OutcomeRecord:
    return OutcomeRecord(
        final_value=0.0,
        max_drawdown=1.0,
        years_in_drawdown=year + 1,
        sharpe_ratio=0.0,
        annualized_return=-1.0,
        years_survived=year + 1,
        cut_years=state.cut_years,
        final_permanent_cash=max(state.cash.permanent, 0.0),
        final_dynamic_cash=max(state.cash.dynamic, 0.0),
        total_tax_paid=state.total_tax_paid,
        start_value=initial_value,
        withdrawal_start_year=schedule.withdrawal_start_year,
        start_draw=schedule.annual_withdrawal,
    )


def _completed_record(state: PathState, years: int, initial_value: float,
                      schedule: ScheduleConfig, risk_free_rate: float) -> OutcomeRecord:
    final_value = state.total_wealth
    returns = np.array(state.yearly_returns)
    mean_return = float(np.mean(returns))
    std_return = float(np.std(returns))

    # Flat return series: Sharpe is undefined for this path only
    sharpe = (mean_return - risk_free_rate) / std_return if std_return > 0 else math.nan

    if final_value > 0:
        annualized = (final_value / initial_value) ** (1.0 / years) - 1
    else:
        annualized = -1.0

    return OutcomeRecord(
        final_value=final_value,
        max_drawdown=state.max_drawdown,
        years_in_drawdown=state.years_in_drawdown + state.current_drawdown_years,
        sharpe_ratio=sharpe,
        annualized_return=annualized,
        years_survived=years,
        cut_years=state.cut_years,
        final_permanent_cash=state.cash.permanent,
        final_dynamic_cash=state.cash.dynamic,
        total_tax_paid=state.total_tax_paid,
        start_value=initial_value,
        withdrawal_start_year=schedule.withdrawal_start_year,
        start_draw=schedule.annual_withdrawal,
    )
