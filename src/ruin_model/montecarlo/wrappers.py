# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Tax wrappers, cash buffers and the withdrawal waterfall.

A path's invested wealth lives in three wrappers (taxable, tax-free and
tax-deferred) that all earn the same blended return. Cash buffers sit outside
the wrappers and are spent first.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict

from .schedule import FallbackTaxPolicy, ScheduleConfig, Wrapper


class WrapperState:
    """Balances of the three tax wrappers for one path."""

    def __init__(self, taxable: float = 0, tax_free: float = 0, tax_deferred: float = 0):
        self.taxable = taxable
        self.tax_free = tax_free
        self.tax_deferred = tax_deferred

    @classmethod
    def from_split(cls, amount: float, split: Dict[Wrapper, float]) -> 'WrapperState':
        """Divide an amount across the wrappers by split ratio."""
        return cls(amount * split[Wrapper.TAXABLE],
                   amount * split[Wrapper.TAX_FREE],
                   amount * split[Wrapper.TAX_DEFERRED])

    @property
    def invested(self) -> float:
        """Total invested wealth across all wrappers."""
        return self.taxable + self.tax_free + self.tax_deferred

    def taxable_weight(self) -> float:
        """Taxable share of invested wealth, 0 when nothing is invested."""
        total = self.invested
        return self.taxable / total if total > 0 else 0.0

    def credit(self, wrapper: Wrapper, amount: float):
        """Add an amount to a single wrapper."""
        if wrapper is Wrapper.TAXABLE:
            self.taxable += amount
        elif wrapper is Wrapper.TAX_FREE:
            self.tax_free += amount
        else:
            self.tax_deferred += amount

    def apply_return(self, return_rate: float):
        """Grow every wrapper by the same return rate."""
        self.taxable *= (1 + return_rate)
        self.tax_free *= (1 + return_rate)
        self.tax_deferred *= (1 + return_rate)

    def scale(self, ratio: float) -> float:
        """Remove the same fraction from every wrapper.

        Args:
            ratio: Fraction of each balance to remove (0 to 1)

        Returns:
            Total amount removed
        """
        before = self.invested
        self.taxable -= self.taxable * ratio
        self.tax_free -= self.tax_free * ratio
        self.tax_deferred -= self.tax_deferred * ratio
        return before - self.invested

    def take_proportionally(self, amount: float) -> float:
        """Remove an amount spread across wrappers by their share of invested wealth.

        Returns:
            Amount actually removed (capped at invested wealth)
        """
        total = self.invested
        if amount <= 0 or total <= 0:
            return 0.0
        return self.scale(min(amount / total, 1.0))

    def clamp(self):
        """Floor every balance at zero."""
        self.taxable = max(self.taxable, 0.0)
        self.tax_free = max(self.tax_free, 0.0)
        self.tax_deferred = max(self.tax_deferred, 0.0)

    def __repr__(self) -> str:
        return (f"WrapperState(taxable={self.taxable:,.2f}, tax_free={self.tax_free:,.2f}, "
                f"tax_deferred={self.tax_deferred:,.2f})")


class CashBuffers:
    """Uninvested reserves: permanent cash and the dynamic skim buffer."""

    def __init__(self, permanent: float = 0, dynamic: float = 0):
        self.permanent = permanent
        self.dynamic = dynamic

    @property
    def total(self) -> float:
        return self.permanent + self.dynamic

    def __repr__(self) -> str:
        return f"CashBuffers(permanent={self.permanent:,.2f}, dynamic={self.dynamic:,.2f})"


class WithdrawalSource(Enum):
    """Which step of the waterfall satisfied the remaining need."""
    NONE = "none"
    CASH = "cash"
    TAXABLE = "taxable"
    TAX_FREE = "tax_free"
    TAX_DEFERRED = "tax_deferred"
    PROPORTIONAL = "proportional"


@dataclass(frozen=True)
class WithdrawalResult:
    """Outcome of one year's withdrawal.

    Attributes:
        source: Waterfall step that covered the need left after cash
        from_cash: Net amount taken from the cash buffers
        gross: Amount removed from the wrappers, tax included
        tax: Tax incurred on the wrapper withdrawal (gross minus net)
        shortfall: Net need left unmet after every source was tried
    """
    source: WithdrawalSource
    from_cash: float = 0.0
    gross: float = 0.0
    tax: float = 0.0
    shortfall: float = 0.0


def withdraw(need: float, wrappers: WrapperState, cash: CashBuffers,
             schedule: ScheduleConfig) -> WithdrawalResult:
    """Satisfy a net spending need from cash and wrappers in priority order.

    Order: permanent cash, dynamic cash, then the first of taxable (grossed
    up), tax-free, tax-deferred (grossed up) able to cover the rest alone,
    otherwise a proportional draw from all wrappers.

    Args:
        need: Net amount to spend this year
        wrappers: Wrapper balances, modified in place
        cash: Cash buffers, modified in place
        schedule: Supplies tax rates and the fallback tax policy

    Returns:
        WithdrawalResult describing the draw
    """
    if need <= 0:
        return WithdrawalResult(WithdrawalSource.NONE)

    from_permanent = min(need, max(cash.permanent, 0.0))
    cash.permanent -= from_permanent
    from_dynamic = min(need - from_permanent, max(cash.dynamic, 0.0))
    cash.dynamic -= from_dynamic
    from_cash = from_permanent + from_dynamic

    net = need - from_cash
    if net <= 0:
        return WithdrawalResult(WithdrawalSource.CASH, from_cash=from_cash)

    rates = schedule.tax_rates
    taxable_gross = net / (1 - rates[Wrapper.TAXABLE])
    deferred_gross = net / (1 - rates[Wrapper.TAX_DEFERRED])
    shortfall = 0.0

    if wrappers.taxable >= taxable_gross:
        source = WithdrawalSource.TAXABLE
        gross = taxable_gross
        wrappers.taxable -= gross
        tax = gross - net
    elif wrappers.tax_free >= net:
        source = WithdrawalSource.TAX_FREE
        gross = net
        wrappers.tax_free -= gross
        tax = 0.0
    elif wrappers.tax_deferred >= deferred_gross:
        source = WithdrawalSource.TAX_DEFERRED
        gross = deferred_gross
        wrappers.tax_deferred -= gross
        tax = gross - net
    else:
        source = WithdrawalSource.PROPORTIONAL
        gross, tax, shortfall = _withdraw_proportionally(net, wrappers, schedule)

    wrappers.clamp()
    return WithdrawalResult(source, from_cash=from_cash, gross=gross,
                            tax=max(tax, 0.0), shortfall=shortfall)


def _withdraw_proportionally(net: float, wrappers: WrapperState, schedule: ScheduleConfig):
    """Draw a net amount across every wrapper by balance share.

    Returns:
        Tuple of (gross, tax, shortfall)
    """
    remaining = wrappers.invested
    if remaining <= 0:
        return 0.0, 0.0, net

    if schedule.fallback_tax_policy is FallbackTaxPolicy.UNTAXED:
        gross = wrappers.take_proportionally(net)
        return gross, 0.0, max(net - gross, 0.0)

    rates = schedule.tax_rates
    blended_rate = (wrappers.taxable * rates[Wrapper.TAXABLE]
                    + wrappers.tax_free * rates[Wrapper.TAX_FREE]
                    + wrappers.tax_deferred * rates[Wrapper.TAX_DEFERRED]) / remaining
    gross = wrappers.take_proportionally(net / (1 - blended_rate))
    tax = gross * blended_rate
    return gross, tax, max(net - (gross - tax), 0.0)
