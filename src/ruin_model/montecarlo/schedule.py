# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Withdrawal, tax and cash-buffer schedule shared by every simulated path.

The schedule is data rather than code: spending cuts are an ordered table of
age bands, and one-off or recurring cashflows are lists of events consumed
by the per-year loop.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional

from .config import ConfigurationError


class Wrapper(Enum):
    """Tax wrapper holding part of the invested portfolio."""
    TAXABLE = "taxable"
    TAX_FREE = "tax_free"          # ISA-equivalent
    TAX_DEFERRED = "tax_deferred"  # Pension-equivalent


class FallbackTaxPolicy(Enum):
    """Tax treatment of the proportional draw across all wrappers."""
    BLENDED = "blended"    # gross up by the balance-weighted tax rate
    UNTAXED = "untaxed"    # gross = net, no tax recorded


@dataclass(frozen=True)
class SpendingBand:
    """Multiplier applied to the base draw from a given age onward."""
    min_age: int
    multiplier: float


@dataclass(frozen=True)
class LumpSumEvent:
    """One-off credit to a wrapper, fixed to a calendar year or to an age.

    Exactly one of year and age is set. An age is resolved against the
    schedule's birth year.
    """
    year: Optional[int]
    amount: float
    wrapper: Wrapper = Wrapper.TAXABLE
    label: str = ""
    age: Optional[int] = None


@dataclass(frozen=True)
class RecurringObligation:
    """Extra spending need active from start_year to end_year inclusive."""
    start_year: int
    end_year: int
    amount: float
    label: str = ""

    def is_active(self, calendar_year: int) -> bool:
        return self.start_year <= calendar_year <= self.end_year


def _default_bands() -> List[SpendingBand]:
    return [
        SpendingBand(75, 0.729),  # 0.9^3
        SpendingBand(70, 0.81),   # 0.9^2
        SpendingBand(65, 0.9),
    ]


def _default_lump_sums() -> List[LumpSumEvent]:
    return [
        LumpSumEvent(2024, 100000, Wrapper.TAXABLE, "cash injection"),
        LumpSumEvent(None, 1300000, Wrapper.TAXABLE, "downsizing proceeds", age=75),
    ]


def _default_obligations() -> List[RecurringObligation]:
    return [RecurringObligation(2026, 2046, 40000, "mortgage")]


@dataclass
class ScheduleConfig:
    """Withdrawal, tax, and cash-buffer parameters for a simulated life.

    Attributes:
        start_year: Calendar year of simulation year 0.
        birth_year: Birth year used to derive age for spending bands.
        withdrawal_start_year: First simulation year (0-based) with a withdrawal.
        annual_withdrawal: Starting net draw in year-0 money.
        inflation_linked: Escalate the draw by inflation_rate each year.
        inflation_rate: Annual inflation rate.
        spending_bands: Age bands evaluated top-down; first match wins.
        down_year_cut: Fractional cut to the draw in negative-return years.
        lump_sums: One-off wrapper credits.
        obligations: Recurring spending obligations.
        cgt_drag_rate: Annual drag on the taxable share in positive years.
        strong_year_threshold: Return above which permanent cash is rebuilt.
        skim_trigger_ratio: Invested/high-water ratio that triggers a skim.
        skim_target_ratio: Invested/high-water ratio left after a skim.
        permanent_cash_seed_ratio: Share of initial wealth held as permanent cash.
        permanent_cash_target_ratio: Permanent cash target as share of total wealth.
        rebuild_cap_ratio: Maximum rebuild per year as share of invested wealth.
        tax_rates: Withdrawal tax rate per wrapper.
        wrapper_split: Initial split of invested wealth per wrapper.
        fallback_tax_policy: Tax treatment of the proportional fallback draw.
    """
    start_year: int = 2023
    birth_year: int = 1971
    withdrawal_start_year: int = 9
    annual_withdrawal: float = 190000
    inflation_linked: bool = True
    inflation_rate: float = 0.028
    spending_bands: List[SpendingBand] = field(default_factory=_default_bands)
    down_year_cut: float = 0.10
    lump_sums: List[LumpSumEvent] = field(default_factory=_default_lump_sums)
    obligations: List[RecurringObligation] = field(default_factory=_default_obligations)
    cgt_drag_rate: float = 0.005
    strong_year_threshold: float = 0.08
    skim_trigger_ratio: float = 1.15
    skim_target_ratio: float = 1.10
    permanent_cash_seed_ratio: float = 0.05
    permanent_cash_target_ratio: float = 0.05
    rebuild_cap_ratio: float = 0.02
    tax_rates: Dict[Wrapper, float] = field(default_factory=lambda: {
        Wrapper.TAXABLE: 0.24,
        Wrapper.TAX_FREE: 0.0,
        Wrapper.TAX_DEFERRED: 0.30,
    })
    wrapper_split: Dict[Wrapper, float] = field(default_factory=lambda: {
        Wrapper.TAXABLE: 0.84,
        Wrapper.TAX_FREE: 0.05,
        Wrapper.TAX_DEFERRED: 0.11,
    })
    fallback_tax_policy: FallbackTaxPolicy = FallbackTaxPolicy.BLENDED

    def __post_init__(self):
        self._validate()

    def _validate(self):
        """Reject negative rates and incoherent ratios."""
        if self.withdrawal_start_year < 0:
            raise ConfigurationError("withdrawal_start_year cannot be negative")

        for name in ('annual_withdrawal', 'inflation_rate', 'down_year_cut',
                     'cgt_drag_rate', 'permanent_cash_seed_ratio',
                     'permanent_cash_target_ratio', 'rebuild_cap_ratio'):
            value = getattr(self, name)
            if value < 0:
                raise ConfigurationError(f"{name} cannot be negative: {value}")

        if self.down_year_cut > 1:
            raise ConfigurationError(f"down_year_cut cannot exceed 1: {self.down_year_cut}")
        if self.permanent_cash_seed_ratio > 1:
            raise ConfigurationError("permanent_cash_seed_ratio cannot exceed 1")
        if self.skim_target_ratio < 1 or self.skim_trigger_ratio < self.skim_target_ratio:
            raise ConfigurationError(
                "Skim ratios must satisfy 1 <= skim_target_ratio <= skim_trigger_ratio, "
                f"got target={self.skim_target_ratio}, trigger={self.skim_trigger_ratio}"
            )

        for wrapper in Wrapper:
            if wrapper not in self.tax_rates:
                raise ConfigurationError(f"Missing tax rate for {wrapper.value}")
            if wrapper not in self.wrapper_split:
                raise ConfigurationError(f"Missing wrapper split for {wrapper.value}")
            rate = self.tax_rates[wrapper]
            if not 0 <= rate < 1:
                raise ConfigurationError(f"Tax rate for {wrapper.value} must be in [0, 1): {rate}")
            if self.wrapper_split[wrapper] < 0:
                raise ConfigurationError(f"Wrapper split for {wrapper.value} cannot be negative")

        total = sum(self.wrapper_split.values())
        if abs(total - 1.0) > 0.001:
            raise ConfigurationError(f"Wrapper split must sum to 1.0, got {total}")

        for band in self.spending_bands:
            if band.multiplier < 0:
                raise ConfigurationError(f"Spending band multiplier cannot be negative: {band}")
        for event in self.lump_sums:
            if event.amount < 0:
                raise ConfigurationError(f"Lump sum amount cannot be negative: {event}")
            if (event.year is None) == (event.age is None):
                raise ConfigurationError(f"Lump sum needs exactly one of year or age: {event}")
        for obligation in self.obligations:
            if obligation.amount < 0 or obligation.end_year < obligation.start_year:
                raise ConfigurationError(f"Invalid recurring obligation: {obligation}")

    def calendar_year(self, year_index: int) -> int:
        """Calendar year of a 0-based simulation year."""
        return self.start_year + year_index

    def age_at(self, year_index: int) -> int:
        """Age reached in the calendar year of a simulation year."""
        return self.calendar_year(year_index) - self.birth_year

    def calendar_year_for_age(self, age: int) -> int:
        """Calendar year in which the given age is reached."""
        return self.birth_year + age

    def spending_multiplier(self, year_index: int) -> float:
        """Multiplier from the first spending band matching the age, else 1."""
        age = self.age_at(year_index)
        for band in self.spending_bands:
            if age >= band.min_age:
                return band.multiplier
        return 1.0

    def lump_sums_for(self, year_index: int) -> List[LumpSumEvent]:
        """One-off events falling in the calendar year of a simulation year."""
        calendar_year = self.calendar_year(year_index)
        return [event for event in self.lump_sums if self.event_year(event) == calendar_year]

    def event_year(self, event: LumpSumEvent) -> int:
        """Calendar year of a lump sum, resolving age-based events."""
        if event.year is not None:
            return event.year
        return self.calendar_year_for_age(event.age)

    def obligations_for(self, year_index: int) -> float:
        """Total recurring obligations active in a simulation year."""
        calendar_year = self.calendar_year(year_index)
        return sum(o.amount for o in self.obligations if o.is_active(calendar_year))

    def base_need(self, year_index: int) -> float:
        """Draw for a year before down-year cuts and obligations."""
        withdrawal = self.annual_withdrawal * self.spending_multiplier(year_index)
        if self.inflation_linked:
            withdrawal *= (1 + self.inflation_rate) ** year_index
        return withdrawal

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScheduleConfig':
        """Build a schedule from plain JSON-style values.

        Unknown keys are rejected. Wrapper-keyed maps use the wrapper values
        ("taxable", "tax_free", "tax_deferred") as keys.

        Raises:
            ConfigurationError: On unknown keys or malformed values
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown schedule keys: {unknown}")

        kwargs: Dict[str, Any] = {}
        try:
            for key, value in data.items():
                if key == 'spending_bands':
                    kwargs[key] = [SpendingBand(int(b['min_age']), _to_float(b['multiplier']))
                                   for b in value]
                elif key == 'lump_sums':
                    kwargs[key] = [LumpSumEvent(_optional_int(e.get('year')), _to_float(e['amount']),
                                                Wrapper(e.get('wrapper', Wrapper.TAXABLE.value)),
                                                e.get('label', ""), _optional_int(e.get('age')))
                                   for e in value]
                elif key == 'obligations':
                    kwargs[key] = [RecurringObligation(int(o['start_year']), int(o['end_year']),
                                                       _to_float(o['amount']), o.get('label', ""))
                                   for o in value]
                elif key in ('tax_rates', 'wrapper_split'):
                    kwargs[key] = {Wrapper(k): _to_float(v) for k, v in value.items()}
                elif key == 'fallback_tax_policy':
                    kwargs[key] = FallbackTaxPolicy(value)
                elif key == 'inflation_linked':
                    kwargs[key] = bool(value)
                elif key in ('start_year', 'birth_year', 'withdrawal_start_year'):
                    kwargs[key] = int(value)
                else:
                    kwargs[key] = _to_float(value)
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid schedule value: {e}") from e

        return cls(**kwargs)


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError(f"expected a number, got {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return float(value.strip())
    raise ValueError(f"expected a number, got {value!r}")


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)
