# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""Shared fixtures for the Monte Carlo tests."""

import numpy as np

from ..montecarlo.market_assumptions import (
    AssetClassAssumptions, MarketAssumptions, EQUITY, BOND, PROPERTY
)
from ..montecarlo.schedule import ScheduleConfig, Wrapper


class FixedStream:
    """Uniform stream returning a constant; 0.0 gives zero normal shocks."""

    def __init__(self, value=0.0):
        self.value = value
        self.calls = 0

    def random(self):
        self.calls += 1
        return self.value


def make_market(equity=0.08, bond=0.03, prop=0.05):
    """Default volatilities and correlations with chosen mean returns."""
    default = MarketAssumptions.create_default()
    asset_classes = {
        EQUITY: AssetClassAssumptions(EQUITY, equity, 0.18),
        BOND: AssetClassAssumptions(BOND, bond, 0.06),
        PROPERTY: AssetClassAssumptions(PROPERTY, prop, 0.12),
    }
    return MarketAssumptions(asset_classes, np.array(default.correlation_matrix))


def quiet_schedule(**overrides):
    """No withdrawals, events, drag or permanent cash; everything taxable."""
    params = dict(
        withdrawal_start_year=1000,
        annual_withdrawal=0,
        inflation_linked=False,
        spending_bands=[],
        lump_sums=[],
        obligations=[],
        cgt_drag_rate=0.0,
        permanent_cash_seed_ratio=0.0,
        wrapper_split={Wrapper.TAXABLE: 1.0, Wrapper.TAX_FREE: 0.0, Wrapper.TAX_DEFERRED: 0.0},
    )
    params.update(overrides)
    return ScheduleConfig(**params)
