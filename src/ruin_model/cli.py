# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Command line driver for the portfolio survival comparison.

Runs both default strategies through the Monte Carlo simulator and prints the
per-strategy reports followed by the comparison.
"""

import argparse
import dataclasses
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .montecarlo.config import ConfigurationError, MonteCarloConfig
from .montecarlo.reporting import DEFAULT_RUIN_CHECK_YEAR, print_comparison, print_results
from .montecarlo.schedule import FallbackTaxPolicy, ScheduleConfig
from .montecarlo.simulator import MonteCarloSimulator
from .utils import TIME_FORMAT, format_money, log_time_elapsed


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments for a comparison run."""
    defaults = MonteCarloConfig()
    parser = argparse.ArgumentParser(
        description="Monte Carlo portfolio survival comparison of two fixed-allocation strategies",
    )
    parser.add_argument("--simulations", type=int, default=defaults.num_simulations,
                        help="Number of trials (one path per strategy each).")
    parser.add_argument("--years", type=int, default=defaults.years,
                        help="Years simulated per path.")
    parser.add_argument("--initial", type=float, default=defaults.initial_value,
                        help="Initial total wealth, cash buffers included.")
    parser.add_argument("--seed", type=int, default=defaults.random_seed,
                        help="Random seed for reproducible runs.")
    parser.add_argument("--workers", type=int, default=defaults.n_workers,
                        help=("Worker processes. More than 1 gives every trial an independent "
                              "random stream, so results differ from a sequential run."))
    parser.add_argument("--schedule", type=Path, default=None,
                        help="JSON file with withdrawal schedule overrides.")
    parser.add_argument("--withdrawal-start", type=int, default=None,
                        help="First simulation year with a withdrawal.")
    parser.add_argument("--draw", type=float, default=None,
                        help="Starting annual draw.")
    parser.add_argument("--no-inflation", action="store_true",
                        help="Do not inflation-link the draw.")
    parser.add_argument("--fallback-tax", choices=[p.value for p in FallbackTaxPolicy],
                        default=None,
                        help="Tax treatment of the proportional fallback withdrawal.")
    parser.add_argument("--ruin-check-year", type=int, default=DEFAULT_RUIN_CHECK_YEAR,
                        help="Extra horizon for the early-ruin probability line.")
    return parser.parse_args(argv)


def build_schedule(args: argparse.Namespace) -> ScheduleConfig:
    """Build the schedule from an optional JSON file plus command line overrides."""
    data = {}
    if args.schedule is not None:
        try:
            data = json.loads(args.schedule.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read schedule file {args.schedule}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Schedule file {args.schedule} must hold a JSON object")

    schedule = ScheduleConfig.from_dict(data)

    overrides = {}
    if args.withdrawal_start is not None:
        overrides['withdrawal_start_year'] = args.withdrawal_start
    if args.draw is not None:
        overrides['annual_withdrawal'] = args.draw
    if args.no_inflation:
        overrides['inflation_linked'] = False
    if args.fallback_tax is not None:
        overrides['fallback_tax_policy'] = FallbackTaxPolicy(args.fallback_tax)
    return dataclasses.replace(schedule, **overrides) if overrides else schedule


def build_config(args: argparse.Namespace) -> MonteCarloConfig:
    return MonteCarloConfig(
        num_simulations=args.simulations,
        years=args.years,
        initial_value=args.initial,
        random_seed=args.seed,
        n_workers=args.workers,
    )


def _print_progress(done: int, total: int):
    print(f"\rProgress: {done:,}/{total:,}", end="", flush=True)


def run_comparison(args: argparse.Namespace):
    """Run the simulation and print every report."""
    config = build_config(args)
    schedule = build_schedule(args)
    simulator = MonteCarloSimulator(config=config, schedule=schedule)

    start_time = datetime.now()
    print(f"Starting simulation at {start_time.strftime(TIME_FORMAT)}")
    print(f"Running {config.num_simulations:,} simulations over {config.years} years "
          f"from {format_money(config.initial_value)}...\n")
    if config.is_parallel:
        print(f"Using {config.n_workers} workers with independent random streams per trial\n")

    run = simulator.run(progress_callback=_print_progress)
    print(" - Complete!\n")

    for name in run.strategy_names:
        print_results(run[name], ruin_check_year=args.ruin_check_year)
        print()
    print_comparison(run.compare())
    print()
    log_time_elapsed(start_time, "Total simulation time")
    return run


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    print("Investment Portfolio Monte Carlo Simulation")
    print("=" * 43 + "\n")
    try:
        run_comparison(args)
    except ConfigurationError as e:
        print(f"\nConfiguration error: {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
