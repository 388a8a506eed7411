# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Integration tests for the Monte Carlo simulator, result aggregation,
console reports and the command line driver.
"""

import io
import json
import math
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import Mock
import numpy as np

from ..cli import build_schedule, main, parse_args
from ..montecarlo.config import ConfigurationError, MonteCarloConfig
from ..montecarlo.market_assumptions import MarketAssumptions
from ..montecarlo.path_simulator import simulate
from ..montecarlo.reporting import print_comparison, print_results
from ..montecarlo.results import MonteCarloResults, OutcomeRecord, StrategyComparison
from ..montecarlo.return_generator import CorrelatedReturnGenerator
from ..montecarlo.schedule import FallbackTaxPolicy, ScheduleConfig
from ..montecarlo.simulator import MonteCarloSimulator
from ..montecarlo.strategies import DIVERSIFIED_MANAGED, LOW_COST_EQUITY, Strategy


def make_record(final_value, years_survived=10, **kwargs):
    values = dict(
        final_value=final_value,
        max_drawdown=0.2,
        years_in_drawdown=3,
        sharpe_ratio=0.5,
        annualized_return=0.04,
        years_survived=years_survived,
        cut_years=2,
        final_permanent_cash=1000.0,
        final_dynamic_cash=500.0,
        total_tax_paid=10000.0,
        start_value=100.0,
        withdrawal_start_year=9,
        start_draw=190000,
    )
    values.update(kwargs)
    return OutcomeRecord(**values)


class TestMonteCarloSimulator(unittest.TestCase):
    """Tests for MonteCarloSimulator."""

    def setUp(self):
        self.config = MonteCarloConfig(num_simulations=20, years=10, random_seed=3)
        self.simulator = MonteCarloSimulator(config=self.config)

    def test_run_returns_results_per_strategy(self):
        run = self.simulator.run()

        self.assertEqual(run.strategy_names, [LOW_COST_EQUITY.name, DIVERSIFIED_MANAGED.name])
        for name in run.strategy_names:
            self.assertEqual(run[name].num_simulations, 20)
            self.assertEqual(run[name].target_years, 10)
            self.assertEqual(run[name].name, name)

    def test_reproducible_with_seed(self):
        first = self.simulator.run()
        second = MonteCarloSimulator(config=self.config).run()

        for name in first.strategy_names:
            np.testing.assert_array_equal(first[name].values('final_value'),
                                          second[name].values('final_value'))

    def test_strategies_interleave_on_one_stream(self):
        """Each trial runs every strategy in order from a single shared stream."""
        run = self.simulator.run()

        market = MarketAssumptions.create_default()
        schedule = ScheduleConfig()
        returns = CorrelatedReturnGenerator(market, np.random.default_rng(3))
        expected = {LOW_COST_EQUITY.name: [], DIVERSIFIED_MANAGED.name: []}
        for _ in range(20):
            for strategy in (LOW_COST_EQUITY, DIVERSIFIED_MANAGED):
                record = simulate(2500000, 10, strategy.weights, strategy.fee_rate, returns, schedule)
                expected[strategy.name].append(record.final_value)

        for name, values in expected.items():
            np.testing.assert_array_equal(run[name].values('final_value'), values)

    def test_progress_callback(self):
        config = MonteCarloConfig(num_simulations=3, years=2, progress_interval=1)
        callback = Mock()

        MonteCarloSimulator(config=config).run(progress_callback=callback)

        calls = [c.args for c in callback.call_args_list]
        self.assertEqual(calls, [(0, 3), (1, 3), (2, 3), (3, 3)])

    def test_duplicate_strategy_names_raise(self):
        with self.assertRaises(ConfigurationError):
            self.simulator.run([LOW_COST_EQUITY, LOW_COST_EQUITY])

    def test_custom_strategies(self):
        bonds = Strategy("All Bonds", (0.0, 1.0, 0.0), 0.001)
        run = self.simulator.run([bonds])

        self.assertEqual(run.strategy_names, ["All Bonds"])
        with self.assertRaises(ValueError):
            run.compare()

    def test_run_single(self):
        first = self.simulator.run_single(LOW_COST_EQUITY)
        second = self.simulator.run_single(LOW_COST_EQUITY)

        self.assertIsInstance(first, OutcomeRecord)
        self.assertEqual(first.final_value, second.final_value)
        self.assertLessEqual(first.years_survived, 10)

    def test_parallel_run(self):
        config = MonteCarloConfig(num_simulations=5, years=5, random_seed=9,
                                  n_workers=2, chunk_size=2)
        callback = Mock()

        run = MonteCarloSimulator(config=config).run(progress_callback=callback)
        again = MonteCarloSimulator(config=config).run()

        for name in run.strategy_names:
            self.assertEqual(run[name].num_simulations, 5)
            np.testing.assert_array_equal(run[name].values('final_value'),
                                          again[name].values('final_value'))
        callback.assert_called_with(5, 5)

    def test_parallel_trial_order(self):
        """Trial i of a parallel run uses the i-th spawned stream."""
        config = MonteCarloConfig(num_simulations=4, years=5, random_seed=9,
                                  n_workers=2, chunk_size=3)
        run = MonteCarloSimulator(config=config).run()

        market = MarketAssumptions.create_default()
        schedule = ScheduleConfig()
        seed = np.random.SeedSequence(9).spawn(4)[3]
        returns = CorrelatedReturnGenerator(market, np.random.default_rng(seed))
        record = simulate(2500000, 5, LOW_COST_EQUITY.weights, LOW_COST_EQUITY.fee_rate,
                          returns, schedule)

        self.assertEqual(run[LOW_COST_EQUITY.name].records[3].final_value, record.final_value)


class TestMonteCarloResults(unittest.TestCase):
    """Tests for MonteCarloResults on hand-built records."""

    def setUp(self):
        self.records = [
            make_record(0.0, years_survived=3, sharpe_ratio=0.0),
            make_record(100.0, sharpe_ratio=float('nan')),
            make_record(200.0),
            make_record(300.0, final_permanent_cash=3000.0),
            make_record(400.0, final_dynamic_cash=1500.0),
        ]
        self.results = MonteCarloResults(self.records, target_years=10, name="Test")

    def test_percentiles(self):
        data = self.results.get_percentile_data('final_value')

        self.assertEqual(data['Median'], 200.0)
        self.assertEqual(data['Top 10%'], 400.0)
        self.assertEqual(data['Top 25%'], 300.0)
        self.assertEqual(data['Bottom 25%'], 100.0)
        self.assertEqual(data['Bottom 10%'], 0.0)
        self.assertEqual(self.results.percentile('final_value', 1.0), 400.0)

    def test_statistics(self):
        stats = self.results.get_statistics('final_value')

        self.assertEqual(stats['mean'], 200.0)
        self.assertEqual(stats['min'], 0.0)
        self.assertEqual(stats['max'], 400.0)
        self.assertEqual(stats['p50'], 200.0)

    def test_survival(self):
        self.assertEqual(self.results.num_depleted(), 1)
        self.assertEqual(self.results.ruin_probability(), 0.2)
        self.assertEqual(self.results.ruin_before(5), 0.2)
        self.assertEqual(self.results.ruin_before(3), 0.0)
        self.assertEqual(self.results.median_depletion_year(), 3.0)
        self.assertEqual(self.results.average_cut_years(), 2.0)

    def test_survivor_cash_buffers(self):
        buffers = self.results.survivor_cash_buffers()

        self.assertEqual(buffers['permanent'], 1500.0)
        self.assertEqual(buffers['dynamic'], 750.0)

    def test_tax_and_sharpe(self):
        self.assertEqual(self.results.average_tax(), 10000.0)
        self.assertEqual(self.results.average_tax(per_year=True), 1000.0)
        # The undefined ratio is skipped
        self.assertAlmostEqual(self.results.mean_sharpe(), 1.5 / 4)

    def test_unknown_field_raises(self):
        with self.assertRaises(ValueError):
            self.results.values('bogus')

    def test_to_dataframe(self):
        df = self.results.to_dataframe()

        self.assertEqual(len(df), 5)
        self.assertIn('final_value', df.columns)
        self.assertIn('total_tax_paid', df.columns)

    def test_summary(self):
        summary = self.results.summary()

        self.assertEqual(summary['simulations'], 5)
        self.assertEqual(summary['median_final_value'], 200.0)
        self.assertEqual(summary['ruin_probability'], 0.2)

    def test_empty_results(self):
        empty = MonteCarloResults([], target_years=10)

        self.assertTrue(math.isnan(empty.percentile('final_value', 0.5)))
        self.assertEqual(empty.ruin_probability(), 0.0)
        self.assertIsNone(empty.median_depletion_year())
        self.assertIsNone(empty.survivor_cash_buffers())
        self.assertEqual(empty.get_statistics(), {})
        self.assertTrue(math.isnan(empty.mean_sharpe()))

    def test_no_depletions(self):
        results = MonteCarloResults(self.records[1:], target_years=10)
        self.assertIsNone(results.median_depletion_year())
        self.assertEqual(results.ruin_probability(), 0.0)


class TestStrategyComparison(unittest.TestCase):
    """Tests for StrategyComparison."""

    def setUp(self):
        first = MonteCarloResults([make_record(v) for v in (100.0, 200.0, 300.0)], 10, "Equity")
        second = MonteCarloResults([make_record(v) for v in (50.0, 250.0, 100.0)], 10, "Managed")
        self.comparison = StrategyComparison(first, second)

    def test_outperformance(self):
        self.assertEqual(self.comparison.outperformance_count(), 2)
        self.assertAlmostEqual(self.comparison.outperformance_rate(), 2 / 3)

    def test_differences(self):
        self.assertEqual(self.comparison.median_difference(), 100.0)
        self.assertAlmostEqual(self.comparison.mean_difference(), 200.0 / 3)
        self.assertAlmostEqual(self.comparison.fee_impact(), 0.5)

    def test_volatility(self):
        vol = self.comparison.terminal_volatility()

        self.assertAlmostEqual(vol['first'], np.std([100.0, 200.0, 300.0]))
        self.assertAlmostEqual(vol['second'], np.std([50.0, 250.0, 100.0]))
        self.assertAlmostEqual(self.comparison.volatility_reduction(),
                               1 - vol['second'] / vol['first'])

    def test_to_dataframe(self):
        df = self.comparison.to_dataframe()
        self.assertEqual(list(df.columns), ["Equity", "Managed"])
        self.assertIn('ruin_probability', df.index)

    def test_size_mismatch_raises(self):
        with self.assertRaises(ValueError):
            StrategyComparison(MonteCarloResults([make_record(1.0)], 10),
                               MonteCarloResults([], 10))


class TestReporting(unittest.TestCase):
    """Tests for the console reports."""

    def test_print_results(self):
        records = [make_record(v, years_survived=y)
                   for v, y in [(0.0, 4), (150000.0, 10), (250000.0, 10)]]
        results = MonteCarloResults(records, target_years=10, name="Equity")

        out = io.StringIO()
        with redirect_stdout(out):
            print_results(results, ruin_check_year=5)
        text = out.getvalue()

        self.assertIn("Equity", text)
        self.assertIn("Probability of ruin (before year 10): 33.33%", text)
        self.assertIn("Probability of ruin before year 5: 33.33%", text)
        self.assertIn("Median year of depletion (if depleted): Year 4", text)
        self.assertIn("Cash Buffer Analysis", text)
        self.assertIn("£150,000", text)
        self.assertIn("Start draw:     £190,000", text)

    def test_print_results_empty(self):
        out = io.StringIO()
        with redirect_stdout(out):
            print_results(MonteCarloResults([], 10, "Empty"))
        self.assertIn("No simulations to summarize", out.getvalue())

    def test_print_comparison(self):
        first = MonteCarloResults([make_record(v) for v in (100.0, 200.0, 300.0)], 10, "Equity")
        second = MonteCarloResults([make_record(v) for v in (50.0, 250.0, 100.0)], 10, "Managed")

        out = io.StringIO()
        with redirect_stdout(out):
            print_comparison(StrategyComparison(first, second))
        text = out.getvalue()

        self.assertIn("Comparative Analysis", text)
        self.assertIn("Equity outperforms in 2 of 3 simulations", text)
        self.assertIn("Key Metrics", text)


class TestCommandLine(unittest.TestCase):
    """Tests for the command line driver."""

    def test_main_runs_comparison(self):
        out = io.StringIO()
        with redirect_stdout(out):
            code = main(['--simulations', '5', '--years', '5'])

        self.assertEqual(code, 0)
        self.assertIn("Comparative Analysis", out.getvalue())
        self.assertIn(LOW_COST_EQUITY.name, out.getvalue())

    def test_main_rejects_bad_configuration(self):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main(['--simulations', '5', '--years', '5', '--draw', '-1'])

        self.assertEqual(code, 2)
        self.assertIn("Configuration error", err.getvalue())

    def test_schedule_file_and_overrides(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'schedule.json')
            with open(path, 'w') as f:
                json.dump({"annual_withdrawal": 100000, "withdrawal_start_year": 2}, f)

            schedule = build_schedule(parse_args(['--schedule', path, '--withdrawal-start', '5',
                                                  '--fallback-tax', 'untaxed', '--no-inflation']))

        self.assertEqual(schedule.annual_withdrawal, 100000)
        self.assertEqual(schedule.withdrawal_start_year, 5)
        self.assertFalse(schedule.inflation_linked)
        self.assertIs(schedule.fallback_tax_policy, FallbackTaxPolicy.UNTAXED)

    def test_missing_schedule_file(self):
        with self.assertRaises(ConfigurationError):
            build_schedule(parse_args(['--schedule', '/nonexistent/schedule.json']))

    def test_defaults(self):
        args = parse_args([])
        self.assertEqual(args.simulations, 40000)
        self.assertEqual(args.years, 40)
        self.assertEqual(args.ruin_check_year, 21)
        self.assertEqual(build_schedule(args), ScheduleConfig())


if __name__ == '__main__':
    unittest.main()
