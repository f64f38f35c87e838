"""
Main script - Portfolio analysis from the command line.
Fetch prices, compute returns, run the Monte Carlo sweep and Bayesian updates,
then write an HTML report.
"""

import sys
import argparse
from pathlib import Path
from datetime import datetime

from run_config import (
    RunConfig, SimulationSettings, DataSourceConfig, VisualizationConfig,
    SettingsValidationError, load_config_from_file
)
from data_manager import DataManager, DataFetchError
from return_calculator import calculate_returns
from portfolio_simulator import run_portfolio_simulation
from portfolio_optimizer import PortfolioOptimizer
from bayesian_updater import run_bayesian_updates
from visualizations import PortfolioVisualizer


def build_parser():
    parser = argparse.ArgumentParser(description='Monte Carlo Portfolio Analysis')
    parser.add_argument('config', nargs='?', help='Python config file defining `config`')
    parser.add_argument('--tickers', help='Comma-separated tickers (overrides config)')
    parser.add_argument('--start', help='Start date (YYYY-MM-DD)')
    parser.add_argument('--end', help='End date (YYYY-MM-DD)')
    parser.add_argument('--portfolios', type=int, help='Number of random portfolios (100-20000)')
    parser.add_argument('--risk-free-rate', type=float, help='Annual risk-free rate (0-0.1)')
    parser.add_argument('--shock', type=float, metavar='PCT',
                        help='Simulate a one-day market drop of PCT percent (0-100)')
    parser.add_argument('--dirichlet', action='store_true',
                        help='Draw weights uniformly over the simplex')
    parser.add_argument('--seed', type=int, help='Random seed for reproducible sampling')
    parser.add_argument('--delay', type=float, help='Seconds between ticker requests')
    parser.add_argument('--no-report', action='store_true', help='Skip the HTML report')
    return parser


def resolve_config(args) -> RunConfig:
    """Start from the config file (if any) and apply command-line overrides."""
    if args.config:
        config = load_config_from_file(args.config)
        base = config.settings
        tickers = base.tickers
        kwargs = dict(start_date=base.start_date, end_date=base.end_date,
                      num_portfolios=base.num_portfolios, risk_free_rate=base.risk_free_rate,
                      simulate_shock=base.simulate_shock, shock_percentage=base.shock_percentage,
                      weight_distribution=base.weight_distribution, seed=base.seed,
                      bayesian_window=base.bayesian_window)
    else:
        if not args.tickers:
            raise SettingsValidationError("Provide a config file or --tickers")
        config = RunConfig(name="Command Line Run", settings=None)
        tickers = []
        kwargs = {}

    if args.tickers: tickers = args.tickers.split(',')
    if args.start: kwargs['start_date'] = args.start
    if args.end: kwargs['end_date'] = args.end
    if args.portfolios is not None: kwargs['num_portfolios'] = args.portfolios
    if args.risk_free_rate is not None: kwargs['risk_free_rate'] = args.risk_free_rate
    if args.shock is not None:
        kwargs['simulate_shock'] = True
        kwargs['shock_percentage'] = SimulationSettings.shock_fraction(args.shock)
    if args.dirichlet: kwargs['weight_distribution'] = 'dirichlet'
    if args.seed is not None: kwargs['seed'] = args.seed

    config.settings = SimulationSettings(tickers=tickers, **kwargs)
    if args.delay is not None:
        config.data_source = DataSourceConfig(request_delay=args.delay, retries=config.data_source.retries,
                                              resolve_names=config.data_source.resolve_names,
                                              ticker_names=config.data_source.ticker_names)
    if args.no_report:
        config.visualization = VisualizationConfig(save_html=False)
    return config


def print_portfolio(label, p):
    alloc_str = " | ".join(f"{t}: {w*100:.1f}%" for t, w in p.weights.items())
    print(f"  → {label}: Return {p.expected_return*100:.2f}%  |  Vol {p.volatility*100:.2f}%  |  Sharpe {p.sharpe_ratio:.2f}")
    print(f"    {alloc_str}")


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        config = resolve_config(args)
    except (SettingsValidationError, ValueError, FileNotFoundError) as e:
        print(f"\n✗ Error loading config: {e}")
        return 1

    settings = config.settings
    print(f"✓ {config.name}: {', '.join(settings.tickers)} from {settings.start_date} to {settings.end_date}")

    print("\n" + "="*60 + "\nFetching Price Data...\n" + "="*60)
    data_manager = DataManager(config.data_source)
    try:
        stocks = data_manager.fetch_stock_data(settings.tickers, settings.start_date, settings.end_date)
    except DataFetchError as e:
        print(f"\n✗ {e}")
        return 1

    returns = calculate_returns(stocks)
    if len(returns) < 2:
        print(f"\n✗ Not enough price history to compute returns ({len(returns)} days)")
        return 1
    print(f"✓ {len(returns)} days of returns")

    print("\n" + "="*60 + "\nRunning Monte Carlo Simulation...\n" + "="*60)
    result = run_portfolio_simulation(settings, returns)
    print(f"✓ {len(result.portfolios):,} portfolios, {len(result.efficient_frontier)} on the frontier")
    print_portfolio("Max Sharpe", result.optimal_portfolio)
    print_portfolio("Min Volatility", result.min_volatility_portfolio)
    if result.shock_portfolio is not None:
        print(f"⚠ Shock of {settings.shock_percentage*100:.1f}% applied to the last day")
        print_portfolio("Pre-shock Optimum (shocked)", result.shock_portfolio)

    optimizer = PortfolioOptimizer(result.moments, settings.risk_free_rate)
    reference = {
        'Max Sharpe': optimizer.optimize_sharpe_ratio(seed=settings.seed),
        'Min Volatility': optimizer.optimize_min_volatility(seed=settings.seed),
    }
    for label, p in reference.items():
        if p is not None:
            print_portfolio(f"{label} (SLSQP)", p)

    print("\n" + "="*60 + "\nBayesian Updates...\n" + "="*60)
    updates = run_bayesian_updates(returns, settings.tickers, window=settings.bayesian_window)
    for u in updates:
        print(f"  {u.ticker:8} prior {u.prior_mean*100:+.4f}% ± {u.prior_std*100:.4f}%  →  "
              f"posterior {u.posterior_mean*100:+.4f}% ± {u.posterior_std*100:.4f}%")

    if config.visualization.save_html:
        print("\n" + "="*60 + "\nGenerating Report...\n" + "="*60)
        out_dir = Path(config.visualization.output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        output_path = out_dir / f"{datetime.now().strftime('%Y%m%d_%H%M%S')}_{config.visualization.output_filename}"

        PortfolioVisualizer().generate_html_report(
            result, updates, stocks, str(output_path),
            start_date=settings.start_date, end_date=settings.end_date,
            reference=reference, title=config.name
        )
        print(f"✓ Report saved to: {output_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
