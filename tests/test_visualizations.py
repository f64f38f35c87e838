"""
Smoke tests for the HTML report.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from visualizations import PortfolioVisualizer
from portfolio_simulator import run_portfolio_simulation
from bayesian_updater import run_bayesian_updates
from return_calculator import calculate_returns
from run_config import SimulationSettings


@pytest.fixture
def report_inputs(price_frames):
    stocks = {t: {'ticker': t, 'name': f"{t} Inc.", 'data': df} for t, df in price_frames.items()}
    returns = calculate_returns(stocks)
    settings = SimulationSettings(tickers=list(stocks), start_date='2024-01-01', end_date='2024-01-31',
                                  num_portfolios=100, seed=5)
    result = run_portfolio_simulation(settings, returns)
    updates = run_bayesian_updates(returns, settings.tickers)
    return result, updates, stocks


class TestReport:
    def test_frontier_plot_traces(self, report_inputs):
        result, _, _ = report_inputs
        fig = PortfolioVisualizer().create_frontier_plot(result)
        names = [t.name for t in fig.data]
        assert 'Simulated Portfolios' in names
        assert 'Max Sharpe' in names
        assert len(fig.data[0].x) == 100

    def test_allocation_table_lists_every_ticker(self, report_inputs):
        result, _, stocks = report_inputs
        html = PortfolioVisualizer().create_allocation_table_html({'Max Sharpe': result.optimal_portfolio})
        for ticker in stocks:
            assert f"<th>{ticker}</th>" in html

    def test_report_written(self, report_inputs, tmp_path):
        result, updates, stocks = report_inputs
        path = tmp_path / 'report.html'
        PortfolioVisualizer().generate_html_report(result, updates, stocks, str(path),
                                                   start_date='2024-01-01', end_date='2024-01-31')
        html = path.read_text(encoding='utf-8')
        assert 'Efficient Frontier' in html
        assert 'AAA' in html
