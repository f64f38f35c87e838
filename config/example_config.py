"""
Example configuration - Big tech basket with a 10% one-day shock.
"""

from run_config import RunConfig, SimulationSettings, DataSourceConfig, VisualizationConfig

config = RunConfig(
    name="Big Tech Portfolio Analysis",

    settings=SimulationSettings(
        tickers=['AAPL', 'MSFT', 'GOOGL', 'AMZN', 'NVDA'],
        start_date='2023-01-01',
        end_date='2024-12-31',
        num_portfolios=5000,
        risk_free_rate=0.04,
        simulate_shock=True,
        shock_percentage=-0.1,
        # weight_distribution='dirichlet',  # uniform over the simplex
        seed=42,
    ),

    data_source=DataSourceConfig(
        request_delay=1.0,
        # Extend display names without touching code
        ticker_names={'BRK-B': 'Berkshire Hathaway Inc.'},
    ),

    visualization=VisualizationConfig(
        output_filename='big_tech_analysis.html'
    ),
)
