"""
Configuration system - Simulation settings, data source and report options.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Dict, Optional, Literal, Union

import pandas as pd

MIN_PORTFOLIOS = 100
MAX_PORTFOLIOS = 20000
MAX_RISK_FREE_RATE = 0.1

DEFAULT_TICKER_NAMES = {
    'AAPL': 'Apple Inc.',
    'MSFT': 'Microsoft Corporation',
    'GOOG': 'Alphabet Inc.',
    'GOOGL': 'Alphabet Inc.',
    'AMZN': 'Amazon.com, Inc.',
    'META': 'Meta Platforms, Inc.',
    'TSLA': 'Tesla, Inc.',
    'NVDA': 'NVIDIA Corporation',
    '^GSPC': 'S&P 500 Index',
    '^DJI': 'Dow Jones Industrial Average',
    '^IXIC': 'NASDAQ Composite',
}


class SettingsValidationError(ValueError):
    """Raised when simulation settings are rejected before any computation."""


def _to_date(value: Union[str, date, None], default: date) -> date:
    if value is None: return default
    if isinstance(value, datetime): return value.date()
    if isinstance(value, date): return value
    return pd.to_datetime(value).date()


@dataclass
class SimulationSettings:
    """
    Parameters of one simulation run.

    shock_percentage is stored as a negative fraction (-0.1 == a 10% drop),
    use from_shock_percent() to convert a 0-100 percentage.
    """
    tickers: List[str]
    start_date: Optional[Union[str, date]] = None
    end_date: Optional[Union[str, date]] = None
    num_portfolios: int = 5000
    risk_free_rate: float = 0.02
    simulate_shock: bool = False
    shock_percentage: float = -0.1
    weight_distribution: Literal['uniform', 'dirichlet'] = 'uniform'
    seed: Optional[int] = None
    bayesian_window: int = 30

    def __post_init__(self):
        tickers = []
        for t in self.tickers:
            t_up = t.strip().upper()
            if t_up and t_up not in tickers: tickers.append(t_up)
        self.tickers = tickers
        if len(self.tickers) < 2:
            raise SettingsValidationError(f"Need at least 2 tickers, got {len(self.tickers)}")

        self.end_date = _to_date(self.end_date, date.today())
        self.start_date = _to_date(self.start_date, self.end_date - timedelta(days=365))
        if self.start_date >= self.end_date:
            raise SettingsValidationError(f"start_date {self.start_date} must be before end_date {self.end_date}")

        if not MIN_PORTFOLIOS <= self.num_portfolios <= MAX_PORTFOLIOS:
            raise SettingsValidationError(
                f"num_portfolios must be between {MIN_PORTFOLIOS} and {MAX_PORTFOLIOS}, got {self.num_portfolios}")
        if not 0 <= self.risk_free_rate <= MAX_RISK_FREE_RATE:
            raise SettingsValidationError(
                f"risk_free_rate must be between 0 and {MAX_RISK_FREE_RATE}, got {self.risk_free_rate}")
        if not -1.0 <= self.shock_percentage <= 0:
            raise SettingsValidationError(
                f"shock_percentage must be a negative fraction in [-1, 0], got {self.shock_percentage}")
        if self.weight_distribution not in ('uniform', 'dirichlet'):
            raise SettingsValidationError(f"Unknown weight_distribution: {self.weight_distribution}")
        if self.bayesian_window < 0:
            raise SettingsValidationError("bayesian_window cannot be negative")

    @staticmethod
    def shock_fraction(percent: float) -> float:
        """Convert a 0-100 drop percentage into the stored negative fraction."""
        if not 0 <= percent <= 100:
            raise SettingsValidationError(f"Shock percentage must be between 0 and 100, got {percent}")
        return -abs(percent) / 100

    @classmethod
    def from_shock_percent(cls, tickers, percent, **kwargs):
        return cls(tickers=tickers, simulate_shock=True,
                   shock_percentage=cls.shock_fraction(percent), **kwargs)


@dataclass
class DataSourceConfig:
    request_delay: float = 1.0  # seconds between sequential ticker requests
    retries: int = 3
    resolve_names: bool = True
    ticker_names: Dict[str, str] = field(default_factory=dict)
    use_default_names: bool = True  # merge DEFAULT_TICKER_NAMES under ticker_names

    def __post_init__(self):
        if self.request_delay < 0: raise SettingsValidationError("request_delay cannot be negative")
        if self.retries < 1: raise SettingsValidationError("retries must be at least 1")
        names = dict(DEFAULT_TICKER_NAMES) if self.use_default_names else {}
        names.update({k.upper(): v for k, v in self.ticker_names.items()})
        self.ticker_names = names


@dataclass
class VisualizationConfig:
    save_html: bool = True
    output_dir: str = 'output'
    output_filename: str = 'portfolio_analysis.html'


@dataclass
class RunConfig:
    name: str
    settings: SimulationSettings
    data_source: DataSourceConfig = field(default_factory=DataSourceConfig)
    visualization: VisualizationConfig = field(default_factory=VisualizationConfig)


# Helper function to load config from a Python file
def load_config_from_file(filepath: str) -> RunConfig:
    """
    Load a RunConfig from a Python file.

    The file should define a variable called 'config' that is a RunConfig instance.

    Example file content:
        from run_config import RunConfig, SimulationSettings

        config = RunConfig(
            name="My Config",
            settings=SimulationSettings(tickers=['AAPL', 'MSFT']),
        )
    """
    import importlib.util
    from pathlib import Path

    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {filepath}")

    # Load the module
    spec = importlib.util.spec_from_file_location("user_config", filepath)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    # Get the config object
    if not hasattr(module, 'config'):
        raise ValueError(f"Config file {filepath} must define a 'config' variable")

    config = module.config
    if not isinstance(config, RunConfig):
        raise ValueError(f"'config' must be a RunConfig instance, got {type(config)}")

    return config
