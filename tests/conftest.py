"""
Pytest fixtures for portfolio testing.
Provides deterministic test data with known mathematical outcomes.
"""
import pytest
import numpy as np
import pandas as pd
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")


def make_price_frame(closes, start='2024-01-01'):
    """Price DataFrame in the shape DataManager.fetch_price_series returns."""
    dates = pd.bdate_range(start=start, periods=len(closes))
    closes = np.asarray(closes, dtype=float)
    df = pd.DataFrame({
        'Open': closes * 0.99,
        'High': closes * 1.01,
        'Low': closes * 0.98,
        'Close': closes,
        'Volume': np.full(len(closes), 1_000_000.0)
    }, index=dates)
    df.index.name = 'Date'
    return df


@pytest.fixture
def scenario_returns():
    """
    Two assets with three days of returns.
    Means: A = 0.02/3 ≈ 0.00667, B = 0.03/3 = 0.01
    """
    dates = pd.bdate_range(start='2024-01-02', periods=3)
    return pd.DataFrame({
        'A': [0.01, 0.02, -0.01],
        'B': [0.02, 0.01, 0.0]
    }, index=dates)


@pytest.fixture
def two_asset_uncorrelated():
    """
    Two uncorrelated assets for mean-variance testing.
    Asset A: lower volatility (σ≈16%)
    Asset B: higher volatility (σ≈32%)
    """
    np.random.seed(42)
    n_days = 252
    dates = pd.bdate_range(start='2020-01-01', periods=n_days)

    returns_a = np.random.normal(0.0004, 0.01, n_days)
    returns_b = np.random.normal(0.0006, 0.02, n_days)

    return pd.DataFrame({'A': returns_a, 'B': returns_b}, index=dates)


@pytest.fixture
def multi_asset_returns():
    """
    Four assets with different characteristics, 2 years of daily returns.
    """
    np.random.seed(45)
    n_days = 504
    dates = pd.bdate_range(start='2020-01-01', periods=n_days)

    assets = {
        'STOCKS': {'return': 0.10, 'vol': 0.20},
        'BONDS': {'return': 0.04, 'vol': 0.05},
        'GOLD': {'return': 0.03, 'vol': 0.15},
        'CASH': {'return': 0.02, 'vol': 0.001}
    }

    data = {}
    for name, params in assets.items():
        daily_return = params['return'] / 252
        daily_vol = params['vol'] / np.sqrt(252)
        data[name] = np.random.normal(daily_return, daily_vol, n_days)

    return pd.DataFrame(data, index=dates)


@pytest.fixture
def price_frames():
    """Three tickers of aligned close prices."""
    return {
        'AAA': make_price_frame([100.0, 101.0, 99.0, 102.0, 104.0]),
        'BBB': make_price_frame([50.0, 50.5, 51.0, 50.0, 49.0]),
        'CCC': make_price_frame([20.0, 21.0, 22.0, 21.0, 23.0]),
    }
