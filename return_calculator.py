"""
Daily simple returns from close prices, and the one-day market shock.

A ReturnSeries frame uses nullable Float64 columns: pd.NA marks a day with no
observation for that ticker, while NaN/inf are real (non-finite) returns, e.g.
from a zero close. Plain float64 frames are accepted too, with NaN read as absent.
"""
import numpy as np
import pandas as pd


def _close_prices(series):
    """Accepts a price DataFrame, a stock dict holding one under 'data', or a plain Series."""
    if isinstance(series, dict):
        series = series.get('data')
    if series is None:
        return pd.Series(dtype=float)
    if isinstance(series, pd.DataFrame):
        return series['Close'] if 'Close' in series.columns else pd.Series(dtype=float)
    return pd.Series(series)


def observed_values(returns: pd.DataFrame, ticker):
    """
    (values, present) arrays for one ticker column.

    present is False only where the cell holds no observation; values keeps any
    computed NaN/inf so it propagates into whatever is estimated from it.
    """
    if ticker not in returns.columns:
        return np.full(len(returns), np.nan), np.zeros(len(returns), dtype=bool)
    column = returns[ticker]
    present = ~column.isna().to_numpy()
    values = column.to_numpy(dtype=float, na_value=np.nan)
    return values, present


def calculate_returns(price_series_by_ticker) -> pd.DataFrame:
    """
    Convert per-ticker close prices into a ReturnSeries frame.

    The date index comes from the first ticker; every other ticker is aligned
    by position, not by date. A ticker longer than the first is truncated, a
    shorter one leaves absent cells at the end, and a ticker with fewer than 2
    prices contributes no returns at all.

    A zero previous close yields inf/NaN rather than raising.
    """
    if not price_series_by_ticker:
        return pd.DataFrame()

    tickers = list(price_series_by_ticker.keys())
    first = _close_prices(price_series_by_ticker[tickers[0]])
    if len(first) < 2:
        return pd.DataFrame()

    index = first.index[1:]
    n_rows = len(index)
    columns = {}

    for ticker in tickers:
        closes = _close_prices(price_series_by_ticker[ticker]).to_numpy(dtype=float)
        values = np.zeros(n_rows)
        absent = np.ones(n_rows, dtype=bool)
        if len(closes) >= 2:
            with np.errstate(divide='ignore', invalid='ignore'):
                rets = (closes[1:] - closes[:-1]) / closes[:-1]
            rets = rets[:n_rows]
            values[:len(rets)] = rets
            absent[:len(rets)] = False
        columns[ticker] = pd.arrays.FloatingArray(values, absent)

    returns = pd.DataFrame(columns, index=index)
    returns.index.name = 'Date'
    return returns


def apply_market_shock(returns: pd.DataFrame, shock_percentage: float) -> pd.DataFrame:
    """
    Scale the most recent day's return of every ticker by (1 + shock_percentage).

    Returns a new frame; the input is left untouched. Absent cells stay absent.
    """
    shocked = returns.copy()
    if len(shocked) > 0:
        with np.errstate(invalid='ignore'):
            shocked.iloc[-1:] = shocked.iloc[-1:] * (1 + shock_percentage)
    return shocked
