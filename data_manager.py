"""
Data management module - Market data fetching for the portfolio dashboard.
Fetches one ticker at a time with a fixed delay between requests to stay
under the vendor's rate limits. Nothing is cached between runs.
"""

import time
import random
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

import pandas as pd
import yfinance as yf

from run_config import DataSourceConfig

PRICE_COLUMNS = ['Open', 'High', 'Low', 'Close', 'Volume']


class DataFetchError(RuntimeError):
    """Raised when price data for a ticker cannot be retrieved."""

    def __init__(self, ticker, message):
        super().__init__(f"Failed to fetch stock data for {ticker}: {message}")
        self.ticker = ticker


class DataManager:
    def __init__(self, data_config: Optional[DataSourceConfig] = None):
        self.config = data_config or DataSourceConfig()
        self._name_cache: Dict[str, str] = {}

    def fetch_price_series(self, ticker, start_date, end_date) -> pd.DataFrame:
        """
        Return the daily price series for one ticker, oldest first.

        The frame is indexed by date and carries Open/High/Low/Close/Volume.
        Raises DataFetchError if the vendor fails or returns nothing.
        """
        start_date = self._normalize_date(start_date)
        end_date = self._normalize_date(end_date)

        print(f"↓ Downloading {ticker} from Yahoo Finance...")
        try:
            df = self._smart_download(ticker, start_date, end_date)
        except Exception as e:
            print(f"✗ Error downloading {ticker}: {e}")
            raise DataFetchError(ticker, str(e)) from e

        if df.empty:
            print(f"✗ No data returned for {ticker}")
            raise DataFetchError(ticker, "no data returned")
        if 'Close' not in df.columns:
            raise DataFetchError(ticker, "response has no Close column")

        # Normalize Index
        df = df[[c for c in PRICE_COLUMNS if c in df.columns]].copy()
        df.index = pd.DatetimeIndex([pd.Timestamp(d).date() for d in df.index])
        df.index.name = 'Date'
        df = df.sort_index()

        print(f"✓ Downloaded {ticker} ({len(df)} records). Start: {df.index.min().date()}")
        return df

    def fetch_stock_data(self, tickers: List[str], start_date, end_date) -> Dict[str, dict]:
        """
        Fetch every ticker sequentially, waiting request_delay between calls.

        Returns {ticker: {'ticker', 'name', 'data'}}. Any failure is fatal for
        the whole batch.
        """
        stocks = {}
        for i, ticker in enumerate(tickers):
            if i > 0 and self.config.request_delay > 0:
                time.sleep(self.config.request_delay)
            df = self.fetch_price_series(ticker, start_date, end_date)
            stocks[ticker] = {
                'ticker': ticker,
                'name': self.get_display_name(ticker),
                'data': df,
            }
        return stocks

    def get_display_name(self, ticker: str) -> str:
        """Configured name first, then the vendor's long name, then '<TICKER> Stock'."""
        ticker = ticker.upper()
        if ticker in self.config.ticker_names:
            return self.config.ticker_names[ticker]
        if ticker in self._name_cache:
            return self._name_cache[ticker]

        name = None
        if self.config.resolve_names:
            try:
                info = yf.Ticker(ticker).info or {}
                name = info.get('longName') or info.get('shortName')
            except Exception as e:
                print(f"⚠ Could not resolve name for {ticker}: {e}")

        if not name:
            name = f"{ticker} Stock"
        self._name_cache[ticker] = name
        return name

    def _smart_download(self, ticker, start, end):
        """Download with Exponential Backoff"""
        retries = self.config.retries
        delay = 2
        for i in range(retries):
            try:
                dat = yf.Ticker(ticker)
                # yfinance treats end as exclusive
                df = dat.history(start=start, end=end + timedelta(days=1), auto_adjust=False)
                if not df.empty: return df
                if i < retries - 1:
                    time.sleep(delay)
                    delay *= 2
            except Exception:
                if i == retries - 1: raise
                time.sleep(delay + random.random())
                delay *= 2
        return pd.DataFrame()

    def _normalize_date(self, date_input):
        if isinstance(date_input, datetime): return date_input.date()
        if isinstance(date_input, date): return date_input
        return pd.to_datetime(date_input).date()
