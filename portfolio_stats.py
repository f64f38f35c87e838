"""
Moment estimation and portfolio scoring.

Mean and covariance are estimated from a ReturnSeries frame. Absent cells are
skipped; computed NaN/inf returns are kept and propagate into the estimates.
Annualization uses 252 trading days throughout.
"""
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping, Tuple

import numpy as np
import pandas as pd

from return_calculator import observed_values

TRADING_DAYS = 252


def _read_only(array) -> np.ndarray:
    array = np.array(array, dtype=float)
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class MomentEstimate:
    tickers: Tuple[str, ...]
    mean_returns: np.ndarray
    cov_matrix: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, 'tickers', tuple(self.tickers))
        object.__setattr__(self, 'mean_returns', _read_only(self.mean_returns))
        object.__setattr__(self, 'cov_matrix', _read_only(self.cov_matrix))


def calculate_mean_returns(returns: pd.DataFrame, tickers: List[str]) -> np.ndarray:
    """Arithmetic mean of the observed returns per ticker (0 if none)."""
    means = []
    with np.errstate(invalid='ignore', over='ignore'):
        for ticker in tickers:
            values, present = observed_values(returns, ticker)
            values = values[present]
            means.append(values.sum() / len(values) if len(values) > 0 else 0.0)
    return np.array(means)


def calculate_covariance_matrix(returns: pd.DataFrame, tickers: List[str],
                                mean_returns) -> np.ndarray:
    """
    Sample covariance (n - 1) over the dates where both tickers have a return.

    Deviations are taken from the supplied means, not from pairwise means.
    Pairs with fewer than 2 co-observations get 0. Each cell is computed on its
    own, so cov[i][j] == cov[j][i] without any explicit symmetrization.
    """
    n_assets = len(tickers)
    cov_matrix = np.zeros((n_assets, n_assets))
    columns = [observed_values(returns, t) for t in tickers]

    with np.errstate(invalid='ignore', over='ignore'):
        for i in range(n_assets):
            for j in range(n_assets):
                (x, x_present), (y, y_present) = columns[i], columns[j]
                both = x_present & y_present
                count = int(both.sum())
                if count > 1:
                    dev = (x[both] - mean_returns[i]) * (y[both] - mean_returns[j])
                    cov_matrix[i, j] = dev.sum() / (count - 1)
    return cov_matrix


def estimate_moments(returns: pd.DataFrame, tickers: List[str]) -> MomentEstimate:
    mean_returns = calculate_mean_returns(returns, tickers)
    cov_matrix = calculate_covariance_matrix(returns, tickers, mean_returns)
    return MomentEstimate(tuple(tickers), mean_returns, cov_matrix)


def score_portfolios(weights, mean_returns, cov_matrix, risk_free_rate):
    """
    Annualized return, volatility and Sharpe ratio for each row of weights.

    weights may be a single vector or a (n_portfolios, n_assets) matrix.
    Zero volatility gives a non-finite Sharpe ratio, which is passed through.
    A negative w'Cov w (possible with pairwise covariance) gives a NaN volatility.
    """
    w = np.atleast_2d(np.asarray(weights, dtype=float))
    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        port_returns = (w @ mean_returns) * TRADING_DAYS
        variances = np.einsum('ij,jk,ik->i', w, cov_matrix, w)
        volatilities = np.sqrt(variances) * np.sqrt(TRADING_DAYS)
        sharpe = (port_returns - risk_free_rate) / volatilities
    return port_returns, volatilities, sharpe


def calculate_portfolio_performance(weights, mean_returns, cov_matrix, risk_free_rate):
    """Single-portfolio version of score_portfolios: (return, volatility, sharpe)."""
    rets, vols, sharpe = score_portfolios(weights, mean_returns, cov_matrix, risk_free_rate)
    return float(rets[0]), float(vols[0]), float(sharpe[0])


@dataclass(frozen=True)
class PortfolioSample:
    """One scored allocation; weights map ticker -> fraction (non-negative, sums to 1), read-only."""
    weights: Mapping[str, float]
    expected_return: float
    volatility: float
    sharpe_ratio: float

    def __post_init__(self):
        object.__setattr__(self, 'weights', MappingProxyType(dict(self.weights)))

    def __hash__(self):
        return hash((tuple(self.weights.items()), self.expected_return, self.volatility, self.sharpe_ratio))

    @classmethod
    def from_weights(cls, tickers, weights, moments: MomentEstimate, risk_free_rate):
        ret, vol, sharpe = calculate_portfolio_performance(
            weights, moments.mean_returns, moments.cov_matrix, risk_free_rate)
        return cls(dict(zip(tickers, (float(w) for w in weights))), ret, vol, sharpe)

    def weight_vector(self, tickers) -> np.ndarray:
        return np.array([self.weights.get(t, 0.0) for t in tickers])
