"""
Monte Carlo portfolio simulation engine.

Draws random long-only weightings, scores each against the mean/covariance
estimates and picks out the max-Sharpe, min-volatility and frontier samples.
Every run is a pure function of (settings, returns): nothing is kept between runs.
"""
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
import pandas as pd

from portfolio_stats import MomentEstimate, PortfolioSample, estimate_moments, score_portfolios
from portfolio_optimizer import find_max_sharpe, find_min_volatility, greedy_frontier_scan
from return_calculator import apply_market_shock
from run_config import SettingsValidationError


@dataclass(frozen=True, eq=False)
class SimulationResult:
    portfolios: Tuple[PortfolioSample, ...]
    efficient_frontier: Tuple[PortfolioSample, ...]
    optimal_portfolio: PortfolioSample
    min_volatility_portfolio: PortfolioSample
    moments: MomentEstimate
    shock_portfolio: Optional[PortfolioSample] = None

    def __post_init__(self):
        object.__setattr__(self, 'portfolios', tuple(self.portfolios))
        object.__setattr__(self, 'efficient_frontier', tuple(self.efficient_frontier))

    def to_frame(self) -> pd.DataFrame:
        """One row per sample: Return, Volatility, Sharpe, then one weight column per ticker."""
        rows = []
        for p in self.portfolios:
            row = {'Return': p.expected_return, 'Volatility': p.volatility, 'Sharpe': p.sharpe_ratio}
            row.update(p.weights)
            rows.append(row)
        return pd.DataFrame(rows)


def generate_random_weights(num_portfolios, num_assets, rng=None, distribution='uniform'):
    """
    (num_portfolios, num_assets) matrix of non-negative rows that sum to 1.

    'uniform' normalizes independent U(0,1) draws, which is NOT uniform over
    the simplex (it favours balanced weightings). 'dirichlet' draws
    Dirichlet(1, ..., 1), which is.
    """
    if rng is None:
        rng = np.random.default_rng()
    if distribution == 'dirichlet':
        return rng.dirichlet(np.ones(num_assets), size=num_portfolios)
    if distribution != 'uniform':
        raise ValueError(f"Unknown weight distribution: {distribution}")
    raw = rng.random((num_portfolios, num_assets))
    return raw / raw.sum(axis=1, keepdims=True)


class PortfolioSimulator:
    def __init__(self, settings):
        self.settings = settings
        self.tickers = list(settings.tickers)
        self.rng = np.random.default_rng(settings.seed)

    def _build_samples(self, weights, moments):
        rets, vols, sharpe = score_portfolios(weights, moments.mean_returns, moments.cov_matrix,
                                              self.settings.risk_free_rate)
        return [
            PortfolioSample(dict(zip(self.tickers, (float(x) for x in w))),
                            float(r), float(v), float(s))
            for w, r, v, s in zip(weights, rets, vols, sharpe)
        ]

    def run(self, returns: pd.DataFrame) -> SimulationResult:
        if len(self.tickers) < 2:
            raise SettingsValidationError("Need at least 2 tickers to build a portfolio")

        baseline_moments = estimate_moments(returns, self.tickers)
        moments = baseline_moments
        if self.settings.simulate_shock:
            shocked = apply_market_shock(returns, self.settings.shock_percentage)
            moments = estimate_moments(shocked, self.tickers)

        weights = generate_random_weights(self.settings.num_portfolios, len(self.tickers),
                                          rng=self.rng, distribution=self.settings.weight_distribution)
        portfolios = self._build_samples(weights, moments)

        shock_portfolio = None
        if self.settings.simulate_shock:
            # Same draws scored without the shock; report how that optimum fares under it
            baseline = self._build_samples(weights, baseline_moments)
            baseline_best = find_max_sharpe(baseline)
            best_idx = next(i for i, p in enumerate(baseline) if p is baseline_best)
            shock_portfolio = portfolios[best_idx]

        return SimulationResult(
            portfolios=portfolios,
            efficient_frontier=greedy_frontier_scan(portfolios),
            optimal_portfolio=find_max_sharpe(portfolios),
            min_volatility_portfolio=find_min_volatility(portfolios),
            moments=moments,
            shock_portfolio=shock_portfolio,
        )


def run_portfolio_simulation(settings, returns: pd.DataFrame) -> SimulationResult:
    """Entry point: one full Monte Carlo sweep for the given settings and ReturnSeries."""
    return PortfolioSimulator(settings).run(returns)
