"""
Optimum and frontier selection over sampled portfolios, plus a SciPy
reference solve of the same long-only problem.

The sampled selections are plain scans. The SLSQP solve is only there to show
how close the random sweep got to the true optimum.
"""
import numpy as np
import scipy.optimize as sco

from portfolio_stats import TRADING_DAYS, MomentEstimate, PortfolioSample


def find_max_sharpe(portfolios):
    """
    Linear scan for the highest Sharpe ratio; the earliest sample wins ties.
    Samples with a NaN Sharpe ratio never win unless every sample is NaN.
    """
    best = None
    for p in portfolios:
        if np.isnan(p.sharpe_ratio):
            continue
        if best is None or p.sharpe_ratio > best.sharpe_ratio:
            best = p
    if best is None and portfolios:
        best = portfolios[0]
    return best


def find_min_volatility(portfolios):
    """
    Linear scan for the lowest volatility; the earliest sample wins ties.
    Samples with a NaN volatility never win unless every sample is NaN.
    """
    best = None
    for p in portfolios:
        if np.isnan(p.volatility):
            continue
        if best is None or p.volatility < best.volatility:
            best = p
    if best is None and portfolios:
        best = portfolios[0]
    return best


def greedy_frontier_scan(portfolios):
    """
    Single-pass efficient-frontier approximation.

    Sort by volatility (stable, so generation order breaks ties) and keep a
    sample only if its return strictly beats every return kept so far. The
    result is monotonic in return but not a true Pareto/convex frontier: it is
    limited by whatever the random sweep happened to draw. Samples with a NaN
    volatility have no place on the volatility axis and are left out.
    """
    ordered = sorted((p for p in portfolios if not np.isnan(p.volatility)),
                     key=lambda p: p.volatility)
    frontier = []
    max_return = -np.inf
    for p in ordered:
        if p.expected_return > max_return:
            frontier.append(p)
            max_return = p.expected_return
    return frontier


class PortfolioOptimizer:
    def __init__(self, moments: MomentEstimate, risk_free_rate=0.0):
        self.moments = moments
        self.risk_free_rate = risk_free_rate

    def _minimize(self, fun, label, restarts=10, seed=None):
        """SLSQP on the long-only simplex with random restarts; None if it never converges."""
        num_assets = len(self.moments.tickers)
        constraints = ({'type': 'eq', 'fun': lambda x: np.sum(x) - 1})
        bounds = tuple((0.0, 1.0) for _ in range(num_assets))
        initial_guess = np.array(num_assets * [1. / num_assets, ])
        rng = np.random.default_rng(seed)

        best_result = None
        guesses = [initial_guess]
        for _ in range(restarts):
            rand_guess = rng.random(num_assets)
            guesses.append(rand_guess / np.sum(rand_guess))

        for guess in guesses:
            res = sco.minimize(fun, guess, method='SLSQP', bounds=bounds, constraints=constraints,
                               options={'ftol': 1e-9, 'maxiter': 1000})
            if res.success and (best_result is None or res.fun < best_result.fun):
                best_result = res

        if best_result is None:
            print(f"⚠ Optimizer ({label}) did not converge")
            return None
        return self._package_result(best_result)

    def _volatility(self, weights):
        cov = self.moments.cov_matrix
        return np.sqrt(max(np.dot(weights.T, np.dot(cov, weights)), 0.0)) * np.sqrt(TRADING_DAYS)

    def optimize_sharpe_ratio(self, seed=None):
        """Maximize Sharpe Ratio"""
        mean_rets = self.moments.mean_returns
        rf = self.risk_free_rate

        def neg_sharpe(weights):
            p_ret = np.sum(mean_rets * weights) * TRADING_DAYS
            p_vol = self._volatility(weights)
            if p_vol == 0: return 0
            return - (p_ret - rf) / p_vol

        return self._minimize(neg_sharpe, "Max Sharpe Ratio", seed=seed)

    def optimize_min_volatility(self, seed=None):
        """Minimize Volatility"""
        return self._minimize(self._volatility, "Min Volatility", seed=seed)

    def _package_result(self, scipy_result):
        allocations = np.clip(scipy_result.x, 0, None)
        allocations = allocations / np.sum(allocations)
        return PortfolioSample.from_weights(self.moments.tickers, allocations,
                                            self.moments, self.risk_free_rate)
