"""
Per-ticker Bayesian update of expected daily return.

The prior comes from the full return history; the most recent window is the
new evidence. Gaussian conjugate update with the sample variance treated as
known:

    posterior precision = 1/prior_var + n/sample_var
    posterior mean      = (prior_mean/prior_var + n*sample_mean/sample_var) / posterior precision
"""
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np
import pandas as pd

from return_calculator import observed_values

DEFAULT_WINDOW = 30
DEFAULT_PRIOR_VARIANCE = 0.01


@dataclass(frozen=True)
class BayesianUpdate:
    ticker: str
    prior_mean: float
    prior_std: float
    posterior_mean: float
    posterior_std: float


def perform_bayesian_update(prior_mean, prior_std, data) -> Tuple[float, float]:
    """
    Fold the observations in data into a N(prior_mean, prior_std**2) prior.

    Returns (posterior_mean, posterior_std). With no observations the prior is
    returned unchanged. A zero-variance sample carries no precision and leaves
    the prior as is. prior_std == 0 is not guarded and propagates inf/NaN.
    """
    data = np.asarray(data, dtype=float)
    n = len(data)
    if n == 0:
        return prior_mean, prior_std

    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        sample_mean = data.sum() / n
        sample_var = ((data - sample_mean) ** 2).sum() / (n - 1) if n > 1 else 0.0

        prior_prec = 1 / np.float64(prior_std) ** 2
        sample_prec = n / sample_var if sample_var > 0 else 0.0
        posterior_prec = prior_prec + sample_prec
        posterior_var = 1 / posterior_prec
        posterior_mean = (prior_mean * prior_prec + sample_mean * sample_prec) * posterior_var

    return float(posterior_mean), float(np.sqrt(posterior_var))


def run_bayesian_updates(returns: pd.DataFrame, tickers: List[str],
                         window: int = DEFAULT_WINDOW) -> List[BayesianUpdate]:
    """
    One BayesianUpdate per ticker, in the order given.

    Absent days are skipped; a non-finite return stays in the history, so the
    prior (and the posterior) come out non-finite too.
    """
    updates = []
    for ticker in tickers:
        values, present = observed_values(returns, ticker)
        history = values[present]

        n = len(history)
        with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
            prior_mean = history.sum() / n if n > 0 else float('nan')
            prior_var = ((history - prior_mean) ** 2).sum() / (n - 1) if n > 1 else DEFAULT_PRIOR_VARIANCE
            prior_std = float(np.sqrt(prior_var))

        recent = history[-window:] if window > 0 else history[:0]
        posterior_mean, posterior_std = perform_bayesian_update(prior_mean, prior_std, recent)

        updates.append(BayesianUpdate(
            ticker=ticker,
            prior_mean=float(prior_mean),
            prior_std=prior_std,
            posterior_mean=posterior_mean,
            posterior_std=posterior_std,
        ))
    return updates
