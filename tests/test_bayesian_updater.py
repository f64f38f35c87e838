"""
Unit tests for the per-ticker Bayesian update.

Tests verify:
- Posterior == prior when there is no new data
- Conjugate update formula against a hand calculation
- Prior computed over full history, evidence over the trailing window
"""
import pytest
import warnings
import numpy as np
import pandas as pd
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from return_calculator import calculate_returns
from conftest import make_price_frame

from bayesian_updater import (
    BayesianUpdate, perform_bayesian_update, run_bayesian_updates, DEFAULT_PRIOR_VARIANCE
)


class TestPerformUpdate:
    def test_empty_window_returns_prior(self):
        post_mean, post_std = perform_bayesian_update(0.001, 0.02, [])
        assert post_mean == 0.001
        assert post_std == 0.02

    def test_hand_calculation(self):
        data = [0.01, 0.03]
        prior_mean, prior_std = 0.0, 0.1

        sample_mean = 0.02
        sample_var = ((0.01 - 0.02) ** 2 + (0.03 - 0.02) ** 2) / 1
        prior_prec = 1 / prior_std ** 2
        sample_prec = 2 / sample_var
        post_var = 1 / (prior_prec + sample_prec)
        expected_mean = (prior_mean * prior_prec + sample_mean * sample_prec) * post_var

        post_mean, post_std = perform_bayesian_update(prior_mean, prior_std, data)
        assert post_mean == pytest.approx(expected_mean)
        assert post_std == pytest.approx(np.sqrt(post_var))

    def test_posterior_between_prior_and_sample(self):
        post_mean, post_std = perform_bayesian_update(0.0, 0.01, [0.02, 0.01, 0.03, 0.02])
        assert 0.0 < post_mean < 0.02
        assert post_std < 0.01

    def test_zero_variance_sample_keeps_prior(self):
        post_mean, post_std = perform_bayesian_update(0.005, 0.02, [0.01, 0.01, 0.01])
        assert post_mean == pytest.approx(0.005)
        assert post_std == pytest.approx(0.02)

    def test_zero_prior_std_is_not_guarded(self):
        post_mean, post_std = perform_bayesian_update(0.005, 0.0, [0.01, 0.02])
        assert post_std == 0.0
        assert not np.isfinite(post_mean)


class TestRunUpdates:
    def test_one_update_per_ticker_in_order(self, multi_asset_returns):
        tickers = ['GOLD', 'STOCKS']
        updates = run_bayesian_updates(multi_asset_returns, tickers)
        assert [u.ticker for u in updates] == tickers
        assert all(isinstance(u, BayesianUpdate) for u in updates)

    def test_prior_is_full_history(self, multi_asset_returns):
        update = run_bayesian_updates(multi_asset_returns, ['BONDS'])[0]
        assert update.prior_mean == pytest.approx(multi_asset_returns['BONDS'].mean())
        assert update.prior_std == pytest.approx(multi_asset_returns['BONDS'].std(ddof=1))

    def test_evidence_is_trailing_window(self, multi_asset_returns):
        series = multi_asset_returns['STOCKS']
        update = run_bayesian_updates(multi_asset_returns, ['STOCKS'], window=30)[0]

        expected = perform_bayesian_update(series.mean(), series.std(ddof=1), series.values[-30:])
        assert update.posterior_mean == pytest.approx(expected[0])
        assert update.posterior_std == pytest.approx(expected[1])

    def test_zero_window_means_no_update(self, multi_asset_returns):
        update = run_bayesian_updates(multi_asset_returns, ['GOLD'], window=0)[0]
        assert update.posterior_mean == update.prior_mean
        assert update.posterior_std == update.prior_std

    def test_single_observation_uses_default_prior_variance(self):
        returns = pd.DataFrame({'A': [0.01, np.nan, np.nan]})
        update = run_bayesian_updates(returns, ['A'])[0]
        assert update.prior_mean == pytest.approx(0.01)
        assert update.prior_std == pytest.approx(np.sqrt(DEFAULT_PRIOR_VARIANCE))

    def test_missing_values_ignored(self):
        returns = pd.DataFrame({'A': [0.01, np.nan, 0.03, 0.02]})
        update = run_bayesian_updates(returns, ['A'])[0]
        assert update.prior_mean == pytest.approx(0.02)

    def test_nan_return_makes_prior_non_finite(self):
        returns = calculate_returns({
            'FLAT': make_price_frame([1.0, 1.1, 0.0, 0.0]),
            'OK': make_price_frame([1.0, 1.01, 1.02, 1.0]),
        })
        flat, ok = run_bayesian_updates(returns, ['FLAT', 'OK'])
        assert not np.isfinite(flat.prior_mean)
        assert not np.isfinite(flat.posterior_mean)
        assert np.isfinite(ok.prior_mean)

    def test_non_finite_history_raises_no_warnings(self):
        returns = calculate_returns({
            'ZERO': make_price_frame([0.0, 0.0, 1.0, 2.0]),
            'OK': make_price_frame([1.0, 2.0, 3.0, 4.0]),
        })
        with warnings.catch_warnings():
            warnings.simplefilter("error", RuntimeWarning)
            run_bayesian_updates(returns, ['ZERO', 'OK'])
            perform_bayesian_update(0.0, 0.01, [np.inf, 0.01, 0.02])
