"""
Visualization engine - Price history, efficient frontier, optimal weights and
Bayesian table rendered into a single HTML report.
"""

import numpy as np
import plotly.graph_objects as go
import plotly.io as pio


class PortfolioVisualizer:
    def __init__(self):
        self.colors = [
            '#1f77b4', '#ff7f0e', '#2ca02c', '#d62728', '#9467bd',
            '#8c564b', '#e377c2', '#7f7f7f', '#bcbd22', '#17becf'
        ]

    def create_price_plot(self, stocks):
        """Close prices rebased to 100 so tickers share one axis."""
        fig = go.Figure()
        for i, (ticker, stock) in enumerate(stocks.items()):
            closes = stock['data']['Close']
            if closes.empty or closes.iloc[0] == 0:
                continue
            rebased = closes / closes.iloc[0] * 100
            fig.add_trace(go.Scatter(
                x=rebased.index, y=rebased.values, mode='lines',
                name=f"{ticker} ({stock.get('name', ticker)})",
                line=dict(color=self.colors[i % len(self.colors)], width=1.5)
            ))
        fig.update_layout(
            title="Price History (Rebased to 100)",
            xaxis_title="Date", yaxis_title="Value",
            template="plotly_white", height=450, hovermode="x unified"
        )
        return fig

    def create_frontier_plot(self, result, reference=None):
        """Scatter of every sample colored by Sharpe, with the greedy frontier and optima on top."""
        fig = go.Figure()
        vols = np.array([p.volatility for p in result.portfolios])
        rets = np.array([p.expected_return for p in result.portfolios])
        sharpe = np.array([p.sharpe_ratio for p in result.portfolios])

        fig.add_trace(go.Scattergl(
            x=vols * 100, y=rets * 100, mode='markers', name='Simulated Portfolios',
            marker=dict(size=4, color=sharpe, colorscale='Viridis', showscale=True,
                        colorbar=dict(title='Sharpe'), opacity=0.6),
            hovertemplate="Vol: %{x:.2f}%<br>Return: %{y:.2f}%<extra></extra>"
        ))

        frontier = result.efficient_frontier
        fig.add_trace(go.Scatter(
            x=[p.volatility * 100 for p in frontier], y=[p.expected_return * 100 for p in frontier],
            mode='lines', name='Efficient Frontier (sampled)', line=dict(color='#d62728', width=2)
        ))

        markers = [('Max Sharpe', result.optimal_portfolio, 'star', '#ff7f0e'),
                   ('Min Volatility', result.min_volatility_portfolio, 'diamond', '#2ca02c')]
        if result.shock_portfolio is not None:
            markers.append(('Pre-shock Optimum (shocked)', result.shock_portfolio, 'x', '#8c564b'))
        if reference:
            for label, p in reference.items():
                if p is not None:
                    markers.append((f"{label} (SLSQP)", p, 'circle-open', '#17becf'))

        for label, p, symbol, color in markers:
            fig.add_trace(go.Scatter(
                x=[p.volatility * 100], y=[p.expected_return * 100], mode='markers', name=label,
                marker=dict(symbol=symbol, size=14, color=color, line=dict(width=1, color='black'))
            ))

        fig.update_layout(
            title="Monte Carlo Portfolios",
            xaxis_title="Annualized Volatility (%)", yaxis_title="Annualized Return (%)",
            template="plotly_white", height=550
        )
        return fig

    def create_allocation_table_html(self, named_portfolios):
        """HTML table: one row per named portfolio, one column per ticker."""
        tickers = []
        for p in named_portfolios.values():
            for t in p.weights:
                if t not in tickers: tickers.append(t)

        html = "<table class='allocation-table'><tr><th>Portfolio</th>"
        html += "".join(f"<th>{t}</th>" for t in tickers)
        html += "<th>Return</th><th>Volatility</th><th>Sharpe</th></tr>"
        for label, p in named_portfolios.items():
            html += f"<tr><td>{label}</td>"
            html += "".join(f"<td>{p.weights.get(t, 0) * 100:.1f}%</td>" for t in tickers)
            html += f"<td>{p.expected_return * 100:.2f}%</td><td>{p.volatility * 100:.2f}%</td>" \
                    f"<td>{p.sharpe_ratio:.2f}</td></tr>"
        html += "</table>"
        return html

    def create_bayesian_table_html(self, updates):
        html = "<table><tr><th>Ticker</th><th>Prior Mean</th><th>Prior Std</th>" \
               "<th>Posterior Mean</th><th>Posterior Std</th><th>Shift</th></tr>"
        for u in updates:
            shift = u.posterior_mean - u.prior_mean
            shift_class = 'pos-val' if shift > 0 else 'neg-val'
            html += f"<tr><td>{u.ticker}</td><td>{u.prior_mean * 100:.4f}%</td><td>{u.prior_std * 100:.4f}%</td>" \
                    f"<td>{u.posterior_mean * 100:.4f}%</td><td>{u.posterior_std * 100:.4f}%</td>" \
                    f"<td class='{shift_class}'>{shift * 100:+.4f}%</td></tr>"
        html += "</table>"
        return html

    def generate_html_report(self, result, bayesian_updates, stocks, filename,
                             start_date=None, end_date=None, reference=None, title="Portfolio Analysis Report"):
        price_fig = self.create_price_plot(stocks)
        frontier_fig = self.create_frontier_plot(result, reference=reference)

        named = {'Max Sharpe': result.optimal_portfolio, 'Min Volatility': result.min_volatility_portfolio}
        if result.shock_portfolio is not None:
            named['Pre-shock Optimum (shocked)'] = result.shock_portfolio
        if reference:
            named.update({f"{k} (SLSQP)": v for k, v in reference.items() if v is not None})

        date_str = f"<p>Data range: {start_date} to {end_date}</p>" if start_date and end_date else ""

        html_content = f"""
        <style>
            body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background: #f4f6f9; padding: 20px; color: #333; }}
            h1 {{ color: #2c3e50; }}
            details {{ background: white; padding: 20px; margin-bottom: 15px; border-radius: 8px; box-shadow: 0 1px 3px rgba(0,0,0,0.1); border: 1px solid #eaeaea; }}
            summary {{ cursor: pointer; font-weight: 600; font-size: 1.1em; padding-bottom: 5px; outline: none; }}
            table {{ width: 100%; border-collapse: collapse; margin-top: 15px; font-size: 0.85em; }}
            th, td {{ border-bottom: 1px solid #eee; padding: 10px 6px; text-align: right; }}
            th {{ background-color: #f8f9fa; color: #666; font-weight: 600; text-align: center; }}
            td:first-child {{ text-align: left; font-weight: 600; color: #2c3e50; }}
            .allocation-table th {{ background-color: #e3f2fd; color: #1565c0; }}
            .pos-val {{ color: #27ae60; }}
            .neg-val {{ color: #c0392b; }}
        </style>
        <h1>{title}</h1>
        {date_str}
        <p>{len(result.portfolios):,} simulated portfolios, {len(result.efficient_frontier)} on the sampled frontier.</p>
        <details open><summary>Optimal Allocations</summary>{self.create_allocation_table_html(named)}</details>
        <details open><summary>Efficient Frontier</summary>{pio.to_html(frontier_fig, full_html=False, include_plotlyjs='cdn')}</details>
        <details open><summary>Price History</summary>{pio.to_html(price_fig, full_html=False, include_plotlyjs=False)}</details>
        <details open><summary>Bayesian Return Analysis</summary>{self.create_bayesian_table_html(bayesian_updates)}
        <p style="font-size: 0.8em; color: #888;">Daily returns. Prior = full history, posterior = prior updated with the most recent window.</p></details>
        """

        with open(filename, 'w', encoding='utf-8') as f:
            f.write(html_content)
        return filename
