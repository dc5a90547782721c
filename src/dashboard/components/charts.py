"""Reusable Plotly chart components."""

import pandas as pd
import plotly.graph_objects as go

_SUPPLY_COLOR = "#22c55e"
_DEBT_COLOR = "#ef4444"
_NET_COLOR = "#3b82f6"


def _add_side_trace(
    fig: go.Figure,
    df: pd.DataFrame,
    column: str,
    name: str,
    color: str,
    token: str,
) -> None:
    """Line for one side, with synthetic points drawn as hollow markers."""
    if df.empty:
        return
    fig.add_trace(
        go.Scatter(
            x=df["datetime"],
            y=df[column],
            name=name,
            mode="lines",
            line=dict(color=color, width=2),
            hovertemplate=f"%{{x|%Y-%m-%d}}<br>{name}: %{{y:,.2f}} {token}<extra></extra>",
        )
    )
    synthetic = df[df["source"] == "interpolated"]
    if not synthetic.empty:
        fig.add_trace(
            go.Scatter(
                x=synthetic["datetime"],
                y=synthetic[column],
                name=f"{name} (interpolated)",
                mode="markers",
                marker=dict(color=color, size=7, symbol="circle-open"),
                hovertemplate=f"%{{x|%Y-%m-%d}}<br>{name} (interpolated): %{{y:,.2f}}<extra></extra>",
            )
        )


def balance_chart(supply: pd.DataFrame, debt: pd.DataFrame, token: str) -> go.Figure:
    """Supply and debt balances over time.

    Args:
        supply: Frame from ``series_to_frame`` for the supply side.
        debt: Frame from ``series_to_frame`` for the debt side.
        token: Token symbol used in labels.
    """
    fig = go.Figure()
    _add_side_trace(fig, supply, "balance_units", "Supply", _SUPPLY_COLOR, token)
    _add_side_trace(fig, debt, "balance_units", "Debt", _DEBT_COLOR, token)

    fig.update_layout(
        title=f"{token} Balances",
        xaxis_title="Date",
        yaxis_title=f"Balance ({token})",
        hovermode="x unified",
        template="plotly_dark",
        height=420,
    )
    return fig


def cumulative_interest_chart(supply: pd.DataFrame, debt: pd.DataFrame, token: str) -> go.Figure:
    """Cumulative interest earned on supply and paid on debt."""
    fig = go.Figure()
    _add_side_trace(fig, supply, "total_interest_units", "Interest earned", _SUPPLY_COLOR, token)
    _add_side_trace(fig, debt, "total_interest_units", "Interest paid", _DEBT_COLOR, token)

    fig.update_layout(
        title=f"{token} Cumulative Interest",
        xaxis_title="Date",
        yaxis_title=f"Interest ({token})",
        hovermode="x unified",
        template="plotly_dark",
        height=420,
    )
    return fig


def daily_net_interest_chart(statement: pd.DataFrame, token: str) -> go.Figure:
    """Bar chart of daily net interest (supply minus debt)."""
    colors = [_SUPPLY_COLOR if v >= 0 else _DEBT_COLOR for v in statement["net_interest"]]
    fig = go.Figure(
        go.Bar(
            x=statement["date"],
            y=statement["net_interest"],
            marker_color=colors,
            name="Net interest",
            hovertemplate=f"%{{x}}<br>Net: %{{y:,.4f}} {token}<extra></extra>",
        )
    )
    fig.add_hline(y=0, line_color="#6b7280", line_width=1)
    fig.update_layout(
        title=f"{token} Daily Net Interest",
        xaxis_title="Date",
        yaxis_title=f"Net interest ({token})",
        template="plotly_dark",
        height=350,
        showlegend=False,
    )
    return fig
