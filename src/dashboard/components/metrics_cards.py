"""Metric card helpers and amount formatting for the dashboard."""

import streamlit as st

from src.protocol.ray import to_units


def format_amount(amount: int, decimals: int, symbol: str = "", places: int = 2) -> str:
    """Raw token amount as a grouped decimal string, e.g. ``1,234.56 USDC``."""
    text = f"{to_units(amount, decimals):,.{places}f}"
    return f"{text} {symbol}" if symbol else text


def kpi_row(metrics: list[tuple[str, str, str | None]]) -> None:
    """Display a row of ``st.metric`` cards.

    Args:
        metrics: List of (label, value, delta) tuples.
    """
    cols = st.columns(len(metrics))
    for col, (label, value, delta) in zip(cols, metrics):
        with col:
            st.metric(label=label, value=value, delta=delta)
