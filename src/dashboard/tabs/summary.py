"""Financial Summary tab: period interest and balances per token."""

import streamlit as st

from src.dashboard.components.metrics_cards import format_amount, kpi_row
from src.dashboard.components.sidebar import SidebarParams
from src.data.constants import TOKEN_DECIMALS
from src.interest.periods import query_period_interest, start_balance
from src.position.history import AddressHistory


def render_summary(history: AddressHistory, params: SidebarParams) -> None:
    """Render period interest and position totals for one address."""
    st.header("Financial Summary")
    st.caption(
        f"{params.start_date:%Y-%m-%d} to {params.end_date:%Y-%m-%d} · RMM {history.version.value}"
    )

    if not history.reserves:
        st.info("No reserve selected.")
        return

    for token, reserve in history.reserves.items():
        symbol = token.value
        decimals = TOKEN_DECIMALS[token]

        st.subheader(symbol)
        if not reserve.supply and not reserve.debt:
            st.caption("No activity on this reserve.")
            continue

        supply = query_period_interest(reserve.supply, params.start_date, params.end_date)
        debt = query_period_interest(reserve.debt, params.start_date, params.end_date)

        # Period figures
        kpi_row(
            [
                ("Interest earned", format_amount(supply.interest, decimals, symbol, 4), None),
                ("Interest paid", format_amount(debt.interest, decimals, symbol, 4), None),
                (
                    "Net interest",
                    format_amount(supply.interest - debt.interest, decimals, symbol, 4),
                    None,
                ),
            ]
        )

        # Opening balances of the window
        opening = []
        for label, side_series in (("Supply at start", reserve.supply), ("Debt at start", reserve.debt)):
            start = start_balance(side_series, params.start_date)
            if start is not None:
                note = "interpolated" if start.is_interpolated else None
                opening.append((label, format_amount(start.balance, decimals, symbol), note))
        if opening:
            kpi_row(opening)

        # Lifetime figures
        supply_sum = reserve.supply_summary
        debt_sum = reserve.debt_summary
        kpi_row(
            [
                ("Supply balance", format_amount(supply_sum.current_balance, decimals, symbol), None),
                ("Debt balance", format_amount(debt_sum.current_balance, decimals, symbol), None),
                (
                    "Supplied / withdrawn",
                    f"{format_amount(supply_sum.total_increases, decimals)} / "
                    f"{format_amount(supply_sum.total_decreases, decimals)}",
                    None,
                ),
                (
                    "Borrowed / repaid",
                    f"{format_amount(debt_sum.total_increases, decimals)} / "
                    f"{format_amount(debt_sum.total_decreases, decimals)}",
                    None,
                ),
            ]
        )
        st.divider()
