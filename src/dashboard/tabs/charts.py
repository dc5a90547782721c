"""Charts tab: balances and cumulative interest over the selected window."""

import streamlit as st

from src.dashboard.components.charts import balance_chart, cumulative_interest_chart
from src.dashboard.components.sidebar import SidebarParams
from src.data.constants import TOKEN_DECIMALS
from src.interest.periods import points_between
from src.position.export import series_to_frame
from src.position.history import AddressHistory


def render_charts(history: AddressHistory, params: SidebarParams) -> None:
    """Render balance and cumulative interest charts per token."""
    st.header("Charts")
    st.caption("Hollow markers are interpolated days between the last indexed snapshot and today.")

    for token, reserve in history.reserves.items():
        decimals = TOKEN_DECIMALS[token]
        supply = series_to_frame(
            points_between(reserve.supply, params.start_date, params.end_date), decimals
        )
        debt = series_to_frame(
            points_between(reserve.debt, params.start_date, params.end_date), decimals
        )

        st.subheader(token.value)
        if supply.empty and debt.empty:
            st.caption("No points in the selected period.")
            continue

        col1, col2 = st.columns(2)
        with col1:
            st.plotly_chart(
                balance_chart(supply, debt, token.value),
                use_container_width=True,
                key=f"{history.address}-{token.value}-balance",
            )
        with col2:
            st.plotly_chart(
                cumulative_interest_chart(supply, debt, token.value),
                use_container_width=True,
                key=f"{history.address}-{token.value}-interest",
            )
