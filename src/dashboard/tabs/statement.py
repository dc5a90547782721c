"""Daily Statement tab: one row per day with both sides and downloads."""

import streamlit as st

from src.dashboard.components.charts import daily_net_interest_chart
from src.dashboard.components.sidebar import SidebarParams
from src.data.constants import TOKEN_DECIMALS
from src.interest.models import date_key
from src.position.export import export_csv, export_json, statement_to_frame
from src.position.history import AddressHistory


def render_statement(history: AddressHistory, params: SidebarParams) -> None:
    """Render the daily statement table and CSV/JSON exports."""
    st.header("Daily Statement")

    lo, hi = date_key(params.start_date), date_key(params.end_date)
    short = history.address[:8]

    for token, reserve in history.reserves.items():
        decimals = TOKEN_DECIMALS[token]
        rows = [r for r in reserve.statement if lo <= r.date <= hi]

        st.subheader(token.value)
        if not rows:
            st.caption("No activity in the selected period.")
            continue

        df = statement_to_frame(rows, decimals)
        st.plotly_chart(
            daily_net_interest_chart(df, token.value),
            use_container_width=True,
            key=f"{history.address}-{token.value}-net",
        )
        st.dataframe(df, use_container_width=True, hide_index=True)

        col1, col2, col3, col4 = st.columns(4)
        with col1:
            st.download_button(
                "Supply CSV",
                export_csv(reserve.supply, decimals),
                file_name=f"{short}_{token.value}_supply.csv",
                mime="text/csv",
                key=f"{history.address}-{token.value}-supply-csv",
            )
        with col2:
            st.download_button(
                "Debt CSV",
                export_csv(reserve.debt, decimals),
                file_name=f"{short}_{token.value}_debt.csv",
                mime="text/csv",
                key=f"{history.address}-{token.value}-debt-csv",
            )
        with col3:
            st.download_button(
                "Supply JSON",
                export_json(reserve.supply),
                file_name=f"{short}_{token.value}_supply.json",
                mime="application/json",
                key=f"{history.address}-{token.value}-supply-json",
            )
        with col4:
            st.download_button(
                "Debt JSON",
                export_json(reserve.debt),
                file_name=f"{short}_{token.value}_debt.json",
                mime="application/json",
                key=f"{history.address}-{token.value}-debt-json",
            )
