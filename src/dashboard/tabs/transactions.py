"""Transactions tab: protocol events and other supply-token transfers."""

from datetime import datetime, timezone

import pandas as pd
import streamlit as st

from src.dashboard.components.sidebar import SidebarParams
from src.data.constants import SECONDS_PER_DAY, TOKEN_DECIMALS
from src.interest.models import date_to_timestamp
from src.position.history import AddressHistory
from src.protocol.ray import to_units

_EXPLORER_TX_URL = "https://gnosisscan.io/tx/{}"


def render_transactions(history: AddressHistory, params: SidebarParams) -> None:
    """Render every transaction of the window, newest first."""
    st.header("Transactions")

    start_ts = date_to_timestamp(params.start_date)
    end_ts = date_to_timestamp(params.end_date) + SECONDS_PER_DAY

    rows = []
    for token, reserve in history.reserves.items():
        decimals = TOKEN_DECIMALS[token]
        for tx in reserve.transactions.all_rows():
            if not start_ts <= tx.timestamp < end_ts:
                continue
            rows.append(
                {
                    "date": datetime.fromtimestamp(tx.timestamp, tz=timezone.utc),
                    "token": token.value,
                    "type": tx.kind,
                    "amount": to_units(tx.amount, decimals),
                    "tx": _EXPLORER_TX_URL.format(tx.tx_hash),
                }
            )

    if not rows:
        st.info("No transactions in the selected period.")
        return

    df = pd.DataFrame(rows).sort_values("date", ascending=False)
    kinds = sorted(df["type"].unique())
    selected = st.multiselect(
        "Types", kinds, default=kinds, key=f"{history.address}-tx-types"
    )
    st.dataframe(
        df[df["type"].isin(selected)],
        use_container_width=True,
        hide_index=True,
        column_config={
            "amount": st.column_config.NumberColumn("Amount", format="%.4f"),
            "tx": st.column_config.LinkColumn("Transaction", display_text="view"),
        },
    )
