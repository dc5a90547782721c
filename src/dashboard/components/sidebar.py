"""Sidebar controls: addresses, deployment, tokens and date range."""

from dataclasses import dataclass
from datetime import date, timedelta

import streamlit as st

from src.data.constants import VERSION_TOKENS, Token, Version
from src.position.history import MAX_ADDRESSES

_DEMO_ADDRESS = "0x0000000000000000000000000000000000000001"


@dataclass
class SidebarParams:
    """User-controlled parameters from the sidebar."""

    addresses: list[str]
    version: Version
    tokens: list[Token]
    start_date: date
    end_date: date


def render_sidebar(use_live: bool) -> SidebarParams:
    """Render sidebar controls and return selected parameters.

    The data-source toggle is rendered in ``app.py`` before this runs,
    since the sources must exist before any address is queried.
    """
    st.sidebar.header("Wallets")

    raw = st.sidebar.text_area(
        f"Addresses (one per line, up to {MAX_ADDRESSES})",
        value="" if use_live else _DEMO_ADDRESS,
        height=100,
    )
    addresses = [line.strip() for line in raw.splitlines() if line.strip()]

    version = Version(
        st.sidebar.radio("RMM deployment", [v.value for v in Version], index=1, horizontal=True)
    )

    available = [t.value for t in VERSION_TOKENS[version]]
    tokens = [
        Token(t)
        for t in st.sidebar.multiselect("Tokens", available, default=available)
    ]

    st.sidebar.header("Period")
    today = date.today()
    start = st.sidebar.date_input("From", value=today - timedelta(days=90), max_value=today)
    end = st.sidebar.date_input("To", value=today, max_value=today)
    if start > end:
        st.sidebar.warning("'From' is after 'To'; the dates were swapped.")
        start, end = end, start

    return SidebarParams(
        addresses=addresses,
        version=version,
        tokens=tokens,
        start_date=start,
        end_date=end,
    )
