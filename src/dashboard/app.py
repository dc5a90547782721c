"""RMM Interest Tracker: main Streamlit entry point."""

import logging
import os
from pathlib import Path

import streamlit as st

from src.data.settings import load_env_file

# Load .env file if present (for THEGRAPH_API_KEY, GNOSIS_RPC_URL, etc.)
load_env_file(Path(__file__).resolve().parents[2] / ".env")

# Bridge Streamlit Cloud secrets into os.environ so Settings.from_env sees them.
try:
    for key in st.secrets:
        if isinstance(st.secrets[key], str):
            os.environ.setdefault(key, st.secrets[key])
except Exception:
    pass  # No secrets configured

from src.dashboard.components.sidebar import render_sidebar
from src.dashboard.tabs.charts import render_charts
from src.dashboard.tabs.statement import render_statement
from src.dashboard.tabs.summary import render_summary
from src.dashboard.tabs.transactions import render_transactions
from src.data.provider_factory import create_sources
from src.data.settings import Settings
from src.position.history import PositionHistoryService


def main() -> None:
    st.set_page_config(
        page_title="RMM Interest Tracker",
        page_icon="📈",
        layout="wide",
    )

    try:
        settings = Settings.from_env()
    except ValueError as exc:
        st.error(str(exc))
        return
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    st.title("RMM Interest Tracker")
    st.caption("RealToken RMM on Gnosis: supply and borrow interest, day by day")

    # Data source toggle uses a stable key so its state persists across reruns.
    st.sidebar.header("Data Source")
    use_live = st.sidebar.checkbox("Use live data", value=bool(settings.thegraph_api_key), key="use_live")
    # Sources live in session state so the balance cache survives reruns.
    source_key = f"sources_{'live' if use_live else 'sample'}"
    if source_key not in st.session_state:
        st.session_state[source_key] = create_sources(settings, use_live=use_live)
    sources = st.session_state[source_key]

    if use_live and not sources.live:
        st.sidebar.error("Fell back to sample data")
        if not settings.thegraph_api_key:
            st.sidebar.caption("THEGRAPH_API_KEY not found in environment")
    elif sources.live:
        reader = sources.balances
        if getattr(reader, "is_connected", False):
            st.sidebar.success("Gnosis RPC: connected")
        else:
            st.sidebar.error("Gnosis RPC: cannot reach endpoint")
        if st.sidebar.button("Refresh data"):
            if hasattr(reader, "refresh"):
                reader.refresh()  # type: ignore[attr-defined]
            if hasattr(sources.snapshots, "clear_cache"):
                sources.snapshots.clear_cache()  # type: ignore[attr-defined]
            st.rerun()
    else:
        st.sidebar.caption("Showing deterministic sample data.")
    st.sidebar.caption(f"Extrapolation: {settings.extrapolation_policy.value}")

    params = render_sidebar(use_live=sources.live)
    if not params.addresses:
        st.info("Enter at least one wallet address in the sidebar.")
        return

    service = PositionHistoryService(
        snapshots=sources.snapshots,
        balances=sources.balances,
        transfers=sources.transfers,
        policy=settings.extrapolation_policy,
    )

    try:
        with st.spinner("Reconstructing interest history..."):
            results = service.compute_many(params.addresses, params.version, params.tokens)
    except ValueError as exc:
        st.error(str(exc))
        return

    for result in results:
        if len(results) > 1:
            st.markdown(f"### `{result.address}`")
        if not result.success:
            st.error(f"{result.address}: {result.error}")
            continue

        history = result.data
        tab1, tab2, tab3, tab4 = st.tabs(
            [
                "Financial Summary",
                "Charts",
                "Daily Statement",
                "Transactions",
            ]
        )

        with tab1:
            render_summary(history, params)

        with tab2:
            render_charts(history, params)

        with tab3:
            render_statement(history, params)

        with tab4:
            render_transactions(history, params)


if __name__ == "__main__":
    main()
