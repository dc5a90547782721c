"""Data sources: subgraph snapshots, explorer transfers and on-chain balances."""
