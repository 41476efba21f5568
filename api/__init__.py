"""
Minimal API (FastAPI)

HTTP API over one privpay chain node:
- /ledger: state, known roots, event stream, deposits
- /nullifiers, /withdraw: spent set and proof-gated payouts
- /splits: allocation, initiation and execution of cross-chain splits
- /bridge/receive: inbound messages pushed by the relayer
- /health: liveness

Usage:
    uvicorn api.app:app --reload
"""

__version__ = "0.1.0"
