"""API route handlers."""

from api.routes import bridge, health, ledger, splits, withdraw

__all__ = ["bridge", "health", "ledger", "splits", "withdraw"]
