"""
Runtime Configuration Module

Provides configuration loading and management for privpay nodes.
"""

from .runtime import (
    LedgerConfig,
    RemoteRouteConfig,
    RouterConfig,
    RuntimeConfig,
    TransportConfig,
    VerifierConfig,
    WithdrawalConfig,
    get_default_config,
    set_default_config,
)

__all__ = [
    "RuntimeConfig",
    "LedgerConfig",
    "WithdrawalConfig",
    "RouterConfig",
    "RemoteRouteConfig",
    "TransportConfig",
    "VerifierConfig",
    "get_default_config",
    "set_default_config",
]
