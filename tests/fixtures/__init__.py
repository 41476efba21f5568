"""
Test fixtures package for privpay tests.

This package provides factory functions for creating test objects.

Usage:
    from fixtures.common import make_ledger, make_commitment

    def test_something():
        ledger = make_ledger(depth=2)
        ledger.add_commitment(make_commitment(1))
"""

from .common import (
    ALICE,
    BOB,
    CAROL,
    CHAIN_A,
    CHAIN_B,
    FEE_SINK,
    LEDGER_A,
    LEDGER_B,
    OWNER,
    ROUTER_A,
    ROUTER_B,
    TOKEN,
    make_commitment,
    make_ledger,
    make_node_config,
    make_nullifier,
    make_public_inputs,
    make_two_chains,
    make_withdrawal,
)

__all__ = [
    "ALICE",
    "BOB",
    "CAROL",
    "CHAIN_A",
    "CHAIN_B",
    "FEE_SINK",
    "LEDGER_A",
    "LEDGER_B",
    "OWNER",
    "ROUTER_A",
    "ROUTER_B",
    "TOKEN",
    "make_commitment",
    "make_ledger",
    "make_node_config",
    "make_nullifier",
    "make_public_inputs",
    "make_two_chains",
    "make_withdrawal",
]
