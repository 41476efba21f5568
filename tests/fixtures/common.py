"""
Common test fixtures shared by all modules.

Provides factory functions for core privpay structures:
- commitments, nullifiers and accounts
- CommitmentLedger with a funded BalanceBook
- WithdrawalProtocol wired to a MockVerifier
- two ChainNodes joined by an InMemoryTransport

These are the foundational building blocks used by the unit tests.
"""

from typing import Optional

from core.config.runtime import LedgerConfig, RemoteRouteConfig, RouterConfig, RuntimeConfig
from core.crypto.hashing import sha256, to_field, to_hex
from core.ledger import BalanceBook, CommitmentLedger, NullifierRegistry, WithdrawalProtocol
from core.node import ChainNode
from core.schemas.ledger import PublicInputs
from core.transport import InMemoryTransport
from core.verifier import MockVerifier


TOKEN = "USDC"

ALICE = "0x" + "a1" * 20
BOB = "0x" + "b0" * 20
CAROL = "0x" + "c4" * 20
OWNER = "0x" + "0f" * 20
FEE_SINK = "0x" + "fe" * 20

LEDGER_A = "0x" + "00" * 19 + "a1"
LEDGER_B = "0x" + "00" * 19 + "b1"
ROUTER_A = "0x" + "00" * 19 + "a2"
ROUTER_B = "0x" + "00" * 19 + "b2"

CHAIN_A = 1
CHAIN_B = 2


# =============================================================================
# Values
# =============================================================================

def make_commitment(seed: int | str = 1) -> str:
    """A well-formed commitment (non-zero field element) as 0x hex."""
    return to_hex(to_field(sha256(f"commitment:{seed}".encode())))


def make_nullifier(seed: int | str = 1) -> str:
    return to_hex(to_field(sha256(f"nullifier:{seed}".encode())))


def make_public_inputs(
    root: str,
    nullifier: str,
    recipient: str = BOB,
    amount: int = 1000,
) -> PublicInputs:
    return PublicInputs(root=root, nullifier=nullifier, recipient=recipient, amount=amount)


# =============================================================================
# Ledger / Withdrawal Factories
# =============================================================================

def make_ledger(
    chain_id: int = CHAIN_A,
    depth: int = 4,
    root_history_size: int = 5,
    balances: Optional[BalanceBook] = None,
    address: str = LEDGER_A,
) -> CommitmentLedger:
    """Create a small ledger; ALICE holds 1_000_000 of TOKEN."""
    if balances is None:
        balances = BalanceBook()
        balances.mint(TOKEN, ALICE, 1_000_000)
    return CommitmentLedger(
        chain_id=chain_id,
        token=TOKEN,
        address=address,
        balances=balances,
        depth=depth,
        root_history_size=root_history_size,
    )


def make_withdrawal(
    verifier_result: bool = True,
    fee_bps: int = 10,
    depth: int = 4,
    root_history_size: int = 5,
) -> tuple[CommitmentLedger, NullifierRegistry, MockVerifier, WithdrawalProtocol]:
    """Create a ledger, registry, mock verifier and withdrawal protocol."""
    ledger = make_ledger(depth=depth, root_history_size=root_history_size)
    registry = NullifierRegistry()
    verifier = MockVerifier(result=verifier_result)
    protocol = WithdrawalProtocol(
        ledger=ledger,
        registry=registry,
        verifier=verifier,
        fee_sink=FEE_SINK,
        fee_bps=fee_bps,
        owner=OWNER,
    )
    return ledger, registry, verifier, protocol


# =============================================================================
# Multi-chain Factories
# =============================================================================

def make_node_config(
    chain_id: int,
    ledger_address: str,
    router_address: str,
    remote: Optional[RemoteRouteConfig] = None,
    replay_protection: bool = True,
) -> RuntimeConfig:
    return RuntimeConfig(
        ledger=LedgerConfig(chain_id=chain_id, token=TOKEN, address=ledger_address, depth=8),
        router=RouterConfig(
            address=router_address,
            owner=OWNER,
            replay_protection=replay_protection,
            routes=[remote] if remote else [],
        ),
    )


def make_two_chains(
    fee_per_message: int = 0,
    replay_protection: bool = True,
    liquidity: int = 1_000_000,
) -> tuple[ChainNode, ChainNode, InMemoryTransport]:
    """
    Two nodes sharing one in-memory hub, each with a route to the other.

    ALICE is funded on chain A; router B holds liquidity for inbound legs.
    """
    hub = InMemoryTransport(fee_per_message=fee_per_message)
    config_a = make_node_config(
        CHAIN_A, LEDGER_A, ROUTER_A,
        remote=RemoteRouteConfig(
            chain_id=CHAIN_B, transport_chain_id=CHAIN_B,
            ledger_address=LEDGER_B, router_address=ROUTER_B,
        ),
        replay_protection=replay_protection,
    )
    config_b = make_node_config(
        CHAIN_B, LEDGER_B, ROUTER_B,
        remote=RemoteRouteConfig(
            chain_id=CHAIN_A, transport_chain_id=CHAIN_A,
            ledger_address=LEDGER_A, router_address=ROUTER_A,
        ),
        replay_protection=replay_protection,
    )
    node_a = ChainNode.from_config(config_a, transport=hub, verifier=MockVerifier())
    node_b = ChainNode.from_config(config_b, transport=hub, verifier=MockVerifier())
    node_a.balances.mint(TOKEN, ALICE, 1_000_000)
    node_b.balances.mint(TOKEN, ROUTER_B, liquidity)
    return node_a, node_b, hub
