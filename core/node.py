"""
Chain Node

Composition root wiring the components of one chain together:

    BalanceBook -> CommitmentLedger -> NullifierRegistry
                                    -> WithdrawalProtocol (verifier)
                                    -> CrossChainSplitRouter (transport)

Several nodes can share one InMemoryTransport to simulate a multi-chain
deployment in a single process.
"""

from __future__ import annotations

import logging
from typing import Optional

from core.config.runtime import RuntimeConfig, VerifierConfig, TransportConfig
from core.crypto.hashing import to_hex
from core.ledger import BalanceBook, CommitmentLedger, NullifierRegistry, WithdrawalProtocol
from core.router import CrossChainSplitRouter
from core.schemas.errors import ValidationException
from core.schemas.ledger import LedgerState
from core.transport import DEFAULT_HUB_ADDRESS, HttpRelayTransport, InMemoryTransport
from core.transport.base import MessagingTransport
from core.verifier import InclusionProofVerifier, MockVerifier, ProofVerifier, SnarkjsVerifier

logger = logging.getLogger(__name__)


def build_verifier(config: VerifierConfig, depth: Optional[int] = None) -> ProofVerifier:
    """Instantiate the verifier named by config.kind."""
    kind = config.kind.lower()
    if kind == "mock":
        return MockVerifier(result=config.mock_result)
    if kind == "inclusion":
        return InclusionProofVerifier(depth=depth)
    if kind == "snarkjs":
        if not config.vkey_path:
            raise ValidationException(
                "snarkjs verifier needs a verification key path",
                field_path="verifier.vkey_path",
            )
        return SnarkjsVerifier(
            config.vkey_path,
            command=config.command.split(),
            timeout=config.timeout,
        )
    raise ValidationException(f"Unknown verifier kind: {config.kind}", field_path="verifier.kind")


def build_transport(config: TransportConfig) -> MessagingTransport:
    """Instantiate the transport named by config.kind."""
    kind = config.kind.lower()
    if kind == "memory":
        return InMemoryTransport(
            address=config.address or DEFAULT_HUB_ADDRESS,
            fee_per_message=config.fee_per_message,
            auto_deliver=config.auto_deliver,
        )
    if kind == "http":
        return HttpRelayTransport(
            address=config.address or DEFAULT_HUB_ADDRESS,
            relayer_url=config.relayer_url or "",
            relayer_token=config.relayer_token or "",
            fee_per_message=config.fee_per_message,
            timeout=config.timeout,
        )
    raise ValidationException(f"Unknown transport kind: {config.kind}", field_path="transport.kind")


class ChainNode:
    """
    All components of one chain.

    Usage:
        hub = InMemoryTransport()
        a = ChainNode.from_config(config_a, transport=hub)
        b = ChainNode.from_config(config_b, transport=hub)
    """

    def __init__(
        self,
        *,
        balances: BalanceBook,
        ledger: CommitmentLedger,
        registry: NullifierRegistry,
        withdrawal: WithdrawalProtocol,
        router: CrossChainSplitRouter,
        transport: MessagingTransport,
        config: Optional[RuntimeConfig] = None,
    ) -> None:
        self.balances = balances
        self.ledger = ledger
        self.registry = registry
        self.withdrawal = withdrawal
        self.router = router
        self.transport = transport
        self.config = config

    @property
    def chain_id(self) -> int:
        return self.ledger.chain_id

    @property
    def token(self) -> str:
        return self.ledger.token

    @classmethod
    def from_config(
        cls,
        config: RuntimeConfig,
        *,
        transport: Optional[MessagingTransport] = None,
        verifier: Optional[ProofVerifier] = None,
    ) -> "ChainNode":
        """
        Build a node from configuration.

        Args:
            config: Runtime configuration
            transport: Shared transport; built from config.transport if omitted
            verifier: Proof verifier; built from config.verifier if omitted
        """
        balances = BalanceBook()
        ledger = CommitmentLedger(
            chain_id=config.ledger.chain_id,
            token=config.ledger.token,
            address=config.ledger.address,
            balances=balances,
            depth=config.ledger.depth,
            root_history_size=config.ledger.root_history_size,
        )
        registry = NullifierRegistry()
        withdrawal = WithdrawalProtocol(
            ledger=ledger,
            registry=registry,
            verifier=verifier or build_verifier(config.verifier, depth=config.ledger.depth),
            fee_sink=config.withdrawal.fee_sink,
            fee_bps=config.withdrawal.fee_bps,
            owner=config.withdrawal.owner,
        )
        transport = transport or build_transport(config.transport)
        router = CrossChainSplitRouter(
            chain_id=config.ledger.chain_id,
            address=config.router.address,
            owner=config.router.owner,
            ledger=ledger,
            transport=transport,
            balances=balances,
            transport_chain_id=config.router.transport_chain_id,
            replay_protection=config.router.replay_protection,
            enforce_trusted_sources=config.router.enforce_trusted_sources,
        )
        for route in config.router.routes:
            router.add_chain(
                route.chain_id,
                route.transport_chain_id,
                route.ledger_address,
                route.router_address,
                caller=config.router.owner,
            )
            if route.gas_price is not None:
                router.update_gas_price(route.chain_id, route.gas_price, caller=config.router.owner)
        if config.router.local_gas_price is not None:
            router.update_gas_price(
                config.ledger.chain_id, config.router.local_gas_price, caller=config.router.owner
            )

        logger.info(
            f"Chain node {config.ledger.chain_id} ready: depth {config.ledger.depth}, "
            f"{len(config.router.routes)} remote route(s), verifier {config.verifier.kind}, "
            f"transport {type(transport).__name__}"
        )
        return cls(
            balances=balances,
            ledger=ledger,
            registry=registry,
            withdrawal=withdrawal,
            router=router,
            transport=transport,
            config=config,
        )

    def state(self) -> LedgerState:
        """Snapshot of the ledger for status endpoints."""
        return LedgerState(
            chain_id=self.ledger.chain_id,
            token=self.ledger.token,
            root=to_hex(self.ledger.root),
            leaf_count=self.ledger.leaf_count,
            capacity=self.ledger.capacity,
            root_history_size=self.ledger.root_history_size,
            pool_balance=self.ledger.pool_balance(),
            nullifiers_spent=self.registry.count(),
            stats=self.ledger.stats(),
            extra={
                "fee_bps": self.withdrawal.fee_bps,
                "fee_sink": self.withdrawal.fee_sink,
                "router": self.router.address,
                "routes": [route.chain_id for route in self.router.routes()],
            },
        )


__all__ = ["ChainNode", "build_transport", "build_verifier"]
