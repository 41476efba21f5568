"""
Cross-Chain Split Router

Escrows a payment, then fans it out to up to five destination ledgers.
Local legs become direct deposits into this chain's CommitmentLedger;
remote legs travel as LegPayload messages to the router registered for
the destination chain, which deposits from its own liquidity account.

Lifecycle of a split:
    initiate_split  -> PENDING  (escrow pulled from the initiator)
    execute_split   -> EXECUTED (exactly once, never reverts)

Local legs are checked before a split is marked EXECUTED. Remote legs are
fire-and-forget: a refused send or a failed delivery does not undo local
legs or return escrow.
"""

from __future__ import annotations

import logging
from typing import Sequence, Union

from core.crypto.hashing import hash_canonical, to_hex
from core.ledger.balances import BalanceBook
from core.ledger.commitment_ledger import CommitmentLedger, parse_commitment
from core.ledger.guard import NonReentrantLock, nonreentrant
from core.router.allocation import calculate_optimal_split
from core.schemas.errors import (
    AlreadyExecutedException,
    AuthorizationException,
    DuplicateCommitmentException,
    ErrorCodes,
    InsufficientBalanceException,
    MessageReplayedException,
    TransportException,
    TreeFullException,
    UnknownSplitException,
    UnregisteredDestinationException,
    ValidationException,
)
from core.schemas.ledger import CommitmentInserted, normalize_address, utc_now
from core.schemas.split import (
    MAX_SPLIT_DESTINATIONS,
    ChainRoute,
    GasPriceEntry,
    PaymentSplit,
    SplitExecution,
    SplitLeg,
    SplitStatus,
)
from core.schemas.transport import LegPayload
from core.transport.base import MessagingTransport

logger = logging.getLogger(__name__)

HashLike = Union[bytes, str, int]


class CrossChainSplitRouter:
    """
    Split router of one chain.

    The local route is registered on construction; remote routes are added
    by the owner with add_chain().

    Args:
        chain_id: Chain this router lives on
        address: Router account (escrow and liquidity) in the BalanceBook
        owner: Account allowed to administer routes and gas prices
        ledger: Local CommitmentLedger
        transport: Messaging transport for remote legs and inbound messages
        balances: Shared BalanceBook of this chain
        transport_chain_id: This chain's id as known to the transport
        replay_protection: Reject inbound nonces already consumed
        enforce_trusted_sources: Accept inbound messages only from the
            router registered for the source chain
    """

    def __init__(
        self,
        *,
        chain_id: int,
        address: str,
        owner: str,
        ledger: CommitmentLedger,
        transport: MessagingTransport,
        balances: BalanceBook,
        transport_chain_id: int | None = None,
        replay_protection: bool = True,
        enforce_trusted_sources: bool = True,
    ) -> None:
        self.chain_id = chain_id
        self.address = normalize_address(address, "router_address")
        self.owner = normalize_address(owner, "owner")
        self.ledger = ledger
        self.transport = transport
        self.balances = balances
        self.transport_chain_id = chain_id if transport_chain_id is None else transport_chain_id
        self.replay_protection = replay_protection
        self.enforce_trusted_sources = enforce_trusted_sources
        self.guard = NonReentrantLock(f"router:{chain_id}")

        self._routes: dict[int, ChainRoute] = {
            chain_id: ChainRoute(
                chain_id=chain_id,
                transport_chain_id=self.transport_chain_id,
                ledger_address=ledger.address,
                router_address=self.address,
                is_local=True,
            )
        }
        self._gas_prices: dict[int, GasPriceEntry] = {}
        self._splits: dict[str, PaymentSplit] = {}
        self._split_nonce = 0
        self._consumed_nonces: dict[int, set[int]] = {}

        transport.register_receiver(self.transport_chain_id, self.address, self)

    # -- administration ------------------------------------------------------

    def _require_owner(self, caller: str) -> None:
        if normalize_address(caller, "caller") != self.owner:
            raise AuthorizationException("Only the router owner can do this", caller=caller)

    @nonreentrant
    def add_chain(
        self,
        chain_id: int,
        transport_chain_id: int,
        ledger_address: str,
        router_address: str,
        *,
        caller: str,
    ) -> ChainRoute:
        """Register (or replace) the route to a remote chain."""
        self._require_owner(caller)
        if chain_id == self.chain_id:
            raise ValidationException("The local route cannot be replaced", field_path="chain_id")
        route = ChainRoute(
            chain_id=chain_id,
            transport_chain_id=transport_chain_id,
            ledger_address=normalize_address(ledger_address, "ledger_address"),
            router_address=normalize_address(router_address, "router_address"),
        )
        self._routes[chain_id] = route
        logger.info(f"Router {self.chain_id}: added route to chain {chain_id}")
        return route

    @nonreentrant
    def remove_chain(self, chain_id: int, *, caller: str) -> None:
        self._require_owner(caller)
        if chain_id == self.chain_id:
            raise ValidationException("The local route cannot be removed", field_path="chain_id")
        if chain_id not in self._routes:
            raise UnregisteredDestinationException(chain_id)
        del self._routes[chain_id]
        self._gas_prices.pop(chain_id, None)
        logger.info(f"Router {self.chain_id}: removed route to chain {chain_id}")

    @nonreentrant
    def update_gas_price(self, chain_id: int, gas_price: int, *, caller: str) -> GasPriceEntry:
        self._require_owner(caller)
        if chain_id not in self._routes:
            raise UnregisteredDestinationException(chain_id)
        if gas_price < 0:
            raise ValidationException("Gas price must be non-negative", field_path="gas_price")
        entry = GasPriceEntry(chain_id=chain_id, gas_price=gas_price)
        self._gas_prices[chain_id] = entry
        logger.debug(f"Router {self.chain_id}: gas price for chain {chain_id} set to {gas_price}")
        return entry

    # -- views ---------------------------------------------------------------

    def get_route(self, chain_id: int) -> ChainRoute:
        route = self._routes.get(chain_id)
        if route is None:
            raise UnregisteredDestinationException(chain_id)
        return route

    def routes(self) -> list[ChainRoute]:
        return sorted(self._routes.values(), key=lambda r: r.chain_id)

    def gas_prices(self) -> dict[int, int]:
        return {chain_id: self._gas_prices[chain_id].gas_price for chain_id in sorted(self._gas_prices)}

    def get_split(self, split_id: str) -> PaymentSplit:
        split = self._splits.get(split_id.lower())
        if split is None:
            raise UnknownSplitException(split_id)
        return split.model_copy(deep=True)

    def splits(self) -> list[PaymentSplit]:
        return [split.model_copy(deep=True) for split in self._splits.values()]

    # -- allocation ----------------------------------------------------------

    def calculate_optimal_split(self, total: int, destinations: Sequence[int]) -> list[int]:
        """
        Gas-weighted allocation over registered destinations.

        Unset gas prices count as zero.
        """
        self._check_destinations(destinations)
        prices = [
            self._gas_prices[d].gas_price if d in self._gas_prices else 0
            for d in destinations
        ]
        return calculate_optimal_split(total, prices)

    def _check_destinations(self, destinations: Sequence[int]) -> None:
        if not 1 <= len(destinations) <= MAX_SPLIT_DESTINATIONS:
            raise ValidationException(
                f"Expected 1 to {MAX_SPLIT_DESTINATIONS} destinations, got {len(destinations)}",
                field_path="destinations",
            )
        for destination in destinations:
            if destination not in self._routes:
                raise UnregisteredDestinationException(destination)

    # -- split lifecycle -----------------------------------------------------

    @nonreentrant
    def initiate_split(
        self,
        destinations: Sequence[int],
        amounts: Sequence[int],
        commitments: Sequence[HashLike],
        token: str,
        *,
        initiator: str,
        total: int | None = None,
    ) -> str:
        """
        Escrow sum(amounts) from initiator and record a PENDING split.

        Returns:
            The split id (0x hex)

        Raises:
            ValidationException: Length mismatch, bad count, unregistered
                destination, non-positive amount, malformed or repeated
                commitment, foreign token or total mismatch
            DuplicateCommitmentException: A local leg commitment is
                already in the ledger
            InsufficientBalanceException: Initiator cannot fund the escrow
        """
        if not len(destinations) == len(amounts) == len(commitments):
            raise ValidationException(
                "destinations, amounts and commitments must have equal length",
                field_path="legs",
                details={
                    "destinations": len(destinations),
                    "amounts": len(amounts),
                    "commitments": len(commitments),
                },
            )
        self._check_destinations(destinations)
        if token != self.ledger.token:
            raise ValidationException(
                f"Router handles {self.ledger.token}, not {token}",
                field_path="token",
            )
        for amount in amounts:
            if amount <= 0:
                raise ValidationException("Leg amounts must be positive", field_path="amounts")
        parsed = [parse_commitment(c) for c in commitments]
        if len(set(parsed)) != len(parsed):
            raise ValidationException(
                "Each leg needs its own commitment",
                field_path="commitments",
            )
        for destination, commitment in zip(destinations, parsed):
            if destination == self.chain_id and self.ledger.contains(commitment):
                raise DuplicateCommitmentException(to_hex(commitment))
        leg_sum = sum(amounts)
        if total is not None and total != leg_sum:
            raise ValidationException(
                f"Leg amounts sum to {leg_sum}, expected total {total}",
                field_path="total",
            )
        initiator_addr = normalize_address(initiator, "initiator")

        legs = [
            SplitLeg(destination=d, amount=a, commitment=to_hex(c))
            for d, a, c in zip(destinations, amounts, parsed)
        ]
        self._split_nonce += 1
        split_id = to_hex(hash_canonical({
            "chain_id": self.chain_id,
            "router": self.address,
            "nonce": self._split_nonce,
            "initiator": initiator_addr,
            "token": token,
            "legs": [leg.model_dump() for leg in legs],
        }))

        self.balances.transfer(token, initiator_addr, self.address, leg_sum)
        self._splits[split_id] = PaymentSplit(
            split_id=split_id,
            initiator=initiator_addr,
            token=token,
            total=leg_sum,
            legs=legs,
        )
        logger.info(
            f"Router {self.chain_id}: split {split_id[:18]}... initiated, "
            f"{len(legs)} legs, total {leg_sum}"
        )
        return split_id

    @nonreentrant
    def execute_split(self, split_id: str, *, caller: str, native_fee: int = 0) -> SplitExecution:
        """
        Deliver every leg of a pending split.

        native_fee is divided evenly over the remote legs and must cover the
        transport's quote for each of them. Local legs are checked before
        the split is marked EXECUTED. A remote leg the transport refuses is
        logged and listed in failed_legs; the remaining legs still go out.

        Raises:
            UnknownSplitException: No such split
            AlreadyExecutedException: Split is not PENDING
            ValidationException: native_fee below the transport quote
            DuplicateCommitmentException: A local leg commitment is already
                in the ledger
            TreeFullException: The ledger has no room for the local legs
            InsufficientBalanceException: Router cannot cover the local legs
        """
        split = self._splits.get(split_id.lower())
        if split is None:
            raise UnknownSplitException(split_id)
        if not split.is_pending:
            raise AlreadyExecutedException(split.split_id)
        refund_address = normalize_address(caller, "caller")
        if native_fee < 0:
            raise ValidationException("Native fee must be non-negative", field_path="native_fee")

        outbound = []
        local_legs = []
        for index, leg in enumerate(split.legs):
            route = self.get_route(leg.destination)
            if route.is_local:
                local_legs.append(leg)
                continue
            payload = LegPayload(commitment=leg.commitment, amount=leg.amount, token=split.token)
            outbound.append((index, route, payload.encode()))

        fee_per_leg = native_fee // len(outbound) if outbound else 0
        for _, route, payload_bytes in outbound:
            required = self.transport.estimate_fee(route.transport_chain_id, payload_bytes)
            if fee_per_leg < required:
                raise ValidationException(
                    f"Native fee {native_fee} does not cover {len(outbound)} remote "
                    f"leg(s) at {required} each",
                    field_path="native_fee",
                    code=ErrorCodes.INSUFFICIENT_MESSAGING_FEE,
                    details={"required_per_leg": required, "remote_legs": len(outbound)},
                )
        self._check_local_legs(local_legs, split.token)

        split.status = SplitStatus.EXECUTED
        split.executed_at = utc_now()

        local_deposits: list[CommitmentInserted] = [
            self.ledger.deposit(leg.commitment, leg.amount, depositor=self.address)
            for leg in local_legs
        ]
        failed_legs: list[int] = []
        for index, route, payload_bytes in outbound:
            try:
                self.transport.send(
                    route.transport_chain_id,
                    route.router_address,
                    payload_bytes,
                    refund_address,
                    fee_per_leg,
                    source_chain=self.transport_chain_id,
                    sender=self.address,
                )
            except TransportException as e:
                logger.warning(
                    f"Router {self.chain_id}: leg {index} of split {split.split_id[:18]}... "
                    f"to chain {route.chain_id} not sent: {e.message}"
                )
                failed_legs.append(index)

        logger.info(
            f"Router {self.chain_id}: split {split.split_id[:18]}... executed, "
            f"{len(local_deposits)} local, {len(outbound) - len(failed_legs)} remote, "
            f"{len(failed_legs)} failed"
        )
        return SplitExecution(
            split_id=split.split_id,
            local_deposits=local_deposits,
            messages_sent=len(outbound) - len(failed_legs),
            fee_per_remote_leg=fee_per_leg,
            failed_legs=failed_legs,
        )

    def _check_local_legs(self, legs: Sequence[SplitLeg], token: str) -> None:
        """Fail before any state change if a local deposit could not go through."""
        if not legs:
            return
        for leg in legs:
            if self.ledger.contains(leg.commitment):
                raise DuplicateCommitmentException(leg.commitment)
        if self.ledger.leaf_count + len(legs) > self.ledger.capacity:
            raise TreeFullException(self.ledger.capacity)
        required = sum(leg.amount for leg in legs)
        available = self.balances.balance_of(token, self.address)
        if available < required:
            raise InsufficientBalanceException(self.address, token, required, available)

    # -- inbound -------------------------------------------------------------

    @nonreentrant
    def on_message_received(
        self,
        payload: bytes,
        *,
        caller: str,
        source_chain: int,
        source_address: str,
        nonce: int,
    ) -> CommitmentInserted:
        """
        Deposit a remote leg into the local ledger from router liquidity.

        Raises:
            AuthorizationException: Caller is not the transport, or the
                source is not the router registered for source_chain
            MessageReplayedException: Nonce already consumed
            ValidationException: Malformed payload or foreign token
        """
        if normalize_address(caller, "caller") != self.transport.address:
            logger.warning(f"Router {self.chain_id}: rejected inbound message from {caller}")
            raise AuthorizationException(
                "Inbound messages are accepted from the transport only",
                caller=caller,
                code=ErrorCodes.UNTRUSTED_TRANSPORT,
            )
        if self.enforce_trusted_sources and not self._is_trusted_source(source_chain, source_address):
            logger.warning(
                f"Router {self.chain_id}: rejected message from untrusted "
                f"{source_address} on chain {source_chain}"
            )
            raise AuthorizationException(
                "Source is not the registered router for its chain",
                caller=source_address,
                code=ErrorCodes.UNTRUSTED_SOURCE,
                details={"source_chain": source_chain},
            )
        consumed = self._consumed_nonces.setdefault(source_chain, set())
        if self.replay_protection and nonce in consumed:
            logger.warning(
                f"Router {self.chain_id}: replayed nonce {nonce} from chain {source_chain}"
            )
            raise MessageReplayedException(source_chain, nonce)

        leg = LegPayload.decode(payload)
        if leg.token != self.ledger.token:
            raise ValidationException(
                f"Router handles {self.ledger.token}, not {leg.token}",
                field_path="token",
            )
        event = self.ledger.deposit(leg.commitment, leg.amount, depositor=self.address)
        consumed.add(nonce)
        logger.info(
            f"Router {self.chain_id}: received {leg.amount} from chain {source_chain} "
            f"nonce {nonce}, leaf {event.leaf_index}"
        )
        return event

    def _is_trusted_source(self, source_chain: int, source_address: str) -> bool:
        try:
            source = normalize_address(source_address, "source_address")
        except ValidationException:
            return False
        return any(
            route.transport_chain_id == source_chain and route.router_address == source
            for route in self._routes.values()
            if not route.is_local
        )


__all__ = ["CrossChainSplitRouter"]
