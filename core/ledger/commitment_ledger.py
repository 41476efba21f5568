"""
Commitment Ledger

Owns the commitment tree, the root-history window, the deposit pool and
the insertion event stream of one chain.

Operations:
- add_commitment: insert a commitment, return its leaf index
- deposit: pull funds into the pool, then insert (one atomic unit)
- is_known_root: membership over the history window plus the current root
- add_listener: observe CommitmentInserted events as they are produced

Every mutation runs under the ledger's NonReentrantLock.
"""

from __future__ import annotations

import logging
from typing import Callable, Union

from core.crypto.hashing import FIELD_MODULUS, ZERO_VALUE, bytes32_to_int, to_bytes32, to_hex
from core.ledger.balances import BalanceBook
from core.ledger.guard import NonReentrantLock, nonreentrant
from core.merkle.incremental import (
    DEFAULT_ROOT_HISTORY_SIZE,
    DEFAULT_TREE_DEPTH,
    IncrementalMerkleTree,
    RootHistory,
)
from core.schemas.errors import (
    DuplicateCommitmentException,
    InvalidCommitmentException,
    TreeFullException,
    ValidationException,
)
from core.schemas.ledger import CommitmentInserted, PoolStats, normalize_address

logger = logging.getLogger(__name__)

HashLike = Union[bytes, str, int]
InsertionListener = Callable[[CommitmentInserted], None]


def parse_commitment(value: HashLike) -> bytes:
    """
    Coerce a commitment to 32 bytes and check it is insertable.

    Raises:
        InvalidCommitmentException: If zero, wrongly sized, or >= FIELD_MODULUS
    """
    try:
        commitment = to_bytes32(value)
    except (TypeError, ValueError) as e:
        raise InvalidCommitmentException(f"Malformed commitment: {e}") from e
    if commitment == ZERO_VALUE:
        raise InvalidCommitmentException("Commitment must not be zero")
    if bytes32_to_int(commitment) >= FIELD_MODULUS:
        raise InvalidCommitmentException(
            "Commitment is outside the scalar field",
            details={"commitment": to_hex(commitment)},
        )
    return commitment


class CommitmentLedger:
    """
    Append-only commitment tree plus the token pool backing it.

    Args:
        chain_id: Chain this ledger lives on
        token: Token identifier the pool holds
        address: Account of the pool in the BalanceBook
        balances: Shared BalanceBook of this chain
        depth: Tree depth D (capacity 2^D)
        root_history_size: Number of recent roots H accepted for proofs
    """

    def __init__(
        self,
        *,
        chain_id: int,
        token: str,
        address: str,
        balances: BalanceBook,
        depth: int = DEFAULT_TREE_DEPTH,
        root_history_size: int = DEFAULT_ROOT_HISTORY_SIZE,
    ) -> None:
        self.chain_id = chain_id
        self.token = token
        self.address = normalize_address(address, "ledger_address")
        self.balances = balances
        self.guard = NonReentrantLock(f"ledger:{chain_id}")
        self._tree = IncrementalMerkleTree(depth)
        self._history = RootHistory(root_history_size)
        self._commitments: set[bytes] = set()
        self._events: list[CommitmentInserted] = []
        self._listeners: list[InsertionListener] = []
        self._stats = PoolStats()

    # -- views ---------------------------------------------------------------

    @property
    def depth(self) -> int:
        return self._tree.depth

    @property
    def capacity(self) -> int:
        return self._tree.capacity

    @property
    def root_history_size(self) -> int:
        return self._history.size

    @property
    def root(self) -> bytes:
        return self._tree.root

    @property
    def leaf_count(self) -> int:
        return self._tree.leaf_count

    def is_known_root(self, root: HashLike) -> bool:
        """True for the current root and the last H inserted roots."""
        try:
            candidate = to_bytes32(root)
        except (TypeError, ValueError):
            return False
        if candidate == ZERO_VALUE:
            return False
        return candidate == self._tree.root or candidate in self._history

    def known_roots(self) -> list[bytes]:
        """Roots in the history window, newest first."""
        return list(self._history)

    def contains(self, commitment: HashLike) -> bool:
        try:
            return to_bytes32(commitment) in self._commitments
        except (TypeError, ValueError):
            return False

    def events(self, from_index: int = 0) -> list[CommitmentInserted]:
        """Insertion events with leaf_index >= from_index."""
        return self._events[max(from_index, 0):]

    def add_listener(self, listener: InsertionListener) -> None:
        """
        Call listener with every future CommitmentInserted event.

        Listeners run while the ledger guard is held; calling back into a
        mutating ledger operation raises ReentrancyViolationException. A
        listener that raises is logged and skipped, the insertion stands.
        """
        self._listeners.append(listener)

    def remove_listener(self, listener: InsertionListener) -> None:
        self._listeners.remove(listener)

    def pool_balance(self) -> int:
        return self.balances.balance_of(self.token, self.address)

    def stats(self) -> PoolStats:
        return self._stats.model_copy()

    # -- mutations -----------------------------------------------------------

    @nonreentrant
    def add_commitment(self, commitment: HashLike) -> int:
        """
        Insert a commitment without moving funds.

        Returns:
            The leaf index assigned to the commitment

        Raises:
            InvalidCommitmentException: Zero or malformed commitment
            DuplicateCommitmentException: Commitment already inserted
            TreeFullException: Tree holds 2^depth leaves
        """
        value = self._check_insertable(commitment)
        return self._insert(value, amount=None).leaf_index

    @nonreentrant
    def deposit(self, commitment: HashLike, amount: int, depositor: str) -> CommitmentInserted:
        """
        Pull amount from depositor into the pool and insert the commitment.

        The commitment is validated before funds move, and funds move before
        the (then infallible) insertion, so a failure leaves no trace.
        """
        if amount <= 0:
            raise ValidationException("Deposit amount must be positive", field_path="amount")
        value = self._check_insertable(commitment)
        self.balances.transfer(self.token, depositor, self.address, amount)
        event = self._insert(value, amount=amount)
        self._stats.total_deposits += 1
        self._stats.deposited_volume += amount
        return event

    def record_withdrawal(self, amount: int, fee: int) -> None:
        """Update aggregate statistics after a payout. Caller holds ``guard``."""
        self._stats.total_withdrawals += 1
        self._stats.withdrawn_volume += amount
        self._stats.fees_collected += fee

    def _check_insertable(self, commitment: HashLike) -> bytes:
        value = parse_commitment(commitment)
        if self._tree.is_full:
            raise TreeFullException(self._tree.capacity)
        if value in self._commitments:
            raise DuplicateCommitmentException(to_hex(value))
        return value

    def _insert(self, commitment: bytes, amount: int | None) -> CommitmentInserted:
        leaf_index = self._tree.insert(commitment)
        new_root = self._tree.root
        self._history.push(new_root)
        self._commitments.add(commitment)

        event = CommitmentInserted(
            leaf_index=leaf_index,
            commitment=to_hex(commitment),
            new_root=to_hex(new_root),
            amount=amount,
        )
        self._events.append(event)
        logger.info(
            f"Chain {self.chain_id}: commitment inserted at leaf {leaf_index}, "
            f"root {event.new_root[:18]}..."
        )
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Chain {self.chain_id}: insertion listener {listener!r} failed")
        return event


__all__ = ["CommitmentLedger", "parse_commitment"]
