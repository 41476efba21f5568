"""
Privacy Ledger

- CommitmentLedger: commitment tree, root window, deposit pool, events
- NullifierRegistry: exactly-once spent set
- WithdrawalProtocol: proof-gated payouts
- BalanceBook: token accounting shared by pool, escrow and users
- NonReentrantLock: per-aggregate single-writer guard
"""

from .balances import BalanceBook
from .commitment_ledger import CommitmentLedger, parse_commitment
from .guard import NonReentrantLock, nonreentrant
from .nullifiers import NullifierRegistry, parse_nullifier
from .withdrawal import (
    BPS_DENOMINATOR,
    DEFAULT_FEE_BPS,
    MAX_FEE_BPS,
    WithdrawalProtocol,
    compute_fee,
)

__all__ = [
    "BalanceBook",
    "CommitmentLedger",
    "parse_commitment",
    "NonReentrantLock",
    "nonreentrant",
    "NullifierRegistry",
    "parse_nullifier",
    "BPS_DENOMINATOR",
    "DEFAULT_FEE_BPS",
    "MAX_FEE_BPS",
    "WithdrawalProtocol",
    "compute_fee",
]
