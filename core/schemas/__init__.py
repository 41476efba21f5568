"""
Schemas & Errors

Public API of the schemas package: canonical serialization, the error
taxonomy, and the pydantic models shared by the ledger, the split router,
the transports and the HTTP API.
"""

from .canonical import (
    CANONICAL_JSON_SEPARATORS,
    canonicalize_value,
    dumps_canonical,
    format_datetime_canonical,
    loads_canonical,
)

from .errors import (
    AlreadyExecutedException,
    AuthorizationException,
    CanonicalizationException,
    DuplicateCommitmentException,
    ErrorCodes,
    InsufficientBalanceException,
    InsufficientPoolException,
    InvalidCommitmentException,
    LedgerError,
    LedgerException,
    MessageReplayedException,
    NullifierAlreadyUsedException,
    NullifierReusedException,
    ProofRejectedException,
    ReentrancyViolationException,
    ResourceExhaustedException,
    StateConflictException,
    TransportException,
    TreeFullException,
    UnknownRootException,
    UnknownSplitException,
    UnregisteredDestinationException,
    ValidationException,
)

from .ledger import (
    ZERO_ADDRESS,
    AddressHex,
    Bytes32Hex,
    CommitmentInserted,
    LedgerState,
    PoolStats,
    PublicInputs,
    WithdrawalReceipt,
    normalize_address,
)

from .split import (
    MAX_SPLIT_DESTINATIONS,
    ChainRoute,
    GasPriceEntry,
    PaymentSplit,
    SplitExecution,
    SplitLeg,
    SplitStatus,
)

from .transport import (
    DeliveryFailure,
    LegPayload,
    TransportMessage,
)

__all__ = [
    # Canonical
    "CANONICAL_JSON_SEPARATORS",
    "canonicalize_value",
    "dumps_canonical",
    "format_datetime_canonical",
    "loads_canonical",
    # Errors
    "AlreadyExecutedException",
    "AuthorizationException",
    "CanonicalizationException",
    "DuplicateCommitmentException",
    "ErrorCodes",
    "InsufficientBalanceException",
    "InsufficientPoolException",
    "InvalidCommitmentException",
    "LedgerError",
    "LedgerException",
    "MessageReplayedException",
    "NullifierAlreadyUsedException",
    "NullifierReusedException",
    "ProofRejectedException",
    "ReentrancyViolationException",
    "ResourceExhaustedException",
    "StateConflictException",
    "TransportException",
    "TreeFullException",
    "UnknownRootException",
    "UnknownSplitException",
    "UnregisteredDestinationException",
    "ValidationException",
    # Ledger
    "ZERO_ADDRESS",
    "AddressHex",
    "Bytes32Hex",
    "CommitmentInserted",
    "LedgerState",
    "PoolStats",
    "PublicInputs",
    "WithdrawalReceipt",
    "normalize_address",
    # Split
    "MAX_SPLIT_DESTINATIONS",
    "ChainRoute",
    "GasPriceEntry",
    "PaymentSplit",
    "SplitExecution",
    "SplitLeg",
    "SplitStatus",
    # Transport
    "DeliveryFailure",
    "LegPayload",
    "TransportMessage",
]
