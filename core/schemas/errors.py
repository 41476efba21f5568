"""
Error Taxonomy

Standard errors raised by the ledger, withdrawal protocol and split router.
Defines both a Pydantic model for structured error communication (API
responses, relayer logs) and Python exceptions for control flow.

Families:
- ValidationException: malformed, zero or length-mismatched input
- StateConflictException: nullifier reused, split already executed, tree full
- AuthorizationException: unapproved caller, wrong transport sender
- ProofRejectedException: verifier said no, or root outside the window
- ResourceExhaustedException: pool or account balance too low
- TransportException: relayer unreachable or refused the message

No operation retries internally. Only TransportException is flagged
retryable.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes."""

    # Validation
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CANONICALIZATION_ERROR = "CANONICALIZATION_ERROR"
    INVALID_COMMITMENT = "INVALID_COMMITMENT"
    UNREGISTERED_DESTINATION = "UNREGISTERED_DESTINATION"
    UNKNOWN_SPLIT = "UNKNOWN_SPLIT"

    # State conflicts
    STATE_CONFLICT = "STATE_CONFLICT"
    TREE_FULL = "TREE_FULL"
    DUPLICATE_COMMITMENT = "DUPLICATE_COMMITMENT"
    NULLIFIER_ALREADY_USED = "NULLIFIER_ALREADY_USED"
    NULLIFIER_REUSED = "NULLIFIER_REUSED"
    ALREADY_EXECUTED = "ALREADY_EXECUTED"
    MESSAGE_REPLAYED = "MESSAGE_REPLAYED"
    REENTRANCY_VIOLATION = "REENTRANCY_VIOLATION"

    # Authorization
    UNAUTHORIZED = "UNAUTHORIZED"
    UNTRUSTED_TRANSPORT = "UNTRUSTED_TRANSPORT"
    UNTRUSTED_SOURCE = "UNTRUSTED_SOURCE"

    # Proofs
    PROOF_REJECTED = "PROOF_REJECTED"
    UNKNOWN_ROOT = "UNKNOWN_ROOT"

    # Resources
    RESOURCE_EXHAUSTED = "RESOURCE_EXHAUSTED"
    INSUFFICIENT_POOL = "INSUFFICIENT_POOL"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"

    # Messaging
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    INSUFFICIENT_MESSAGING_FEE = "INSUFFICIENT_MESSAGING_FEE"


# =============================================================================
# Pydantic Error Model (Structured Communication)
# =============================================================================

class LedgerError(BaseModel):
    """
    Structured error passed across process boundaries.

    Produced from a LedgerException by the API and the transport layer.
    """

    model_config = ConfigDict(extra="forbid")

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.NULLIFIER_REUSED],
    )
    category: str = Field(
        ...,
        description="Taxonomy family (validation, state_conflict, ...)",
    )
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(default_factory=dict)
    retryable: bool = Field(default=False)


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class LedgerException(Exception):
    """
    Base exception for all privpay errors.

    Carries structured error information and converts to LedgerError.
    """

    category = "ledger"

    def __init__(
        self,
        message: str,
        code: str = "LEDGER_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.retryable = False

    def to_error_model(self) -> LedgerError:
        """Convert this exception to a LedgerError model."""
        return LedgerError(
            code=self.code,
            category=self.category,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


# -- families -----------------------------------------------------------------

class ValidationException(LedgerException):
    """Malformed, zero-valued or length-mismatched input."""

    category = "validation"

    def __init__(
        self,
        message: str,
        field_path: str | None = None,
        code: str = ErrorCodes.VALIDATION_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if field_path:
            full_details["field_path"] = field_path
        super().__init__(message=message, code=code, details=full_details)


class StateConflictException(LedgerException):
    """Operation conflicts with already-committed state."""

    category = "state_conflict"

    def __init__(
        self,
        message: str,
        code: str = ErrorCodes.STATE_CONFLICT,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, code=code, details=details)


class AuthorizationException(LedgerException):
    """Caller is not allowed to perform the operation."""

    category = "authorization"

    def __init__(
        self,
        message: str,
        caller: str | None = None,
        code: str = ErrorCodes.UNAUTHORIZED,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if caller is not None:
            full_details["caller"] = caller
        super().__init__(message=message, code=code, details=full_details)


class ProofRejectedException(LedgerException):
    """Proof verification failed."""

    category = "proof_rejected"

    def __init__(
        self,
        message: str,
        code: str = ErrorCodes.PROOF_REJECTED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, code=code, details=details)


class ResourceExhaustedException(LedgerException):
    """Not enough funds to complete the operation."""

    category = "resource_exhausted"

    def __init__(
        self,
        message: str,
        required: int | None = None,
        available: int | None = None,
        code: str = ErrorCodes.RESOURCE_EXHAUSTED,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if required is not None:
            full_details["required"] = required
        if available is not None:
            full_details["available"] = available
        super().__init__(message=message, code=code, details=full_details)


# -- specific errors ----------------------------------------------------------

class CanonicalizationException(ValidationException):
    """Raised when canonical serialization or parsing fails."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.CANONICALIZATION_ERROR,
            details=details,
        )


class InvalidCommitmentException(ValidationException):
    """Commitment is zero, wrongly sized or outside the scalar field."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message=message,
            field_path="commitment",
            code=ErrorCodes.INVALID_COMMITMENT,
            details=details,
        )


class UnregisteredDestinationException(ValidationException):
    """Destination chain has no registered route."""

    def __init__(self, chain_id: int) -> None:
        super().__init__(
            message=f"Destination chain {chain_id} is not registered",
            field_path="destinations",
            code=ErrorCodes.UNREGISTERED_DESTINATION,
            details={"chain_id": chain_id},
        )


class UnknownSplitException(ValidationException):
    """No split exists with the given identifier."""

    def __init__(self, split_id: str) -> None:
        super().__init__(
            message=f"Unknown split {split_id}",
            field_path="split_id",
            code=ErrorCodes.UNKNOWN_SPLIT,
            details={"split_id": split_id},
        )


class TreeFullException(StateConflictException):
    """Commitment tree reached its 2^depth capacity."""

    def __init__(self, capacity: int) -> None:
        super().__init__(
            message=f"Merkle tree is full ({capacity} leaves)",
            code=ErrorCodes.TREE_FULL,
            details={"capacity": capacity},
        )


class DuplicateCommitmentException(StateConflictException):
    """Commitment was already inserted."""

    def __init__(self, commitment: str) -> None:
        super().__init__(
            message="Commitment already exists in the tree",
            code=ErrorCodes.DUPLICATE_COMMITMENT,
            details={"commitment": commitment},
        )


class NullifierAlreadyUsedException(StateConflictException):
    """Registry refused to mark a nullifier a second time."""

    def __init__(self, nullifier: str, code: str = ErrorCodes.NULLIFIER_ALREADY_USED) -> None:
        super().__init__(
            message="Nullifier has already been used",
            code=code,
            details={"nullifier": nullifier},
        )


class NullifierReusedException(NullifierAlreadyUsedException):
    """Withdrawal attempted with a spent nullifier."""

    def __init__(self, nullifier: str) -> None:
        super().__init__(nullifier, code=ErrorCodes.NULLIFIER_REUSED)


class AlreadyExecutedException(StateConflictException):
    """Split is not pending."""

    def __init__(self, split_id: str) -> None:
        super().__init__(
            message=f"Split {split_id} has already been executed",
            code=ErrorCodes.ALREADY_EXECUTED,
            details={"split_id": split_id},
        )


class MessageReplayedException(StateConflictException):
    """Inbound cross-chain message nonce was already consumed."""

    def __init__(self, source_chain: int, nonce: int) -> None:
        super().__init__(
            message=f"Message nonce {nonce} from chain {source_chain} already processed",
            code=ErrorCodes.MESSAGE_REPLAYED,
            details={"source_chain": source_chain, "nonce": nonce},
        )


class ReentrancyViolationException(StateConflictException):
    """A guarded operation was re-entered from within itself."""

    def __init__(self, guard: str) -> None:
        super().__init__(
            message=f"Reentrant call into {guard}",
            code=ErrorCodes.REENTRANCY_VIOLATION,
            details={"guard": guard},
        )


class UnknownRootException(ProofRejectedException):
    """Claimed root is neither current nor in the history window."""

    def __init__(self, root: str) -> None:
        super().__init__(
            message="Merkle root is not in the known-root window",
            code=ErrorCodes.UNKNOWN_ROOT,
            details={"root": root},
        )


class InsufficientPoolException(ResourceExhaustedException):
    """Pool holds less than the requested withdrawal."""

    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            message=f"Pool balance {available} is below withdrawal amount {required}",
            required=required,
            available=available,
            code=ErrorCodes.INSUFFICIENT_POOL,
        )


class InsufficientBalanceException(ResourceExhaustedException):
    """Account holds less than the requested transfer."""

    def __init__(self, account: str, token: str, required: int, available: int) -> None:
        super().__init__(
            message=f"Account {account} holds {available} {token}, needs {required}",
            required=required,
            available=available,
            code=ErrorCodes.INSUFFICIENT_BALANCE,
            details={"account": account, "token": token},
        )


class TransportException(LedgerException):
    """
    Messaging transport could not accept or hand over a message.

    Marked retryable: the caller may resend, the core never does.
    """

    category = "transport"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code=ErrorCodes.TRANSPORT_ERROR, details=details)
        self.retryable = True
