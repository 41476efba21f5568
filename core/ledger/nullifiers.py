"""
Nullifier Registry

Permanent set of spent nullifiers. A nullifier is registered exactly once
and never cleared; check-and-set happens under one lock so two racing
callers can never both see it as unused.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Union

from core.crypto.hashing import to_bytes32, to_hex
from core.schemas.errors import NullifierAlreadyUsedException, ValidationException
from core.schemas.ledger import utc_now

logger = logging.getLogger(__name__)


def parse_nullifier(value: Union[bytes, str, int]) -> bytes:
    try:
        return to_bytes32(value)
    except (TypeError, ValueError) as e:
        raise ValidationException(f"Malformed nullifier: {e}", field_path="nullifier") from e


class NullifierRegistry:
    """
    Spent-nullifier set with atomic check-and-set.

    Usage:
        registry = NullifierRegistry()
        registry.mark_used(n)      # ok
        registry.mark_used(n)      # raises NullifierAlreadyUsedException
        registry.is_used(n)        # True forever after
    """

    def __init__(self) -> None:
        self._spent: dict[bytes, datetime] = {}
        self._lock = threading.Lock()

    def is_used(self, nullifier: Union[bytes, str, int]) -> bool:
        key = parse_nullifier(nullifier)
        with self._lock:
            return key in self._spent

    def mark_used(self, nullifier: Union[bytes, str, int]) -> None:
        """
        Register a nullifier as spent.

        Raises:
            NullifierAlreadyUsedException: If it was registered before
        """
        key = parse_nullifier(nullifier)
        with self._lock:
            if key in self._spent:
                raise NullifierAlreadyUsedException(to_hex(key))
            self._spent[key] = utc_now()
        logger.debug(f"Nullifier {to_hex(key)[:18]}... marked used")

    def spent_at(self, nullifier: Union[bytes, str, int]) -> datetime | None:
        key = parse_nullifier(nullifier)
        with self._lock:
            return self._spent.get(key)

    def count(self) -> int:
        with self._lock:
            return len(self._spent)

    def __contains__(self, nullifier: object) -> bool:
        try:
            return self.is_used(nullifier)  # type: ignore[arg-type]
        except ValidationException:
            return False

    def __len__(self) -> int:
        return self.count()


__all__ = ["NullifierRegistry", "parse_nullifier"]
