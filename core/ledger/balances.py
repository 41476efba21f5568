"""
Balance Book

In-process token accounting shared by the ledger pool, the split router
escrow and user accounts of one chain. Stands in for the token contract
the on-chain deployment talks to.
"""

from __future__ import annotations

import logging
import threading
from typing import Sequence

from core.schemas.errors import InsufficientBalanceException, ValidationException
from core.schemas.ledger import normalize_address

logger = logging.getLogger(__name__)


class BalanceBook:
    """
    {(token, account): amount} with all-or-nothing transfers.

    Balances never go negative. Every public method holds the book lock,
    so a batch transfer is observed either fully applied or not at all.
    """

    def __init__(self) -> None:
        self._balances: dict[tuple[str, str], int] = {}
        self._lock = threading.Lock()

    def balance_of(self, token: str, account: str) -> int:
        key = (token, normalize_address(account))
        with self._lock:
            return self._balances.get(key, 0)

    def mint(self, token: str, account: str, amount: int) -> None:
        """Credit an account out of thin air (funding, tests, bridge liquidity)."""
        if amount <= 0:
            raise ValidationException("Mint amount must be positive", field_path="amount")
        key = (token, normalize_address(account))
        with self._lock:
            self._balances[key] = self._balances.get(key, 0) + amount
        logger.debug(f"Minted {amount} {token} to {key[1]}")

    def transfer(self, token: str, source: str, destination: str, amount: int) -> None:
        """
        Move amount from source to destination.

        Raises:
            ValidationException: If amount is negative or an address is malformed
            InsufficientBalanceException: If source holds less than amount
        """
        self.transfer_batch(token, source, [(destination, amount)])

    def transfer_batch(
        self,
        token: str,
        source: str,
        transfers: Sequence[tuple[str, int]],
    ) -> None:
        """Move several amounts out of one account atomically."""
        src = normalize_address(source, "source")
        moves = []
        for destination, amount in transfers:
            if amount < 0:
                raise ValidationException("Transfer amount must be non-negative", field_path="amount")
            moves.append((normalize_address(destination, "destination"), amount))
        required = sum(amount for _, amount in moves)

        with self._lock:
            available = self._balances.get((token, src), 0)
            if available < required:
                raise InsufficientBalanceException(src, token, required, available)
            self._balances[(token, src)] = available - required
            for dst, amount in moves:
                if amount:
                    self._balances[(token, dst)] = self._balances.get((token, dst), 0) + amount

    def snapshot(self, token: str) -> dict[str, int]:
        """Non-zero balances of one token."""
        with self._lock:
            return {
                account: amount
                for (tok, account), amount in self._balances.items()
                if tok == token and amount
            }


__all__ = ["BalanceBook"]
