"""
Token Vault: two-asset custody ledger

Holds balances for every (currency, holder) pair used by the exchange:
trader wallets, pool reserves and the limit-order hook's escrow.

  - ERC-20–style balances and allowances for fungible currencies
  - Native-asset sentinel (NATIVE_CURRENCY): value moves without allowances,
    as if attached to the call
  - escrow_from / pay_out custody primitives used by the limit-order hook
  - Transfer log for auditing settlement
"""

from __future__ import annotations

import time
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple

from ..constants import MAX_UINT256, NATIVE_CURRENCY
from ..exceptions import InsufficientAllowanceError, InsufficientBalanceError, VaultError
from ..logger import get_logger

logger = get_logger(__name__)


def is_native(currency: str) -> bool:
    return currency == NATIVE_CURRENCY


class TransferKind(str, Enum):
    MINT = "mint"
    TRANSFER = "transfer"
    ESCROW = "escrow"
    PAYOUT = "payout"


@dataclass(frozen=True)
class TransferEvent:
    """Emitted on every balance movement."""
    kind: TransferKind
    currency: str
    sender: str
    recipient: str
    amount: int
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.kind.value,
            "currency": self.currency,
            "from": self.sender,
            "to": self.recipient,
            "amount": str(self.amount),
            "timestamp": self.timestamp,
        }


class TokenVault:
    """
    In-memory custody ledger.

    Amounts are integers in each currency's base unit. Every mutating call
    validates fully before touching a balance, so a failed call leaves the
    ledger unchanged.
    """

    def __init__(self) -> None:
        self._balances: Dict[Tuple[str, str], int] = defaultdict(int)
        self._allowances: Dict[Tuple[str, str, str], int] = defaultdict(int)
        self._events: List[TransferEvent] = []

    # -- Queries ------------------------------------------------------------

    def balance_of(self, currency: str, holder: str) -> int:
        return self._balances.get((currency, holder), 0)

    def allowance(self, currency: str, owner: str, spender: str) -> int:
        if is_native(currency):
            return 0
        return self._allowances.get((currency, owner, spender), 0)

    @property
    def events(self) -> List[TransferEvent]:
        return list(self._events)

    # -- Balance management -------------------------------------------------

    def mint(self, currency: str, holder: str, amount: int) -> None:
        """Credit `amount` out of thin air (genesis funding, tests)."""
        self._require_amount(amount)
        self._balances[(currency, holder)] += amount
        self._events.append(TransferEvent(TransferKind.MINT, currency, "", holder, amount))

    def approve(self, currency: str, owner: str, spender: str, amount: int) -> None:
        if is_native(currency):
            raise VaultError("Native currency does not use allowances")
        if amount < 0 or amount > MAX_UINT256:
            raise VaultError(f"Invalid allowance: {amount}")
        self._allowances[(currency, owner, spender)] = amount

    def transfer(self, currency: str, sender: str, recipient: str, amount: int) -> None:
        self._move(TransferKind.TRANSFER, currency, sender, recipient, amount)

    # -- Custody primitives -------------------------------------------------

    def escrow_from(self, currency: str, payer: str, custodian: str, amount: int) -> None:
        """
        Pull `amount` from `payer` into `custodian`.

        Fungible currencies spend the payer's allowance to the custodian;
        an allowance of MAX_UINT256 is treated as unlimited.
        """
        self._require_amount(amount)
        if not is_native(currency):
            allowed = self.allowance(currency, payer, custodian)
            if allowed < amount:
                raise InsufficientAllowanceError(
                    f"Allowance {allowed} < {amount} for {currency} ({payer} -> {custodian})"
                )
            self._require_balance(currency, payer, amount)
            if allowed != MAX_UINT256:
                self._allowances[(currency, payer, custodian)] = allowed - amount
        self._move(TransferKind.ESCROW, currency, payer, custodian, amount)

    def pay_out(self, currency: str, custodian: str, recipient: str, amount: int) -> None:
        """Send `amount` held by `custodian` to `recipient`."""
        self._move(TransferKind.PAYOUT, currency, custodian, recipient, amount)

    # -- Snapshots ----------------------------------------------------------

    def take_snapshot(self) -> Dict[str, Any]:
        """Capture balances and allowances for a potential revert."""
        return {
            "balances": dict(self._balances),
            "allowances": dict(self._allowances),
            "events": len(self._events),
        }

    def restore_snapshot(self, snapshot: Dict[str, Any]) -> None:
        self._balances = defaultdict(int, snapshot["balances"])
        self._allowances = defaultdict(int, snapshot["allowances"])
        del self._events[snapshot["events"]:]

    # -- Internal -----------------------------------------------------------

    def _move(self, kind: TransferKind, currency: str, sender: str, recipient: str, amount: int) -> None:
        self._require_amount(amount)
        self._require_balance(currency, sender, amount)
        if amount == 0:
            return
        self._balances[(currency, sender)] -= amount
        self._balances[(currency, recipient)] += amount
        self._events.append(TransferEvent(kind, currency, sender, recipient, amount))
        logger.debug("%s %d %s %s -> %s", kind.value, amount, currency, sender, recipient)

    def _require_balance(self, currency: str, holder: str, amount: int) -> None:
        balance = self.balance_of(currency, holder)
        if balance < amount:
            raise InsufficientBalanceError(
                f"Balance {balance} < {amount} for {currency} held by {holder}"
            )

    @staticmethod
    def _require_amount(amount: int) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise VaultError(f"Amount must be an integer, got {type(amount).__name__}")
        if amount < 0 or amount > MAX_UINT256:
            raise VaultError(f"Invalid amount: {amount}")
