from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional

from errors import InsufficientFundsError

MAX_CLIENT_ID = 0xFFFF
MAX_TRANSACTION_ID = 0xFFFFFFFF
# Amounts at or above this are rejected as malformed input.
MAX_AMOUNT = Decimal("1e15")


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, text: str) -> "TransactionType":
        """Map a record's type keyword to a variant. Unrecognized keywords become UNKNOWN."""
        try:
            return cls(text.strip())
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_transfer(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class ProcessingResult(Enum):
    APPLIED = "applied"
    INVALID_AMOUNT = "invalid_amount"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    ACCOUNT_LOCKED = "account_locked"
    TRANSACTION_NOT_FOUND = "transaction_not_found"
    CLIENT_MISMATCH = "client_mismatch"
    ALREADY_DISPUTED = "already_disputed"
    NOT_DISPUTED = "not_disputed"
    NOT_DISPUTABLE = "not_disputable"
    UNKNOWN_TYPE = "unknown_type"


class WithdrawalDisputePolicy(Enum):
    """How a dispute against a withdrawal moves funds."""

    # The withdrawn amount returns to available and is parked as negative held funds.
    REVERSE_DEBIT = "reverse_debit"
    # Withdrawals cannot be disputed; the funds already left the account.
    REJECT = "reject"


@dataclass
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None
    disputed: bool = field(default=False, compare=False)

    def is_valid_transfer(self) -> bool:
        return self.transaction_type.is_transfer and self.amount is not None and self.amount > 0

    def __repr__(self) -> str:
        return (
            f"Transaction({self.transaction_type.value}, client={self.client_id}, "
            f"tx={self.transaction_id}, amount={self.amount}, disputed={self.disputed})"
        )


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return self.available + self.held

    def credit(self, amount: Decimal) -> None:
        self.available += amount

    def debit(self, amount: Decimal) -> None:
        if self.available < amount:
            raise InsufficientFundsError(self.client_id, self.available, amount)
        self.available -= amount

    def hold(self, amount: Decimal) -> None:
        self.available -= amount
        self.held += amount

    def release_hold(self, amount: Decimal) -> None:
        self.held -= amount
        self.available += amount

    def remove_held(self, amount: Decimal) -> None:
        self.held -= amount


class ProcessingStats:
    """Per-result counters for a run."""

    def __init__(self):
        self._counts: Counter = Counter()

    def record(self, result: ProcessingResult) -> None:
        self._counts[result] += 1

    def count(self, result: ProcessingResult) -> int:
        return self._counts[result]

    @property
    def processed(self) -> int:
        return self._counts[ProcessingResult.APPLIED]

    @property
    def skipped(self) -> int:
        return sum(self._counts.values()) - self.processed

    def summary(self) -> str:
        details = ", ".join(
            f"{result.value}={count}"
            for result, count in sorted(self._counts.items(), key=lambda item: item[0].value)
            if result is not ProcessingResult.APPLIED
        )
        line = f"Processed: {self.processed}, Skipped: {self.skipped}"
        return f"{line} ({details})" if details else line
