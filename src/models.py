from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from amount import Amount
from errors import RejectionReason


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def carries_amount(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class DisputeState(Enum):
    NONE = "none"
    DISPUTED = "disputed"
    RESOLVED = "resolved"
    CHARGED_BACK = "charged_back"


class ProcessingResult(Enum):
    SUCCESS = "success"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Transaction:
    """
    One input record. The type tag decides which fields matter:
    deposits and withdrawals carry an amount, the dispute family
    points at an earlier transaction through transaction_id.
    """

    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Amount] = None

    def __post_init__(self):
        if self.transaction_type.carries_amount and self.amount is None:
            raise ValueError(f"{self.transaction_type.value} tx {self.transaction_id} requires an amount")
        if not self.transaction_type.carries_amount and self.amount is not None:
            raise ValueError(f"{self.transaction_type.value} tx {self.transaction_id} must not carry an amount")

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class DisputableRecord:
    """A funding transaction kept around so it can be disputed later."""

    transaction_id: int
    client_id: int
    amount: Amount
    kind: TransactionType = TransactionType.DEPOSIT
    state: DisputeState = DisputeState.NONE


@dataclass
class ClientAccount:
    client_id: int
    available: Amount = field(default_factory=Amount.zero)
    held: Amount = field(default_factory=Amount.zero)
    locked: bool = False

    @property
    def total(self) -> Amount:
        return self.available + self.held

    # Every move computes all new values before assigning any of them,
    # so an AmountOverflowError leaves the account as it was.

    def credit(self, amount: Amount) -> None:
        self.available = self.available + amount

    def debit(self, amount: Amount) -> None:
        self.available = self.available - amount

    def hold(self, amount: Amount) -> None:
        available, held = self.available - amount, self.held + amount
        self.available, self.held = available, held

    def release_hold(self, amount: Amount) -> None:
        available, held = self.available + amount, self.held - amount
        self.available, self.held = available, held

    def remove_held(self, amount: Amount) -> None:
        self.held = self.held - amount

    # Withdrawal disputes: the withdrawn funds are claimed back into held.

    def hold_reversal(self, amount: Amount) -> None:
        self.held = self.held + amount

    def release_reversal(self, amount: Amount) -> None:
        self.held = self.held - amount

    def settle_reversal(self, amount: Amount) -> None:
        available, held = self.available + amount, self.held - amount
        self.available, self.held = available, held

    def snapshot(self) -> "AccountSnapshot":
        return AccountSnapshot(
            client_id=self.client_id,
            available=self.available,
            held=self.held,
            total=self.total,
            locked=self.locked,
        )


@dataclass(frozen=True)
class AccountSnapshot:
    client_id: int
    available: Amount
    held: Amount
    total: Amount
    locked: bool


class ProcessingStats:
    """Counters for tracking processing statistics."""

    def __init__(self):
        self.processed = 0
        self.applied = 0
        self.rejected = 0
        self.rejections_by_reason: Counter = Counter()

    def record_success(self):
        self.processed += 1
        self.applied += 1

    def record_rejection(self, reason: Optional[RejectionReason]):
        self.processed += 1
        self.rejected += 1
        if reason is not None:
            self.rejections_by_reason[reason] += 1

    def summary(self) -> str:
        text = f"Processed: {self.processed}, Applied: {self.applied}, Rejected: {self.rejected}"
        if self.rejections_by_reason:
            breakdown = ", ".join(
                f"{reason.value}={count}"
                for reason, count in sorted(self.rejections_by_reason.items(), key=lambda item: item[0].value)
            )
            text += f" ({breakdown})"
        return text
