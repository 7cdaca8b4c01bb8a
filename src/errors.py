from enum import Enum
from typing import Optional


class RejectionReason(Enum):
    DUPLICATE_TRANSACTION = "duplicate_transaction"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    ACCOUNT_LOCKED = "account_locked"
    UNKNOWN_TRANSACTION = "unknown_transaction"
    NOT_DISPUTABLE = "not_disputable"
    INVALID_DISPUTE_STATE = "invalid_dispute_state"
    CLIENT_MISMATCH = "client_mismatch"
    INVALID_AMOUNT = "invalid_amount"
    BALANCE_OVERFLOW = "balance_overflow"
    UNKNOWN_CLIENT = "unknown_client"


class ParseError(ValueError):
    """Input row cannot be turned into a transaction. Aborts the run."""

    def __init__(self, message: str, row: Optional[int] = None):
        self.row = row
        if row is not None:
            message = f"row {row}: {message}"
        super().__init__(message)


class AmountOverflowError(ArithmeticError):
    """Amount arithmetic left the representable range."""


class TransactionRejected(Exception):
    """
    A single record broke a business rule.
    The record is skipped; the stream continues.
    """

    reason: Optional[RejectionReason] = None


class DuplicateTransactionError(TransactionRejected):
    reason = RejectionReason.DUPLICATE_TRANSACTION


class InsufficientFundsError(TransactionRejected):
    reason = RejectionReason.INSUFFICIENT_FUNDS


class AccountLockedError(TransactionRejected):
    reason = RejectionReason.ACCOUNT_LOCKED


class UnknownTransactionError(TransactionRejected):
    reason = RejectionReason.UNKNOWN_TRANSACTION


class NotDisputableError(TransactionRejected):
    reason = RejectionReason.NOT_DISPUTABLE


class InvalidDisputeStateError(TransactionRejected):
    reason = RejectionReason.INVALID_DISPUTE_STATE


class ClientMismatchError(TransactionRejected):
    reason = RejectionReason.CLIENT_MISMATCH


class InvalidAmountError(TransactionRejected):
    reason = RejectionReason.INVALID_AMOUNT


class BalanceOverflowError(TransactionRejected):
    reason = RejectionReason.BALANCE_OVERFLOW


class UnknownClientError(TransactionRejected):
    reason = RejectionReason.UNKNOWN_CLIENT
