import logging
from typing import Callable, Optional

from amount import Amount
from config import EngineConfig
from errors import (
    AccountLockedError,
    AmountOverflowError,
    BalanceOverflowError,
    ClientMismatchError,
    DuplicateTransactionError,
    InsufficientFundsError,
    InvalidAmountError,
    InvalidDisputeStateError,
    NotDisputableError,
    TransactionRejected,
    UnknownClientError,
    UnknownTransactionError,
)
from models import (
    ClientAccount,
    DisputableRecord,
    DisputeState,
    ProcessingResult,
    ProcessingStats,
    Transaction,
    TransactionType,
)
from state_manager import StateManager

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions to the ledger store, strictly in the order given.
    A record either commits all of its balance and state changes or none of them.
    Rejections are logged and counted; they never stop the stream.
    """

    def __init__(self, state: StateManager, config: Optional[EngineConfig] = None):
        self._state = state
        self._config = config or EngineConfig()
        self.stats = ProcessingStats()

    def process_transaction(self, transaction: Transaction, index: Optional[int] = None) -> ProcessingResult:
        """
        Process a single transaction.

        Returns:
            SUCCESS: Applied to the ledger
            REJECTED: Broke a business rule, ledger unchanged
        """
        try:
            self._apply(transaction)
        except TransactionRejected as e:
            reason = e.reason.value if e.reason is not None else "rejected"
            logger.warning(
                f"Rejected {transaction.transaction_type.value} tx {transaction.transaction_id} "
                f"for client {transaction.client_id} (row {index}): {reason}: {e}"
            )
            self.stats.record_rejection(e.reason)
            return ProcessingResult.REJECTED

        self.stats.record_success()
        return ProcessingResult.SUCCESS

    def _apply(self, transaction: Transaction) -> None:
        account = self._account_for(transaction)

        if account.locked:
            raise AccountLockedError(f"account {account.client_id} is locked")

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                self._handle_deposit(account, transaction)
            case TransactionType.WITHDRAWAL:
                self._handle_withdrawal(account, transaction)
            case TransactionType.DISPUTE:
                self._handle_dispute(account, transaction)
            case TransactionType.RESOLVE:
                self._handle_resolve(account, transaction)
            case TransactionType.CHARGEBACK:
                self._handle_chargeback(account, transaction)

    def _account_for(self, transaction: Transaction) -> ClientAccount:
        if self._config.create_accounts_for_any_type or transaction.transaction_type == TransactionType.DEPOSIT:
            return self._state.get_or_create_account(transaction.client_id)

        account = self._state.get_account(transaction.client_id)
        if account is None:
            raise UnknownClientError(f"client {transaction.client_id} has no account")
        return account

    def _handle_deposit(self, account: ClientAccount, transaction: Transaction) -> None:
        amount = self._positive_amount(transaction)
        self._ensure_unused(transaction)

        self._move(account.credit, amount)
        self._state.record_deposit(transaction.transaction_id, account.client_id, amount)
        logger.info(f"Deposit tx {transaction.transaction_id}: credited {amount} to client {account.client_id}")

    def _handle_withdrawal(self, account: ClientAccount, transaction: Transaction) -> None:
        amount = self._positive_amount(transaction)
        self._ensure_unused(transaction)

        if account.available < amount:
            raise InsufficientFundsError(f"available {account.available} is less than {amount}")

        self._move(account.debit, amount)
        self._state.record_withdrawal(
            transaction.transaction_id,
            account.client_id,
            amount,
            disputable=self._config.dispute_withdrawals,
        )
        logger.info(f"Withdrawal tx {transaction.transaction_id}: debited {amount} from client {account.client_id}")

    def _handle_dispute(self, account: ClientAccount, transaction: Transaction) -> None:
        original = self._find_original(transaction)

        if original.state == DisputeState.DISPUTED:
            raise InvalidDisputeStateError("transaction already disputed")

        if original.state == DisputeState.RESOLVED and not self._config.allow_redispute:
            raise InvalidDisputeStateError("transaction dispute already resolved")

        if original.state == DisputeState.CHARGED_BACK:
            raise InvalidDisputeStateError("transaction already charged back")

        if original.kind == TransactionType.DEPOSIT:
            self._move(account.hold, original.amount)
        else:
            self._move(account.hold_reversal, original.amount)

        original.state = DisputeState.DISPUTED
        logger.info(f"Dispute tx {transaction.transaction_id}: holding {original.amount} for client {account.client_id}")

    def _handle_resolve(self, account: ClientAccount, transaction: Transaction) -> None:
        original = self._find_disputed(transaction)

        if original.kind == TransactionType.DEPOSIT:
            self._move(account.release_hold, original.amount)
        else:
            self._move(account.release_reversal, original.amount)

        original.state = DisputeState.RESOLVED
        logger.info(f"Resolve tx {transaction.transaction_id}: released {original.amount} for client {account.client_id}")

    def _handle_chargeback(self, account: ClientAccount, transaction: Transaction) -> None:
        original = self._find_disputed(transaction)

        if original.kind == TransactionType.DEPOSIT:
            self._move(account.remove_held, original.amount)
        else:
            self._move(account.settle_reversal, original.amount)

        original.state = DisputeState.CHARGED_BACK
        account.locked = True
        logger.info(f"Chargeback tx {transaction.transaction_id}: locking account {account.client_id}")

    def _find_original(self, transaction: Transaction) -> DisputableRecord:
        original = self._state.lookup_disputable(transaction.transaction_id)

        if original is None:
            if self._state.has_transaction(transaction.transaction_id):
                raise NotDisputableError("only deposits can be disputed")
            raise UnknownTransactionError("referenced transaction not found")

        if original.client_id != transaction.client_id:
            raise ClientMismatchError(f"transaction belongs to client {original.client_id}")

        return original

    def _find_disputed(self, transaction: Transaction) -> DisputableRecord:
        original = self._find_original(transaction)
        if original.state != DisputeState.DISPUTED:
            raise InvalidDisputeStateError(f"transaction is not under dispute (state {original.state.value})")
        return original

    def _ensure_unused(self, transaction: Transaction) -> None:
        if self._state.has_transaction(transaction.transaction_id):
            raise DuplicateTransactionError(f"transaction id {transaction.transaction_id} already used")

    @staticmethod
    def _positive_amount(transaction: Transaction) -> Amount:
        amount = transaction.amount
        if amount is None or not amount.is_positive():
            raise InvalidAmountError(f"amount must be positive, got {amount}")
        return amount

    @staticmethod
    def _move(move: Callable[[Amount], None], amount: Amount) -> None:
        try:
            move(amount)
        except AmountOverflowError as e:
            raise BalanceOverflowError(str(e)) from e
