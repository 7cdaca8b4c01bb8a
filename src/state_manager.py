from typing import Dict, List, Optional, Set

from amount import Amount
from errors import DuplicateTransactionError
from models import AccountSnapshot, ClientAccount, DisputableRecord, TransactionType


class StateManager:
    """
    Ledger store for a single run.
    Holds client accounts and the funding transactions needed for dispute lookups.
    Owned by one TransactionProcessor; nothing else writes to it.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._disputable: Dict[int, DisputableRecord] = {}
        # Every deposit/withdrawal id seen, disputable or not.
        self._funding_transaction_ids: Set[int] = set()

    def __len__(self) -> int:
        return len(self._accounts)

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        account = self._accounts.get(client_id)
        if account is None:
            account = ClientAccount(client_id=client_id)
            self._accounts[client_id] = account
        return account

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        return self._accounts.get(client_id)

    def has_transaction(self, transaction_id: int) -> bool:
        """Check if a deposit or withdrawal already used this id."""
        return transaction_id in self._funding_transaction_ids

    def record_deposit(self, transaction_id: int, client_id: int, amount: Amount) -> DisputableRecord:
        """Register a deposit as disputable. Raises DuplicateTransactionError for a reused id."""
        self._claim(transaction_id)
        record = DisputableRecord(transaction_id, client_id, amount, kind=TransactionType.DEPOSIT)
        self._disputable[transaction_id] = record
        return record

    def record_withdrawal(
        self, transaction_id: int, client_id: int, amount: Amount, disputable: bool = False
    ) -> Optional[DisputableRecord]:
        """Register a withdrawal id. Only indexed for disputes when disputable is set."""
        self._claim(transaction_id)
        if not disputable:
            return None
        record = DisputableRecord(transaction_id, client_id, amount, kind=TransactionType.WITHDRAWAL)
        self._disputable[transaction_id] = record
        return record

    def lookup_disputable(self, transaction_id: int) -> Optional[DisputableRecord]:
        """Retrieve stored transaction by ID."""
        return self._disputable.get(transaction_id)

    def snapshot(self) -> List[AccountSnapshot]:
        """Read-only view of every account, ordered by client id."""
        return [self._accounts[client_id].snapshot() for client_id in sorted(self._accounts)]

    def _claim(self, transaction_id: int) -> None:
        if transaction_id in self._funding_transaction_ids:
            raise DuplicateTransactionError(f"transaction id {transaction_id} already used")
        self._funding_transaction_ids.add(transaction_id)
