import logging
from typing import Dict, Iterable, Optional, TextIO, Tuple

from config import EngineConfig
from models import AccountSnapshot, ProcessingStats, Transaction
from state_manager import StateManager
from transaction_processor import TransactionProcessor
from transaction_reader import read_transactions

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Runs one ordered pass over a transaction stream and returns the final accounts.
    Each engine owns its own ledger store, so separate runs never share state.
    A ParseError from the input aborts the run before any snapshot is taken.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self._config = config or EngineConfig()
        self._state = StateManager()
        self._processor = TransactionProcessor(self._state, self._config)

    @property
    def stats(self) -> ProcessingStats:
        return self._processor.stats

    def process_file(self, filepath: str) -> Dict[int, AccountSnapshot]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing transactions from {filepath}")
        with open(filepath, "r", newline="", encoding="utf-8-sig") as f:
            return self.process_stream(f)

    def process_stream(self, stream: TextIO) -> Dict[int, AccountSnapshot]:
        return self.process_transactions(read_transactions(stream))

    def process_transactions(self, transactions: Iterable[Tuple[int, Transaction]]) -> Dict[int, AccountSnapshot]:
        """Apply (row index, Transaction) pairs in order, then snapshot the ledger."""
        for index, transaction in transactions:
            self._processor.process_transaction(transaction, index)

        logger.info(f"Processing complete: {self.stats.summary()}")
        return {account.client_id: account for account in self._state.snapshot()}
