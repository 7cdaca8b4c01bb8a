import sys
import os

from hypothesis import given, settings
from hypothesis import strategies as st

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from amount import Amount
from config import EngineConfig
from models import DisputeState, ProcessingResult, Transaction, TransactionType
from state_manager import StateManager
from transaction_processor import TransactionProcessor

CLIENTS = st.integers(min_value=1, max_value=3)
TX_IDS = st.integers(min_value=1, max_value=12)


@st.composite
def amounts(draw):
    """Amounts in minor units, including zero and negative values the processor must reject."""
    return Amount(draw(st.integers(min_value=-5_0000, max_value=500_0000)))


@st.composite
def transactions(draw):
    transaction_type = draw(st.sampled_from(list(TransactionType)))
    amount = draw(amounts()) if transaction_type.carries_amount else None
    return Transaction(
        transaction_type=transaction_type,
        client_id=draw(CLIENTS),
        transaction_id=draw(TX_IDS),
        amount=amount,
    )


CONFIGS = st.builds(
    EngineConfig,
    dispute_withdrawals=st.booleans(),
    allow_redispute=st.booleans(),
    create_accounts_for_any_type=st.booleans(),
)


def balances(state):
    return [
        (account.client_id, account.available, account.held, account.total, account.locked)
        for account in state.snapshot()
    ]


def dispute_states(state):
    states = {}
    for tx_id in range(1, 13):
        record = state.lookup_disputable(tx_id)
        if record is not None:
            states[tx_id] = record.state
    return states


def known_ids(state):
    return {tx_id for tx_id in range(1, 13) if state.has_transaction(tx_id)}


class TestLedgerProperties:
    """
    For any ordered stream of records, after every record:
        total == available + held, and held >= 0 for every account
    A locked account never changes again, and a rejected record changes nothing.
    """

    @given(st.lists(transactions(), max_size=60), CONFIGS)
    @settings(max_examples=200, deadline=None)
    def test_total_is_available_plus_held(self, stream, config):
        state = StateManager()
        processor = TransactionProcessor(state, config)

        for index, transaction in enumerate(stream, start=1):
            processor.process_transaction(transaction, index)
            for account in state.snapshot():
                assert account.total == account.available + account.held
                assert not account.held.is_negative()

        assert processor.stats.processed == len(stream)

    @given(st.lists(transactions(), max_size=60), CONFIGS)
    @settings(max_examples=200, deadline=None)
    def test_rejected_record_changes_nothing(self, stream, config):
        state = StateManager()
        processor = TransactionProcessor(state, config)

        for transaction in stream:
            before = {row[0]: row for row in balances(state)}
            disputes_before = dispute_states(state)
            known_before = known_ids(state)

            result = processor.process_transaction(transaction)

            if result == ProcessingResult.REJECTED:
                for row in balances(state):
                    if row[0] in before:
                        assert row == before[row[0]]
                    else:
                        # only a lazily created, empty account may appear
                        assert row[1:] == (Amount.zero(), Amount.zero(), Amount.zero(), False)
                assert dispute_states(state) == disputes_before
                assert known_ids(state) == known_before

    @given(st.lists(transactions(), max_size=60))
    @settings(max_examples=200, deadline=None)
    def test_locked_accounts_are_frozen(self, stream):
        state = StateManager()
        processor = TransactionProcessor(state)
        frozen = {}

        for transaction in stream:
            processor.process_transaction(transaction)
            for row in balances(state):
                client_id, *values = row
                if client_id in frozen:
                    assert values == frozen[client_id]
                elif row[-1]:
                    frozen[client_id] = values

    @given(st.integers(min_value=1, max_value=1_000_000_0000), st.integers(min_value=2, max_value=5))
    def test_repeated_dispute_applies_once(self, units, repeats):
        state = StateManager()
        processor = TransactionProcessor(state)
        processor.process_transaction(
            Transaction(TransactionType.DEPOSIT, client_id=1, transaction_id=1, amount=Amount(units))
        )

        results = [
            processor.process_transaction(Transaction(TransactionType.DISPUTE, client_id=1, transaction_id=1))
            for _ in range(repeats)
        ]

        assert results[0] == ProcessingResult.SUCCESS
        assert set(results[1:]) == {ProcessingResult.REJECTED}
        account = state.get_account(1)
        assert account.available == Amount.zero()
        assert account.held == Amount(units)
        assert state.lookup_disputable(1).state == DisputeState.DISPUTED

