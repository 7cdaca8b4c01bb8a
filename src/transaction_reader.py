import csv
import logging
from typing import Dict, Iterator, Optional, TextIO, Tuple

from amount import Amount
from errors import ParseError
from models import Transaction, TransactionType

logger = logging.getLogger(__name__)

MAX_CLIENT_ID = 2 ** 16 - 1
MAX_TRANSACTION_ID = 2 ** 32 - 1

REQUIRED_COLUMNS = ("type", "client", "tx")
KNOWN_COLUMNS = REQUIRED_COLUMNS + ("amount",)


def read_transactions(stream: TextIO) -> Iterator[Tuple[int, Transaction]]:
    """
    Read CSV rows with header `type, client, tx, amount` and yield
    (row index, Transaction) pairs in file order.

    Whitespace around headers and values is ignored, blank lines are skipped
    and the amount column may be left out entirely. Any row that cannot be
    turned into a Transaction raises ParseError.
    """
    reader = csv.DictReader(stream, restval="")
    try:
        fieldnames = reader.fieldnames
    except (csv.Error, UnicodeDecodeError) as e:
        raise ParseError(f"unreadable header: {e}", row=0) from None
    if fieldnames is None:
        return

    reader.fieldnames = [name.strip().lower() for name in fieldnames]
    _check_header(reader.fieldnames)

    for index, row in _records(reader):
        yield index, parse_row(row, index)


def _records(reader: csv.DictReader) -> Iterator[Tuple[int, Dict[Optional[str], object]]]:
    index = 0
    while True:
        try:
            row = next(reader)
        except StopIteration:
            return
        except (csv.Error, UnicodeDecodeError) as e:
            raise ParseError(f"unreadable record: {e}", row=index + 1) from None
        index += 1
        yield index, row


def parse_row(row: Dict[Optional[str], object], index: Optional[int] = None) -> Transaction:
    """Parse CSV row into Transaction."""
    extra = row.get(None)
    if extra and any(value.strip() for value in extra):
        raise ParseError(f"unexpected extra values {extra}", row=index)

    normalized = {key: (value or "").strip() for key, value in row.items() if key is not None}

    transaction_type_str = normalized.get("type", "").lower()
    try:
        transaction_type = TransactionType(transaction_type_str)
    except ValueError:
        raise ParseError(f"unknown transaction type {transaction_type_str!r}", row=index) from None

    client_id = _parse_id(normalized.get("client", ""), "client", MAX_CLIENT_ID, index)
    transaction_id = _parse_id(normalized.get("tx", ""), "tx", MAX_TRANSACTION_ID, index)

    amount = None
    amount_str = normalized.get("amount", "")
    if transaction_type.carries_amount:
        if not amount_str:
            raise ParseError(f"{transaction_type.value} tx {transaction_id} is missing an amount", row=index)
        try:
            amount = Amount.parse(amount_str)
        except ParseError as e:
            raise ParseError(str(e), row=index) from None
    elif amount_str:
        logger.debug(f"Row {index}: ignoring amount {amount_str!r} on {transaction_type.value} tx {transaction_id}")

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def _check_header(fieldnames) -> None:
    missing = [name for name in REQUIRED_COLUMNS if name not in fieldnames]
    if missing:
        raise ParseError(f"header is missing columns: {', '.join(missing)}", row=0)

    unknown = [name for name in fieldnames if name and name not in KNOWN_COLUMNS]
    if unknown:
        raise ParseError(f"header has unknown columns: {', '.join(unknown)}", row=0)


def _parse_id(raw: str, field_name: str, maximum: int, index: Optional[int]) -> int:
    if not raw:
        raise ParseError(f"missing {field_name}", row=index)
    if not (raw.isascii() and raw.isdigit()):
        raise ParseError(f"{field_name} must be a non-negative integer, got {raw!r}", row=index)

    value = int(raw)
    if value > maximum:
        raise ParseError(f"{field_name} {value} exceeds maximum {maximum}", row=index)
    return value
