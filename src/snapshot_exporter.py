import csv
from typing import Iterable, TextIO

from models import AccountSnapshot

HEADER = ("client", "available", "held", "total", "locked")


def write_snapshot(accounts: Iterable[AccountSnapshot], stream: TextIO) -> int:
    """Write one CSV row per account. Returns the number of rows written."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(HEADER)

    count = 0
    for account in accounts:
        writer.writerow((
            account.client_id,
            str(account.available),
            str(account.held),
            str(account.total),
            str(account.locked).lower(),
        ))
        count += 1
    return count
