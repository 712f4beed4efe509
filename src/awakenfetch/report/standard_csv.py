"""Awaken standard CSV writer.

Single-asset batches use the fixed 12-column layout. If any transaction in
the batch carries additional sent/received assets, the whole batch switches
to numbered asset groups (``Received Quantity 1`` ... ``Sent Fiat Amount N``)
where N is the widest transaction in the batch.
"""

from collections.abc import Sequence

from awakenfetch.domain.models.transaction import AssetEntry, Transaction
from awakenfetch.report.constants import STANDARD_CSV_COLUMNS, standard_multi_asset_header
from awakenfetch.report.formatting import format_date, format_quantity, render_rows

_EMPTY_GROUP = ["", "", ""]


def multi_asset_width(transactions: Sequence[Transaction]) -> int:
    """Number of numbered asset groups needed, or 0 for the fixed layout."""
    if not any(tx.is_multi_asset for tx in transactions):
        return 0
    return max(
        max(1 + len(tx.additional_sent or ()), 1 + len(tx.additional_received or ()))
        for tx in transactions
    )


def _tail(tx: Transaction) -> list[str]:
    return [
        format_quantity(tx.fee_amount),
        tx.fee_currency or "",
        tx.tx_hash or "",
        tx.notes or "",
        tx.tag or "",
    ]


def _entry_group(entry: AssetEntry | None) -> list[str]:
    if entry is None:
        return list(_EMPTY_GROUP)
    return [format_quantity(entry.quantity), entry.currency, format_quantity(entry.fiat_amount)]


def _standard_row(tx: Transaction) -> list[str]:
    return [
        format_date(tx.date),
        format_quantity(tx.received_quantity),
        tx.received_currency or "",
        format_quantity(tx.received_fiat_amount),
        format_quantity(tx.sent_quantity),
        tx.sent_currency or "",
        format_quantity(tx.sent_fiat_amount),
        *_tail(tx),
    ]


def _multi_asset_row(tx: Transaction, width: int) -> list[str]:
    received = list(tx.additional_received or ())
    sent = list(tx.additional_sent or ())

    row = [
        format_date(tx.date),
        format_quantity(tx.received_quantity),
        tx.received_currency or "",
        format_quantity(tx.received_fiat_amount),
        format_quantity(tx.sent_quantity),
        tx.sent_currency or "",
        format_quantity(tx.sent_fiat_amount),
    ]
    # Slot n (2-based) reads index n - 2 of the additional sequences
    for idx in range(width - 1):
        row.extend(_entry_group(received[idx] if idx < len(received) else None))
        row.extend(_entry_group(sent[idx] if idx < len(sent) else None))
    row.extend(_tail(tx))
    return row


def generate_standard_csv(transactions: Sequence[Transaction]) -> str:
    """Render transactions as Awaken standard CSV (no trailing newline)."""
    width = multi_asset_width(transactions)
    if width == 0:
        return render_rows(STANDARD_CSV_COLUMNS, (_standard_row(tx) for tx in transactions))
    return render_rows(
        standard_multi_asset_header(width),
        (_multi_asset_row(tx, width) for tx in transactions),
    )
