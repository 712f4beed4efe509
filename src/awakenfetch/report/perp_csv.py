"""Awaken perpetuals CSV writer: Date,Asset,Amount,Fee,P&L,Payment Token,Notes,Transaction Hash,Tag."""

from collections.abc import Sequence

from awakenfetch.domain.models.transaction import PerpTransaction
from awakenfetch.report.constants import PERP_CSV_COLUMNS
from awakenfetch.report.formatting import format_date, format_pnl, format_quantity, render_rows


def _perp_row(tx: PerpTransaction) -> list[str]:
    return [
        format_date(tx.date),
        tx.asset,
        format_quantity(tx.amount),
        format_quantity(tx.fee),
        format_pnl(tx.pnl),
        tx.payment_token,
        tx.notes or "",
        tx.tx_hash or "",
        tx.tag.value,
    ]


def generate_perp_csv(transactions: Sequence[PerpTransaction]) -> str:
    return render_rows(PERP_CSV_COLUMNS, (_perp_row(tx) for tx in transactions))
