"""Field formatters shared by the standard and perpetuals CSV writers."""

import csv
import io
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation

# Awaken accepts at most 8 decimal places
QUANTITY_STEP = Decimal("0.00000001")

# Wide enough that quantizing very large amounts never overflows the context
_QUANTIZE_CONTEXT = Context(prec=80)

Number = Decimal | int | float


def format_date(value: datetime) -> str:
    """MM/DD/YYYY HH:MM:SS in UTC; naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%m/%d/%Y %H:%M:%S")


def _to_decimal(value: Number | str) -> Decimal | None:
    if isinstance(value, Decimal):
        d = value
    else:
        try:
            d = Decimal(str(value))
        except InvalidOperation:
            return None
    return d if d.is_finite() else None


def _plain(d: Decimal) -> str:
    text = format(d, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def format_quantity(value: Number | None) -> str:
    """Absolute value, at most 8 decimals, no trailing zeros, never scientific."""
    if value is None:
        return ""
    d = _to_decimal(value)
    if d is None:
        return ""
    rounded = abs(d).quantize(QUANTITY_STEP, rounding=ROUND_HALF_UP, context=_QUANTIZE_CONTEXT)
    return _plain(rounded)


def format_pnl(value: Number) -> str:
    """P&L keeps its sign and full precision; non-finite values render as 0."""
    d = _to_decimal(value)
    if d is None or d == 0:
        return "0"
    return _plain(d)


def _write_row(fields: Sequence[str]) -> str:
    # CR and LF are both in the terminator, so the writer quotes either one
    # when it appears inside a field
    buf = io.StringIO()
    csv.writer(buf, lineterminator="\r\n").writerow(fields)
    return buf.getvalue()[: -len("\r\n")]


def escape_csv_field(value: str) -> str:
    """Quote a field containing a comma, quote or line break; double embedded quotes."""
    if not value:
        return ""
    return _write_row([value])


def render_rows(header: Sequence[str], rows: Iterable[Sequence[str]]) -> str:
    """Header plus rows joined with ``\\n``, no trailing newline."""
    lines = [_write_row(header)]
    lines.extend(_write_row(row) for row in rows)
    return "\n".join(lines)
