"""Awaken CSV column headers (standard, multi-asset and perpetuals)."""

from awakenfetch.domain.enums import PerpTag

STANDARD_CSV_COLUMNS: tuple[str, ...] = (
    "Date",
    "Received Quantity",
    "Received Currency",
    "Received Fiat Amount",
    "Sent Quantity",
    "Sent Currency",
    "Sent Fiat Amount",
    "Fee Amount",
    "Fee Currency",
    "Transaction Hash",
    "Notes",
    "Tag",
)

STANDARD_CSV_HEADER = ",".join(STANDARD_CSV_COLUMNS)

# Columns after the asset groups, shared by the single- and multi-asset layouts
STANDARD_CSV_TAIL: tuple[str, ...] = STANDARD_CSV_COLUMNS[7:]

PERP_CSV_COLUMNS: tuple[str, ...] = (
    "Date",
    "Asset",
    "Amount",
    "Fee",
    "P&L",
    "Payment Token",
    "Notes",
    "Transaction Hash",
    "Tag",
)

PERP_CSV_HEADER = ",".join(PERP_CSV_COLUMNS)

PERP_TAGS: tuple[str, ...] = tuple(tag.value for tag in PerpTag)


def standard_multi_asset_columns(n: int) -> list[str]:
    """Numbered received/sent group for the 1-based asset slot ``n``."""
    return [
        f"Received Quantity {n}",
        f"Received Currency {n}",
        f"Received Fiat Amount {n}",
        f"Sent Quantity {n}",
        f"Sent Currency {n}",
        f"Sent Fiat Amount {n}",
    ]


def standard_multi_asset_header(width: int) -> list[str]:
    columns = ["Date"]
    for n in range(1, width + 1):
        columns.extend(standard_multi_asset_columns(n))
    columns.extend(STANDARD_CSV_TAIL)
    return columns
