from awakenfetch.report.constants import (
    PERP_CSV_COLUMNS,
    PERP_CSV_HEADER,
    PERP_TAGS,
    STANDARD_CSV_COLUMNS,
    STANDARD_CSV_HEADER,
    standard_multi_asset_columns,
)
from awakenfetch.report.download import build_csv_filename, write_csv
from awakenfetch.report.formatting import escape_csv_field, format_date, format_pnl, format_quantity
from awakenfetch.report.perp_csv import generate_perp_csv
from awakenfetch.report.standard_csv import generate_standard_csv

__all__ = [
    "PERP_CSV_COLUMNS",
    "PERP_CSV_HEADER",
    "PERP_TAGS",
    "STANDARD_CSV_COLUMNS",
    "STANDARD_CSV_HEADER",
    "build_csv_filename",
    "escape_csv_field",
    "format_date",
    "format_pnl",
    "format_quantity",
    "generate_perp_csv",
    "generate_standard_csv",
    "standard_multi_asset_columns",
    "write_csv",
]
