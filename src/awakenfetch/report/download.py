"""CSV file naming and writing."""

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Literal

logger = logging.getLogger(__name__)

CSVVariant = Literal["standard", "perps"]


def build_csv_filename(
    chain: str,
    address: str,
    timestamp: datetime | None = None,
    variant: CSVVariant = "standard",
) -> str:
    """awakenfetch_{chain}_{address[:8]}_{YYYYMMDD}[_perps].csv, date in UTC."""
    when = timestamp or datetime.now(UTC)
    if when.tzinfo is not None:
        when = when.astimezone(UTC)
    suffix = "_perps" if variant == "perps" else ""
    return f"awakenfetch_{chain.lower()}_{address[:8]}_{when:%Y%m%d}{suffix}.csv"


def write_csv(path: Path, content: str) -> Path:
    path.write_text(content, encoding="utf-8")
    logger.info("Wrote %d bytes to %s", len(content.encode("utf-8")), path)
    return path
