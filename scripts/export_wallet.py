"""Fetch a wallet through a running proxy and write an Awaken CSV.

Usage:
    PYTHONPATH=src python scripts/export_wallet.py kaspa kaspa:qr... [--from 2024-01-01] [--to 2024-12-31]

Start the API first:
    PYTHONPATH=src uvicorn awakenfetch.api.main:app
"""

import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)-5s %(name)s - %(message)s")
logger = logging.getLogger("export_wallet")
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("chain", help="chain id, e.g. kaspa or bittensor")
    parser.add_argument("address")
    parser.add_argument("--from", dest="from_date", type=date.fromisoformat, default=None)
    parser.add_argument("--to", dest="to_date", type=date.fromisoformat, default=None)
    parser.add_argument("--out-dir", type=Path, default=Path("."))
    return parser.parse_args(argv)


async def main(argv: list[str]) -> int:
    import httpx

    from awakenfetch.client.orchestrator import DateRange
    from awakenfetch.container import Container
    from awakenfetch.domain.enums import FetchStatus
    from awakenfetch.report import build_csv_filename, generate_standard_csv, write_csv

    args = parse_args(argv)
    container = Container()
    settings = container.settings()
    if settings.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    def on_state_change(state) -> None:
        if state.status is FetchStatus.STREAMING:
            total = f"/{state.estimated_total}" if state.estimated_total else ""
            logger.info("Fetched %d%s transactions", state.transaction_count, total)

    async with httpx.AsyncClient(base_url=settings.proxy_base_url, timeout=None) as http:
        client = container.fetch_client(http, on_state_change=on_state_change)
        state = await client.fetch_transactions(
            args.address, args.chain, DateRange(from_date=args.from_date, to_date=args.to_date)
        )

    for warning in state.warnings:
        logger.warning(warning)

    if state.status is not FetchStatus.SUCCESS:
        logger.error("Fetch failed: %s", state.error)
        return 1

    path = args.out_dir / build_csv_filename(args.chain, args.address)
    write_csv(path, generate_standard_csv(list(state.transactions)))
    print(f"{state.transaction_count} transactions -> {path}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1:])))
