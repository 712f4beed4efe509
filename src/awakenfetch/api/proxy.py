"""Proxy API: drives a chain adapter server-side so browsers avoid CORS.

GET /api/proxy/{chain}          buffered, returns {"transactions": [...]}
GET /api/proxy/{chain}/stream   NDJSON stream of batch/meta/done/error messages
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from datetime import datetime
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from awakenfetch.api.deps import get_registry
from awakenfetch.api.schemas.proxy import (
    UNKNOWN_ERROR,
    BatchMessage,
    DoneMessage,
    ErrorMessage,
    MetaMessage,
    TransactionsResponse,
)
from awakenfetch.domain.models.transaction import FetchOptions, Transaction
from awakenfetch.exceptions import ProxyError
from awakenfetch.infra.blockchain.base import ChainAdapter
from awakenfetch.infra.blockchain.registry import ChainAdapterRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/proxy", tags=["proxy"])

RegistryDep = Annotated[ChainAdapterRegistry, Depends(get_registry)]

NDJSON_MEDIA_TYPE = "application/x-ndjson"


def _parse_date(value: Optional[str], name: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise ProxyError(400, f"Invalid {name} format. Use ISO 8601.") from None


def _validate_request(
    registry: ChainAdapterRegistry,
    chain: str,
    address: Optional[str],
    from_date: Optional[str],
    to_date: Optional[str],
    unknown_chain_status: int,
) -> tuple[ChainAdapter, str, FetchOptions]:
    """Resolve adapter and options, raising ProxyError before any network I/O."""
    adapter = registry.get(chain)
    if adapter is None:
        raise ProxyError(unknown_chain_status, f'No adapter found for chain "{chain}".')

    if not address:
        raise ProxyError(400, "Missing required query parameter: address")

    if not adapter.validate_address(address):
        raise ProxyError(400, f"Invalid {adapter.chain_name} address format.")

    options = FetchOptions(
        from_date=_parse_date(from_date, "fromDate"),
        to_date=_parse_date(to_date, "toDate"),
    )
    return adapter, address, options


def _error_message(exc: BaseException) -> str:
    return str(exc) or UNKNOWN_ERROR


@router.get("/{chain}", response_model=TransactionsResponse, response_model_exclude_none=True)
async def proxy_transactions(
    chain: str,
    registry: RegistryDep,
    address: Optional[str] = Query(None),
    from_date: Optional[str] = Query(None, alias="fromDate"),
    to_date: Optional[str] = Query(None, alias="toDate"),
) -> TransactionsResponse:
    adapter, address, options = _validate_request(
        registry, chain, address, from_date, to_date, unknown_chain_status=400
    )

    try:
        transactions = await adapter.fetch_transactions(address, options)
    except Exception as exc:
        logger.warning("Adapter %s failed for %s: %s", chain, address, exc)
        raise ProxyError(502, _error_message(exc)) from exc

    logger.info("Proxied %d transactions for %s on %s", len(transactions), address, chain)
    return TransactionsResponse(transactions=transactions)


async def stream_adapter(adapter: ChainAdapter, address: str, options: FetchOptions) -> AsyncIterator[str]:
    """Run the adapter as a task and relay its progress as NDJSON lines.

    Progress callbacks push onto a queue that this generator drains, so batch
    order matches page order. Exactly one terminal line is emitted: ``done``
    on success or ``error`` on failure.
    """
    queue: asyncio.Queue[str | None] = asyncio.Queue()
    delivered = 0

    def on_progress(batch: list[Transaction]) -> None:
        nonlocal delivered
        if not batch:
            return
        delivered += len(batch)
        queue.put_nowait(BatchMessage(transactions=batch).to_ndjson())

    def on_estimated_total(total: int) -> None:
        queue.put_nowait(MetaMessage(estimated_total=total).to_ndjson())

    streaming_options = options.model_copy(
        update={"on_progress": on_progress, "on_estimated_total": on_estimated_total}
    )
    task = asyncio.create_task(adapter.fetch_transactions(address, streaming_options))
    task.add_done_callback(lambda _: queue.put_nowait(None))

    try:
        while True:
            line = await queue.get()
            if line is None:
                break
            yield line

        try:
            transactions = task.result()
        except Exception as exc:
            logger.warning("Streaming adapter %s failed for %s: %s", adapter.chain_id, address, exc)
            yield ErrorMessage(error=_error_message(exc)).to_ndjson()
            return

        # Adapter without progress support: one synthetic batch
        if delivered == 0 and transactions:
            delivered = len(transactions)
            yield BatchMessage(transactions=transactions).to_ndjson()

        logger.info("Streamed %d transactions for %s on %s", delivered, address, adapter.chain_id)
        yield DoneMessage(total=delivered).to_ndjson()
    finally:
        if not task.done():
            task.cancel()


@router.get("/{chain}/stream")
async def proxy_transactions_stream(
    chain: str,
    registry: RegistryDep,
    address: Optional[str] = Query(None),
    from_date: Optional[str] = Query(None, alias="fromDate"),
    to_date: Optional[str] = Query(None, alias="toDate"),
) -> StreamingResponse:
    adapter, address, options = _validate_request(
        registry, chain, address, from_date, to_date, unknown_chain_status=404
    )
    # Headers are committed from here on; failures travel in-band
    return StreamingResponse(
        stream_adapter(adapter, address, options),
        media_type=NDJSON_MEDIA_TYPE,
        headers={"Cache-Control": "no-cache"},
    )
