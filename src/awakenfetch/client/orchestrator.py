"""Client-side fetch orchestration against the proxy API.

A fetch first tries the NDJSON streaming endpoint so results show up as pages
arrive. A retryable streaming failure (429, 5xx, network error, a body that is
not NDJSON, an in-band error, or a stream that ends without ``done``) falls
back to the buffered endpoint straight away. Only the buffered path retries
with backoff, recording one warning per retry.

A buffered 200 whose body cannot be decoded is not retried automatically; it
ends in ``error`` with ``can_retry`` set, and ``retry()`` resumes with the
retries that remain.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from awakenfetch.api.schemas.proxy import (
    BatchMessage,
    DoneMessage,
    ErrorMessage,
    MetaMessage,
    TransactionsResponse,
    stream_message_adapter,
)
from awakenfetch.client.cache import TransactionCache, build_cache_key
from awakenfetch.client.state import INITIAL_STATE, FetchState
from awakenfetch.domain.enums import FetchStatus
from awakenfetch.domain.models.transaction import Transaction
from awakenfetch.exceptions import FetchAborted
from awakenfetch.infra.http.fetch_with_retry import sleep

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
RETRY_BASE_DELAY = 1.5  # seconds

END_OF_DAY = time(23, 59, 59, 999_000)

StateListener = Callable[[FetchState], None]


def _iso_utc(value: datetime) -> str:
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar-date window; the end date covers its whole day (UTC)."""

    from_date: Optional[date] = None
    to_date: Optional[date] = None

    def build_query_params(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.from_date is not None:
            params["fromDate"] = _iso_utc(datetime.combine(self.from_date, time.min, tzinfo=UTC))
        if self.to_date is not None:
            params["toDate"] = _iso_utc(datetime.combine(self.to_date, END_OF_DAY, tzinfo=UTC))
        return params

    def cache_parts(self) -> tuple[Optional[str], Optional[str]]:
        return (
            self.from_date.isoformat() if self.from_date else None,
            self.to_date.isoformat() if self.to_date else None,
        )


def build_query_params(address: str, date_range: Optional[DateRange] = None) -> dict[str, str]:
    params = {"address": address}
    if date_range is not None:
        params.update(date_range.build_query_params())
    return params


def is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


class AttemptFailed(Exception):
    """One proxy call failed.

    ``retryable`` decides stream fallback and whether a manual ``retry()`` is
    offered; ``auto_retry`` decides whether the buffered path backs off and
    tries again on its own.
    """

    def __init__(
        self,
        message: str,
        retryable: bool,
        status_code: Optional[int] = None,
        auto_retry: Optional[bool] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.retryable = retryable
        self.status_code = status_code
        self.auto_retry = retryable if auto_retry is None else auto_retry


def _error_from_response(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return f"Request failed with status {resp.status_code}"


def _network_failure(exc: httpx.TransportError) -> AttemptFailed:
    return AttemptFailed(str(exc) or type(exc).__name__, retryable=True)


@dataclass
class _FetchSession:
    address: str
    chain_id: str
    date_range: DateRange
    aborted: asyncio.Event = field(default_factory=asyncio.Event)
    task: Optional[asyncio.Future] = None

    @property
    def cache_key(self) -> str:
        return build_cache_key(self.chain_id, self.address, *self.date_range.cache_parts())

    @property
    def params(self) -> dict[str, str]:
        return build_query_params(self.address, self.date_range)

    def abort(self) -> None:
        self.aborted.set()
        if self.task is not None and not self.task.done():
            self.task.cancel()


class TransactionFetchClient:
    """Drives one wallet fetch at a time and exposes its state.

    Every state change is published to ``on_state_change``. Starting a new
    fetch aborts the previous one; results of an aborted session are dropped.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        max_retries: int = MAX_RETRIES,
        retry_base_delay: float = RETRY_BASE_DELAY,
        cache: Optional[TransactionCache] = None,
        on_state_change: Optional[StateListener] = None,
    ) -> None:
        self._http = http
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._cache = cache
        self._on_state_change = on_state_change
        self._state = INITIAL_STATE
        self._session: Optional[_FetchSession] = None
        self._last_session: Optional[_FetchSession] = None

    @property
    def state(self) -> FetchState:
        return self._state

    @property
    def can_retry(self) -> bool:
        return (
            self._state.status is FetchStatus.ERROR
            and self._state.error_retryable
            and self._state.retry_count < self._max_retries
        )

    # -- public API --------------------------------------------------------

    async def fetch_transactions(
        self,
        address: str,
        chain_id: str,
        date_range: Optional[DateRange] = None,
    ) -> FetchState:
        self._abort_current()
        session = _FetchSession(address=address, chain_id=chain_id, date_range=date_range or DateRange())
        self._session = session
        self._last_session = session

        fresh = {
            "transactions": (),
            "transaction_count": 0,
            "estimated_total": None,
            "error": None,
            "error_retryable": False,
            "warnings": (),
            "retry_count": 0,
        }

        cached = self._cache.get(session.cache_key) if self._cache is not None else None
        if cached is not None:
            logger.info("Serving %d cached transactions for %s on %s", len(cached), address, chain_id)
            self._update(session, FetchStatus.LOADING, **fresh)
            self._update(session, FetchStatus.SUCCESS, transactions=tuple(cached), transaction_count=len(cached))
            return self._state

        self._update(session, FetchStatus.LOADING, **fresh)
        return await self._run(session)

    async def retry(self) -> FetchState:
        """Re-run the last fetch from ``error``, keeping warnings and the retry count.

        Streaming is tried again first; a buffered fallback only gets the
        automatic retries left over from earlier attempts.
        """
        if not self.can_retry or self._last_session is None:
            return self._state

        previous = self._last_session
        session = _FetchSession(address=previous.address, chain_id=previous.chain_id, date_range=previous.date_range)
        self._session = session
        self._last_session = session
        self._update(session, FetchStatus.LOADING, error=None, error_retryable=False)
        return await self._run(session)

    def cancel(self) -> None:
        """Abort the in-flight fetch. Keeps partial results as a success; never ends in ``error``."""
        session, self._session = self._session, None
        if session is not None:
            session.abort()
        if self._state.status not in (FetchStatus.LOADING, FetchStatus.STREAMING):
            return
        target = FetchStatus.SUCCESS if self._state.transactions else FetchStatus.IDLE
        self._set_state(self._state.move_to(target, estimated_total=None))

    def reset(self) -> None:
        self._abort_current()
        self._last_session = None
        self._set_state(INITIAL_STATE)

    # -- internals ---------------------------------------------------------

    def _abort_current(self) -> None:
        session, self._session = self._session, None
        if session is not None:
            session.abort()
        if self._state.status in (FetchStatus.LOADING, FetchStatus.STREAMING):
            self._set_state(self._state.move_to(FetchStatus.IDLE))

    def _set_state(self, state: FetchState) -> None:
        self._state = state
        if self._on_state_change is not None:
            self._on_state_change(state)

    def _update(self, session: _FetchSession, status: Optional[FetchStatus] = None, **changes: Any) -> None:
        # Late results from an aborted session are ignored
        if session is not self._session:
            return
        if status is None:
            self._set_state(self._state.model_copy(update=changes))
        else:
            self._set_state(self._state.move_to(status, **changes))

    async def _guard(self, session: _FetchSession, awaitable: Awaitable[Any]) -> Any:
        """Await ``awaitable`` as a cancellable task bound to ``session``."""
        if session.aborted.is_set():
            if isinstance(awaitable, Coroutine):
                awaitable.close()
            raise FetchAborted()
        task = asyncio.ensure_future(awaitable)
        session.task = task
        try:
            return await task
        except asyncio.CancelledError:
            if session.aborted.is_set():
                raise FetchAborted() from None
            raise
        finally:
            session.task = None

    async def _run(self, session: _FetchSession) -> FetchState:
        try:
            transactions = await self._fetch(session)
        except FetchAborted:
            logger.info("Fetch for %s on %s aborted", session.address, session.chain_id)
            return self._state
        except asyncio.CancelledError:
            # Cancelled from outside (e.g. a caller's timeout); settle like cancel()
            if session is self._session:
                self.cancel()
            raise
        except AttemptFailed as failure:
            logger.warning("Fetch for %s on %s failed: %s", session.address, session.chain_id, failure.message)
            # Partial streamed results are dropped; an error state never carries transactions
            self._update(
                session,
                FetchStatus.ERROR,
                transactions=(),
                transaction_count=0,
                estimated_total=None,
                error=failure.message,
                error_retryable=failure.retryable,
            )
            return self._state

        if session is self._session and self._cache is not None:
            self._cache.set(session.cache_key, transactions)
        self._update(
            session,
            FetchStatus.SUCCESS,
            transactions=tuple(transactions),
            transaction_count=len(transactions),
            error=None,
            error_retryable=False,
        )
        return self._state

    async def _fetch(self, session: _FetchSession) -> list[Transaction]:
        try:
            return await self._guard(session, self._fetch_stream(session))
        except AttemptFailed as failure:
            if not failure.retryable:
                raise
            logger.info(
                "Streaming fetch for %s on %s failed (%s), falling back to buffered fetch",
                session.address,
                session.chain_id,
                failure.message,
            )
        return await self._fetch_buffered(session)

    async def _fetch_stream(self, session: _FetchSession) -> list[Transaction]:
        collected: list[Transaction] = []
        try:
            async with self._http.stream(
                "GET", f"/api/proxy/{session.chain_id}/stream", params=session.params
            ) as resp:
                if not resp.is_success:
                    await resp.aread()
                    raise AttemptFailed(
                        _error_from_response(resp),
                        retryable=is_retryable_status(resp.status_code),
                        status_code=resp.status_code,
                    )

                if "ndjson" not in resp.headers.get("content-type", ""):
                    raise AttemptFailed("Streaming endpoint returned a non-NDJSON response", retryable=True)

                async for raw_line in resp.aiter_lines():
                    line = raw_line.strip()
                    if not line:
                        continue
                    try:
                        message = stream_message_adapter.validate_json(line)
                    except ValidationError:
                        logger.debug("Skipping malformed stream line: %r", line[:200])
                        continue

                    if isinstance(message, MetaMessage):
                        self._update(session, estimated_total=message.estimated_total)
                    elif isinstance(message, BatchMessage):
                        collected.extend(message.transactions)
                        self._update(
                            session,
                            FetchStatus.STREAMING,
                            transactions=tuple(collected),
                            transaction_count=len(collected),
                        )
                    elif isinstance(message, DoneMessage):
                        return collected
                    elif isinstance(message, ErrorMessage):
                        raise AttemptFailed(message.error, retryable=True)
        except httpx.TransportError as exc:
            raise _network_failure(exc) from exc

        raise AttemptFailed("Stream ended before completion", retryable=True)

    async def _fetch_buffered_once(self, session: _FetchSession) -> list[Transaction]:
        try:
            resp = await self._http.get(f"/api/proxy/{session.chain_id}", params=session.params)
        except httpx.TransportError as exc:
            raise _network_failure(exc) from exc

        if not resp.is_success:
            raise AttemptFailed(
                _error_from_response(resp),
                retryable=is_retryable_status(resp.status_code),
                status_code=resp.status_code,
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            # Truncated or garbled body: offered for manual retry, not retried automatically
            raise AttemptFailed(
                f"Unreadable response from proxy: {exc}", retryable=True, auto_retry=False
            ) from exc

        try:
            return list(TransactionsResponse.model_validate(payload).transactions)
        except ValidationError as exc:
            raise AttemptFailed(f"Invalid response from proxy: {exc}", retryable=False) from exc

    async def _fetch_buffered(self, session: _FetchSession) -> list[Transaction]:
        attempt = self._state.retry_count
        while True:
            try:
                return await self._guard(session, self._fetch_buffered_once(session))
            except AttemptFailed as failure:
                if not failure.auto_retry or attempt >= self._max_retries:
                    raise
                attempt += 1
                delay = self._retry_base_delay * 2 ** (attempt - 1)
                warning = f"Retry {attempt}/{self._max_retries}: {failure.message}. Retrying in {delay:.1f}s"
                logger.warning("%s (%s on %s)", warning, session.address, session.chain_id)
                self._update(session, warnings=(*self._state.warnings, warning), retry_count=attempt)
                await self._guard(session, sleep(delay))
