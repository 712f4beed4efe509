"""Tests for KaspaAdapter: UTXO net-flow mapping, pagination and date filtering."""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import httpx
import pytest

from awakenfetch.domain.enums import TransactionType
from awakenfetch.domain.models.transaction import FetchOptions
from awakenfetch.exceptions import InvalidAddressError
from awakenfetch.infra.blockchain.kaspa.adapter import (
    PAGE_LIMIT,
    KaspaAdapter,
    is_valid_kaspa_address,
    map_transaction,
    sompi_to_kas,
)

ADDR = "kaspa:qz" + "a" * 59
OTHER = "kaspa:qp" + "b" * 59

JAN_1 = 1704110400000  # 2024-01-01T12:00:00Z in ms
FEB_1 = 1706788800000  # 2024-02-01T12:00:00Z


def _input(address: str, amount: int, outpoint: str = "f" * 64) -> dict:
    return {
        "previous_outpoint_hash": outpoint,
        "previous_outpoint_address": address,
        "previous_outpoint_amount": amount,
    }


def _output(address: str, amount: int) -> dict:
    return {"script_public_key_address": address, "amount": amount}


def _tx(tx_id: str, inputs: list[dict], outputs: list[dict], when: int = JAN_1, accepted: bool = True) -> dict:
    return {
        "transaction_id": tx_id,
        "inputs": inputs,
        "outputs": outputs,
        "accepting_block_time": when,
        "is_accepted": accepted,
    }


RECEIVE_TX = _tx("recv", [_input(OTHER, 200_000_000)], [_output(ADDR, 150_000_000), _output(OTHER, 49_990_000)])
SEND_TX = _tx(
    "send",
    [_input(ADDR, 500_000_000)],
    [_output(OTHER, 300_000_000), _output(ADDR, 199_990_000)],
    when=FEB_1,
)
COINBASE_TX = _tx("cb", [], [_output(ADDR, 5_000_000_000)])


@pytest.fixture()
def mock_http():
    return AsyncMock()


@pytest.fixture()
def adapter(mock_http):
    return KaspaAdapter(mock_http, api_base="https://kaspa.test")


class TestHelpers:
    def test_sompi_to_kas(self):
        assert sompi_to_kas(150_000_000) == Decimal("1.5")
        assert sompi_to_kas("100000000") == Decimal(1)
        assert sompi_to_kas(None) == Decimal(0)
        assert sompi_to_kas("junk") == Decimal(0)

    def test_address_validation(self):
        assert is_valid_kaspa_address(ADDR)
        assert is_valid_kaspa_address(f"  {ADDR}  ")
        assert not is_valid_kaspa_address("kaspa:short")
        assert not is_valid_kaspa_address(ADDR.upper())
        assert not is_valid_kaspa_address("bitcoin:" + "a" * 61)


class TestMapTransaction:
    def test_receive(self):
        tx = map_transaction(RECEIVE_TX, ADDR)
        assert tx.type is TransactionType.RECEIVE
        assert tx.received_quantity == Decimal("1.5")
        assert tx.received_currency == "KAS"
        assert tx.fee_amount is None
        assert tx.date == datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    def test_send_nets_out_change_and_fee(self):
        tx = map_transaction(SEND_TX, ADDR)
        assert tx.type is TransactionType.SEND
        assert tx.sent_quantity == Decimal(3)
        assert tx.fee_amount == Decimal("0.0001")
        assert tx.fee_currency == "KAS"

    def test_coinbase_is_mining_reward(self):
        tx = map_transaction(COINBASE_TX, ADDR)
        assert tx.type is TransactionType.RECEIVE
        assert tx.received_quantity == Decimal(50)
        assert tx.notes == "Mining reward"

    def test_unaccepted_dropped(self):
        assert map_transaction({**RECEIVE_TX, "is_accepted": False}, ADDR) is None

    def test_unrelated_dropped(self):
        assert map_transaction(RECEIVE_TX, "kaspa:qq" + "c" * 59) is None


class TestFetchTransactions:
    async def test_invalid_address_raises_before_io(self, adapter, mock_http):
        with pytest.raises(InvalidAddressError):
            await adapter.fetch_transactions("not-an-address")
        mock_http.get.assert_not_awaited()

    async def test_single_page_sorted_by_date(self, adapter, mock_http):
        mock_http.get.return_value = httpx.Response(200, json=[SEND_TX, RECEIVE_TX])

        result = await adapter.fetch_transactions(ADDR)

        assert [tx.tx_hash for tx in result] == ["recv", "send"]
        url = mock_http.get.call_args.args[0]
        assert url == f"https://kaspa.test/addresses/{ADDR}/full-transactions"
        params = mock_http.get.call_args.kwargs["params"]
        assert params == {"limit": PAGE_LIMIT, "offset": 0, "resolve_previous_outpoints": "light"}

    async def test_paginates_by_offset_until_short_page(self, adapter, mock_http):
        full_page = [RECEIVE_TX] * PAGE_LIMIT
        mock_http.get.side_effect = [
            httpx.Response(200, json=full_page),
            httpx.Response(200, json=[SEND_TX]),
        ]
        batches = []

        result = await adapter.fetch_transactions(ADDR, FetchOptions(on_progress=batches.append))

        assert len(result) == PAGE_LIMIT + 1
        assert [len(b) for b in batches] == [PAGE_LIMIT, 1]
        offsets = [c.kwargs["params"]["offset"] for c in mock_http.get.call_args_list]
        assert offsets == [0, PAGE_LIMIT]

    async def test_date_window_applied_client_side(self, adapter, mock_http):
        mock_http.get.return_value = httpx.Response(200, json=[RECEIVE_TX, SEND_TX])
        options = FetchOptions(from_date=datetime(2024, 1, 15, tzinfo=UTC))

        result = await adapter.fetch_transactions(ADDR, options)

        assert [tx.tx_hash for tx in result] == ["send"]

    async def test_empty_history(self, adapter, mock_http):
        mock_http.get.return_value = httpx.Response(200, json=[])
        assert await adapter.fetch_transactions(ADDR) == []


class TestExplorer:
    def test_explorer_url(self, adapter):
        assert adapter.get_explorer_url("abc") == "https://explorer.kaspa.org/txs/abc"
