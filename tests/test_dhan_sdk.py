"""
Tests for the Dhan REST adapter

The HTTP layer (`_request`) is replaced with AsyncMock stubs, so no
network access is needed.
"""

import os
import sys
import asyncio
import pytest
import aiohttp
from datetime import datetime
from unittest.mock import AsyncMock

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from brokers.base import DataFetchError, BUY, SELL, MARKET
from brokers.dhan.dhan_sdk import DhanSDK


@pytest.fixture
def sdk():
    return DhanSDK("token-123", client_id="C42", base_url="https://api.example.test")


class TestDhanSDK:
    """Test response mapping and error handling"""

    def test_initialize_without_token(self):
        assert asyncio.run(DhanSDK("").initialize()) is False

    def test_headers(self, sdk):
        headers = sdk._get_headers()
        assert headers["Authorization"] == "Bearer token-123"

    def test_parse_time(self):
        assert DhanSDK._parse_time(1704877200) == datetime.fromtimestamp(1704877200)
        assert DhanSDK._parse_time(1704877200000) == datetime.fromtimestamp(1704877200)
        assert DhanSDK._parse_time("2024-01-10T11:00:00") == datetime(2024, 1, 10, 11, 0)

    def test_historical_data_mapping(self, sdk):
        sdk._request = AsyncMock(return_value=[
            {"date": "2024-01-10T11:00:00", "open": "100", "high": "105",
             "low": "99", "close": "104", "volume": 1200},
            {"date": "2024-01-10T11:30:00", "open": 104, "high": 106,
             "low": 103, "close": 105},
        ])

        candles = asyncio.run(sdk.get_historical_data(
            "NIFTY", "30minute", datetime(2024, 1, 10, 9, 0), datetime(2024, 1, 10, 12, 0)
        ))

        assert len(candles) == 2
        assert candles[0].close == 104.0
        assert candles[0].timestamp == datetime(2024, 1, 10, 11, 0)
        assert candles[1].volume == 0.0

        method, endpoint = sdk._request.call_args[0]
        assert (method, endpoint) == ("GET", "/charts/history/NIFTY")
        assert sdk._request.call_args[1]["params"]["interval"] == "30minute"

    def test_historical_data_error(self, sdk):
        sdk._request = AsyncMock(side_effect=aiohttp.ClientError("connection reset"))

        with pytest.raises(DataFetchError):
            asyncio.run(sdk.get_historical_data(
                "NIFTY", "30minute", datetime(2024, 1, 10, 9, 0), datetime(2024, 1, 10, 12, 0)
            ))

    def test_current_price(self, sdk):
        sdk._request = AsyncMock(return_value={"lastTradedPrice": 22450.5})
        assert asyncio.run(sdk.get_current_price("NIFTY")) == 22450.5

    def test_current_price_missing(self, sdk):
        sdk._request = AsyncMock(return_value={})
        with pytest.raises(DataFetchError):
            asyncio.run(sdk.get_current_price("NIFTY"))

    def test_place_order(self, sdk):
        sdk._request = AsyncMock(return_value={
            "orderId": 9876, "status": "TRANSIT", "price": 22450.0
        })

        order = asyncio.run(sdk.place_order("NIFTY", BUY, 1))

        assert order.id == "9876"
        assert order.status == "TRANSIT"
        assert order.side == BUY
        assert order.order_kind == MARKET
        payload = sdk._request.call_args[1]["data"]
        assert payload["transactionType"] == BUY
        assert payload["price"] is None

    def test_place_order_failure_returns_none(self, sdk):
        sdk._request = AsyncMock(side_effect=aiohttp.ClientError("rejected"))
        assert asyncio.run(sdk.place_order("NIFTY", SELL, 1)) is None
        assert sdk.orders == []

    def test_place_order_without_id_returns_none(self, sdk):
        sdk._request = AsyncMock(return_value={"status": "REJECTED"})
        assert asyncio.run(sdk.place_order("NIFTY", BUY, 1)) is None

    def test_account_endpoints_degrade(self, sdk):
        sdk._request = AsyncMock(side_effect=aiohttp.ClientError("down"))

        assert asyncio.run(sdk.get_positions()) == []
        assert asyncio.run(sdk.get_orders()) == []
        assert asyncio.run(sdk.get_funds()).available_cash == 0.0
        assert asyncio.run(sdk.get_profile()).client_id == "C42"

    def test_funds_mapping(self, sdk):
        sdk._request = AsyncMock(return_value={
            "availableCash": "50000", "usedMargin": 1200, "netAvailableMargin": 48800
        })
        funds = asyncio.run(sdk.get_funds())

        assert funds.available_cash == 50000.0
        assert funds.used_margin == 1200.0
        assert funds.total_margin == 48800.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
