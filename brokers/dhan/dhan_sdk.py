"""
Dhan Broker SDK Wrapper
REST API implementation with bearer-token authentication
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import aiohttp

from config import BrokerConfig
from ..base import (
    Broker, Candle, OrderRecord, Funds, BrokerPosition, UserProfile,
    DataFetchError, OrderPlacementError, BUY, SELL, MARKET, LIMIT
)

logger = logging.getLogger(__name__)


class DhanSDK(Broker):
    """REST API wrapper for Dhan trading"""

    def __init__(self, access_token: str, client_id: Optional[str] = None, base_url: str = None):
        self.base_url = base_url or BrokerConfig.BASE_URL
        self.access_token = access_token
        self.client_id = client_id
        self._session: Optional[aiohttp.ClientSession] = None
        self.orders: List[OrderRecord] = []

    @property
    def name(self) -> str:
        return "Dhan"

    async def initialize(self) -> bool:
        if not self.access_token:
            logger.error("Dhan access token not configured")
            return False
        if self._session is None:
            self._session = aiohttp.ClientSession()
        logger.info(f"Dhan SDK initialized ({self.base_url})")
        return True

    async def close(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json"
        }

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict] = None,
        data: Optional[Dict] = None
    ) -> Any:
        """
        Make authenticated API request

        Args:
            method: HTTP method (GET, POST)
            endpoint: API endpoint path
            params: Query parameters
            data: JSON request body

        Returns:
            Decoded JSON response

        Raises:
            aiohttp.ClientError: On transport or HTTP status errors
        """
        if self._session is None:
            self._session = aiohttp.ClientSession()

        url = f"{self.base_url}{endpoint}"
        async with self._session.request(
            method,
            url,
            headers=self._get_headers(),
            params=params,
            json=data
        ) as resp:
            if resp.status != 200:
                error_text = await resp.text()
                logger.error(f"Dhan API Error {resp.status}: {error_text}")
                resp.raise_for_status()
            return await resp.json()

    @staticmethod
    def _parse_time(value) -> datetime:
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(value / 1000 if value > 1e11 else value)
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))

    # ===== Market Data =====

    async def get_historical_data(
        self,
        symbol: str,
        interval: str,
        from_time: datetime,
        to_time: datetime
    ) -> List[Candle]:
        params = {
            "interval": interval,
            "from": from_time.isoformat(),
            "to": to_time.isoformat()
        }
        try:
            rows = await self._request("GET", f"/charts/history/{symbol}", params=params)
        except aiohttp.ClientError as e:
            raise DataFetchError(f"Historical data request failed for {symbol}: {e}") from e

        # API format: [{"candle_begin_time"|"date"|"time": ..., "open": ..., ...}]
        candles = []
        for row in rows or []:
            stamp = row.get("candle_begin_time") or row.get("date") or row.get("time")
            candles.append(Candle(
                timestamp=self._parse_time(stamp) if stamp is not None else datetime.now(),
                open=float(row["open"]),
                high=float(row["high"]),
                low=float(row["low"]),
                close=float(row["close"]),
                volume=float(row.get("volume", 0))
            ))

        logger.info(f"✅ Fetched {len(candles)} candles for {symbol} ({interval})")
        return candles

    async def get_current_price(self, symbol: str) -> float:
        try:
            data = await self._request("GET", f"/marketfeed/ltp/{symbol}")
        except aiohttp.ClientError as e:
            raise DataFetchError(f"Price request failed for {symbol}: {e}") from e

        price = data.get("lastTradedPrice") if isinstance(data, dict) else None
        if price is None:
            raise DataFetchError(f"No price returned for {symbol}")
        return float(price)

    async def get_available_symbols(self) -> Dict[str, List[str]]:
        return {
            "stocks": list(BrokerConfig.STOCK_SYMBOLS),
            "cryptos": list(BrokerConfig.CRYPTO_SYMBOLS),
        }

    # ===== Orders & Account =====

    async def place_order(
        self,
        symbol: str,
        side: str,
        quantity: float,
        order_kind: str = MARKET,
        limit_price: Optional[float] = None
    ) -> Optional[OrderRecord]:
        payload = {
            "tradingSymbol": symbol,
            "transactionType": side,
            "quantity": quantity,
            "orderType": order_kind,
            "productType": "INTRADAY",
            "price": limit_price if order_kind == LIMIT else None,
            "source": "API"
        }

        try:
            data = await self._request("POST", "/trading/orders", data=payload)
            if not isinstance(data, dict) or data.get("orderId") is None:
                raise OrderPlacementError(f"No order id in response: {data}")
        except (aiohttp.ClientError, OrderPlacementError) as e:
            logger.error(f"Order placement failed for {side} {quantity} {symbol}: {e}")
            return None

        order = OrderRecord(
            id=str(data.get("orderId")),
            timestamp=datetime.now(),
            symbol=data.get("tradingSymbol", symbol),
            side=data.get("transactionType", side),
            quantity=data.get("quantity", quantity),
            price=data.get("price"),
            status=data.get("status", "PENDING"),
            order_kind=data.get("orderType", order_kind)
        )
        self.orders.append(order)
        logger.info(f"Order placed: {side} {quantity} {symbol} at {order_kind} {limit_price or 'market'}")
        return order

    async def get_orders(self) -> List[OrderRecord]:
        try:
            rows = await self._request("GET", "/trading/orders")
        except aiohttp.ClientError as e:
            logger.error(f"Error fetching order book: {e}")
            return []

        return [
            OrderRecord(
                id=str(row.get("orderId")),
                timestamp=self._parse_time(row["timestamp"]) if row.get("timestamp") else datetime.now(),
                symbol=row.get("tradingSymbol"),
                side=row.get("transactionType"),
                quantity=row.get("quantity"),
                price=row.get("price"),
                status=row.get("status"),
                order_kind=row.get("orderType", MARKET)
            )
            for row in rows or []
        ]

    async def get_positions(self) -> List[BrokerPosition]:
        try:
            rows = await self._request("GET", "/trading/positions")
        except aiohttp.ClientError as e:
            logger.error(f"Error fetching positions: {e}")
            return []

        return [
            BrokerPosition(
                symbol=row.get("tradingSymbol"),
                quantity=row.get("quantity", 0),
                price=float(row.get("averagePrice", 0)),
                side=BUY if row.get("transactionType") == BUY else SELL,
                timestamp=datetime.now(),
                pnl=float(row.get("pnl", 0))
            )
            for row in rows or []
        ]

    async def get_funds(self) -> Funds:
        try:
            data = await self._request("GET", "/user/margin")
        except aiohttp.ClientError as e:
            logger.error(f"Error fetching margin: {e}")
            return Funds(available_cash=0.0)

        return Funds(
            available_cash=float(data.get("availableCash", 0)),
            used_margin=float(data.get("usedMargin", 0)),
            total_margin=float(data.get("netAvailableMargin", 0))
        )

    async def get_profile(self) -> UserProfile:
        try:
            data = await self._request("GET", "/user/profile")
        except aiohttp.ClientError as e:
            logger.error(f"Error fetching profile: {e}")
            data = {}

        return UserProfile(
            name=data.get("name", ""),
            email=data.get("email", ""),
            client_id=data.get("dhanClientId", self.client_id or ""),
            account_type=data.get("accountType", "")
        )
