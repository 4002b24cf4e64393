"""Test data factories for wire payloads and streamed bodies"""

import json

import httpx

from tradestation.client import Client, ClientBuilder


def ndjson(*records: dict) -> bytes:
    """Encode records as newline-delimited JSON"""
    return b"".join(json.dumps(record).encode() + b"\n" for record in records)


def split_every(data: bytes, size: int) -> list[bytes]:
    """Split bytes into chunks of ``size`` (the last may be shorter)"""
    return [data[i : i + size] for i in range(0, len(data), size)]


class ChunkedStream(httpx.AsyncByteStream):
    """Response body delivered in fixed chunks, counting how many were pulled"""

    def __init__(self, chunks: list[bytes], fail_after: int | None = None) -> None:
        self.chunks = chunks
        self.fail_after = fail_after
        self.pulled = 0
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            if self.fail_after is not None and self.pulled >= self.fail_after:
                raise httpx.ReadError("connection reset by peer")
            self.pulled += 1
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


def token_response(
    access_token: str = "new-access",
    refresh_token: str | None = None,
    expires_in: int = 1200,
) -> dict:
    """Body of a successful token endpoint response"""
    body = {
        "access_token": access_token,
        "id_token": "id-token",
        "token_type": "Bearer",
        "scope": "openid offline_access MarketData ReadAccount Trade",
        "expires_in": expires_in,
    }
    if refresh_token is not None:
        body["refresh_token"] = refresh_token
    return body


class PayloadFactory:
    """Factory for API records"""

    @staticmethod
    def bar(close: str = "71.50", **overrides) -> dict:
        record = {
            "High": "72.10",
            "Low": "70.90",
            "Open": "71.00",
            "Close": close,
            "TimeStamp": "2024-10-01T16:00:00Z",
            "TotalVolume": "4500",
            "Epoch": 1727798400000,
            "IsRealtime": False,
            "IsEndOfHistory": False,
            "BarStatus": "Closed",
        }
        record.update(overrides)
        return record

    @staticmethod
    def quote(symbol: str = "AAPL", **overrides) -> dict:
        record = {"Symbol": symbol, "Bid": "185.10", "Ask": "185.20", "Last": "185.15"}
        record.update(overrides)
        return record

    @staticmethod
    def heartbeat(counter: int = 1) -> dict:
        return {"Heartbeat": counter, "Timestamp": "2024-10-01T16:00:05Z"}

    @staticmethod
    def account(account_id: str = "11111111", **overrides) -> dict:
        record = {
            "AccountID": account_id,
            "AccountType": "Margin",
            "Currency": "USD",
            "Status": "Active",
        }
        record.update(overrides)
        return record

    @staticmethod
    def order(order_id: str = "1001", account_id: str = "11111111", **overrides) -> dict:
        record = {
            "AccountID": account_id,
            "OrderID": order_id,
            "Status": "OPN",
            "OrderType": "Limit",
            "Legs": [{"Symbol": "AAPL", "BuyOrSell": "Buy", "QuantityOrdered": "10"}],
        }
        record.update(overrides)
        return record

    @staticmethod
    def position(position_id: str = "p-1", account_id: str = "11111111", **overrides) -> dict:
        record = {
            "AccountID": account_id,
            "PositionID": position_id,
            "Symbol": "AAPL",
            "Quantity": "10",
            "LongShort": "Long",
            "AveragePrice": "180.00",
        }
        record.update(overrides)
        return record


MOCK_BASE_URL = "https://mock.tradestation.test/v3"


async def build_test_client(handler, base_url: str = MOCK_BASE_URL) -> Client:
    """Build a Client in testing mode over an httpx.MockTransport"""
    return (
        await ClientBuilder()
        .testing_url(base_url)
        .transport(httpx.MockTransport(handler))
        .build()
    )
