"""Market data service: bars, quotes, symbols, market depth, and options"""

from collections.abc import Iterable
from decimal import Decimal

from loguru import logger

from tradestation.domain.models import (
    Bar,
    MarketDepthAggregates,
    MarketDepthQuotes,
    OptionExpiration,
    Quote,
    SymbolDetails,
)
from tradestation.domain.queries import GetBarsQuery, StreamBarsQuery
from tradestation.shared.exceptions import ApiError, ValidationError
from tradestation.streaming.decoder import RecordShape
from tradestation.streaming.session import EventHandler

from .base import BaseService, join_ids

MAX_SNAPSHOT_SYMBOLS = 100
MAX_STREAM_SYMBOLS = 50
MAX_DEPTH_LEVELS = 100
DEFAULT_DEPTH_LEVELS = 20

BAR_SHAPE = RecordShape(Bar, ("Open",))
QUOTE_SHAPE = RecordShape(Quote, ("Symbol",))
DEPTH_QUOTES_SHAPE = RecordShape(MarketDepthQuotes, ("Bids", "Asks"))
DEPTH_AGGREGATES_SHAPE = RecordShape(MarketDepthAggregates, ("Bids", "Asks"))


class MarketDataService(BaseService):
    """Market data snapshots and streams"""

    async def get_bars(self, query: GetBarsQuery) -> list[Bar]:
        """Fetch historical bars

        Example:
            query = (
                GetBarsQueryBuilder()
                .symbol("CLX30")
                .unit(BarUnit.MINUTE)
                .interval(240)
                .bars_back(100)
                .build()
            )
            bars = await client.market_data.get_bars(query)
        """
        endpoint = f"marketdata/barcharts/{query.symbol}"
        body = await self._get_json(endpoint, params=query.as_params())
        bars = self._parse_list(body, "Bars", Bar, endpoint)
        logger.debug(f"Fetched {len(bars)} bar(s) for {query.symbol}")
        return bars

    async def stream_bars(
        self, query: StreamBarsQuery, on_event: EventHandler | None = None
    ) -> list[Bar] | None:
        """Stream bars

        Buffered (no ``on_event``): returns the bars once the stream ends.
        Reactive: hands every event to ``on_event`` and returns None.
        """
        return await self._stream(
            f"marketdata/stream/barcharts/{query.symbol}",
            BAR_SHAPE,
            params=query.as_params(),
            on_event=on_event,
        )

    async def get_quotes(self, symbols: Iterable[str]) -> list[Quote]:
        """Fetch quote snapshots for up to 100 symbols"""
        joined = join_ids(symbols, "symbols", MAX_SNAPSHOT_SYMBOLS)
        endpoint = f"marketdata/quotes/{joined}"
        body = await self._get_json(endpoint)
        self._check_partial_errors(body, "Quotes", endpoint)
        return self._parse_list(body, "Quotes", Quote, endpoint)

    async def get_quote(self, symbol: str) -> Quote:
        """Fetch the quote snapshot of one symbol

        Raises:
            ApiError: If the API returned no quote for the symbol
        """
        quotes = await self.get_quotes([symbol])
        if not quotes:
            raise ApiError(f"No quote returned for {symbol}")
        return quotes[0]

    async def stream_quotes(
        self, symbols: Iterable[str], on_event: EventHandler | None = None
    ) -> list[Quote] | None:
        """Stream quote changes for up to 50 symbols

        Updates after the first carry only the fields that changed.
        """
        joined = join_ids(symbols, "symbols", MAX_STREAM_SYMBOLS)
        return await self._stream(
            f"marketdata/stream/quotes/{joined}", QUOTE_SHAPE, on_event=on_event
        )

    async def get_symbol_details(self, symbols: Iterable[str]) -> list[SymbolDetails]:
        """Fetch symbol details for up to 100 symbols"""
        joined = join_ids(symbols, "symbols", MAX_SNAPSHOT_SYMBOLS)
        endpoint = f"marketdata/symbols/{joined}"
        body = await self._get_json(endpoint)
        self._check_partial_errors(body, "Symbols", endpoint)
        return self._parse_list(body, "Symbols", SymbolDetails, endpoint)

    async def stream_market_depth_quotes(
        self,
        symbol: str,
        max_levels: int = DEFAULT_DEPTH_LEVELS,
        on_event: EventHandler | None = None,
    ) -> list[MarketDepthQuotes] | None:
        """Stream level 2 quotes of one symbol"""
        symbol = join_ids([symbol], "symbol", 1)
        return await self._stream(
            f"marketdata/stream/marketdepth/quotes/{symbol}",
            DEPTH_QUOTES_SHAPE,
            params={"maxlevels": str(_depth_levels(max_levels))},
            on_event=on_event,
        )

    async def stream_market_depth_aggregates(
        self,
        symbol: str,
        max_levels: int = DEFAULT_DEPTH_LEVELS,
        on_event: EventHandler | None = None,
    ) -> list[MarketDepthAggregates] | None:
        """Stream aggregated level 2 quotes of one symbol"""
        symbol = join_ids([symbol], "symbol", 1)
        return await self._stream(
            f"marketdata/stream/marketdepth/aggregates/{symbol}",
            DEPTH_AGGREGATES_SHAPE,
            params={"maxlevels": str(_depth_levels(max_levels))},
            on_event=on_event,
        )

    async def get_option_expirations(
        self, underlying: str, strike_price: Decimal | float | str | None = None
    ) -> list[OptionExpiration]:
        """Fetch option expirations of an underlying symbol

        Args:
            underlying: Underlying symbol, e.g. ``"AAPL"``
            strike_price: Only return expirations listing this strike
        """
        underlying = join_ids([underlying], "underlying", 1)
        endpoint = f"marketdata/options/expirations/{underlying}"
        params = None
        if strike_price is not None:
            params = {"strikePrice": str(strike_price)}
        body = await self._get_json(endpoint, params=params)
        return self._parse_list(body, "Expirations", OptionExpiration, endpoint)


def _depth_levels(max_levels: int) -> int:
    if isinstance(max_levels, bool) or not isinstance(max_levels, int):
        raise ValidationError("max_levels must be an integer", field="max_levels")
    if not 1 <= max_levels <= MAX_DEPTH_LEVELS:
        raise ValidationError(
            f"max_levels must be between 1 and {MAX_DEPTH_LEVELS}", field="max_levels"
        )
    return max_levels
