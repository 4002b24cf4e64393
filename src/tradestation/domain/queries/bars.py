"""Validated bar chart queries and their builders

Builders validate each argument as it is set. The frozen query models hold
the range and cross-field rules, so a query that exists is a valid query,
however it was constructed.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

from tradestation.shared.exceptions import ValidationError

MAX_MINUTE_INTERVAL = 1440
MAX_INTRADAY_BARS_BACK = 57_600


class BarUnit(str, Enum):
    """Unit of time for each bar interval"""

    MINUTE = "Minute"
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"


class SessionTemplate(str, Enum):
    """US equities session template (ignored for non US equity symbols)"""

    USEQ_PRE = "USEQPre"
    USEQ_POST = "USEQPost"
    USEQ_PRE_AND_POST = "USEQPreAndPost"
    USEQ_24_HOUR = "USEQ24Hour"
    DEFAULT = "Default"


class StreamBarsQuery(BaseModel):
    """Query for streaming bars of a symbol

    Raises:
        ValidationError: On construction, naming the first invalid field
    """

    model_config = ConfigDict(frozen=True)

    symbol: str
    unit: BarUnit = BarUnit.DAILY
    interval: int = 1
    bars_back: int = 1
    session_template: SessionTemplate = SessionTemplate.DEFAULT

    @model_validator(mode="before")
    @classmethod
    def _check_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if data.get("symbol") is None:
            raise ValidationError("symbol is required", field="symbol")
        data["symbol"] = _symbol(data["symbol"])
        for name in ("interval", "bars_back"):
            if data.get(name) is not None:
                data[name] = _positive_int(data[name], name)
        if data.get("unit") is not None:
            data["unit"] = _enum_member(BarUnit, data["unit"], "unit")
        if data.get("session_template") is not None:
            data["session_template"] = _enum_member(
                SessionTemplate, data["session_template"], "session_template"
            )
        return data

    @model_validator(mode="after")
    def _check_rules(self) -> "StreamBarsQuery":
        self._check_cross_fields()
        return self

    def _check_cross_fields(self) -> None:
        if self.unit == BarUnit.MINUTE and self.interval > MAX_MINUTE_INTERVAL:
            raise ValidationError(
                f"interval must be at most {MAX_MINUTE_INTERVAL} for minute bars",
                field="interval",
            )
        if self.unit != BarUnit.MINUTE and self.interval != 1:
            raise ValidationError(
                f"interval must be 1 for {self.unit.value} bars", field="interval"
            )
        if (
            self.unit == BarUnit.MINUTE
            and self.bars_back is not None
            and self.bars_back > MAX_INTRADAY_BARS_BACK
        ):
            raise ValidationError(
                f"bars_back must be at most {MAX_INTRADAY_BARS_BACK} for minute bars",
                field="bars_back",
            )

    def as_params(self) -> dict[str, str]:
        return {
            "interval": str(self.interval),
            "unit": self.unit.value,
            "barsBack": str(self.bars_back),
            "sessionTemplate": self.session_template.value,
        }


class GetBarsQuery(StreamBarsQuery):
    """Query for fetching historical bars of a symbol

    Without ``bars_back`` or ``first_date`` the server returns one bar.
    """

    bars_back: int | None = None  # type: ignore[assignment]
    first_date: str | None = None
    last_date: str | None = None
    # Deprecated by the API in favour of last_date
    start_date: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _check_dates(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for name in ("first_date", "last_date", "start_date"):
            if data.get(name) is not None:
                data[name] = _date(data[name], name)
        return data

    def _check_cross_fields(self) -> None:
        super()._check_cross_fields()
        if self.bars_back is not None and self.first_date is not None:
            raise ValidationError(
                "bars_back and first_date are mutually exclusive",
                field="first_date",
            )
        if self.last_date is not None and self.start_date is not None:
            raise ValidationError(
                "last_date and start_date are mutually exclusive",
                field="start_date",
            )

    def as_params(self) -> dict[str, str]:
        params = {
            "interval": str(self.interval),
            "unit": self.unit.value,
        }
        if self.bars_back is not None:
            params["barsBack"] = str(self.bars_back)
        if self.first_date:
            params["firstDate"] = self.first_date
        if self.last_date:
            params["lastDate"] = self.last_date
        params["sessionTemplate"] = self.session_template.value
        if self.start_date:
            params["startDate"] = self.start_date
        return params


def _symbol(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("symbol must be a non-empty string", field="symbol")
    return value.strip().upper()


def _positive_int(value: Any, field: str) -> int:
    """Accept an int, or a string of digits; bools and floats are rejected"""
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        value = int(value.strip())
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            f"{field} must be an integer, got {value!r}", field=field
        )
    if value < 1:
        raise ValidationError(f"{field} must be at least 1", field=field)
    return value


def _enum_member(enum_type: type[Enum], value: Any, field: str) -> Any:
    try:
        return enum_type(value)
    except ValueError as e:
        allowed = ", ".join(member.value for member in enum_type)
        raise ValidationError(
            f"{field} must be one of {allowed}, got {value!r}", field=field
        ) from e


def _date(value: Any, field: str) -> str:
    if not isinstance(value, str) or len(value.strip()) < 10:
        raise ValidationError(
            f"{field} must be formatted as YYYY-MM-DD or an RFC3339 timestamp",
            field=field,
        )
    return value.strip()


class _BarsQueryBuilder:
    """Fields shared by the get and stream bar query builders"""

    def __init__(self) -> None:
        self._fields: dict[str, Any] = {}

    def symbol(self, symbol: str):
        """Set the symbol, e.g. ``"CLX24"`` or ``"PLTR"``"""
        self._fields["symbol"] = _symbol(symbol)
        return self

    def unit(self, unit: BarUnit | str):
        """Set the unit of time for each bar (defaults to Daily)"""
        self._fields["unit"] = _enum_member(BarUnit, unit, "unit")
        return self

    def interval(self, interval: int | str):
        """Set how many units each bar spans (defaults to 1)

        With ``BarUnit.MINUTE`` the maximum is 1440; other units only allow 1.
        """
        self._fields["interval"] = _positive_int(interval, "interval")
        return self

    def bars_back(self, bars_back: int | str):
        """Set how many bars back to fetch (defaults to 1)

        Intraday queries allow at most 57,600 bars back.
        """
        self._fields["bars_back"] = _positive_int(bars_back, "bars_back")
        return self

    def session_template(self, template: SessionTemplate | str):
        self._fields["session_template"] = _enum_member(
            SessionTemplate, template, "session_template"
        )
        return self


class StreamBarsQueryBuilder(_BarsQueryBuilder):
    """Builder for ``StreamBarsQuery``

    Example:
        query = (
            StreamBarsQueryBuilder()
            .symbol("CLX24")
            .unit(BarUnit.MINUTE)
            .interval(240)
            .build()
        )
    """

    def build(self) -> StreamBarsQuery:
        """Finish building

        Raises:
            ValidationError: If the symbol is missing or fields conflict
        """
        return StreamBarsQuery(**self._fields)


class GetBarsQueryBuilder(_BarsQueryBuilder):
    """Builder for ``GetBarsQuery``

    ``bars_back`` and ``first_date`` are mutually exclusive, as are
    ``last_date`` and the deprecated ``start_date``.
    """

    def first_date(self, first_date: str) -> "GetBarsQueryBuilder":
        """Set the first date, ``"YYYY-MM-DD"`` or ``"2020-04-20T18:00:00Z"``"""
        self._fields["first_date"] = _date(first_date, "first_date")
        return self

    def last_date(self, last_date: str) -> "GetBarsQueryBuilder":
        """Set the last date (defaults to now on the server)"""
        self._fields["last_date"] = _date(last_date, "last_date")
        return self

    def start_date(self, start_date: str) -> "GetBarsQueryBuilder":
        """Deprecated: use ``last_date``"""
        self._fields["start_date"] = _date(start_date, "start_date")
        return self

    def build(self) -> GetBarsQuery:
        """Finish building

        ``bars_back`` defaults to 1 unless ``first_date`` is set.

        Raises:
            ValidationError: If the symbol is missing or fields conflict
        """
        fields = dict(self._fields)
        if "bars_back" not in fields and "first_date" not in fields:
            fields["bars_back"] = 1
        return GetBarsQuery(**fields)
