"""OAuth2 bearer token domain model"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from tradestation.shared.exceptions import ValidationError

DEFAULT_EXPIRES_IN = 1200


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Scope(str, Enum):
    """Permission grants a token can carry

    Values are the strings used on the wire.
    """

    MARKET_DATA = "MarketData"
    READ_ACCOUNT = "ReadAccount"
    TRADE = "Trade"
    OPTION_SPREADS = "OptionSpreads"
    MATRIX = "Matrix"
    OPEN_ID = "openid"
    OFFLINE_ACCESS = "offline_access"
    PROFILE = "profile"
    EMAIL = "email"


def normalize_scopes(scopes: Iterable[Scope | str]) -> tuple[Scope, ...]:
    """Coerce scopes to ``Scope`` and drop duplicates, keeping first-seen order

    Raises:
        ValueError: If a scope string is not a known scope
    """
    seen: dict[Scope, None] = {}
    for scope in scopes:
        seen.setdefault(Scope(scope), None)
    return tuple(seen)


def parse_scopes(raw: str | None) -> tuple[Scope, ...]:
    """Parse the space separated wire form of scopes"""
    if not raw or not raw.strip():
        return ()
    return normalize_scopes(raw.split())


@dataclass(frozen=True)
class Token:
    """TradeStation API bearer token

    Immutable: a refresh produces a whole new ``Token``.
    """

    access_token: str
    refresh_token: str
    id_token: str = ""
    token_type: str = "Bearer"
    scopes: tuple[Scope, ...] = ()
    expires_in: int = DEFAULT_EXPIRES_IN
    issued_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        object.__setattr__(self, "scopes", normalize_scopes(self.scopes))

    @property
    def expires_at(self) -> datetime:
        return self.issued_at + timedelta(seconds=self.expires_in)

    def is_stale(self, margin: int = 60, now: datetime | None = None) -> bool:
        """True once ``now`` is within ``margin`` seconds of expiry"""
        now = now or utc_now()
        return now >= self.expires_at - timedelta(seconds=margin)

    def has_scope(self, scope: Scope) -> bool:
        return scope in self.scopes

    @property
    def scope_string(self) -> str:
        return " ".join(scope.value for scope in self.scopes)

    @property
    def authorization_header(self) -> str:
        return f"Bearer {self.access_token}"

    @classmethod
    def from_response(
        cls,
        data: dict[str, Any],
        refresh_token: str | None = None,
        issued_at: datetime | None = None,
    ) -> "Token":
        """Build a token from an authorization endpoint response

        A refresh response carries no refresh token, so the caller passes the
        one currently in use.

        Raises:
            KeyError: If the access token or refresh token is missing
            ValueError: If a field has the wrong type or an unknown scope
        """
        carried_refresh_token = data.get("refresh_token") or refresh_token
        if not carried_refresh_token:
            raise KeyError("refresh_token")

        return cls(
            access_token=str(data["access_token"]),
            refresh_token=str(carried_refresh_token),
            id_token=str(data.get("id_token", "")),
            token_type=str(data.get("token_type", "Bearer")),
            scopes=parse_scopes(data.get("scope")),
            expires_in=int(data.get("expires_in", DEFAULT_EXPIRES_IN)),
            issued_at=issued_at or utc_now(),
        )

    def to_dict(self) -> dict[str, Any]:
        """Wire form of the token, as the authorization endpoint returns it"""
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "id_token": self.id_token,
            "token_type": self.token_type,
            "scope": self.scope_string,
            "expires_in": self.expires_in,
        }

    def __repr__(self) -> str:
        return (
            f"Token(token_type={self.token_type!r}, scopes={self.scope_string!r}, "
            f"expires_at={self.expires_at.isoformat()})"
        )


class TokenBuilder:
    """Fluent builder for a caller-supplied ``Token``"""

    def __init__(self) -> None:
        self._access_token: str | None = None
        self._refresh_token: str | None = None
        self._id_token: str | None = None
        self._scopes: tuple[Scope, ...] = ()
        self._expires_in: int | None = None
        self._issued_at: datetime | None = None

    def access_token(self, token: str) -> "TokenBuilder":
        self._access_token = token
        return self

    def refresh_token(self, token: str) -> "TokenBuilder":
        self._refresh_token = token
        return self

    def id_token(self, token: str) -> "TokenBuilder":
        self._id_token = token
        return self

    def scopes(self, scopes: Iterable[Scope | str]) -> "TokenBuilder":
        try:
            self._scopes = normalize_scopes(scopes)
        except ValueError as e:
            raise ValidationError(f"Unknown scope: {e}", field="scopes") from e
        return self

    def expires_in(self, seconds: int) -> "TokenBuilder":
        """Set the token lifetime (defaults to 1200 seconds)"""
        if seconds < 0:
            raise ValidationError(
                "expires_in must not be negative", field="expires_in"
            )
        self._expires_in = seconds
        return self

    def issued_at(self, when: datetime) -> "TokenBuilder":
        self._issued_at = when
        return self

    def build(self) -> Token:
        """Build the token

        Raises:
            ValidationError: If a required field is missing
        """
        if not self._scopes:
            raise ValidationError("scopes is empty, but required", field="scopes")
        for name in ("access_token", "refresh_token", "id_token"):
            if not getattr(self, f"_{name}"):
                raise ValidationError(f"{name} is not set", field=name)

        return Token(
            access_token=self._access_token,  # type: ignore[arg-type]
            refresh_token=self._refresh_token,  # type: ignore[arg-type]
            id_token=self._id_token,  # type: ignore[arg-type]
            scopes=self._scopes,
            expires_in=(
                self._expires_in
                if self._expires_in is not None
                else DEFAULT_EXPIRES_IN
            ),
            issued_at=self._issued_at or utc_now(),
        )
