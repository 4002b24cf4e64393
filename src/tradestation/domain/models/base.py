"""Base model for TradeStation wire payloads"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_pascal


class ApiModel(BaseModel):
    """Frozen pydantic model reading the API's PascalCase JSON

    Unknown fields are ignored so new API fields never break parsing.
    """

    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    def to_api(self) -> dict:
        """Dump to the API's JSON shape, dropping unset optional fields"""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
