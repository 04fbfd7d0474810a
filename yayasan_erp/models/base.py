"""Shared model config and base types."""
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer


class YEBaseModel(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class BackendModel(BaseModel):
    """Records read from the ERP backend; unknown fields are ignored."""
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


# Money is Decimal in memory and a JSON number on the wire.
Amount = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json-unless-none")]
