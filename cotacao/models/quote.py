from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cotacao.core.errors import ParseError


class RateQuote(BaseModel):
    """One USD-BRL observation, exactly as the upstream feed reported it.

    ``bid`` stays text so the feed's decimal formatting survives storage and
    serialization untouched; ``timestamp`` is passed through opaque.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", strict=True)

    code: str
    name: str
    bid: str
    timestamp: str

    @classmethod
    def from_upstream(cls, raw: bytes | str) -> "RateQuote":
        try:
            return UpstreamEnvelope.model_validate_json(raw).usdbrl
        except ValidationError as e:
            raise ParseError(f"malformed upstream payload: {e}") from e

    @classmethod
    def from_service(cls, raw: bytes | str) -> "RateQuote":
        try:
            return cls.model_validate_json(raw)
        except ValidationError as e:
            raise ParseError(f"malformed service payload: {e}") from e

    def to_json(self) -> str:
        return self.model_dump_json()

    def as_row(self) -> tuple[str, str, str, str]:
        return (self.code, self.name, self.bid, self.timestamp)


class UpstreamEnvelope(BaseModel):
    """Provider body ``{"USDBRL": {...}}``; sibling pairs and extra fields are ignored."""

    model_config = ConfigDict(extra="ignore")

    usdbrl: RateQuote = Field(..., alias="USDBRL")
