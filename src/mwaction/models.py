"""Typed transport responses and the parts of API responses the engine reads."""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MwActionModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class TransportResponse(MwActionModel):
    """What a transport returns for one network call.

    Header names are lowercased and ``set-cookie`` headers are dropped;
    ``body`` is the decoded JSON value.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    status: int
    headers: dict[str, str] = Field(default_factory=dict)
    body: Any = None

    @field_validator("headers", mode="before")
    @classmethod
    def _normalize_headers(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, Mapping):
            return {
                str(key).lower(): str(header)
                for key, header in value.items()
                if str(key).lower() != "set-cookie"
            }
        return value


class TokensQuery(MwActionModel):
    tokens: dict[str, Any] = Field(default_factory=dict)


class TokensResponse(MwActionModel):
    """The ``action=query&meta=tokens`` part of a response."""

    query: TokensQuery | None = None

    def token(self, token_type: str) -> str | None:
        if self.query is None:
            return None
        token = self.query.tokens.get(f"{token_type}token")
        return token if isinstance(token, str) else None
