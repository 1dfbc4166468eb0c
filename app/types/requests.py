from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator


class QuoteRequest(BaseModel):
    fromChain: str = Field(description="Origin chain id")
    fromToken: str = Field(description="Origin token address (zero or 0xEeee... for native)")
    toChain: str = Field(description="Destination chain id")
    toToken: str = Field(description="Destination token address (zero or 0xEeee... for native)")
    amounts: List[float] = Field(default_factory=list, description="Extra USD checkpoints merged with the baseline set")

    @field_validator("fromChain", "toChain", mode="before")
    @classmethod
    def _chain_as_string(cls, value: Union[str, int]) -> str:
        # Chain ids round-trip as strings even when sent as JSON numbers
        if isinstance(value, bool):
            raise ValueError("chain id must be a string or integer")
        return str(value) if isinstance(value, int) else value

    @field_validator("fromChain", "fromToken", "toChain", "toToken")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()


class CreateProviderRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255, description="Provider display name")
    apiEndpoint: str = Field(description="Provider API base URL")
    apiKey: Optional[str] = Field(default=None, description="Optional API key sent with quote requests")

    @field_validator("apiEndpoint")
    @classmethod
    def _http_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("apiEndpoint must be an http(s) URL")
        return value
