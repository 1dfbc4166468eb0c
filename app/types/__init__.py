from .requests import CreateProviderRequest, QuoteRequest
from .responses import QuoteResponse

__all__ = [
    "CreateProviderRequest",
    "QuoteRequest",
    "QuoteResponse",
]
