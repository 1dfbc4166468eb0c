"""Quote aggregation components."""

from typing import TYPE_CHECKING

from .errors import ErrorKind, InvalidAmountError, InvalidQuoteRequest
from .models import BridgeQuotes, NormalizedQuote, QuoteMatrix, RouteCandidate, SwapPair

if TYPE_CHECKING:  # pragma: no cover
    from .orchestrator import QuoteOrchestrator

__all__ = [
    "BridgeQuotes",
    "ErrorKind",
    "InvalidAmountError",
    "InvalidQuoteRequest",
    "NormalizedQuote",
    "QuoteMatrix",
    "QuoteOrchestrator",
    "RouteCandidate",
    "SwapPair",
]


def __getattr__(name: str):  # pragma: no cover - simple thunk
    if name == "QuoteOrchestrator":
        from .orchestrator import QuoteOrchestrator as _QuoteOrchestrator

        return _QuoteOrchestrator
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
