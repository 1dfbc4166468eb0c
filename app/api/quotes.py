from decimal import Decimal
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from ..core.quotes import InvalidQuoteRequest, SwapPair
from ..core.quotes.orchestrator import QuoteOrchestrator, get_quote_orchestrator
from ..types.requests import QuoteRequest
from ..types.responses import QuoteResponse

router = APIRouter(prefix="/api")


def _as_float(value: Any) -> Any:
    return float(value) if isinstance(value, Decimal) else value


@router.post("/quotes", response_model=QuoteResponse)
async def get_quotes(
    request: QuoteRequest,
    orchestrator: QuoteOrchestrator = Depends(get_quote_orchestrator),
) -> Dict[str, Any]:
    """Quote the pair across every active provider at each USD checkpoint."""
    pair = SwapPair(
        from_chain=request.fromChain,
        from_token=request.fromToken,
        to_chain=request.toChain,
        to_token=request.toToken,
    )
    try:
        matrix = await orchestrator.aggregate(pair, request.amounts)
    except InvalidQuoteRequest as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "quotes": matrix.to_dict(),
        "checkpoints": [float(amount) for amount in matrix.checkpoints],
        "fromTokenPrice": _as_float(matrix.unit_price_from),
        "toTokenPrice": _as_float(matrix.unit_price_to),
    }
