from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class QuoteResponse(BaseModel):
    quotes: Dict[str, Dict[str, Dict[str, Any]]] = Field(description="Matrix key -> amount label -> quote")
    checkpoints: List[float] = Field(default_factory=list, description="USD checkpoints quoted, ascending")
    fromTokenPrice: Optional[float] = Field(default=None, description="Resolved USD price of the origin token")
    toTokenPrice: Optional[float] = Field(default=None, description="Resolved USD price of the destination token")
