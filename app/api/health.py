import asyncio
from typing import Any, Dict

from fastapi import APIRouter

from ..providers.bungee import BungeeProvider
from ..providers.coingecko import CoingeckoProvider
from ..providers.lifi import LifiProvider

router = APIRouter()


@router.get("/healthz")
async def health_check() -> Dict[str, Any]:
    """Health check endpoint that verifies upstream provider status"""

    providers = {
        "lifi": LifiProvider(),
        "bungee": BungeeProvider(),
        "coingecko": CoingeckoProvider(),
    }
    results = await asyncio.gather(*(provider.health_check() for provider in providers.values()))
    provider_status = dict(zip(providers.keys(), results))

    available_providers = sum(
        1 for status in provider_status.values()
        if status["status"] == "healthy"
    )

    return {
        "status": "healthy" if available_providers == len(provider_status) else "degraded",
        "providers": provider_status,
        "available_providers": available_providers,
        "total_providers": len(provider_status)
    }
