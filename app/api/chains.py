from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from ..services.catalog import CatalogService, get_catalog_service

router = APIRouter(prefix="/api/chains")


@router.get("")
async def list_chains(catalog: CatalogService = Depends(get_catalog_service)) -> List[Dict[str, Any]]:
    """Supported chains, bridge aggregator first."""
    return [chain.to_dict() for chain in await catalog.list_chains()]


@router.get("/{chain_id}/tokens")
async def list_tokens(
    chain_id: str,
    catalog: CatalogService = Depends(get_catalog_service),
) -> List[Dict[str, Any]]:
    return [token.to_dict() for token in await catalog.list_tokens(chain_id)]
