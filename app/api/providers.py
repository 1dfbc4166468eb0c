from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException

from ..core.quotes.registry import ProviderRegistry, get_provider_registry
from ..types.requests import CreateProviderRequest

router = APIRouter(prefix="/api/providers")


@router.get("")
async def list_providers(registry: ProviderRegistry = Depends(get_provider_registry)) -> List[Dict[str, Any]]:
    """Active provider configurations."""
    return [provider.to_dict() for provider in registry.list_active()]


@router.post("", status_code=201)
async def create_provider(
    request: CreateProviderRequest,
    registry: ProviderRegistry = Depends(get_provider_registry),
) -> Dict[str, Any]:
    provider = registry.create(request.name, request.apiEndpoint, request.apiKey)
    return provider.to_dict()


@router.delete("/{provider_id}")
async def delete_provider(
    provider_id: str,
    registry: ProviderRegistry = Depends(get_provider_registry),
) -> Dict[str, Any]:
    """Soft delete: the provider stays stored but stops being quoted."""
    if not registry.delete(provider_id):
        raise HTTPException(status_code=404, detail="Provider not found")
    return {"success": True, "id": provider_id}
