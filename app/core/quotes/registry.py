"""In-memory registry of quote provider configurations."""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

from ...config import settings
from .constants import PROVIDER_BUNGEE, PROVIDER_LIFI


@dataclass(frozen=True)
class ProviderConfig:
    id: str
    name: str
    api_endpoint: str
    api_key: Optional[str] = None
    is_active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        # API keys never leave the process
        return {
            "id": self.id,
            "name": self.name,
            "apiEndpoint": self.api_endpoint,
            "hasApiKey": bool(self.api_key),
            "isActive": self.is_active,
        }


class ProviderRegistry:
    """Provider configuration store; deletes are soft (``is_active=False``)."""

    def __init__(self, *, seed_defaults: bool = True) -> None:
        self._lock = threading.Lock()
        self._providers: Dict[str, ProviderConfig] = {}
        if seed_defaults:
            self.create(PROVIDER_LIFI, settings.lifi_base_url, settings.lifi_api_key or None)
            self.create(PROVIDER_BUNGEE, settings.bungee_base_url, settings.bungee_api_key or None)

    def list_all(self) -> List[ProviderConfig]:
        with self._lock:
            return list(self._providers.values())

    def list_active(self) -> List[ProviderConfig]:
        return [provider for provider in self.list_all() if provider.is_active]

    def get(self, provider_id: str) -> Optional[ProviderConfig]:
        with self._lock:
            return self._providers.get(provider_id)

    def create(self, name: str, api_endpoint: str, api_key: Optional[str] = None) -> ProviderConfig:
        provider = ProviderConfig(
            id=str(uuid.uuid4()),
            name=name,
            api_endpoint=api_endpoint,
            api_key=api_key,
        )
        with self._lock:
            self._providers[provider.id] = provider
        return provider

    def update(self, provider_id: str, **changes: Any) -> Optional[ProviderConfig]:
        allowed = {"name", "api_endpoint", "api_key", "is_active"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValueError(f"Unknown provider fields: {sorted(unknown)}")

        with self._lock:
            existing = self._providers.get(provider_id)
            if existing is None:
                return None
            updated = replace(existing, **changes)
            self._providers[provider_id] = updated
            return updated

    def delete(self, provider_id: str) -> bool:
        return self.update(provider_id, is_active=False) is not None


_default_registry: Optional[ProviderRegistry] = None


def get_provider_registry() -> ProviderRegistry:
    global _default_registry
    if _default_registry is None:
        _default_registry = ProviderRegistry()
    return _default_registry
