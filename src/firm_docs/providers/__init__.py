"""Generation provider adapters behind one ``generate(provider_id, ...)`` call."""

from firm_docs.providers.registry import ProviderRegistry, build_registry

__all__ = ["ProviderRegistry", "build_registry"]
