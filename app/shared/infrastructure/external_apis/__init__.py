# 📄 File: app/shared/infrastructure/external_apis/__init__.py

# 🧭 Purpose (Layman Explanation):
# This file sets up the foundation for talking to the outside plant services (photo recognition,
# plant encyclopedias and the AI assistant) in a reliable and organized way.

# 🧪 Purpose (Technical Summary):
# External API infrastructure: provider categories and fallback priorities, a registry of live
# API clients so they can be inspected and closed at shutdown, and the throttled/HTTP clients.

# 🔗 Dependencies:
# - api_client: Generic aiohttp client with tenacity retry logic
# - throttled_client: Per-caller daily quota and request spacing

# 🔄 Connected Modules / Calls From:
# Used by: plant_analysis provider adapters, presentation dependency container, app lifespan

"""
External APIs Infrastructure Module

Key Features:
- Provider categories and fallback priorities
- Daily quota and request spacing per provider bucket
- Centralized error mapping
- Client registry and cleanup
"""

from typing import Any, Dict, List

from app.shared.config.settings import Settings
from app.shared.utils.logging import get_logger

from .api_client import APIClient
from .throttled_client import ThrottledClient

logger = get_logger(__name__)

# API Categories for organization
API_CATEGORIES = {
    'identification': ['plant_id'],
    'catalog': ['perenual', 'trefle'],
    'ai_services': ['gemini'],
}


def get_category_apis(category: str) -> List[str]:
    """Get list of APIs for a specific category."""
    return list(API_CATEGORIES.get(category, []))


def get_api_priority(settings: Settings, api_name: str) -> int:
    """Get priority for API within its category (lower is tried first)."""
    return settings.get_provider_config().get(api_name, {}).get('priority', 999)


def get_priority_order(settings: Settings, category: str) -> List[str]:
    """APIs of a category ordered by configured priority."""
    return sorted(get_category_apis(category), key=lambda name: get_api_priority(settings, name))


# Global registry for API clients
_api_clients_registry: Dict[str, APIClient] = {}


def register_api_client(api_name: str, client_instance: APIClient):
    """Register an API client instance."""
    _api_clients_registry[api_name] = client_instance
    logger.info(f"Registered API client: {api_name}")


def get_api_client(api_name: str):
    """Get registered API client instance."""
    return _api_clients_registry.get(api_name)


async def cleanup_external_apis():
    """Close every registered client session."""
    for api_name, client in list(_api_clients_registry.items()):
        try:
            await client.close()
        except Exception as e:
            logger.error(f"Failed to close API client {api_name}: {e}")
    _api_clients_registry.clear()
    logger.info("External API infrastructure cleaned up")


def get_api_status() -> Dict[str, Any]:
    """Get status of all registered APIs."""
    return {
        'registered_clients': len(_api_clients_registry),
        'categories': list(API_CATEGORIES.keys()),
        'clients': {name: client.get_stats() for name, client in _api_clients_registry.items()},
    }


__all__ = [
    'API_CATEGORIES',
    'APIClient',
    'ThrottledClient',
    'get_category_apis',
    'get_api_priority',
    'get_priority_order',
    'register_api_client',
    'get_api_client',
    'cleanup_external_apis',
    'get_api_status',
]
