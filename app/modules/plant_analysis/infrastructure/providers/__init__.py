# 📄 File: app/modules/plant_analysis/infrastructure/providers/__init__.py
# 🧭 Purpose (Layman Explanation):
# The connectors to the outside plant-recognition, encyclopedia and AI services.
# 🧪 Purpose (Technical Summary):
# Concrete adapters for the plant_analysis provider ports.
# 🔗 Dependencies:
# APIClient, ThrottledClient
# 🔄 Connected Modules / Calls From:
# Presentation dependency container

from .catalogs import PerenualCatalogProvider, TrefleCatalogProvider
from .gemini import GeminiProvider
from .plant_id import PlantIdProvider, parse_health, parse_identification

__all__ = [
    "GeminiProvider",
    "PerenualCatalogProvider",
    "PlantIdProvider",
    "TrefleCatalogProvider",
    "parse_health",
    "parse_identification",
]
