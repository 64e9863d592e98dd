# 📄 File: app/modules/plant_analysis/infrastructure/__init__.py
# 🧭 Purpose (Layman Explanation):
# The plumbing of plant analysis: connections to outside services and the places data is stored.
#
# 🧪 Purpose (Technical Summary):
# Infrastructure layer providing provider adapters (Plant.id, Gemini, Perenual, Trefle) and
# repository implementations (usage ledger, result store, billing gateway).
#
# 🔗 Dependencies:
# - app.shared.infrastructure.external_apis
# - redis.asyncio
#
# 🔄 Connected Modules / Calls From:
# - app.modules.plant_analysis.presentation.dependencies

"""
Plant Analysis Infrastructure Layer

Infrastructure Components:
- Providers: concrete adapters for identification, catalog and generative ports
- Database: usage ledger, result store and billing gateway implementations
"""

__all__ = ["database", "providers"]
