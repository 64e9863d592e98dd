# 📄 File: app/modules/plant_analysis/domain/repositories/result_store.py
# 🧭 Purpose (Layman Explanation):
# Defines where finished plant diagnoses are saved so users can look at them again later.
# 🧪 Purpose (Technical Summary):
# Abstract persistence boundary for completed analysis results (create/get).
# 🔗 Dependencies:
# - abc (Abstract Base Classes)
# - AnalysisResult domain model
# 🔄 Connected Modules / Calls From:
# - Pipeline controller (create)
# - In-memory implementation

from abc import ABC, abstractmethod
from typing import Optional

from app.modules.plant_analysis.domain.models.pipeline import AnalysisResult


class ResultStore(ABC):
    """Persistence of completed analyses. Only complete results are ever stored."""

    @abstractmethod
    async def create(self, result: AnalysisResult) -> str:
        """Persist a result and return its id."""
        pass

    @abstractmethod
    async def get(self, analysis_id: str) -> Optional[AnalysisResult]:
        """Get a stored result by id."""
        pass
