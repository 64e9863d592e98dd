# 📄 File: app/modules/plant_analysis/infrastructure/database/result_store_impl.py
# 🧭 Purpose (Layman Explanation):
# Keeps finished plant diagnoses so they can be looked up again later.
# 🧪 Purpose (Technical Summary):
# In-memory ResultStore. Stores deep copies so callers cannot mutate persisted results.
# 🔗 Dependencies:
# asyncio, AnalysisResult domain model
# 🔄 Connected Modules / Calls From:
# Pipeline controller (create), presentation dependency container

import asyncio
from typing import Dict, Optional

from app.shared.utils.logging import get_logger

from ...domain.models.pipeline import AnalysisResult
from ...domain.repositories.result_store import ResultStore

logger = get_logger(__name__)


class InMemoryResultStore(ResultStore):
    """Process-local store of completed analyses."""

    def __init__(self):
        self._results: Dict[str, AnalysisResult] = {}
        self._lock = asyncio.Lock()

    async def create(self, result: AnalysisResult) -> str:
        async with self._lock:
            if result.analysis_id in self._results:
                raise ValueError(f"Analysis {result.analysis_id} already stored")
            self._results[result.analysis_id] = result.model_copy(deep=True)
        logger.debug("Analysis result stored", analysis_id=result.analysis_id)
        return result.analysis_id

    async def get(self, analysis_id: str) -> Optional[AnalysisResult]:
        stored = self._results.get(analysis_id)
        return stored.model_copy(deep=True) if stored else None

    def __len__(self) -> int:
        return len(self._results)
