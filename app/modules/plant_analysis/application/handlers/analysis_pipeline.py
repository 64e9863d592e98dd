# 📄 File: app/modules/plant_analysis/application/handlers/analysis_pipeline.py
# 🧭 Purpose (Layman Explanation):
# The conductor of a plant analysis. It checks the user may analyse, checks the photos, names
# the plant, looks it up, checks its health and writes the care plan, stopping early whenever a
# check fails so no money is wasted on further AI calls.
#
# 🧪 Purpose (Technical Summary):
# Pipeline controller implementing the analysis state machine. Gates short-circuit to rejection
# values; any provider or unexpected error moves to FAILED, cancels in-flight stage tasks,
# persists nothing, gives back the reserved free analysis and surfaces only a caller-safe
# AnalysisFailedError.
#
# 🔗 Dependencies:
# - asyncio for the concurrent health stage
# - plant_analysis domain services and repositories
# - app.shared.core.exceptions, app.shared.utils.logging
#
# 🔄 Connected Modules / Calls From:
# - app.modules.plant_analysis.presentation.api.v1.identify
# - app.modules.plant_analysis.presentation.dependencies (construction)

import asyncio
from typing import Optional, Union

from app.shared.core.exceptions import (
    AnalysisFailedError,
    LowImageQualityError,
    UnidentifiableError,
    UsageExhaustedError,
)
from app.shared.utils.logging import get_logger, log_context

from ...domain.models.health import HealthAssessment
from ...domain.models.identification import AnalysisRequest
from ...domain.models.pipeline import (
    AnalysisOutcome,
    AnalysisResult,
    LowImageQualityRejection,
    PipelineState,
    PipelineTrace,
    UnidentifiableRejection,
    UsageExhaustedRejection,
)
from ...domain.models.usage import UsageReservation
from ...domain.repositories.result_store import ResultStore
from ...domain.services.care_plan_synthesizer import CarePlanSynthesizer
from ...domain.services.catalog_enricher import CatalogEnricher
from ...domain.services.health_assessor import HealthAssessor
from ...domain.services.image_quality_gate import ImageQualityGate
from ...domain.services.species_identifier import SpeciesIdentifier
from ...domain.services.usage_ledger import UsageLedger
from ..commands.analyze_plant import AnalyzePlantCommand

logger = get_logger(__name__)


class AnalysisPipeline:
    """
    Sequences one analysis request.

    Usage gate -> quality gate -> identification -> catalog enrichment, with the
    health assessment running alongside it -> care plan -> health advice ->
    persist. The usage gate reserves the free analysis up front; the
    reservation is given back when the request is rejected later or fails.
    """

    def __init__(
        self,
        usage_ledger: UsageLedger,
        quality_gate: ImageQualityGate,
        identifier: SpeciesIdentifier,
        enricher: CatalogEnricher,
        health_assessor: HealthAssessor,
        care_planner: CarePlanSynthesizer,
        result_store: ResultStore,
    ):
        self.usage_ledger = usage_ledger
        self.quality_gate = quality_gate
        self.identifier = identifier
        self.enricher = enricher
        self.health_assessor = health_assessor
        self.care_planner = care_planner
        self.result_store = result_store

    async def handle(self, command: AnalyzePlantCommand) -> AnalysisOutcome:
        """Handle an AnalyzePlantCommand."""
        return await self.analyze(command.to_request())

    async def analyze(
        self,
        request: AnalysisRequest,
        trace: Optional[PipelineTrace] = None,
    ) -> AnalysisOutcome:
        """
        Run the analysis pipeline.

        Args:
            request: Validated analysis request
            trace: Optional trace to record state transitions into

        Returns:
            AnalysisResult, or a rejection payload for gate failures

        Raises:
            AnalysisFailedError: Any provider or unexpected failure, sanitised
        """
        trace = trace if trace is not None else PipelineTrace(request_id=request.request_id)

        with log_context(request_id=request.request_id, user_id=request.user_id):
            try:
                outcome = await self._run(request, trace)
            except Exception as e:
                failed_stage = trace.current.value if trace.current else "usage_gate"
                trace.failed_stage = failed_stage
                trace.advance(PipelineState.FAILED)
                logger.error(
                    f"Analysis failed after {failed_stage}: {type(e).__name__}: {e}",
                    exc_info=True,
                    failed_stage=failed_stage,
                    error_type=type(e).__name__,
                )
                raise AnalysisFailedError.from_exception(e, failed_stage) from None

            logger.info(
                "Analysis finished",
                final_state=trace.current.value,
                states=[s.value for s in trace.states],
            )
            return outcome

    async def _run(self, request: AnalysisRequest, trace: PipelineTrace) -> AnalysisOutcome:
        user_id = request.user_id

        # 1. Usage gate: the free analysis is claimed here and given back unless we complete
        try:
            reservation = await self.usage_ledger.reserve(user_id)
        except UsageExhaustedError as e:
            trace.advance(PipelineState.REJECTED_BY_USAGE)
            return UsageExhaustedRejection(remaining_uses=e.remaining_uses, days_left=e.days_left)
        trace.advance(PipelineState.ADMITTED)

        try:
            outcome = await self._run_admitted(request, trace, reservation)
        except BaseException:
            await self.usage_ledger.release(reservation)
            raise

        if not isinstance(outcome, AnalysisResult):
            await self.usage_ledger.release(reservation)
        return outcome

    async def _run_admitted(
        self,
        request: AnalysisRequest,
        trace: PipelineTrace,
        reservation: UsageReservation,
    ) -> AnalysisOutcome:
        user_id = request.user_id

        # 2. Quality gate
        try:
            quality = await self.quality_gate.ensure_suitable(user_id, request.images)
        except LowImageQualityError as e:
            trace.advance(PipelineState.REJECTED_BY_QUALITY)
            return LowImageQualityRejection(suggestions=e.suggestions, issues=e.issues)
        trace.advance(PipelineState.QUALITY_CHECKED)

        # 3. Identification
        try:
            identification = await self.identifier.identify(user_id, request.images, request.language)
        except UnidentifiableError:
            trace.advance(PipelineState.REJECTED_BY_CONFIDENCE)
            return UnidentifiableRejection()
        trace.advance(PipelineState.IDENTIFIED)

        species = identification.best

        # 4. Enrichment, with the health assessment in flight alongside it
        health_task = asyncio.create_task(
            self.health_assessor.assess(user_id, request.images, species)
        )
        try:
            catalog = await self.enricher.lookup(species.scientific_name, user_id)
            trace.advance(PipelineState.ENRICHED)
            health: HealthAssessment = await health_task

            # 5. Care plan
            care_plan = await self.care_planner.synthesize(
                user_id, identification, catalog, health, request.language
            )
            trace.advance(PipelineState.CARE_PLANNED)
        except BaseException:
            await self._discard(health_task)
            raise

        # 6. Health advice
        advice = await self.health_assessor.advise(user_id, health, species, request.language)
        trace.advance(PipelineState.HEALTH_ASSESSED)

        # 7. Persist; the reserved free analysis now counts
        result = AnalysisResult(
            user_id=user_id,
            language=request.language,
            species=species,
            confidence=species.confidence,
            identification=identification,
            quality=quality,
            catalog=catalog,
            care_plan=care_plan,
            health_findings=health.findings,
            is_healthy=health.is_healthy,
            health_advice=advice,
            is_free_identification=not reservation.status.subscribed,
            message=self._completion_message(identification.localized_common_name or species.display_name),
        )
        if not reservation.status.subscribed:
            result = result.model_copy(update={"free_tier_status": reservation.status})
        await self.result_store.create(result)

        trace.advance(PipelineState.COMPLETED)
        return result

    @staticmethod
    async def _discard(task: "asyncio.Task[Union[HealthAssessment, None]]") -> None:
        """Cancel a stage task whose result is no longer wanted."""
        if not task.done():
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            # the failure that triggered the discard is the one reported
            logger.debug("Discarded health stage error", error_type=type(e).__name__)

    @staticmethod
    def _completion_message(name: str) -> str:
        return f"Analysis complete: your plant was identified as {name}."
