# 📄 File: app/modules/plant_analysis/presentation/api/v1/identify.py
# 🧭 Purpose (Layman Explanation):
# The web door for plant analysis: users upload one to three photos and get back the plant's
# name, health findings and a care plan, or a clear reason why not.
#
# 🧪 Purpose (Technical Summary):
# FastAPI endpoints for plant analysis. Upload constraints (count, size, type) are enforced here
# before the pipeline runs; pipeline outcomes map to 200 / 402 / 422, and pipeline failures are
# already sanitised into AnalysisFailedError by the controller.
#
# 🔗 Dependencies:
# - FastAPI router, File/Form/UploadFile
# - app.shared.utils.validators (upload validation)
# - plant_analysis presentation dependencies and schemas
#
# 🔄 Connected Modules / Calls From:
# - app.api.v1.router (router inclusion)
# - Mobile and web clients

"""
Plant Analysis API Endpoints

Endpoints:
- POST /identify: Analyse 1-3 plant photos
- GET /free-tier-status: Caller's free-tier eligibility
- GET /analyses/{analysis_id}: Fetch a stored analysis
"""

from typing import List

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import JSONResponse

from app.shared.config.settings import Settings
from app.shared.core.exceptions import DiagnosisException, ImageValidationError
from app.shared.utils.logging import get_logger
from app.shared.utils.validators import UploadedImage, sanitize_filename, validate_image_upload

from ....application.commands.analyze_plant import AnalyzePlantCommand
from ....application.handlers.analysis_pipeline import AnalysisPipeline
from ....domain.models.identification import ImagePayload
from ....domain.models.pipeline import AnalysisResult
from ....domain.repositories.result_store import ResultStore
from ....domain.services.usage_ledger import UsageLedger
from ...dependencies import (
    get_caller_id,
    get_module_settings,
    get_pipeline,
    get_result_store,
    get_usage_ledger,
)
from ..schemas.analysis_schemas import (
    AnalysisResponse,
    ErrorResponse,
    FreeTierStatusResponse,
    RejectionResponse,
    outcome_to_response,
)

logger = get_logger(__name__)

identify_router = APIRouter()


async def read_uploads(images: List[UploadFile], settings: Settings) -> List[ImagePayload]:
    """
    Read and validate uploaded files.

    At most max size + 1 bytes are read per file, enough to detect an oversized upload.

    Raises:
        ImageValidationError: Count, size or type constraint violated
    """
    payloads: List[ImagePayload] = []
    described: List[UploadedImage] = []
    for upload in images[:settings.MAX_IMAGES_PER_REQUEST + 1]:
        data = await upload.read(settings.MAX_IMAGE_SIZE + 1)
        described.append(UploadedImage(
            filename=upload.filename or "",
            content_type=upload.content_type,
            size=len(data),
            data=data,
        ))
        payloads.append(ImagePayload(
            data=data,
            mime_type=upload.content_type or "application/octet-stream",
            filename=sanitize_filename(upload.filename or ""),
        ))

    validation = validate_image_upload(
        described,
        max_images=settings.MAX_IMAGES_PER_REQUEST,
        max_size=settings.MAX_IMAGE_SIZE,
        allowed_types=settings.allowed_image_types_list,
    )
    if not validation.is_valid:
        logger.info("Upload rejected", errors=validation.errors)
        raise ImageValidationError(errors=validation.errors)
    return payloads


@identify_router.post(
    "/identify",
    response_model=AnalysisResponse,
    summary="Analyse plant photos",
    description="Identify the plant, assess its health and produce a care plan from 1-3 photos",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid upload"},
        402: {"model": RejectionResponse, "description": "Free tier exhausted"},
        422: {"model": RejectionResponse, "description": "Image quality too low or plant unidentifiable"},
        500: {"model": ErrorResponse, "description": "Analysis failed"},
        503: {"model": ErrorResponse, "description": "Analysis service busy"},
    },
)
async def identify_plant(
    request: Request,
    images: List[UploadFile] = File(..., description="1-3 JPEG or PNG photos, 100KB each"),
    language: str = Form("en"),
    caller_id: str = Depends(get_caller_id),
    pipeline: AnalysisPipeline = Depends(get_pipeline),
    settings: Settings = Depends(get_module_settings),
):
    """
    Run a plant analysis.

    Returns:
        200 with the analysis, or 402/422 with a rejection payload
    """
    payloads = await read_uploads(images, settings)
    command = AnalyzePlantCommand(
        user_id=caller_id,
        images=payloads,
        language=language,
        request_id=getattr(request.state, "request_id", None),
    )

    outcome = await pipeline.handle(command)
    status_code, body = outcome_to_response(outcome)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@identify_router.get(
    "/free-tier-status",
    response_model=FreeTierStatusResponse,
    summary="Free tier status",
)
async def free_tier_status(
    caller_id: str = Depends(get_caller_id),
    usage_ledger: UsageLedger = Depends(get_usage_ledger),
) -> FreeTierStatusResponse:
    """Remaining free analyses and days until the window resets."""
    status_ = await usage_ledger.check_eligibility(caller_id)
    return FreeTierStatusResponse(user_id=caller_id, status=status_)


@identify_router.get(
    "/analyses/{analysis_id}",
    response_model=AnalysisResult,
    summary="Get a stored analysis",
    responses={404: {"model": ErrorResponse}},
)
async def get_analysis(
    analysis_id: str,
    caller_id: str = Depends(get_caller_id),
    result_store: ResultStore = Depends(get_result_store),
) -> AnalysisResult:
    """Fetch one of the caller's completed analyses."""
    result = await result_store.get(analysis_id)
    if result is None or result.user_id != caller_id:
        raise DiagnosisException(
            "Analysis not found",
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="ANALYSIS_NOT_FOUND",
        )
    return result
