"""
Analysis API Router
Runs the gemstone image analysis for one gemstone or a batch
"""

from fastapi import APIRouter, Depends, Query

from core.responses import ApiResponse
from core.logging import get_logger
from models.requests.analysis import BatchAnalysisRequest
from models.responses.analysis import BatchAnalysisResponse, PendingGemstone
from services.analysis import AnalysisPipeline

logger = get_logger(__name__)
router = APIRouter()

pipeline_instance: AnalysisPipeline = None


def set_services(pipeline: AnalysisPipeline):
    global pipeline_instance
    pipeline_instance = pipeline


def get_pipeline() -> AnalysisPipeline:
    """Dependency injection for AnalysisPipeline"""
    return pipeline_instance


@router.post("/gemstones/{gemstone_id}")
async def analyze_gemstone(gemstone_id: str, pipeline: AnalysisPipeline = Depends(get_pipeline)):
    """
    Analyze one gemstone and persist the result.
    Typed failures (timeout, malformed response, no photos) are rendered
    by the global AppException handler.
    """
    logger.info(f"Analysis requested for gemstone {gemstone_id}")
    analysis = await pipeline.analyze(gemstone_id)
    return ApiResponse.ok(analysis.model_dump(mode="json"))


@router.post("/batch")
async def analyze_batch(request: BatchAnalysisRequest, pipeline: AnalysisPipeline = Depends(get_pipeline)):
    """
    Analyze several gemstones. Individual failures are reported in the
    summary, never as an error response.
    """
    if request.gemstone_ids:
        summary = await pipeline.run_batch(request.gemstone_ids, request.concurrency)
    else:
        summary = await pipeline.run_pending(request.limit, request.concurrency)

    response = BatchAnalysisResponse.from_summary(summary)
    return ApiResponse.ok(response.model_dump(mode="json"))


@router.get("/pending")
async def get_pending(
    limit: int = Query(10, ge=1, le=500),
    pipeline: AnalysisPipeline = Depends(get_pipeline),
):
    """Gemstones that have not been analyzed yet."""
    rows = await pipeline.pending_gemstones(limit)
    gemstones = [PendingGemstone(**row).model_dump() for row in rows]
    return ApiResponse.ok(gemstones, meta={"count": len(gemstones)})
