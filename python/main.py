"""
Gemstone Image Analysis API - Main Entry Point
This is the FastAPI application entry point.
Uses core/ for configuration, exceptions, and logging.
"""

from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

# Core imports
from core.config import settings, VERSION
from core.exceptions import AppException
from core.responses import ApiResponse
from core.logging import setup_logging, get_logger

# Setup logging first
setup_logging(level="INFO" if not settings.debug else "DEBUG")
logger = get_logger(__name__)

# Infrastructure and service imports
from infrastructure import SupabaseClient, create_openai_client, create_vision_model
from repositories import GemstonesRepository, GemstoneImagesRepository, AnalysisRepository
from services.analysis import AnalysisPipeline

# Router imports
from routers import analysis

# ============================================================
# Application Setup
# ============================================================

app = FastAPI(
    title="Gemstone Image Analysis API",
    description="Cut and color detection, primary image selection and review flagging for the gemstone catalog",
    version=VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    redirect_slashes=False,
)

# ============================================================
# CORS Configuration
# ============================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)

logger.info("CORS middleware configured")

# ============================================================
# Global Exception Handlers
# ============================================================

@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    """
    Handle all custom AppException and subclasses.
    Returns unified ApiResponse format.
    """
    logger.warning(f"AppException: {exc.code} - {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=ApiResponse.from_exception(exc).model_dump()
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """
    Handle unexpected exceptions.
    Logs full traceback and returns generic error.
    """
    logger.error(f"Unhandled exception: {type(exc).__name__}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=ApiResponse.fail(
            message="Internal server error",
            code="INTERNAL_ERROR"
        ).model_dump()
    )

# ============================================================
# Service Initialization (Dependency Injection)
# ============================================================

logger.info(f"Starting Gemstone Analysis API v{VERSION}")
logger.info("Creating singleton service instances...")

# 1. Database client and repositories
supabase_client = SupabaseClient()
gemstones_repo = GemstonesRepository(supabase_client)
images_repo = GemstoneImagesRepository(supabase_client)
analysis_repo = AnalysisRepository(supabase_client)
logger.info("✓ Created SupabaseClient and repositories")

# 2. Model client, constructed once and shared by both model wrappers
openai_client = create_openai_client(settings.openai_api_key)
vision_model = create_vision_model(openai_client, settings.vision_model, settings.vision_temperature)
text_model = create_vision_model(openai_client, settings.text_model)
logger.info("✓ Created OpenAI client")

# 3. Analysis pipeline
pipeline = AnalysisPipeline.from_settings(
    settings,
    gemstones_repo=gemstones_repo,
    images_repo=images_repo,
    analysis_repo=analysis_repo,
    vision_model=vision_model,
    text_model=text_model,
)
logger.info("✓ Created AnalysisPipeline")

# 4. Inject services into routers
analysis.set_services(pipeline)
logger.info("✓ Service instances injected into all routers")

# ============================================================
# Root Endpoints
# ============================================================

@app.get("/api/health")
async def health_check():
    """
    Health check endpoint.
    Returns service status and configured models.
    """
    return ApiResponse.ok({
        "status": "healthy",
        "service": "gemstone-analysis",
        "version": VERSION,
        "vision_model": settings.vision_model,
        "text_model": settings.text_model,
        "generate_content": settings.generate_content,
    }).model_dump()

# ============================================================
# Router Registration
# ============================================================

app.include_router(analysis.router, prefix="/api/analysis", tags=["analysis"])

logger.info(f"Application startup complete. Running on {settings.server_host}:{settings.server_port}")

# ============================================================
# Entry Point
# ============================================================

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.debug
    )
