"""
Echo Qualify API - Echocardiogram Qualification Engine

Turns unstructured, multi-source clinical notes into a structured,
auditable decision on whether the documented evidence supports an
echocardiogram.

This API provides:
- Deterministic, rule-based analysis with citations and conflict reporting
- Optional external reviewer with automatic fallback to the rule engine
- Comprehensive logging and observability
"""

import time
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config.config import Settings, get_settings
from config.engine_config import get_engine_settings
from config.logging_config import configure_logging, get_logger, log_request_context
from models.analysis_models import TermCategory
from models.models import (
    AnalyzeRequest,
    AnalyzeResponse,
    ErrorResponse,
    HealthResponse,
    HealthStatus,
    VocabularyInfo,
)
from services.review_service import QualificationService, get_qualification_service
from services.vocabulary import VocabularyError, get_vocabulary

# Configure logging before anything else
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Loads the vocabulary at startup so a bad table fails fast.
    """
    settings = get_settings()

    # Startup
    logger.info(
        "Application starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        config=settings.get_safe_config_dict(),
        engine_config=get_engine_settings().get_safe_config_dict(),
    )
    vocabulary = get_vocabulary()
    logger.info("Vocabulary ready", version=vocabulary.version)

    yield

    # Shutdown
    logger.info("Application shutting down")


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Optional settings override for testing.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description=__doc__,
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests with timing and context."""
        request_id = str(uuid4())
        request.state.request_id = request_id
        start_time = time.perf_counter()

        # Bind request context for all logs in this request
        log_request_context(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        response = await call_next(request)

        processing_time = int((time.perf_counter() - start_time) * 1000)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Processing-Time-Ms"] = str(processing_time)

        logger.info(
            "Request completed",
            status_code=response.status_code,
            processing_time_ms=processing_time,
        )

        return response

    # Exception handlers
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Handle HTTP exceptions with structured response."""
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=f"HTTP_{exc.status_code}",
                message=str(exc.detail),
                request_id=getattr(request.state, "request_id", None),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(VocabularyError)
    async def vocabulary_exception_handler(request: Request, exc: VocabularyError):
        """Handle a vocabulary table that failed to load."""
        logger.error("Vocabulary unavailable", error=str(exc))
        return JSONResponse(
            status_code=503,
            content=ErrorResponse(
                error="VOCABULARY_UNAVAILABLE",
                message="The clinical vocabulary could not be loaded",
                request_id=getattr(request.state, "request_id", None),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.exception("Unhandled exception", error=str(exc))
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="INTERNAL_ERROR",
                message="An unexpected error occurred",
                request_id=getattr(request.state, "request_id", None),
            ).model_dump(mode="json"),
        )

    # Register routes
    register_routes(app)

    return app


def register_routes(app: FastAPI) -> None:
    """Register all API routes."""

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        settings = get_settings()
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "status": "operational",
            "docs": "/docs" if settings.debug else "disabled",
        }

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
        """
        Health check endpoint for monitoring.

        Returns system health status and component checks.
        """
        try:
            get_vocabulary()
            vocabulary_loaded = True
        except VocabularyError as e:
            logger.error("Vocabulary check failed", error=str(e))
            vocabulary_loaded = False

        checks = {
            "api": True,
            "vocabulary_loaded": vocabulary_loaded,
        }
        if settings.reviewer_enabled:
            checks["reviewer_configured"] = settings.reviewer_configured

        # Determine overall status
        if all(checks.values()):
            status = HealthStatus.HEALTHY
        elif vocabulary_loaded:
            status = HealthStatus.DEGRADED
        else:
            status = HealthStatus.UNHEALTHY

        return HealthResponse(
            status=status,
            version=settings.app_version,
            environment=settings.environment,
            checks=checks,
        )

    @app.post("/api/v1/analyze", response_model=AnalyzeResponse, tags=["Analysis"])
    async def analyze(
        request: AnalyzeRequest,
        service: QualificationService = Depends(get_qualification_service),
    ) -> AnalyzeResponse:
        """
        Analyze clinical notes for echocardiogram qualification.

        Notes shorter than the minimum length are answered with
        "Insufficient Information" rather than an error.

        **Example notes:**
        - "Cardiology consult 01/05/2024: Patient reports chest pain and dyspnea. EKG abnormal."
        - "PCP visit: patient denies chest pain, nonsmoker, reports occasional palpitations."
        """
        logger.info(
            "Analysis request received",
            notes_length=len(request.notes),
            as_of=request.as_of.isoformat() if request.as_of else None,
            use_reviewer=request.use_reviewer,
        )

        analysis = await service.analyze(
            request.notes,
            as_of=request.as_of,
            use_reviewer=request.use_reviewer,
        )

        return AnalyzeResponse(
            result=analysis.result,
            rule_engine_result=analysis.rule_engine_result,
            reviewer=analysis.reviewer,
            source=analysis.source,
            citation_summary=analysis.result.format_citations(),
            warnings=analysis.warnings,
        )

    @app.get("/api/v1/vocabulary", response_model=VocabularyInfo, tags=["Vocabulary"])
    async def vocabulary_info() -> VocabularyInfo:
        """Describe the vocabulary table currently in use."""
        vocabulary = get_vocabulary()
        return VocabularyInfo(
            version=vocabulary.version,
            term_count=len(vocabulary.terms),
            specialist_count=len(vocabulary.specialists),
            category_counts={
                category.value: len(vocabulary.terms_in(category)) for category in TermCategory
            },
            specialists=[s.name for s in vocabulary.specialists],
        )


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
