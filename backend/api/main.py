"""
FastAPI main application.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.dependencies import RateLimitExceeded
from api.models.responses import RateLimitResponse
from api.routes import analysis, chunks, quizzes, summaries
from core.config import API_V1_PREFIX, CORS_ORIGINS, LOG_LEVEL
from core.config_validator import config_validator
from core.errors import GenerationError, InputError

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="StudyAssist API",
    description="Document analysis, chunking and summarization for study material",
    version="1.0.0",
)


@app.on_event("startup")
async def validate_configuration():
    """Validate configuration on application startup."""
    logger.info("Validating configuration...")

    validation_result = config_validator.validate_all()

    for warning in validation_result["warnings"]:
        logger.warning(warning)

    if not validation_result["valid"]:
        for error in validation_result["errors"]:
            logger.error(error)
        logger.critical("Application startup aborted due to configuration errors")
        raise SystemExit(1)

    logger.info("Configuration validated successfully")


@app.exception_handler(InputError)
async def input_error_handler(request: Request, exc: InputError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(GenerationError)
async def generation_error_handler(request: Request, exc: GenerationError):
    logger.error(f"Generation failed for {request.url.path}: {exc}")
    return JSONResponse(
        status_code=502,
        content={"error": str(exc), "reason": exc.reason, "upstream_status": exc.status_code},
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    body = RateLimitResponse(error=str(exc), retry_after=exc.retry_after)
    return JSONResponse(
        status_code=429,
        content=body.model_dump(),
        headers={"Retry-After": str(exc.retry_after)},
    )


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(analysis.router, prefix=f"{API_V1_PREFIX}/analysis", tags=["analysis"])
app.include_router(chunks.router, prefix=f"{API_V1_PREFIX}/chunks", tags=["chunks"])
app.include_router(summaries.router, prefix=f"{API_V1_PREFIX}/summaries", tags=["summaries"])
app.include_router(quizzes.router, prefix=f"{API_V1_PREFIX}/quizzes", tags=["quizzes"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "StudyAssist API", "version": "1.0.0"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
