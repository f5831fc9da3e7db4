"""
FastAPI Application

Local HTTP surface over the fitai store for UI collaborators.
"""

import logging
from typing import Dict

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fitai import config
from fitai.api.models.responses import ErrorResponse
from fitai.api.routes import data, progression, sessions, summary, sync, weights
from fitai.errors import DocumentDecodeError, DomainValidationError, StoreIOError

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="FitAI Core API",
    description="Local access to the fitness data store and weekly analytics",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS configuration - allow local frontends to access the API
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(data.router, prefix="/api", tags=["Data"])
app.include_router(summary.router, prefix="/api", tags=["Summaries"])
app.include_router(progression.router, prefix="/api", tags=["Progression"])
app.include_router(sessions.router, prefix="/api", tags=["Sessions"])
app.include_router(weights.router, prefix="/api", tags=["Weights"])
app.include_router(sync.router, prefix="/api", tags=["Sync"])


@app.get("/health")
async def health_check() -> Dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "fitai-core-api"}


def _error(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, message=message).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """Handle HTTP exceptions with consistent error format."""
    return _error(exc.status_code, str(exc.detail), str(exc.detail))


@app.exception_handler(DomainValidationError)
async def domain_error_handler(request, exc: DomainValidationError):
    """Rejected mutations are client errors."""
    return _error(status.HTTP_400_BAD_REQUEST, "Invalid Operation", str(exc))


@app.exception_handler(StoreIOError)
async def store_error_handler(request, exc: StoreIOError):
    """The backing medium failed; the stored document is unchanged."""
    logger.error("Store unavailable: %s", exc)
    return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "Store Unavailable", str(exc))


@app.exception_handler(DocumentDecodeError)
async def document_error_handler(request, exc: DocumentDecodeError):
    logger.error("Stored document unreadable: %s", exc)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Unreadable Document", str(exc))


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=config.LOG_LEVEL.upper(), format=config.LOG_FORMAT)
    uvicorn.run(
        "fitai.api.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
        log_level="info",
    )
