import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.core.database import init_document_store
from src.core.document_store import DocumentStoreError
from src.core.settings import settings
from src.domains.access.routes import router as access_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    init_document_store()
    logger.info(f"Document store ready ({settings.DOCUMENT_STORE_BACKEND})")
    yield


app = FastAPI(
    title="PathGuard API",
    description="API for hierarchical, path-scoped chat access control",
    version="0.1.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DocumentStoreError)
async def document_store_exception_handler(
    request: Request, exc: DocumentStoreError
) -> JSONResponse:
    """Map store failures on write paths to 503 Service Unavailable."""
    logger.error(f"Document store error on {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": str(exc)})


# Include routers
app.include_router(access_router, prefix="/api/v1")


@app.get("/")
async def root() -> dict[str, str]:
    return {"message": "PathGuard API is running"}


@app.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy"}
