import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ocr_client.api.routes import session
from ocr_client.config import settings
from ocr_client.schemas.submission import TargetLanguage

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting OCR submission client")
    logger.info(f"OCR service: {settings.service_base_url}")
    if settings.request_timeout is None:
        logger.info("OCR requests have no timeout")

    yield

    logger.info("Shutting down OCR submission client")


app = FastAPI(
    title="OCR Submission Client",
    description="Submit an image file or URL to a remote OCR service, with optional translation",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(session.router)


@app.get("/")
async def root():
    """Root endpoint with client information."""
    return {
        "name": "OCR Submission Client",
        "version": "1.0.0",
        "service": settings.service_base_url,
        "languages": {lang.value: lang.label for lang in TargetLanguage},
        "docs": "/docs",
    }
