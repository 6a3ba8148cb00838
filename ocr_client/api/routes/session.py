import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from pydantic import BaseModel, Field

from ocr_client.config import settings
from ocr_client.schemas.inputs import ImageFile
from ocr_client.schemas.submission import InputMode, SubmissionSnapshot
from ocr_client.services.submission_controller import (
    InputModeMismatchError,
    SubmissionController,
    get_submission_controller,
)
from ocr_client.utils.file_validation import ValidationError, can_render_image, validate_size

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/session", tags=["Session"])


class ModeRequest(BaseModel):
    """Request to switch the input mode."""

    mode: InputMode


class UrlRequest(BaseModel):
    """Request to set the image URL."""

    url: str = Field(default="", description="Remote image URL")


class TargetLanguageRequest(BaseModel):
    """Request to choose the translation target."""

    target_lang: str | None = Field(
        default=None,
        description="One of es, fr, de, zh, ja; empty or null for no translation",
    )


def _mode_conflict(e: InputModeMismatchError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.get("", response_model=SubmissionSnapshot)
async def get_session(controller: SubmissionController = Depends(get_submission_controller)):
    """Current state of the submission form."""
    return controller.snapshot


@router.post("/mode", response_model=SubmissionSnapshot)
async def select_mode(
    body: ModeRequest,
    controller: SubmissionController = Depends(get_submission_controller),
):
    """Switch between file upload and image URL input."""
    return controller.select_mode(body.mode)


@router.post("/file", response_model=SubmissionSnapshot)
async def set_file(
    file: UploadFile = File(..., description="Image file to extract text from"),
    controller: SubmissionController = Depends(get_submission_controller),
):
    """
    Select the image to upload.

    The file is stored even when it cannot be decoded; only its preview
    is dropped, and the OCR service decides whether it can be processed.
    """
    content = await file.read()

    try:
        validate_size(content, settings.max_upload_size_mb)
        image = ImageFile.from_bytes(file.filename or "image.png", content)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid image file: {e}",
        )

    try:
        snapshot = controller.set_file_input(image)
    except InputModeMismatchError as e:
        raise _mode_conflict(e)

    if not can_render_image(content):
        logger.info(f"Preview for {image.filename} cannot be rendered, clearing it")
        snapshot = controller.clear_preview()

    return snapshot


@router.post("/url", response_model=SubmissionSnapshot)
async def set_url(
    body: UrlRequest,
    controller: SubmissionController = Depends(get_submission_controller),
):
    """Set the remote image URL."""
    try:
        return controller.set_url_input(body.url)
    except InputModeMismatchError as e:
        raise _mode_conflict(e)


@router.post("/target-language", response_model=SubmissionSnapshot)
async def set_target_language(
    body: TargetLanguageRequest,
    controller: SubmissionController = Depends(get_submission_controller),
):
    """Choose the language to translate the extracted text into."""
    try:
        return controller.set_target_language(body.target_lang)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/preview/clear", response_model=SubmissionSnapshot)
async def clear_preview(controller: SubmissionController = Depends(get_submission_controller)):
    """Report that the preview failed to render."""
    return controller.clear_preview()


@router.post("/submit", response_model=SubmissionSnapshot)
async def submit(controller: SubmissionController = Depends(get_submission_controller)):
    """
    Extract text from the active input.

    Failures are reported in the returned state, not as HTTP errors.
    """
    return await controller.submit()
