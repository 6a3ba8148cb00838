import logging

import httpx
from pydantic import ValidationError as PydanticValidationError

from ocr_client.config import Settings, settings as default_settings
from ocr_client.schemas.ocr import OCRErrorBody, OCRRequest, OCRTextResponse
from ocr_client.schemas.submission import ErrorKind, InputMode

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "OCR processing failed"


class SubmissionError(Exception):
    """Base class for failures that end a submission with an error message."""

    kind: ErrorKind

    def __init__(self, message: str = GENERIC_FAILURE_MESSAGE):
        super().__init__(message)
        self.message = message


class MissingInputError(SubmissionError):
    """Raised when a submission is attempted without a file or URL."""

    kind = ErrorKind.MISSING_INPUT


class ServiceError(SubmissionError):
    """Raised when the OCR service answers with a non-success status."""

    kind = ErrorKind.SERVICE_ERROR

    def __init__(self, status_code: int, message: str | None = None):
        super().__init__(message or GENERIC_FAILURE_MESSAGE)
        self.status_code = status_code


class TransportError(SubmissionError):
    """Raised when the call could not complete or the response was malformed."""

    kind = ErrorKind.TRANSPORT_ERROR


class OCRServiceClient:
    """Client for the remote OCR/translation service."""

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the OCR service client.

        Args:
            settings: Service address and timeout. Defaults to the global settings.
            client: Shared HTTP client. A short-lived client is opened per
                request when not provided.
        """
        self.settings = settings or default_settings
        self._client = client

    def endpoint_for(self, mode: InputMode) -> str:
        """Full URL of the endpoint variant matching the input mode."""
        endpoint = self.settings.upload_endpoint if mode == InputMode.FILE else self.settings.url_endpoint
        return self.settings.endpoint_url(endpoint)

    async def send(self, request: OCRRequest) -> str:
        """
        Send one OCR request and return the extracted text.

        Args:
            request: The request built from the pending input.

        Returns:
            Extracted (and possibly translated) text.

        Raises:
            ServiceError: If the service answered with a non-success status.
            TransportError: If the call failed or the response was malformed.
        """
        url = self.endpoint_for(request.mode)
        logger.info(
            f"Sending OCR request to {url} "
            f"(mode={request.mode.value}, target_lang={request.target_language or 'none'})"
        )

        try:
            if self._client is not None:
                response = await self._post(self._client, url, request)
            else:
                async with httpx.AsyncClient(timeout=self.settings.request_timeout) as client:
                    response = await self._post(client, url, request)
        except httpx.RequestError as e:
            logger.warning(f"OCR request to {url} failed: {e!r}")
            raise TransportError() from e

        if not response.is_success:
            message = self._error_message(response)
            logger.warning(f"OCR service returned HTTP {response.status_code}: {message or 'no message'}")
            raise ServiceError(response.status_code, message)

        try:
            body = OCRTextResponse.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            logger.warning(f"Malformed OCR response from {url}: {e}")
            raise TransportError() from e

        logger.info(f"OCR request succeeded ({len(body.text)} characters)")
        return body.text

    async def __call__(self, request: OCRRequest) -> str:
        return await self.send(request)

    async def _post(self, client: httpx.AsyncClient, url: str, request: OCRRequest) -> httpx.Response:
        if request.mode == InputMode.FILE:
            return await client.post(url, files=request.files, data=request.data)
        return await client.post(url, json=request.json)

    @staticmethod
    def _error_message(response: httpx.Response) -> str | None:
        """Server-provided message from a failure body, if any."""
        try:
            return OCRErrorBody.model_validate(response.json()).message or None
        except (ValueError, PydanticValidationError):
            return None


# Singleton instance
_ocr_service: OCRServiceClient | None = None


def get_ocr_service() -> OCRServiceClient:
    """Get or create the OCR service client singleton."""
    global _ocr_service
    if _ocr_service is None:
        _ocr_service = OCRServiceClient()
    return _ocr_service
