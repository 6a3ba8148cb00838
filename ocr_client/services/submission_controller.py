import asyncio
import logging
from typing import Awaitable, Callable

from ocr_client.schemas.inputs import FileInput, ImageFile, PendingInput, UrlInput
from ocr_client.schemas.ocr import OCRRequest
from ocr_client.schemas.submission import (
    ErrorKind,
    InputMode,
    SubmissionSnapshot,
    SubmissionStatus,
    TargetLanguage,
)
from ocr_client.services.ocr_service import (
    GENERIC_FAILURE_MESSAGE,
    MissingInputError,
    SubmissionError,
    TransportError,
    get_ocr_service,
)

logger = logging.getLogger(__name__)

PROCESSING_PLACEHOLDER = "Processing..."

MISSING_INPUT_MESSAGES = {
    InputMode.FILE: "Please select a file first",
    InputMode.URL: "Please enter an image URL",
}

OCRCall = Callable[[OCRRequest], Awaitable[str]]


class InputModeMismatchError(ValueError):
    """Raised when input for one mode is set while the other mode is active."""

    def __init__(self, expected: InputMode, active: InputMode):
        super().__init__(f"Cannot set {expected.value} input while '{active.value}' mode is active")
        self.expected = expected
        self.active = active


class SubmissionController:
    """
    Owns the OCR submission workflow for one user session.

    Handles:
    - Switching between file and URL input, keeping each mode's entry
    - Deriving the preview reference for the active input
    - Building the request for the active mode and dispatching it
    - Reconciling the service outcome into a result or an error message

    Only one submission can be in flight at a time. Every operation
    returns an immutable snapshot of the workflow state.
    """

    def __init__(self, call_ocr_service: OCRCall | None = None, mode: InputMode = InputMode.FILE):
        """
        Initialize the controller.

        Args:
            call_ocr_service: Async callable that sends a request and returns
                the extracted text. Defaults to the shared OCR service client.
            mode: Initially selected input mode.
        """
        self._call_ocr_service = call_ocr_service or get_ocr_service()
        self._mode = mode
        self._inputs: dict[InputMode, PendingInput | None] = {InputMode.FILE: None, InputMode.URL: None}
        self._previews: dict[InputMode, str] = {InputMode.FILE: "", InputMode.URL: ""}
        self._target_language: TargetLanguage | None = None
        self._status = SubmissionStatus.IDLE
        self._result = ""
        self._error_message = ""
        self._error_kind: ErrorKind | None = None

    @property
    def mode(self) -> InputMode:
        return self._mode

    @property
    def status(self) -> SubmissionStatus:
        return self._status

    @property
    def is_pending(self) -> bool:
        return self._status == SubmissionStatus.PENDING

    @property
    def pending_input(self) -> PendingInput | None:
        """Input stored for the active mode."""
        return self._inputs[self._mode]

    @property
    def snapshot(self) -> SubmissionSnapshot:
        file_input = self._inputs[InputMode.FILE]
        url_input = self._inputs[InputMode.URL]

        if self.is_pending:
            display = PROCESSING_PLACEHOLDER
        else:
            display = self._error_message or self._result

        return SubmissionSnapshot(
            mode=self._mode,
            file_name=file_input.file.filename if file_input else None,
            url=url_input.url if url_input else "",
            preview=self._previews[self._mode],
            target_language=self._target_language,
            status=self._status,
            result=self._result,
            error_message=self._error_message,
            error_kind=self._error_kind,
            display=display,
            can_submit=not self.is_pending,
        )

    def select_mode(self, mode: InputMode | str) -> SubmissionSnapshot:
        """
        Switch the input mode and clear the displayed result and error.

        Inputs and previews stored for either mode are kept. A settled
        submission goes back to idle; an in-flight one settles normally.
        """
        mode = InputMode(mode)
        self._mode = mode
        self._result = ""
        self._clear_error()
        if self._status in (SubmissionStatus.SUCCEEDED, SubmissionStatus.FAILED):
            self._status = SubmissionStatus.IDLE
        logger.debug(f"Input mode set to {mode.value}")
        return self.snapshot

    def set_file_input(self, file: ImageFile | None) -> SubmissionSnapshot:
        """
        Store the picked file and derive its preview.

        A missing file (cancelled selection) leaves the state untouched.

        Raises:
            InputModeMismatchError: If file mode is not active.
        """
        self._ensure_mode(InputMode.FILE)
        if file is None:
            return self.snapshot

        pending = FileInput(file)
        self._inputs[InputMode.FILE] = pending
        self._previews[InputMode.FILE] = pending.preview
        logger.debug(f"File selected: {file.filename} ({file.content_type}, {len(file.content)} bytes)")
        return self.snapshot

    def set_url_input(self, url: str) -> SubmissionSnapshot:
        """
        Store the image URL; the URL itself is the preview.

        Raises:
            InputModeMismatchError: If URL mode is not active.
        """
        self._ensure_mode(InputMode.URL)
        pending = UrlInput(url) if url else None
        self._inputs[InputMode.URL] = pending
        self._previews[InputMode.URL] = url
        return self.snapshot

    def set_target_language(self, language: TargetLanguage | str | None) -> SubmissionSnapshot:
        """
        Choose the translation target, or None for no translation.

        Raises:
            ValueError: If the language code is not supported.
        """
        self._target_language = TargetLanguage.parse(language)
        return self.snapshot

    def clear_preview(self) -> SubmissionSnapshot:
        """Drop the active preview after it failed to render."""
        self._previews[self._mode] = ""
        return self.snapshot

    async def submit(self) -> SubmissionSnapshot:
        """
        Submit the active input to the OCR service.

        Never raises: every failure ends as an error message in the
        returned snapshot. A call made while another submission is in
        flight is ignored.

        A missing input is reported without changing the status, so after
        a successful submission the snapshot can read status=succeeded
        with the missing-input error and an empty result. The status
        describes the last dispatched submission; display follows the
        latest message.

        If the caller cancels the call, the submission is settled as a
        transport failure before the cancellation propagates.
        """
        if self.is_pending:
            logger.warning("Submission ignored: another submission is still in flight")
            return self.snapshot

        pending = self.pending_input
        if pending is None:
            error = MissingInputError(MISSING_INPUT_MESSAGES[self._mode])
            logger.info(f"Submission rejected: {error.message}")
            self._result = ""
            self._set_error(error)
            return self.snapshot

        # Entering PENDING before the first await keeps submissions single-flight
        self._status = SubmissionStatus.PENDING
        self._clear_error()
        request = pending.build_request(self._target_language)
        logger.info(
            f"Submitting {pending.mode.value} input "
            f"(target_lang={self._target_language.value if self._target_language else 'none'})"
        )

        try:
            text = await self._call_ocr_service(request)
        except SubmissionError as e:
            self._settle_failed(e)
        except asyncio.CancelledError:
            logger.warning("Submission cancelled before the OCR service answered")
            self._settle_failed(TransportError(GENERIC_FAILURE_MESSAGE))
            raise
        except Exception:
            logger.exception("Unexpected error while calling the OCR service")
            self._settle_failed(TransportError(GENERIC_FAILURE_MESSAGE))
        else:
            self._status = SubmissionStatus.SUCCEEDED
            self._result = text
            self._clear_error()
            logger.info("Submission succeeded")

        return self.snapshot

    def _settle_failed(self, error: SubmissionError) -> None:
        self._status = SubmissionStatus.FAILED
        self._result = ""
        self._set_error(error)
        logger.info(f"Submission failed ({error.kind.value}): {error.message}")

    def _set_error(self, error: SubmissionError) -> None:
        self._error_message = error.message
        self._error_kind = error.kind

    def _clear_error(self) -> None:
        self._error_message = ""
        self._error_kind = None

    def _ensure_mode(self, expected: InputMode) -> None:
        if self._mode != expected:
            raise InputModeMismatchError(expected, self._mode)


# Singleton instance
_submission_controller: SubmissionController | None = None


def get_submission_controller() -> SubmissionController:
    """Get or create the session's submission controller."""
    global _submission_controller
    if _submission_controller is None:
        _submission_controller = SubmissionController()
    return _submission_controller
