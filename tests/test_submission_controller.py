import asyncio
import base64

import pytest

from ocr_client.schemas.inputs import ImageFile
from ocr_client.schemas.submission import ErrorKind, InputMode, SubmissionStatus, TargetLanguage
from ocr_client.services.ocr_service import GENERIC_FAILURE_MESSAGE, ServiceError, TransportError
from ocr_client.services.submission_controller import (
    PROCESSING_PLACEHOLDER,
    InputModeMismatchError,
    SubmissionController,
)

JPEG_HEADER = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00"


class FakeOCRService:
    """Records requests and replays a fixed outcome."""

    def __init__(self, text="Hello", error=None):
        self.text = text
        self.error = error
        self.requests = []

    async def __call__(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.text


def _jpeg(name="photo.jpg"):
    return ImageFile.from_bytes(name, JPEG_HEADER + b"rest-of-image")


def test_initial_snapshot_is_idle_and_empty():
    snap = SubmissionController(FakeOCRService()).snapshot
    assert snap.mode == InputMode.FILE
    assert snap.status == SubmissionStatus.IDLE
    assert snap.result == "" and snap.error_message == "" and snap.display == ""
    assert snap.preview == ""
    assert snap.can_submit


def test_submit_without_file_reports_missing_input_and_does_not_dispatch():
    service = FakeOCRService()
    controller = SubmissionController(service)

    snap = asyncio.run(controller.submit())

    assert service.requests == []
    assert snap.status == SubmissionStatus.IDLE
    assert snap.error_kind == ErrorKind.MISSING_INPUT
    assert snap.error_message == "Please select a file first"
    assert snap.display == "Please select a file first"


def test_submit_without_url_reports_missing_input():
    service = FakeOCRService()
    controller = SubmissionController(service, mode=InputMode.URL)
    controller.set_url_input("")

    snap = asyncio.run(controller.submit())

    assert service.requests == []
    assert snap.error_message == "Please enter an image URL"
    assert snap.status == SubmissionStatus.IDLE


def test_missing_input_keeps_settled_status():
    controller = SubmissionController(FakeOCRService(text="first"), mode=InputMode.URL)
    controller.set_url_input("https://x/img.png")
    asyncio.run(controller.submit())
    controller.set_url_input("")

    snap = asyncio.run(controller.submit())

    assert snap.status == SubmissionStatus.SUCCEEDED
    assert snap.error_kind == ErrorKind.MISSING_INPUT
    assert snap.error_message == "Please enter an image URL"
    assert snap.display == "Please enter an image URL"
    assert snap.result == ""


def test_cancelled_submission_does_not_stay_pending():
    service = FakeOCRService(text="second try")

    async def hanging_service(request):
        await asyncio.sleep(10)
        return "never"

    controller = SubmissionController(hanging_service)
    controller.set_file_input(_jpeg())

    async def scenario():
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(controller.submit(), timeout=0.05)

    asyncio.run(scenario())

    snap = controller.snapshot
    assert snap.status == SubmissionStatus.FAILED
    assert snap.can_submit
    assert snap.error_kind == ErrorKind.TRANSPORT_ERROR
    assert snap.error_message == GENERIC_FAILURE_MESSAGE
    assert snap.display == GENERIC_FAILURE_MESSAGE

    controller._call_ocr_service = service
    snap = asyncio.run(controller.submit())
    assert len(service.requests) == 1
    assert snap.status == SubmissionStatus.SUCCEEDED
    assert snap.result == "second try"


def test_file_submission_without_language_sends_file_field_only():
    # Scenario A
    service = FakeOCRService(text="Hello")
    controller = SubmissionController(service)
    controller.set_file_input(_jpeg())
    controller.set_target_language(None)

    snap = asyncio.run(controller.submit())

    assert len(service.requests) == 1
    request = service.requests[0]
    assert request.mode == InputMode.FILE
    assert request.json is None
    assert request.files == {"file": ("photo.jpg", JPEG_HEADER + b"rest-of-image", "image/jpeg")}
    assert request.data == {}
    assert snap.status == SubmissionStatus.SUCCEEDED
    assert snap.result == "Hello"
    assert snap.error_message == ""
    assert snap.display == "Hello"


def test_file_submission_with_language_adds_target_lang_field():
    service = FakeOCRService()
    controller = SubmissionController(service)
    controller.set_file_input(_jpeg())
    controller.set_target_language("fr")

    asyncio.run(controller.submit())

    assert service.requests[0].data == {"target_lang": "fr"}


def test_url_submission_failure_shows_server_message():
    # Scenario B
    service = FakeOCRService(error=ServiceError(500, "bad image"))
    controller = SubmissionController(service)
    controller.select_mode(InputMode.URL)
    controller.set_url_input("https://x/img.png")
    controller.set_target_language("es")

    snap = asyncio.run(controller.submit())

    request = service.requests[0]
    assert request.mode == InputMode.URL
    assert request.json == {"url": "https://x/img.png", "target_lang": "es"}
    assert request.files is None
    assert snap.status == SubmissionStatus.FAILED
    assert snap.error_message == "bad image"
    assert snap.error_kind == ErrorKind.SERVICE_ERROR
    assert snap.result == ""
    assert snap.display == "bad image"


def test_url_submission_without_language_omits_target_lang():
    service = FakeOCRService()
    controller = SubmissionController(service, mode=InputMode.URL)
    controller.set_url_input("https://x/img.png")

    asyncio.run(controller.submit())

    assert service.requests[0].json == {"url": "https://x/img.png"}


def test_service_error_without_message_uses_fallback():
    controller = SubmissionController(FakeOCRService(error=ServiceError(502)))
    controller.set_file_input(_jpeg())

    snap = asyncio.run(controller.submit())

    assert snap.status == SubmissionStatus.FAILED
    assert snap.error_message == GENERIC_FAILURE_MESSAGE


def test_transport_error_uses_fallback():
    controller = SubmissionController(FakeOCRService(error=TransportError()))
    controller.set_file_input(_jpeg())

    snap = asyncio.run(controller.submit())

    assert snap.status == SubmissionStatus.FAILED
    assert snap.error_kind == ErrorKind.TRANSPORT_ERROR
    assert snap.error_message == GENERIC_FAILURE_MESSAGE


def test_unexpected_exception_is_contained():
    controller = SubmissionController(FakeOCRService(error=KeyError("text")))
    controller.set_file_input(_jpeg())

    snap = asyncio.run(controller.submit())

    assert snap.status == SubmissionStatus.FAILED
    assert snap.error_kind == ErrorKind.TRANSPORT_ERROR
    assert snap.error_message == GENERIC_FAILURE_MESSAGE


def test_success_after_failure_clears_error():
    service = FakeOCRService(error=ServiceError(500, "bad image"))
    controller = SubmissionController(service)
    controller.set_file_input(_jpeg())
    asyncio.run(controller.submit())

    service.error = None
    service.text = "Recovered"
    snap = asyncio.run(controller.submit())

    assert snap.status == SubmissionStatus.SUCCEEDED
    assert snap.result == "Recovered"
    assert snap.error_message == ""
    assert snap.error_kind is None


def test_second_submit_while_pending_is_ignored():
    # Scenario C
    async def scenario():
        release = asyncio.Event()
        calls = []

        async def slow_service(request):
            calls.append(request)
            await release.wait()
            return "done"

        controller = SubmissionController(slow_service)
        controller.set_file_input(_jpeg())

        first = asyncio.create_task(controller.submit())
        await asyncio.sleep(0)
        pending = controller.snapshot
        second = await controller.submit()
        release.set()
        final = await first
        return calls, pending, second, final

    calls, pending, second, final = asyncio.run(scenario())

    assert len(calls) == 1
    assert pending.status == SubmissionStatus.PENDING
    assert pending.display == PROCESSING_PLACEHOLDER
    assert not pending.can_submit
    assert second.status == SubmissionStatus.PENDING
    assert final.status == SubmissionStatus.SUCCEEDED
    assert final.result == "done"


def test_select_mode_clears_result_and_keeps_inputs():
    controller = SubmissionController(FakeOCRService(text="Hello"))
    controller.set_file_input(_jpeg())
    asyncio.run(controller.submit())

    controller.select_mode(InputMode.URL)
    controller.set_url_input("https://x/img.png")
    snap = controller.select_mode(InputMode.FILE)

    assert snap.result == "" and snap.error_message == ""
    assert snap.status == SubmissionStatus.IDLE
    assert snap.file_name == "photo.jpg"
    assert snap.url == "https://x/img.png"
    assert snap.preview.startswith("data:image/jpeg;base64,")

    snap = controller.select_mode("url")
    assert snap.preview == "https://x/img.png"


def test_select_mode_clears_error():
    controller = SubmissionController(FakeOCRService(error=ServiceError(400, "nope")))
    controller.set_file_input(_jpeg())
    asyncio.run(controller.submit())

    snap = controller.select_mode(InputMode.FILE)

    assert snap.error_message == ""
    assert snap.error_kind is None
    assert snap.status == SubmissionStatus.IDLE


def test_mode_switch_during_submission_lets_it_settle():
    async def scenario():
        release = asyncio.Event()

        async def slow_service(request):
            await release.wait()
            return "late text"

        controller = SubmissionController(slow_service)
        controller.set_file_input(_jpeg())
        task = asyncio.create_task(controller.submit())
        await asyncio.sleep(0)
        switched = controller.select_mode(InputMode.URL)
        release.set()
        return switched, await task

    switched, final = asyncio.run(scenario())

    assert switched.status == SubmissionStatus.PENDING
    assert final.status == SubmissionStatus.SUCCEEDED
    assert final.result == "late text"


def test_set_file_input_ignores_cancelled_selection():
    controller = SubmissionController(FakeOCRService())
    controller.set_file_input(_jpeg())

    snap = controller.set_file_input(None)

    assert snap.file_name == "photo.jpg"


def test_file_preview_is_data_uri_of_content():
    controller = SubmissionController(FakeOCRService())
    image = _jpeg()

    snap = controller.set_file_input(image)

    encoded = snap.preview.split(",", 1)[1]
    assert base64.b64decode(encoded) == image.content


def test_url_preview_is_the_url():
    controller = SubmissionController(FakeOCRService(), mode=InputMode.URL)
    snap = controller.set_url_input("https://x/img.png")
    assert snap.preview == "https://x/img.png"


def test_clear_preview_keeps_pending_input():
    service = FakeOCRService()
    controller = SubmissionController(service, mode=InputMode.URL)
    controller.set_url_input("https://x/broken.png")

    snap = controller.clear_preview()

    assert snap.preview == ""
    assert snap.url == "https://x/broken.png"
    asyncio.run(controller.submit())
    assert service.requests[0].json == {"url": "https://x/broken.png"}


def test_setting_input_for_inactive_mode_raises():
    controller = SubmissionController(FakeOCRService())
    with pytest.raises(InputModeMismatchError):
        controller.set_url_input("https://x/img.png")

    controller.select_mode(InputMode.URL)
    with pytest.raises(InputModeMismatchError):
        controller.set_file_input(_jpeg())


def test_input_edit_keeps_previous_result():
    controller = SubmissionController(FakeOCRService(text="Hello"), mode=InputMode.URL)
    controller.set_url_input("https://x/img.png")
    asyncio.run(controller.submit())

    snap = controller.set_url_input("https://x/other.png")

    assert snap.result == "Hello"
    assert snap.status == SubmissionStatus.SUCCEEDED


@pytest.mark.parametrize("value", [None, "", "none", "NONE"])
def test_target_language_none_values(value):
    controller = SubmissionController(FakeOCRService())
    controller.set_target_language("de")
    assert controller.set_target_language(value).target_language is None


def test_target_language_accepts_codes_and_members():
    controller = SubmissionController(FakeOCRService())
    assert controller.set_target_language("zh").target_language == TargetLanguage.CHINESE
    assert controller.set_target_language(TargetLanguage.JAPANESE).target_language == TargetLanguage.JAPANESE


def test_target_language_rejects_unknown_code():
    controller = SubmissionController(FakeOCRService())
    with pytest.raises(ValueError):
        controller.set_target_language("klingon")
