import base64
from dataclasses import dataclass, field
from pathlib import Path

from ocr_client.schemas.ocr import OCRRequest
from ocr_client.schemas.submission import InputMode, TargetLanguage
from ocr_client.utils.file_validation import DEFAULT_CONTENT_TYPE, detect_image_type, validate_filename


@dataclass(frozen=True)
class ImageFile:
    """An image picked for upload."""

    filename: str
    content: bytes = field(repr=False)
    content_type: str = DEFAULT_CONTENT_TYPE

    @classmethod
    def from_bytes(cls, filename: str, content: bytes, content_type: str | None = None) -> "ImageFile":
        """
        Build an image file from in-memory bytes.

        The content type is sniffed from the magic bytes when not given.

        Raises:
            ValidationError: If the filename is invalid.
        """
        content_type = content_type or detect_image_type(content[:32]) or DEFAULT_CONTENT_TYPE
        return cls(filename=validate_filename(filename), content=content, content_type=content_type)

    @classmethod
    def from_path(cls, path: Path | str) -> "ImageFile":
        """Read an image file from disk."""
        path = Path(path)
        return cls.from_bytes(path.name, path.read_bytes())

    def preview_reference(self) -> str:
        """Data URI that renders the image without touching the service."""
        encoded = base64.b64encode(self.content).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"


@dataclass(frozen=True)
class FileInput:
    """Pending input for file mode."""

    file: ImageFile
    mode = InputMode.FILE

    @property
    def preview(self) -> str:
        return self.file.preview_reference()

    def build_request(self, target_language: TargetLanguage | None) -> OCRRequest:
        """Multipart body: the file under 'file', plus 'target_lang' when chosen."""
        data = {"target_lang": target_language.value} if target_language is not None else {}
        return OCRRequest(
            mode=self.mode,
            files={"file": (self.file.filename, self.file.content, self.file.content_type)},
            data=data,
        )


@dataclass(frozen=True)
class UrlInput:
    """Pending input for URL mode."""

    url: str
    mode = InputMode.URL

    @property
    def preview(self) -> str:
        return self.url

    def build_request(self, target_language: TargetLanguage | None) -> OCRRequest:
        """JSON body: {url, target_lang?}."""
        body = {"url": self.url}
        if target_language is not None:
            body["target_lang"] = target_language.value
        return OCRRequest(mode=self.mode, json=body)


PendingInput = FileInput | UrlInput
