from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class InputMode(str, Enum):
    """Where the image to process comes from."""

    FILE = "file"
    URL = "url"


class SubmissionStatus(str, Enum):
    """Status of the current OCR submission."""

    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ErrorKind(str, Enum):
    """Kind of failure behind an error message."""

    MISSING_INPUT = "missing_input"
    SERVICE_ERROR = "service_error"
    TRANSPORT_ERROR = "transport_error"


class TargetLanguage(str, Enum):
    """Languages the OCR service can translate extracted text into."""

    SPANISH = "es"
    FRENCH = "fr"
    GERMAN = "de"
    CHINESE = "zh"
    JAPANESE = "ja"

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def parse(cls, value: "TargetLanguage | str | None") -> "TargetLanguage | None":
        """
        Resolve a selector value into a target language.

        None, "" and "none" mean no translation.

        Raises:
            ValueError: If the value is not a supported language code.
        """
        if value is None or isinstance(value, cls):
            return value
        code = value.strip().lower()
        if code in ("", "none"):
            return None
        try:
            return cls(code)
        except ValueError:
            supported = ", ".join(lang.value for lang in cls)
            raise ValueError(f"Unsupported target language '{value}'. Supported: none, {supported}")


class SubmissionSnapshot(BaseModel):
    """Immutable view of the submission workflow after an operation."""

    model_config = ConfigDict(frozen=True)

    mode: InputMode
    file_name: str | None = Field(default=None, description="Name of the selected file, if any")
    url: str = ""
    preview: str = Field(default="", description="Display-only preview reference for the active mode")
    target_language: TargetLanguage | None = None
    status: SubmissionStatus = Field(
        default=SubmissionStatus.IDLE,
        description=(
            "Outcome of the last dispatched submission; a rejected submit with no input "
            "sets error_message without changing it"
        ),
    )
    result: str = ""
    error_message: str = ""
    error_kind: ErrorKind | None = None
    display: str = Field(default="", description="Text shown in the results region")
    can_submit: bool = True
