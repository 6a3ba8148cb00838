from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from ocr_client.schemas.submission import InputMode


@dataclass(frozen=True)
class OCRRequest:
    """A request ready to be sent to the OCR service."""

    mode: InputMode
    json: dict[str, Any] | None = None
    files: dict[str, tuple[str, bytes, str]] | None = field(default=None, repr=False)
    data: dict[str, str] = field(default_factory=dict)

    @property
    def target_language(self) -> str | None:
        if self.json is not None:
            return self.json.get("target_lang")
        return self.data.get("target_lang")


class OCRTextResponse(BaseModel):
    """Successful response body from the OCR service."""

    model_config = ConfigDict(extra="ignore")

    text: str


class OCRErrorBody(BaseModel):
    """Failure response body from the OCR service."""

    model_config = ConfigDict(extra="ignore")

    message: str | None = None

    @field_validator("message", mode="before")
    @classmethod
    def coerce_number(cls, value: Any) -> Any:
        """Numeric messages are shown as text; zero counts as no message."""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value) if value else None
        return value
