from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OCR service
    service_base_url: str = "https://tesocr-fa5p.onrender.com"
    upload_endpoint: str = "/ocr/upload"
    url_endpoint: str = "/ocr/url"
    request_timeout: Optional[float] = Field(
        default=None, gt=0, description="Per-request timeout in seconds (None disables the timeout)"
    )

    # Session surface
    debug: bool = False
    max_upload_size_mb: int = Field(default=50, gt=0, description="Largest image accepted by the session surface")

    def endpoint_url(self, endpoint: str) -> str:
        """Join the service base address with an endpoint path."""
        return f"{self.service_base_url.rstrip('/')}/{endpoint.lstrip('/')}"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
