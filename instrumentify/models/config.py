"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from pydantic import BaseModel, Field, field_validator

# Separation quality tiers offered to the user
QUALITY_CHOICES = ("auto", "tiny", "medium")

DEFAULT_MODEL_URL_TINY = (
    "https://huggingface.co/yourname/instrumentify/resolve/main/htdemucs_tiny.onnx"
)
DEFAULT_MODEL_URL_MEDIUM = (
    "https://huggingface.co/yourname/instrumentify/resolve/main/htdemucs_medium.onnx"
)
DEFAULT_REDIRECT_URI = "http://127.0.0.1:8888/callback"
DEFAULT_ARCHIVE_NAME = "instrumentals.zip"


class AppConfig(BaseModel):
    """A validated configuration model for the application."""

    # Identity & playlist source
    spotify_client_id: str = ""
    redirect_uri: str = DEFAULT_REDIRECT_URI
    token: str = ""

    # Search providers
    soundcloud_client_id: str = ""
    jamendo_client_id: str = ""
    cache_client_id: bool = False

    # Separation
    model_url_tiny: str = DEFAULT_MODEL_URL_TINY
    model_url_medium: str = DEFAULT_MODEL_URL_MEDIUM
    quality: str = "auto"
    gpu_descriptor: str = ""

    # Session
    max_workers: int = 4
    archive_name: str = DEFAULT_ARCHIVE_NAME

    # Internal fields not loaded from INI file
    config_path: str = Field(..., repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("quality")
    @classmethod
    def validate_quality(cls, v: str) -> str:
        """Normalizes the quality tier and ensures it is one we can serve."""
        v = v.lower()
        if v not in QUALITY_CHOICES:
            raise ValueError(f"Quality must be one of {', '.join(QUALITY_CHOICES)}.")
        return v

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        """Ensures a reasonable number of workers."""
        if v < 1 or v > 32:
            raise ValueError("Max workers must be between 1 and 32.")
        return v

    @field_validator("model_url_tiny", "model_url_medium")
    @classmethod
    def validate_model_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Model URL must be an http(s) URL, got: {v!r}")
        return v

    @field_validator("archive_name")
    @classmethod
    def validate_archive_name(cls, v: str) -> str:
        if not v.lower().endswith(".zip"):
            raise ValueError("Archive name must end with '.zip'.")
        return v

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path"}
        return {key for key in cls.model_fields if key not in internal_fields}
