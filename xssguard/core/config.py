"""
Application configuration from environment variables.
Body-safe: no request content in defaults or logs.
"""
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Service configuration
    service_env: Literal["dev", "staging", "prod"] = Field(
        default="dev",
        description="Service environment"
    )
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR"]] = Field(
        default=None,
        description="Log level override (defaults to DEBUG in dev, INFO otherwise)"
    )

    # Server configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")

    # Field policy
    skip_fields: str = Field(
        default="password",
        description=(
            "Comma-separated field names that are never sanitized. "
            "Exact, case-sensitive match; order is kept."
        )
    )
    sanitize_policy: Literal["strict", "ugc"] = Field(
        default="strict",
        description=(
            "Markup policy: "
            "'strict' = strip every tag, "
            "'ugc' = keep a small set of formatting tags without attributes"
        )
    )

    # Codec behaviour
    sanitize_responses: bool = Field(
        default=True,
        description="Rewrite JSON response bodies as well as request bodies"
    )
    max_multipart_parts: int = Field(
        default=100,
        ge=1,
        le=10000,
        description="Parts read from a multipart body; later parts are dropped"
    )
    keep_all_form_values: bool = Field(
        default=True,
        description=(
            "Keep every value of a repeated urlencoded form key. "
            "False = collapse each key to its first value."
        )
    )

    @field_validator("skip_fields", mode="after")
    @classmethod
    def validate_skip_fields(cls, v: str) -> str:
        """Normalize the skip list and reject empty names."""
        names = []
        for raw in v.split(","):
            name = raw.strip()
            if not name:
                raise ValueError("SKIP_FIELDS contains an empty field name")
            if name not in names:
                names.append(name)
        return ",".join(names)

    def skip_field_names(self) -> tuple[str, ...]:
        """Skip fields as an ordered tuple."""
        return tuple(self.skip_fields.split(","))

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
