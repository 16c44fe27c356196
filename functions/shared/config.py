"""
Process-wide configuration for the account functions.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings, read once per process and never mutated."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", frozen=True
    )

    # Firebase Admin. Signing download URLs for uploaded objects needs a
    # service account key here, or a runtime identity allowed to sign blobs.
    service_account: Optional[str] = Field(default=None)
    database_url: Optional[str] = Field(default=None)
    storage_bucket: Optional[str] = Field(default=None)

    # UID of the single administrator; always passes permission checks.
    admin_uid: Optional[str] = Field(default=None)

    # When disabled, only callers holding `create_user` may create accounts.
    allow_sign_up: bool = Field(default=False)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


def firebase_options(settings: Settings) -> dict:
    """Options for `firebase_admin.initialize_app`, skipping unset values."""
    options = {}
    if settings.database_url:
        options["databaseURL"] = settings.database_url
    if settings.storage_bucket:
        options["storageBucket"] = settings.storage_bucket
    return options
