# backend/app/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import SecretStr, Field
from typing import Optional

class Settings(BaseSettings):
    # Loaded from .env and the environment, case-insensitive; unknown keys are ignored.
    model_config = SettingsConfigDict(env_file='.env', case_sensitive=False, extra='ignore')

    # Project Settings
    PROJECT_NAME: str = Field("Freebie Finder API")
    API_V1_STR: str = Field("/api/v1")
    ENV: str = Field("nonprod")
    LOG_LEVEL: str = Field("INFO")

    # Database Settings
    DATABASE_URL: str = Field("sqlite:///./freebies.db")

    # Listing rules
    LISTING_TTL_HOURS: int = Field(48, gt=0)
    DEFAULT_SEARCH_RADIUS_MILES: float = Field(5.0, gt=0)
    MAX_SEARCH_RADIUS_MILES: float = Field(50.0, gt=0)

    # Inline photos are stored on the listing row, so keep them small
    MAX_INLINE_PHOTO_BYTES: int = Field(700_000, gt=0)

    # Cloudinary Settings (Optional, inline photos are used when unset)
    CLOUDINARY_CLOUD_NAME: Optional[str] = Field(None)
    CLOUDINARY_API_KEY: Optional[str] = Field(None)
    CLOUDINARY_API_SECRET: Optional[SecretStr] = Field(None)

    @property
    def cloudinary_enabled(self) -> bool:
        return bool(self.CLOUDINARY_CLOUD_NAME and self.CLOUDINARY_API_KEY and self.CLOUDINARY_API_SECRET)

settings = Settings()
