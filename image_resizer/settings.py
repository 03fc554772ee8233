"""
Configuration of the image resizer function app.

Everything is read once from the environment (Function App settings) at
startup. The thumbnail core only ever sees the resulting ThumbnailSpec.
"""

from typing import Optional

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from image_resizer.core.exceptions import ImageResizerError, InvalidSpec
from image_resizer.core.models import DEFAULT_THUMBNAIL_WIDTH, FitMode, ThumbnailSpec
from image_resizer.core.thumbnail import validate_spec


class ImproperlyConfigured(ImageResizerError):
    pass


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        extra='ignore',
        frozen=True,
        populate_by_name=True,
    )

    # ── Storage ──────────────────────────────────────────────────────────────
    connection_string: str = Field('', validation_alias='AzureWebJobsStorage')
    storage_account_url: str = Field('', validation_alias='STORAGE_ACCOUNT_URL')
    source_container: str = Field('uploads', validation_alias='SOURCE_CONTAINER')
    thumbnail_container: str = Field('thumbnails', validation_alias='THUMBNAIL_CONTAINER')

    # ── Thumbnail ────────────────────────────────────────────────────────────
    thumbnail_width: int = Field(DEFAULT_THUMBNAIL_WIDTH, validation_alias='THUMBNAIL_WIDTH')
    thumbnail_fit_mode: FitMode = Field(FitMode.WIDTH, validation_alias='THUMBNAIL_FIT_MODE')
    thumbnail_allow_upscale: bool = Field(True, validation_alias='THUMBNAIL_ALLOW_UPSCALE')
    thumbnail_quality: Optional[int] = Field(None, validation_alias='THUMBNAIL_QUALITY')

    @classmethod
    def from_environ(cls) -> 'Settings':
        try:
            return cls()
        except ValidationError as exc:
            raise ImproperlyConfigured(str(exc)) from exc

    @property
    def thumbnail(self) -> ThumbnailSpec:
        return ThumbnailSpec(
            max_width=self.thumbnail_width,
            fit_mode=self.thumbnail_fit_mode,
            allow_upscale=self.thumbnail_allow_upscale,
            quality=self.thumbnail_quality,
        )

    @field_validator('*', mode='before')
    @classmethod
    def strip_whitespace(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator('thumbnail_fit_mode', mode='before')
    @classmethod
    def lower_fit_mode(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator('thumbnail_quality', mode='before')
    @classmethod
    def empty_quality_is_unset(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode='after')
    def check(self) -> 'Settings':
        if not self.connection_string and not self.storage_account_url:
            raise ValueError('Either AzureWebJobsStorage or STORAGE_ACCOUNT_URL must be set')
        if not self.source_container or not self.thumbnail_container:
            raise ValueError('Container names must not be empty')
        if self.source_container == self.thumbnail_container:
            # Every thumbnail upload would trigger another resize.
            raise ValueError(f'Source and thumbnail container are both "{self.source_container}"')
        try:
            validate_spec(self.thumbnail)
        except InvalidSpec as exc:
            raise ValueError(str(exc)) from exc
        return self
