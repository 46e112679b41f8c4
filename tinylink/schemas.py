from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, HttpUrl, TypeAdapter, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from tinylink.shortcodes import CODE_PATTERN

_http_url = TypeAdapter(HttpUrl)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LinkCreate(CamelModel):
    target_url: str
    code: str | None = None

    @field_validator("target_url")
    @classmethod
    def check_target_url(cls, value: str) -> str:
        value = value.strip()
        if len(value) > 2048:
            raise ValueError("URL is too long")
        try:
            _http_url.validate_python(value)
        except ValueError:
            raise ValueError("Please enter a valid URL") from None
        # Stored as submitted, not in pydantic's normalised form
        return value

    @field_validator("code", mode="before")
    @classmethod
    def blank_code_is_absent(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("code")
    @classmethod
    def check_code(cls, value: str | None) -> str | None:
        if value is not None and not CODE_PATTERN.fullmatch(value):
            raise ValueError("Code must be 6-8 alphanumeric characters")
        return value


class LinkOut(CamelModel):
    id: int
    code: str
    target_url: str
    clicks: int
    last_clicked: datetime | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("last_clicked", "created_at")
    def as_utc(self, value: datetime | None) -> datetime | None:
        # SQLite hands back naive datetimes; they are stored as UTC
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class SuccessOut(BaseModel):
    success: bool


class QrOut(CamelModel):
    qr_base64: str


class ConfigOut(CamelModel):
    public_base_url: str
