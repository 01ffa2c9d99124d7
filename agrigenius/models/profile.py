"""Account and user profile models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field as PydanticField, field_validator
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from agrigenius.core.i18n import is_supported


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FarmLocation(BaseModel):
    """Farm coordinates; always carries both values."""

    lat: float = PydanticField(ge=-90.0, le=90.0)
    lon: float = PydanticField(ge=-180.0, le=180.0)


class Account(SQLModel, table=True):
    """Credential record owned by the auth backend."""

    uid: str = Field(primary_key=True, max_length=64)
    email: str = Field(max_length=320, index=True, unique=True)
    password_hash: str
    disabled: bool = False
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True), nullable=False)


class UserProfile(SQLModel, table=True):
    """One profile per authenticated identity."""

    uid: str = Field(primary_key=True, max_length=64)
    name: str = ""
    email: str = Field(default="", max_length=320)
    farm_size: str = ""
    script_url: str = Field(default="", description="Sensor telemetry endpoint polled by the dashboard")
    farm_lat: Optional[float] = None
    farm_lon: Optional[float] = None
    profile_image: str = ""
    language: str = Field(default="en", max_length=8)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True), nullable=False)
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True), nullable=False)

    @property
    def farm_location(self) -> FarmLocation | None:
        if self.farm_lat is None or self.farm_lon is None:
            return None
        return FarmLocation(lat=self.farm_lat, lon=self.farm_lon)


class ProfileUpdate(BaseModel):
    """Partial profile edit; only explicitly provided fields are merged."""

    name: Optional[str] = None
    farm_size: Optional[str] = None
    script_url: Optional[str] = None
    farm_location: Optional[FarmLocation] = None
    profile_image: Optional[str] = None
    language: Optional[str] = None

    @field_validator("language")
    @classmethod
    def _check_language(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_supported(value):
            raise ValueError(f"unsupported language: {value}")
        return value


class ProfileRead(BaseModel):
    uid: str
    name: str
    email: str
    farm_size: str
    script_url: str
    farm_location: Optional[FarmLocation] = None
    profile_image: str
    language: str

    @classmethod
    def from_record(cls, record: UserProfile) -> "ProfileRead":
        return cls(
            uid=record.uid,
            name=record.name,
            email=record.email,
            farm_size=record.farm_size,
            script_url=record.script_url,
            farm_location=record.farm_location,
            profile_image=record.profile_image,
            language=record.language,
        )


__all__ = ["Account", "FarmLocation", "ProfileRead", "ProfileUpdate", "UserProfile"]
