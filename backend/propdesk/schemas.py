# backend/propdesk/schemas.py
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .config import settings
from .domain.enums import SpaceType
from .domain.windows import DateWindow, parse_window


def _split_amenities(v: Any) -> List[str]:
    if v is None:
        return []
    if isinstance(v, str):
        return [x.strip() for x in v.split(",") if x.strip()]
    return [str(x).strip() for x in v if str(x).strip()]


# -------------------- Spaces --------------------

class SpaceFields(BaseModel):
    name: Optional[str] = Field(default=None, max_length=160)
    space_type: SpaceType = SpaceType.UNIT
    floor: Optional[int] = Field(default=None, ge=1)
    bedrooms: Optional[int] = Field(default=None, ge=0)
    bathrooms: Optional[float] = Field(default=None, ge=0)
    square_feet: Optional[int] = Field(default=None, ge=0)
    rent: Optional[float] = Field(default=None, ge=0)
    deposit: Optional[float] = Field(default=None, ge=0)
    description: Optional[str] = None
    amenities: List[str] = Field(default_factory=list)

    @field_validator("amenities", mode="before")
    @classmethod
    def _amenities(cls, v: Any) -> List[str]:
        return _split_amenities(v)


class SpaceCreate(SpaceFields):
    property_id: int = Field(ge=1)
    unit_number: str = Field(min_length=1, max_length=40)

    @field_validator("unit_number")
    @classmethod
    def _strip_unit(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("unit_number must not be blank")
        return v


class SpaceUpdate(BaseModel):
    """Partial update. A space never moves between properties."""

    model_config = ConfigDict(extra="forbid")

    unit_number: Optional[str] = Field(default=None, min_length=1, max_length=40)
    name: Optional[str] = Field(default=None, max_length=160)
    space_type: Optional[SpaceType] = None
    floor: Optional[int] = Field(default=None, ge=1)
    bedrooms: Optional[int] = Field(default=None, ge=0)
    bathrooms: Optional[float] = Field(default=None, ge=0)
    square_feet: Optional[int] = Field(default=None, ge=0)
    rent: Optional[float] = Field(default=None, ge=0)
    deposit: Optional[float] = Field(default=None, ge=0)
    description: Optional[str] = None
    amenities: Optional[List[str]] = None

    @field_validator("unit_number", "space_type", mode="before")
    @classmethod
    def _not_null(cls, v: Any) -> Any:
        # omit the field to leave it unchanged; both columns are NOT NULL
        if v is None:
            raise ValueError("may be omitted but not null")
        return v

    @field_validator("unit_number")
    @classmethod
    def _strip_unit(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("unit_number must not be blank")
        return v

    @field_validator("amenities", mode="before")
    @classmethod
    def _amenities(cls, v: Any) -> Optional[List[str]]:
        return None if v is None else _split_amenities(v)


class SpaceQuery(BaseModel):
    search: Optional[str] = None
    property_id: Optional[int] = Field(default=None, ge=1)
    space_type: Optional[SpaceType] = None
    bedrooms: Optional[int] = Field(default=None, ge=0)
    floor: Optional[int] = Field(default=None, ge=1)
    available: Optional[bool] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=settings.spaces_default_limit, ge=1, le=settings.spaces_max_limit)

    @field_validator("available", mode="before")
    @classmethod
    def _available(cls, v: Any) -> Optional[bool]:
        if v is None or isinstance(v, bool):
            return v
        s = str(v).strip().lower()
        if s == "true":
            return True
        if s == "false":
            return False
        raise ValueError("available must be 'true' or 'false'")

    @field_validator("search")
    @classmethod
    def _search(cls, v: Optional[str]) -> Optional[str]:
        v = (v or "").strip()
        return v or None


class PropertyRef(BaseModel):
    id: int
    name: str
    address: str
    entity_id: int
    model_config = ConfigDict(from_attributes=True)


class SpaceOut(BaseModel):
    id: int
    property_id: int
    unit_number: str
    name: Optional[str] = None
    space_type: str
    floor: Optional[int] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    square_feet: Optional[int] = None
    rent: Optional[float] = None
    deposit: Optional[float] = None
    description: Optional[str] = None
    amenities: List[str] = Field(default_factory=list)
    is_occupied: bool = False
    created_at: datetime
    updated_at: datetime

    property: Optional[PropertyRef] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("amenities", mode="before")
    @classmethod
    def _amenities(cls, v: Any) -> List[str]:
        return _split_amenities(v)


class PaginationOut(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class SpaceListOut(BaseModel):
    items: List[SpaceOut]
    pagination: PaginationOut


class SpaceStatsOut(BaseModel):
    total: int
    occupied: int
    available: int


class PropertySpacesOut(BaseModel):
    property: PropertyRef
    spaces: List[SpaceOut]
    stats: SpaceStatsOut


# -------------------- Reports --------------------

class DateWindowQuery(BaseModel):
    """
    Raw ISO-8601 bounds. Parsing is deferred to window() so that a missing or
    inverted range surfaces as the app's ValidationError (400), same as the
    service layer.
    """

    start_date: Optional[str] = None
    end_date: Optional[str] = None

    def window(self, *, required: bool = True) -> Optional[DateWindow]:
        return parse_window(self.start_date, self.end_date, required=required)


class ExportReportIn(BaseModel):
    report_type: str
    entity_id: int = Field(ge=1)
    format: str = "json"
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            for k in ("report_type", "format"):
                if isinstance(data.get(k), str):
                    data[k] = data[k].strip().lower()
        return data
