from datetime import datetime

from pydantic import Field

from estatedesk.schemas.camel_model import CamelModel
from estatedesk.schemas.user import EMAIL_PATTERN


class PropertyCreate(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    address: str | None = Field(default=None, max_length=500)


class PropertyRead(CamelModel):
    id: int
    name: str
    address: str | None = None
    created_at: datetime


class TenantCreate(CamelModel):
    property_id: int
    full_name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=5, max_length=255, pattern=EMAIL_PATTERN)


class TenantRead(CamelModel):
    id: int
    property_id: int
    full_name: str
    email: str
    is_active: bool
    created_at: datetime
