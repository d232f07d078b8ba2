from sqlmodel import Field

from estatedesk.models.base import BaseTable, SoftDeletableTable


class Property(SoftDeletableTable, table=True):
    __tablename__: str = "properties"  # type: ignore[assignment]

    name: str = Field(nullable=False, index=True, max_length=200)
    address: str | None = Field(default=None, max_length=500)


class Tenant(BaseTable, table=True):
    __tablename__: str = "tenants"  # type: ignore[assignment]

    property_id: int = Field(nullable=False, foreign_key="properties.id", index=True)
    full_name: str = Field(nullable=False, max_length=255)
    email: str = Field(nullable=False, index=True, max_length=255)
    is_active: bool = Field(default=True, nullable=False)
