"""Client entity - salon client owned by a stylist."""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from pydantic import field_validator
from sqlmodel import Field, SQLModel


class Client(SQLModel, table=True):
    """Client represents a person a stylist runs consultations for."""

    __tablename__ = "clients"  # type: ignore[assignment]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    stylist_id: UUID = Field(index=True)
    full_name: str = Field(max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v: str) -> str:
        """Strip whitespace and reject blank names."""
        v = v.strip()
        if not v:
            raise ValueError("Client name is required")
        return v
