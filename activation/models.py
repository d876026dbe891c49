# activation/models.py

from pydantic import BaseModel, field_validator
from sqlalchemy import Column, Text, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class Device(Base):
    __tablename__ = "devices"
    code = Column(Text, primary_key=True)  # normalized device code
    status = Column(Text, nullable=False, default="")
    plan = Column(Text, nullable=False, default="")
    expiry = Column(Text, nullable=False, default="")  # ISO-8601 string, "" => never expires
    notes = Column(Text, nullable=False, default="")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class DeviceRecord(BaseModel):
    """What is stored for one device code. Saving always replaces all four fields."""

    status: str = ""
    plan: str = ""
    expiry: str = ""
    notes: str = ""

    @field_validator("status", "plan", "expiry", "notes", mode="before")
    @classmethod
    def _none_as_empty(cls, v):
        if v is None:
            return ""
        if not isinstance(v, str):
            return str(v)
        return v


RECORD_FIELDS = ("status", "plan", "expiry", "notes")


def record_from_payload(payload: dict) -> DeviceRecord:
    # missing keys become "", other scalars are stringified by the validator
    return DeviceRecord(**{k: payload.get(k) for k in RECORD_FIELDS})
