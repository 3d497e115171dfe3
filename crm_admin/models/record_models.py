from typing import Any, Optional
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field, field_validator

DURATION_OPTIONS = (
    "0-6 months",
    "6 months - 1 year",
    "1-3 years",
    "3-5 years",
    "Above 5 years",
)

PACKAGE_OPTIONS = ("Basic", "Standard", "Premium")


def _coerce_text(value: Any) -> Optional[str]:
    # Numbers/booleans from a sloppy payload become text; objects and arrays are treated as missing.
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return None


def parse_instant(raw: Optional[str]) -> Optional[datetime]:
    """
    Interprets a createdAt value as an aware UTC datetime.
    ISO-8601 strings (with or without 'Z', including '2024', '2024-06' and
    '20240601') are accepted; longer digit strings are epoch milliseconds.
    Returns None for missing or unparseable values.
    """
    if not raw:
        return None

    text = raw.strip()
    digits = text.lstrip("-").replace(".", "", 1).isdigit()
    if digits and len(text) not in (4, 8):
        try:
            return datetime.fromtimestamp(float(text) / 1000, tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            return None

    dt = None
    for fmt in ("%Y", "%Y%m%d", "%Y-%m"):
        try:
            dt = datetime.strptime(text, fmt)
            break
        except ValueError:
            continue

    if dt is None:
        try:
            dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class Record(BaseModel):
    """Fields shared by both record kinds. Everything is optional."""

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    id: Optional[str] = Field(default=None, alias="_id")
    name: Optional[str] = None
    contact: Optional[str] = None
    place: Optional[str] = None
    duration: Optional[str] = None
    created_at: Optional[str] = Field(default=None, alias="createdAt")

    @field_validator("*", mode="before")
    @classmethod
    def _tolerate_odd_values(cls, value):
        return _coerce_text(value)

    @property
    def created_instant(self) -> Optional[datetime]:
        return parse_instant(self.created_at)

    def display_date(self) -> str:
        """Booking/request date as shown in the console table, e.g. '05 Jun 2024'."""
        instant = self.created_instant
        if instant is None:
            return "N/A"
        return instant.strftime("%d %b %Y")

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class ConsultationRecord(Record):
    pass


class BookingRecord(Record):
    email: Optional[str] = None
    package_booked: Optional[str] = Field(default=None, alias="packageBooked")
