"""Courier models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, computed_field

from orderflow.models.common import utcnow


class CourierResponse(str, Enum):
    """A courier's answer to an assignment."""

    ACCEPT = "ACCEPT"
    REJECT = "REJECT"


class Courier(BaseModel):
    """Delivery courier profile, keyed by the courier actor's id."""

    id: int
    name: str
    phone_number: str | None = None
    is_online: bool = False
    is_available: bool = False
    profile_picture_url: str | None = None
    rating_count: int = Field(default=0, ge=0)
    rating_total: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utcnow)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def average_rating(self) -> float | None:
        if not self.rating_count:
            return None
        return round(self.rating_total / self.rating_count, 2)

    @property
    def is_eligible(self) -> bool:
        """Check if courier can be offered an assignment."""
        return self.is_online and self.is_available
