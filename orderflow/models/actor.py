"""Actors, roles and the request-scoped credential context."""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, EmailStr, Field

from orderflow.models.common import utcnow


class Role(str, Enum):
    """Acting role carried by a bearer token."""

    CUSTOMER = "customer"
    RESTAURANT = "restaurant"
    COURIER = "courier"
    ADMIN = "admin"


class Actor(BaseModel):
    """An account: customer, restaurant, courier or admin."""

    id: int
    role: Role
    name: str
    email: EmailStr | None = None
    is_banned: bool = False
    created_at: datetime = Field(default_factory=utcnow)


class RequestContext(BaseModel):
    """Credential context built for one request and passed to every service call."""

    actor: Actor
    request_id: str = Field(default_factory=lambda: uuid4().hex)

    @property
    def actor_id(self) -> int:
        return self.actor.id

    @property
    def role(self) -> Role:
        return self.actor.role

    def has_role(self, *roles: Role) -> bool:
        return self.actor.role in roles
