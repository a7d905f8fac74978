"""Actor accounts, bearer tokens and bans."""

import secrets

import pydantic

from orderflow.errors import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from orderflow.models.actor import Actor, RequestContext, Role
from orderflow.models.courier import Courier
from orderflow.services.base import BaseService
from orderflow.state.store import OrderStore


class AccountService(BaseService):
    """
    Account service for admins and request authentication.

    Tokens are opaque random strings mapped to an actor id in the store with
    a TTL. A banned actor's tokens stop authenticating immediately.
    """

    def __init__(self, store: OrderStore):
        super().__init__("account_service", store)

    async def register(
        self,
        role: Role,
        name: str,
        email: str | None = None,
        phone_number: str | None = None,
        profile_picture_url: str | None = None,
    ) -> Actor:
        """Create an actor; couriers also get an offline courier profile."""
        try:
            actor = Actor(
                id=await self.store.next_id("actor"),
                role=role,
                name=name,
                email=email,
            )
        except pydantic.ValidationError as e:
            raise ValidationError(f"Invalid account: {e.errors()[0]['msg']}") from e

        await self.store.save_actor(actor)

        if role == Role.COURIER:
            await self.store.save_courier(
                Courier(
                    id=actor.id,
                    name=name,
                    phone_number=phone_number,
                    profile_picture_url=profile_picture_url,
                )
            )

        self.audit.logger.info("actor_registered", actor_id=actor.id, role=role.value)
        return actor

    async def create_actor(
        self,
        ctx: RequestContext,
        role: Role,
        name: str,
        email: str | None = None,
        phone_number: str | None = None,
        profile_picture_url: str | None = None,
    ) -> Actor:
        self.require_role(ctx, Role.ADMIN)
        return await self.register(role, name, email, phone_number, profile_picture_url)

    async def issue_token(self, actor_id: int) -> str:
        """Mint a bearer token for an existing actor."""
        if await self.store.get_actor(actor_id) is None:
            raise NotFoundError(f"Actor {actor_id} not found")

        token = secrets.token_urlsafe(32)
        await self.store.save_token(
            token, actor_id, ttl=self.settings.access_token_expire_minutes * 60
        )

        self.audit.logger.info("token_issued", actor_id=actor_id)
        return token

    async def issue_token_for(self, ctx: RequestContext, actor_id: int) -> str:
        self.require_role(ctx, Role.ADMIN)
        return await self.issue_token(actor_id)

    async def authenticate(self, token: str | None, request_id: str | None = None) -> RequestContext:
        """
        Resolve a bearer token into a request context.

        Raises:
            AuthenticationError: missing, unknown or expired token
            AuthorizationError: the actor is banned
        """
        if not token:
            raise AuthenticationError("Missing bearer token")

        actor_id = await self.store.resolve_token(token)
        actor = await self.store.get_actor(actor_id) if actor_id is not None else None
        if actor is None:
            raise AuthenticationError("Invalid or expired token")

        if actor.is_banned:
            raise AuthorizationError(f"Actor {actor.id} is banned")

        if request_id:
            return RequestContext(actor=actor, request_id=request_id)
        return RequestContext(actor=actor)

    async def set_banned(self, ctx: RequestContext, actor_id: int, banned: bool) -> Actor:
        """Ban or unban an actor."""
        self.require_role(ctx, Role.ADMIN)
        if actor_id == ctx.actor_id:
            raise ValidationError("Admins cannot change their own ban status")

        actor = await self.store.update_actor(
            actor_id, lambda current: current.model_copy(update={"is_banned": banned})
        )

        self.audit.logger.info(
            "actor_ban_changed", actor_id=actor_id, banned=banned, admin_id=ctx.actor_id
        )
        return actor

    async def is_banned(self, ctx: RequestContext, actor_id: int) -> bool:
        self.require_role(ctx, Role.ADMIN)
        actor = await self.store.get_actor(actor_id)
        if actor is None:
            raise NotFoundError(f"Actor {actor_id} not found")
        return actor.is_banned

    async def list_actors(self, ctx: RequestContext, role: Role | None = None) -> list[Actor]:
        self.require_role(ctx, Role.ADMIN)
        return [
            actor
            for actor in await self.store.list_actors()
            if role is None or actor.role == role
        ]
