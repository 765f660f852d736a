from typing import Annotated

from fastapi import Depends, Header

from feeledger.core.auth.jwt import decode_token
from feeledger.core.auth.models import Actor, ActorRole
from feeledger.core.exceptions import AuthenticationError, AuthorizationError


async def get_current_actor(
    authorization: Annotated[str | None, Header()] = None,
) -> Actor:
    """
    Dependency to get the current caller from a JWT bearer token.

    Usage:
        @router.get("/me")
        async def get_me(actor: Actor = Depends(get_current_actor)):
            return actor
    """
    if not authorization:
        raise AuthenticationError("Authorization header required")

    if not authorization.startswith("Bearer "):
        raise AuthenticationError("Invalid authorization header format")

    token = authorization.replace("Bearer ", "")
    payload = decode_token(token, token_type="access")

    sub = payload.get("sub")
    role = payload.get("role")
    if not sub or not role:
        raise AuthenticationError("Token is missing subject or role")
    if role not in {r.value for r in ActorRole}:
        raise AuthenticationError(f"Unknown role: {role}")

    return Actor(id=str(sub), role=role, name=payload.get("name"))


def require_roles(*roles: ActorRole):
    """
    Dependency factory to require specific roles.

    Usage:
        @router.post("/fee-structures")
        async def create_structure(
            actor: Actor = Depends(require_roles(ActorRole.SCHOOL_ADMIN))
        ):
            ...
    """

    async def role_checker(
        current_actor: Actor = Depends(get_current_actor),
    ) -> Actor:
        if not current_actor.has_role(*roles):
            allowed = ", ".join(r.value for r in roles)
            raise AuthorizationError(f"Required role: {allowed}")
        return current_actor

    return role_checker


# Convenience dependencies
CurrentActor = Annotated[Actor, Depends(get_current_actor)]
AdminActor = Annotated[
    Actor, Depends(require_roles(ActorRole.SUPER_ADMIN, ActorRole.SCHOOL_ADMIN))
]
CollectorActor = Annotated[
    Actor,
    Depends(require_roles(ActorRole.SUPER_ADMIN, ActorRole.SCHOOL_ADMIN, ActorRole.STAFF)),
]
