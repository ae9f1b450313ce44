"""
GraphQL Context Utilities

Builds the per-request context dict and gives resolvers typed access to it.
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING, Any

from fastapi import Request, Response
from strawberry.types import Info

from marketplace.modules.identity.domain.validation import CredentialPolicy
from marketplace.modules.identity.infrastructure.session_store import SessionBinding

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from marketplace.core.config import Settings
    from marketplace.core.database import SessionManager
    from marketplace.core.security import PasswordHasher
    from marketplace.modules.identity.infrastructure.geocoding import Geocoder


async def get_context(request: Request, response: Response) -> dict[str, Any]:
    """
    Context for one GraphQL request.

    Long-lived collaborators come from ``app.state``; the session binding is
    created per request so cookies set by resolvers land on this response.
    """
    state = request.app.state
    settings = state.settings
    return {
        "request": request,
        "response": response,
        "settings": settings,
        "session_manager": state.session_manager,
        "hasher": state.hasher,
        "geocoder": state.geocoder,
        "session": SessionBinding(
            store=state.session_store,
            config=settings.session,
            cookies=request.cookies,
            response=response,
        ),
    }


class GraphQLContext:
    """Helper class for accessing GraphQL context in resolvers."""

    def __init__(self, info: Info):
        self.info = info
        self.context = info.context

    @property
    def request(self) -> Request:
        return self.context["request"]

    @property
    def response(self) -> Response:
        return self.context["response"]

    @property
    def settings(self) -> Settings:
        return self.context["settings"]

    @property
    def session(self) -> SessionBinding:
        """Session binding shared by every resolver of this request."""
        return self.context["session"]

    @property
    def hasher(self) -> PasswordHasher:
        return self.context["hasher"]

    @property
    def geocoder(self) -> Geocoder:
        return self.context["geocoder"]

    @property
    def policy(self) -> CredentialPolicy:
        return CredentialPolicy.from_config(self.settings.security)

    def unit_of_work(self) -> AbstractAsyncContextManager[AsyncSession]:
        """
        Database session for one operation.

        Usage:
            async with ctx.unit_of_work() as db:
                ...  # committed on success, rolled back on error
        """
        session_manager: SessionManager | None = self.context.get("session_manager")
        if session_manager is None:
            raise RuntimeError("Database session manager not available in context")
        return session_manager.get_session()
