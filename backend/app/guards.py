"""Session lookup and the guards that run before protected handlers.

A guard receives the current session (or ``None``) and returns ``None`` to let
the request through, or the response that ends it. ``GuardPipeline`` runs its
guards in order and stops at the first rejection, so authentication is always
checked before role when both are listed.
"""
from typing import Callable, Optional

from fastapi import Depends, Request
from starlette.responses import PlainTextResponse, RedirectResponse, Response

from .errors import GuardRejected
from .models import Role
from .sessions import SessionRecord, SessionStore

LOGIN_PATH = "/login"

Guard = Callable[[Optional[SessionRecord]], Optional[Response]]


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_current_session(
    request: Request,
    store: SessionStore = Depends(get_session_store),
) -> Optional[SessionRecord]:
    token = request.cookies.get(request.app.state.settings.session_cookie_name)
    return store.get(token)


def require_user(session: Optional[SessionRecord]) -> Optional[Response]:
    if session is not None and session.user is not None:
        return None
    return RedirectResponse(LOGIN_PATH, status_code=302)


def require_role(role: Role) -> Guard:
    def guard(session: Optional[SessionRecord]) -> Optional[Response]:
        user = session.user if session is not None else None
        if user is not None and user.role is role:
            return None
        return PlainTextResponse("Access denied", status_code=403)

    guard.__name__ = f"require_{role.value}"
    return guard


class GuardPipeline:
    """FastAPI dependency that applies guards in a fixed order."""

    def __init__(self, *guards: Guard) -> None:
        self.guards = guards

    def __call__(
        self, session: Optional[SessionRecord] = Depends(get_current_session)
    ) -> Optional[SessionRecord]:
        for guard in self.guards:
            rejection = guard(session)
            if rejection is not None:
                raise GuardRejected(rejection)
        return session


authenticated = GuardPipeline(require_user)
admin_only = GuardPipeline(require_user, require_role(Role.ADMIN))


async def guard_rejected_handler(request: Request, exc: GuardRejected) -> Response:
    return exc.response


__all__ = [
    "GuardPipeline",
    "admin_only",
    "authenticated",
    "get_current_session",
    "get_session_store",
    "guard_rejected_handler",
    "require_role",
    "require_user",
]
