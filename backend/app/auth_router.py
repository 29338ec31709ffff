from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from .errors import StorageError
from .guards import get_current_session, get_session_store
from .models import UserSnapshot
from .rendering import templates
from .sessions import SessionRecord, SessionStore
from .user_store import UserStore

router = APIRouter(tags=["auth"])
logger = logging.getLogger("uvicorn.error")


def get_user_store(request: Request) -> UserStore:
    store = getattr(request.app.state, "user_store", None)
    if store is None:
        raise HTTPException(status_code=500, detail="User store not initialized")
    return store


@router.get("/login", response_class=HTMLResponse)
def login_form(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(request, "login.html", {})


@router.get("/signup", response_class=HTMLResponse)
def signup_form(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(request, "signup.html", {})


@router.post("/signup")
def signup(
    username: str = Form(...),
    email: str = Form(...),
    password: str = Form(...),
    users: UserStore = Depends(get_user_store),
) -> RedirectResponse:
    username = username.strip()
    email = email.strip()
    if not username or not email or not password:
        raise HTTPException(status_code=400, detail="Username, email and password are required")
    try:
        users.create_user(username=username, email=email, password=password)
    except ValueError as exc:
        if str(exc) == "username_exists":
            raise HTTPException(status_code=409, detail="User already exists with this username.") from exc
        raise HTTPException(status_code=409, detail="User already exists with this email.") from exc
    except StorageError as exc:
        logger.exception("Error registering user")
        raise HTTPException(status_code=500, detail="Error registering user") from exc
    logger.info("Registered user %s", username)
    return RedirectResponse("/login", status_code=303)


@router.post("/login")
def login(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    users: UserStore = Depends(get_user_store),
    sessions: SessionStore = Depends(get_session_store),
) -> RedirectResponse:
    try:
        record = users.authenticate(email, password)
    except StorageError as exc:
        logger.exception("Error logging in")
        raise HTTPException(status_code=500, detail="Error logging in") from exc
    if record is None:
        raise HTTPException(status_code=401, detail="Invalid email or password.")

    session = sessions.create(UserSnapshot.from_record(record))
    settings = request.app.state.settings
    response = RedirectResponse("/", status_code=303)
    response.set_cookie(
        settings.session_cookie_name,
        session.token,
        max_age=sessions.ttl_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    logger.info("User %s logged in", record["username"])
    return response


@router.post("/logout")
def logout(
    request: Request,
    sessions: SessionStore = Depends(get_session_store),
    session: Optional[SessionRecord] = Depends(get_current_session),
) -> RedirectResponse:
    settings = request.app.state.settings
    if session is not None:
        sessions.destroy(session.token)
        if session.user is not None:
            logger.info("User %s logged out", session.user.username)
    response = RedirectResponse("/login", status_code=303)
    response.delete_cookie(settings.session_cookie_name)
    return response
