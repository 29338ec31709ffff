from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse, Response

from .auth_router import get_user_store
from .errors import StorageError
from .guards import admin_only
from .models import Role
from .rendering import templates
from .sessions import SessionRecord
from .user_store import UserStore

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(admin_only)])
logger = logging.getLogger("uvicorn.error")


def _parse_role(raw: Optional[str]) -> Role:
    try:
        return Role.parse(raw)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("", response_class=HTMLResponse)
def admin_home(
    request: Request,
    session: Optional[SessionRecord] = Depends(admin_only),
    users: UserStore = Depends(get_user_store),
) -> Response:
    try:
        administrators = users.list_users(role=Role.ADMIN)
    except StorageError:
        logger.exception("Error fetching administrators")
        return PlainTextResponse("Error fetching administrators", status_code=500)
    return templates.TemplateResponse(
        request,
        "admin/home.html",
        {"administrators": administrators, "user": session.user if session else None},
    )


@router.get("/users", response_class=HTMLResponse)
def list_users(request: Request, users: UserStore = Depends(get_user_store)) -> Response:
    try:
        records = users.list_users()
    except StorageError:
        logger.exception("Error fetching users")
        return PlainTextResponse("Error fetching users", status_code=500)
    return templates.TemplateResponse(request, "admin/users.html", {"users": records, "roles": list(Role)})


@router.get("/users/update/{username}", response_class=HTMLResponse)
def edit_user_form(username: str, request: Request, users: UserStore = Depends(get_user_store)) -> Response:
    try:
        record = users.get_by_username(username)
    except KeyError:
        return PlainTextResponse("User not found", status_code=404)
    except StorageError:
        logger.exception("Error fetching user %s", username)
        return PlainTextResponse("Error fetching user", status_code=500)
    return templates.TemplateResponse(request, "admin/update_user.html", {"record": record, "roles": list(Role)})


@router.post("/users/update")
def update_user_role(
    username: str = Form(...),
    role: str = Form(...),
    users: UserStore = Depends(get_user_store),
) -> Response:
    new_role = _parse_role(role)
    try:
        users.update_role(username, new_role)
    except KeyError:
        return PlainTextResponse("User not found", status_code=404)
    except StorageError:
        logger.exception("Error updating role for %s", username)
        return PlainTextResponse("Error updating user", status_code=500)
    logger.info("Role of %s set to %s", username, new_role.value)
    return RedirectResponse("/admin/users", status_code=303)


@router.post("/users/update/{username}")
def update_user(
    username: str,
    email: str = Form(...),
    password: str = Form(""),
    role: str = Form(...),
    users: UserStore = Depends(get_user_store),
) -> Response:
    new_role = _parse_role(role)
    try:
        users.update_user(username, email=email, password=password or None, role=new_role)
    except KeyError:
        return PlainTextResponse("User not found", status_code=404)
    except ValueError as exc:
        raise HTTPException(status_code=409, detail="Email already in use.") from exc
    except StorageError:
        logger.exception("Error updating user %s", username)
        return PlainTextResponse("Error updating user", status_code=500)
    logger.info("Updated user %s", username)
    return RedirectResponse("/admin/users", status_code=303)
