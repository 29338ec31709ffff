"""Content pages."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from .guards import authenticated
from .rendering import templates
from .sessions import SessionRecord

router = APIRouter(tags=["pages"])


@router.get("/", response_class=HTMLResponse)
def home(request: Request, session: Optional[SessionRecord] = Depends(authenticated)) -> HTMLResponse:
    return templates.TemplateResponse(request, "index.html", {"user": session.user})


@router.get("/future", response_class=HTMLResponse)
def future(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(request, "future.html", {})


@router.get("/assessment", response_class=HTMLResponse)
def assessment(request: Request, session: Optional[SessionRecord] = Depends(authenticated)) -> HTMLResponse:
    return templates.TemplateResponse(request, "assessment.html", {"user": session.user})


@router.get("/courses", response_class=HTMLResponse)
def courses(request: Request, session: Optional[SessionRecord] = Depends(authenticated)) -> HTMLResponse:
    return templates.TemplateResponse(request, "courses.html", {"user": session.user})
