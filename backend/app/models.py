"""Domain types and pydantic models shared by the routers."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Role":
        """Normalise free-form role text; raises ValueError for unknown roles."""
        normalized = (value or "").strip().lower()
        for role in cls:
            if role.value == normalized:
                return role
        raise ValueError(f"Unknown role: {value!r}")


@dataclass(frozen=True)
class UserSnapshot:
    """Public user fields frozen at login time."""

    id: int
    username: str
    email: str
    role: Role
    permissions: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_record(cls, record: dict) -> "UserSnapshot":
        return cls(
            id=record["id"],
            username=record["username"],
            email=record["email"],
            role=record["role"],
            permissions=tuple(record.get("permissions") or ()),
        )


class PageViewPoint(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: str
    page_views: int = Field(alias="pageViews")


class DailyCounterPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: str
    page_views: int = Field(alias="pageViews")
    button_clicks: int = Field(alias="buttonClicks")
