"""Profile record — a signed-in identity within the workspace."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Profile(BaseModel):
    """
    Row of the ``profiles`` table.

    ``workload`` and ``status`` are not guaranteed to exist on every
    backend; rows without them read as an idle, active member.
    """

    id: str
    email: str
    full_name: Optional[str] = None
    role: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    avatar_url: Optional[str] = None
    workload: int = Field(default=0)
    status: str = Field(default="active")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"extra": "ignore"}

    @field_validator("workload", mode="before")
    @classmethod
    def default_workload(cls, v):
        return 0 if v is None else v

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, v):
        return v or "active"

    @property
    def display_name(self) -> str:
        return self.full_name or self.email.split("@")[0]
