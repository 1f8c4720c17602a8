"""
Caller identity and capability levels.
"""

from enum import Enum

from pydantic import Field

from models.base import BaseSchema


class Role(str, Enum):
    """User roles known to the price list."""
    ADMIN = "admin"
    PROJECT_USER = "project_user"
    EMPLOYEE = "employee"


class Actor(BaseSchema):
    """The user on whose behalf a request runs."""

    id: str = Field(..., min_length=1, description="User identifier")
    role: Role = Field(..., description="User role")

    @property
    def is_admin(self) -> bool:
        """Only administrators may set or change prices."""
        return self.role == Role.ADMIN
