"""User data models."""

from pydantic import BaseModel, Field

from utils.constants import ALLOWED_USER_TYPES, ANONYMOUS_USER_TYPE


class ActingUser(BaseModel):
    """Signed-in user as reported by the session endpoint."""

    id: int | str = Field(..., description="Backend user identifier")
    email: str | None = Field(None, description="User email address")
    role: str | None = Field(None, description="farmer, supplier, driver, admin, ...")
    name: str | None = Field(None, description="Display name")

    @property
    def user_type(self) -> str:
        """Role mapped onto the backend user_type enum."""
        if self.role and self.role in ALLOWED_USER_TYPES:
            return self.role
        return ANONYMOUS_USER_TYPE
