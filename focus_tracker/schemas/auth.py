from pydantic import BaseModel, Field

from focus_tracker.schemas.base import CamelModel


class AuthenticatedUser(BaseModel):
    """Caller identity taken from a verified session token."""

    id: str


class CallbackQuery(BaseModel):
    code: str = Field(min_length=1)


class AuthorizeResponse(CamelModel):
    redirect_url: str


class LoginResponse(CamelModel):
    id: str
    avatar_url: str | None = None
    name: str | None = None
    token: str
