"""Authentication schemas."""

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Login request body."""

    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """
    Login response.

    The token is also set as a cookie; API clients send it back as
    `Authorization: Bearer <access_token>`.
    """

    user_id: int
    role: str
    access_token: str
    token_type: str = Field(default="bearer")
    expires_in: int = Field(..., description="Token lifetime in seconds")


class TokenPayload(BaseModel):
    """Claims carried by a verified access token."""

    user_id: int
    role: str
