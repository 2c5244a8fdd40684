"""Authentication schemas."""

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Login request body."""

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class RegisterRequest(BaseModel):
    """Customer sign-up. Field rules are enforced by the account service."""

    name: str = Field(..., max_length=100)
    phone: str = Field(..., max_length=20)
    email: str = Field(..., max_length=255)
    password: str = Field(..., max_length=128)
    address: str = Field(..., max_length=500)


class Token(BaseModel):
    """JWT token response."""

    access_token: str
    token_type: str = "bearer"
