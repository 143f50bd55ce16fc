"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Only presence is checked here; format rules for username, email and password
belong to the domain service.
"""

from pydantic import BaseModel, Field


class RegisterUserRequest(BaseModel):
    """Request model for user registration."""

    email: str = Field(..., min_length=1, description="Email address")
    username: str = Field(..., min_length=1, description="Username (3-25 chars, a-z 0-9 _)")
    password: str = Field(..., min_length=1, description="Password (min 6 characters)")


class RegisterResponse(BaseModel):
    """Response model for successful registration."""

    id: int


class LoginRequest(BaseModel):
    """Request model for login."""

    email: str = Field(..., min_length=1, description="Email address used at registration")
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """Response model for successful login."""

    token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    """Public user profile. Never carries the password hash."""

    id: int
    email: str
    username: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
