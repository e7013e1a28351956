"""
SnapPDF Backend - Auth & Session Schemas
==========================================

What:  Request/response models for the Google login flow, and the session
       snapshot stored in Redis under each bearer token.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SessionSnapshot(BaseModel):
    """
    What:  Identity snapshot frozen at login and stored as the token's value.
    How:   Serialized with model_dump_json(); read back with model_validate_json().

    The snapshot is never refreshed. An avatar change after login shows up
    only on the next login.
    """

    user_id: str = Field(description="Primary key of the users row")
    email: str = Field(description="Verified Google email")
    avatar: Optional[str] = Field(default=None, description="Profile picture URL")
    login_at: datetime = Field(description="Issuance time (UTC)")


class AuthUrlResponse(BaseModel):
    success: bool = True
    message: str = "Google authentication URL generated successfully"
    auth_url: str = Field(description="Google consent screen URL")


class LoginRequest(BaseModel):
    # Optional here so a missing code yields MISSING_CODE instead of a 422
    code: Optional[str] = Field(default=None, description="Authorization code from Google redirect")


class UserInfo(BaseModel):
    id: str
    email: str
    avatar: Optional[str] = None


class LoginResponse(BaseModel):
    """
    What:  Returned by POST /api/auth/google/login.

    The access token is opaque; clients send it back as
    `Authorization: Bearer <access_token>`.
    """

    success: bool = True
    message: str = "Login successful"
    access_token: str
    token_type: str = "Bearer"
    expires_in: int = Field(description="Token lifetime in seconds, counted from now")
    user: UserInfo


class LogoutResponse(BaseModel):
    success: bool = True
    message: str = "Logout successful"


class ProfileResponse(BaseModel):
    success: bool = True
    email: str
    avatar: Optional[str] = None
