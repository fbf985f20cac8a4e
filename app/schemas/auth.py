"""
Pydantic schemas for the auth endpoints.

Bodies use camelCase on the wire. Fields are optional here because the
use-cases own validation and its error messages; pydantic only guarantees
the JSON types.
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RegisterRequest(CamelModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class EmailRequest(CamelModel):
    """Body of /request-otp and /resend-verification."""
    email: Optional[str] = None


class ValidateOTPRequest(CamelModel):
    email: Optional[str] = None
    otp: Optional[str] = None


class ResetPasswordRequest(CamelModel):
    email: Optional[str] = None
    reset_token: Optional[str] = Field(default=None, alias="resetToken")
    new_password: Optional[str] = Field(default=None, alias="newPassword")


class ChangePasswordRequest(CamelModel):
    current_password: Optional[str] = Field(default=None, alias="currentPassword")
    new_password: Optional[str] = Field(default=None, alias="newPassword")


class RefreshTokenRequest(CamelModel):
    refresh_token: Optional[str] = Field(default=None, alias="refreshToken")


class MessageResponse(BaseModel):
    """Success envelope shared by every endpoint."""
    message: str
    metadata: Optional[Dict[str, Any]] = None
