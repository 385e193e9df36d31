# backend/app/schemas/account.py
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from backend.app.core.config import settings
from backend.app.security import policy


# Request body for creating an account
class RegisterRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return policy.check_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        return policy.check_password_strength(v)


class LoginRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return policy.check_email(v)


class ApiKeyRequest(BaseModel):
    # Browser clients send camelCase "apiKey"
    api_key: str = Field(..., validation_alias=AliasChoices("api_key", "apiKey"))

    @field_validator("api_key")
    @classmethod
    def check_api_key(cls, v: str) -> str:
        return policy.check_api_key(v, settings.API_KEY_PREFIX)


# Public view of an account (never the password hash or the key itself)
class AccountResponse(BaseModel):
    id: int
    email: str
    has_secret: bool

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    success: bool = True
    message: str
    user: AccountResponse
    session_id: str


class MeResponse(BaseModel):
    success: bool = True
    user: AccountResponse


class SecretResponse(BaseModel):
    success: bool = True
    has_secret: bool
    secret: Optional[str] = None


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class HealthResponse(BaseModel):
    status: str
    message: str
    timestamp: str
    environment: str
    version: str
