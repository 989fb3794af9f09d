"""Pydantic request/response schemas for bj_gateway.

All responses are wrapped in ApiResponse at the router layer.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator

from src.bj_clearing.domain.validation import MIN_NICKNAME_LENGTH, MIN_PASSWORD_LENGTH


class RegisterRequest(BaseModel):
    email: EmailStr
    nickname: str = Field(..., min_length=MIN_NICKNAME_LENGTH, max_length=32)
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=128)
    referral_code: str | None = Field(None, max_length=64)

    @field_validator("nickname")
    @classmethod
    def nickname_not_blank(cls, v: str) -> str:
        v = v.strip()
        if len(v) < MIN_NICKNAME_LENGTH:
            raise ValueError(f"Nickname must be at least {MIN_NICKNAME_LENGTH} characters")
        return v


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class UserInfo(BaseModel):
    """Minimal account info embedded in responses."""

    account_id: str
    nickname: str
    email: str


class RegisterResponse(BaseModel):
    account_id: str
    nickname: str
    email: str
    referral_code: str
    reward_points: int
    created_at: str


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = 1800
    user: UserInfo


class RefreshResponse(BaseModel):
    access_token: str
    expires_in: int = 1800


class TelegramCodeResponse(BaseModel):
    code: str
    expires_in: int
