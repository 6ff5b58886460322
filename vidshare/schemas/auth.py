from typing import Optional
from pydantic import BaseModel, EmailStr, Field, model_validator


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    username: Optional[str] = Field(default=None, min_length=1, max_length=64)


class LoginRequest(BaseModel):
    email: Optional[EmailStr] = None
    username: Optional[str] = None
    password: str

    @model_validator(mode='after')
    def _require_identifier(self):
        if not self.email and not self.username:
            raise ValueError('Email or username is required')
        return self


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = 'bearer'
