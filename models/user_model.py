from pydantic import EmailStr, Field, field_validator, model_validator
from typing import Optional

from models.base_model import ApiModel


class LoginForm(ApiModel):
    email: EmailStr
    password: str = Field(min_length=1)


class RegisterForm(ApiModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    confirm_password: str
    company: str = Field(min_length=1)

    @field_validator("name", "company")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class UserProfile(ApiModel):
    id: str
    email: str
    name: str = ""
    company: Optional[str] = None


class AuthSession(ApiModel):
    """Token and profile for one browser session. Never written to disk."""
    token: Optional[str] = None
    user: Optional[UserProfile] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def clear(self) -> None:
        self.token = None
        self.user = None


class SessionPayload(ApiModel):
    message: str = ""
    token: str
    user: Optional[UserProfile] = None


class RegisterResponse(ApiModel):
    message: str = ""
    user: Optional[UserProfile] = None
