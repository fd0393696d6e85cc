from __future__ import annotations

from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, Field, model_validator

from .config import MAX_PASSWORD_BYTES

Suffix = Literal["Jr.", "Sr.", "II", "III", "IV"]
Role = Literal["user", "admin"]

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def _fits_bcrypt(password: str) -> str:
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return password


NewPassword = Annotated[str, Field(min_length=6), AfterValidator(_fits_bcrypt)]


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class CreateUserRequest(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    middle_initial: str | None = Field(default=None, max_length=1)
    suffix: Suffix | None = None
    email: str = Field(..., pattern=_EMAIL_PATTERN)
    password: NewPassword
    role: Role = "user"


class ProfileUpdate(BaseModel):
    first_name: str | None = Field(default=None, min_length=1)
    last_name: str | None = Field(default=None, min_length=1)
    middle_initial: str | None = Field(default=None, max_length=1)
    suffix: Suffix | None = None


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: NewPassword
    confirm_password: str

    @model_validator(mode="after")
    def _passwords_match(self) -> "PasswordChange":
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self
