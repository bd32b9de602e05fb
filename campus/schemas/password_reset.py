from pydantic import BaseModel, Field


class PasswordResetRequest(BaseModel):
    identifier: str = Field(min_length=1, description="Email address or phone number")


class PasswordResetRequested(BaseModel):
    message: str
    # only populated when LMS_EXPOSE_RESET_TOKEN is on (development)
    reset_token: str | None = None


class PasswordResetConfirm(BaseModel):
    token: str = Field(min_length=1)
    new_password: str = Field(min_length=6, max_length=72)


class TokenStatus(BaseModel):
    message: str
    user_id: int
