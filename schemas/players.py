from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    username: str = Field(max_length=64)


class LoginResponse(BaseModel):
    ok: bool
    username: str
    error: str | None = None
