from pydantic import BaseModel, EmailStr


class LoginRequest(BaseModel):
    """Login event: registers a new user and issues a token."""

    email: EmailStr


class LoginResponse(BaseModel):
    """Issued credential"""

    jwt_token: str
    user_id: str
    token_type: str = "bearer"
