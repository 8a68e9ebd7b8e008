"""Pydantic request/response schemas for fc_user.

All responses are wrapped in ApiResponse at the router layer.
"""

from pydantic import BaseModel, EmailStr, Field

from src.fc_user.db_models import UserModel


class CreateUserRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)


class UserResponse(BaseModel):
    user_id: str
    email: str
    first_name: str
    last_name: str
    created_at: str

    @classmethod
    def from_model(cls, user: UserModel) -> "UserResponse":
        return cls(
            user_id=str(user.id),
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            created_at=user.created_at.isoformat() if user.created_at else "",
        )


class UserListResponse(BaseModel):
    items: list[UserResponse]
    limit: int
    offset: int
