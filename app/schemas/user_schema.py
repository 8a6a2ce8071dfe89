# schemas/user_schema.py
from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator
from typing import Optional


class UserCreate(BaseModel):
    name: str = Field(..., examples=["Alice"])
    balance: Optional[StrictInt] = 0

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name cannot be empty")
        return v


class UserResponse(BaseModel):
    id: int
    name: str
    balance: int

    model_config = ConfigDict(from_attributes=True)


class UserSummary(BaseModel):
    name: str
    balance: int

    model_config = ConfigDict(from_attributes=True)


class UserList(BaseModel):
    users: list[UserResponse]
