from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator
from typing import List

from app.schemas.user_schema import UserSummary


# QUEST CREATE + RESPONSE SCHEMA
class QuestCreate(BaseModel):
    name: str = Field(..., examples=["Slay Dragon"])
    cost: StrictInt = Field(..., examples=[100])

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name cannot be empty")
        return v


class QuestOut(BaseModel):
    id: int
    name: str
    cost: int

    model_config = ConfigDict(from_attributes=True)


class QuestSummary(BaseModel):
    name: str
    cost: int

    model_config = ConfigDict(from_attributes=True)


class QuestList(BaseModel):
    quests: List[QuestOut]


# COMPLETION
class CompletionRequest(BaseModel):
    user_id: StrictInt
    quest_id: StrictInt


class UserHistory(BaseModel):
    user: UserSummary
    quests: List[QuestSummary]


class Message(BaseModel):
    message: str
