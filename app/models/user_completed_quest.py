from sqlalchemy import Column, Integer, ForeignKey, DateTime, UniqueConstraint, func
from sqlalchemy.orm import relationship
from app.database import Base


class UserQuest(Base):
    __tablename__ = "user_quests"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    quest_id = Column(Integer, ForeignKey("quests.id"), nullable=False)
    completed_at = Column(DateTime, server_default=func.now())
    __table_args__ = (UniqueConstraint("user_id", "quest_id", name="_user_quest_uc"),)

    user = relationship("User", back_populates="completions")
    quest = relationship("Quest", back_populates="completions")
