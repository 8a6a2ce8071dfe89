# models/user.py
from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from app.database import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, index=True, nullable=False)  # required & unique
    balance = Column(Integer, nullable=False, default=0)             # only moved by quest completions

    completions = relationship("UserQuest", back_populates="user")
