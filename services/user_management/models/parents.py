# services/user_management/models/parents.py
from sqlalchemy import Column, DateTime, ForeignKey, String, Uuid
from sqlalchemy.sql import func
from shared.db import Base
import uuid


class Parent(Base):
    __tablename__ = "parents"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(150), nullable=False)
    email = Column(String(150), unique=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    student_id = Column(Uuid, ForeignKey("students.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
