# services/user_management/models/subjects.py

from sqlalchemy import Column, String, Uuid
from shared.db import Base
import uuid


# Catalog entry, created the first time a curriculum references it
class Subject(Base):
    __tablename__ = "subjects"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    subject_name = Column(String(100), unique=True, nullable=False)
