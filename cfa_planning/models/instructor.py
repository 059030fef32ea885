# cfa_planning/models/instructor.py
"""Instructor model."""

from sqlalchemy import Boolean, Column, String
import ulid

from ..database import Base


class Instructor(Base):
    """Instructor who can be assigned to recurring slots and occurrences."""

    __tablename__ = "instructors"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    display_name = Column(String(150), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Instructor {self.display_name}>"
