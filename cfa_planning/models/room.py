# cfa_planning/models/room.py
"""Room model: where a session takes place."""

from sqlalchemy import Boolean, Column, Integer, String
import ulid

from ..database import Base


class Room(Base):
    """
    Teaching room.

    A null capacity means the room is unlimited. Virtual rooms (remote
    classes) never produce room conflicts.
    """

    __tablename__ = "rooms"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    name = Column(String(100), nullable=False, unique=True)
    capacity = Column(Integer, nullable=True)
    is_virtual = Column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<Room {self.name}>"
