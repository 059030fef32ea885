# cfa_planning/models/subject_offering.py
"""Subject offering: a subject taught to one specific session/cohort."""

from sqlalchemy import Column, Integer, String
import ulid

from ..database import Base


class SubjectOffering(Base):
    """Subject scoped to a cohort, with its enrolled headcount ceiling."""

    __tablename__ = "subject_offerings"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    label = Column(String(200), nullable=False)
    cohort_code = Column(String(50), nullable=False, index=True)
    max_headcount = Column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"<SubjectOffering {self.cohort_code} {self.label}>"
