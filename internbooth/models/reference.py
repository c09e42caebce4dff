"""
Reference documents - students and internships

Their CRUD belongs to the wider admin console; the pipeline only checks
that they exist and reads them for aggregates.
"""
from typing import List, Optional
from enum import Enum
from sqlmodel import Field, Column, JSON

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse


class InternshipStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"
    ARCHIVED = "archived"


# ==================== Students ====================

class StudentBase(SQLModelBase):
    name: str = Field(..., min_length=1, max_length=200, description="Full name")
    email: str = Field(..., max_length=200, index=True, description="Email")
    college: Optional[str] = Field(None, max_length=200, description="College")
    degree: Optional[str] = Field(None, max_length=100, description="Degree")
    graduation_year: Optional[int] = Field(None, description="Graduation year")
    skills: List[str] = Field(default_factory=list, sa_column=Column(JSON), description="Skills")


class Student(StudentBase, TimestampMixin, IDMixin, table=True):
    """students/{studentId}"""
    __tablename__ = "students"

    def __repr__(self) -> str:
        return f"<Student(id={self.id}, name={self.name})>"


class StudentCreate(StudentBase):
    id: Optional[str] = None


class StudentResponse(TimestampResponse):
    name: str
    email: str
    college: Optional[str] = None
    degree: Optional[str] = None
    graduation_year: Optional[int] = None
    skills: List[str] = []


# ==================== Internships ====================

class InternshipBase(SQLModelBase):
    title: str = Field(..., min_length=1, max_length=200, index=True, description="Title")
    company_name: str = Field(..., max_length=200, description="Company")
    description: Optional[str] = Field(None, description="Description")
    location: Optional[str] = Field(None, max_length=200)
    status: str = Field(InternshipStatus.ACTIVE.value, index=True, description="Posting status")


class Internship(InternshipBase, TimestampMixin, IDMixin, table=True):
    """internships/{internshipId}"""
    __tablename__ = "internships"

    def __repr__(self) -> str:
        return f"<Internship(id={self.id}, title={self.title})>"


class InternshipCreate(InternshipBase):
    id: Optional[str] = None


class InternshipResponse(TimestampResponse):
    title: str
    company_name: str
    description: Optional[str] = None
    location: Optional[str] = None
    status: str
