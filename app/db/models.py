from typing import List, Optional
from datetime import datetime
import uuid

from sqlalchemy import (
    String,
    Integer,
    ForeignKey,
    Index,
    func,
    CheckConstraint,
    DateTime,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


def _uuid_str() -> str:
    return str(uuid.uuid4())


# Base model with common audit fields
class AuditMixin:
    """Mixin for common audit fields"""

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )


# Models
class Student(Base, AuditMixin):
    __tablename__ = "students"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_str)
    email: Mapped[str] = mapped_column(
        String(320), unique=True, index=True, nullable=False
    )  # RFC 5321 max length
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    student_id: Mapped[int] = mapped_column(
        Integer, unique=True, index=True, nullable=False
    )
    batch: Mapped[Optional[str]] = mapped_column(String(20))
    department: Mapped[str] = mapped_column(String(50), default="CSE", nullable=False)
    push_token: Mapped[Optional[str]] = mapped_column(String(255))


class Teacher(Base, AuditMixin):
    __tablename__ = "teachers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_str)
    email: Mapped[str] = mapped_column(
        String(320), unique=True, index=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    department: Mapped[str] = mapped_column(String(50), default="CSE", nullable=False)
    push_token: Mapped[Optional[str]] = mapped_column(String(255))


class Course(Base, AuditMixin):
    __tablename__ = "courses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_str)
    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    # Relationships
    enrollments: Mapped[List["StudentEnrollment"]] = relationship(
        back_populates="course", cascade="all, delete-orphan"
    )


class StudentEnrollment(Base):
    """Closed range [start_id, end_id] of numeric student ids enrolled in a course section."""

    __tablename__ = "student_enrollments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_str)
    course_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False
    )
    start_id: Mapped[int] = mapped_column(Integer, nullable=False)
    end_id: Mapped[int] = mapped_column(Integer, nullable=False)
    section: Mapped[str] = mapped_column(String(10), nullable=False)
    added_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    # Relationships
    course: Mapped["Course"] = relationship(back_populates="enrollments")

    __table_args__ = (
        CheckConstraint("start_id <= end_id", name="ck_enrollment_range_order"),
        Index("ix_enrollment_course_range", "course_id", "start_id", "end_id"),
        Index("ix_enrollment_course_section", "course_id", "section"),
    )
