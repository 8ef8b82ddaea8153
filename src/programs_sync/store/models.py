from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Program(Base):
    __tablename__ = "programs"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, index=True)
    kind: Mapped[str] = mapped_column(String)
    degree: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    source_url: Mapped[str] = mapped_column(String, unique=True)
    hours_to_complete: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    courses_required: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    department_contact: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    requirements_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    last_synced_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class ProgramRequirementNode(Base):
    __tablename__ = "program_requirement_nodes"
    __table_args__ = (UniqueConstraint("program_id", "ord"),)
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    program_id: Mapped[int] = mapped_column(Integer, ForeignKey("programs.id", ondelete="CASCADE"), index=True)
    ord: Mapped[int] = mapped_column(Integer)
    node_type: Mapped[str] = mapped_column(String)
    text: Mapped[str] = mapped_column(Text)
    list_level: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class ProgramCourseCode(Base):
    __tablename__ = "program_course_codes"
    __table_args__ = (UniqueConstraint("program_id", "course_code"),)
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    program_id: Mapped[int] = mapped_column(Integer, ForeignKey("programs.id", ondelete="CASCADE"), index=True)
    course_code: Mapped[str] = mapped_column(String, index=True)


class ProgramSubjectCode(Base):
    __tablename__ = "program_subject_codes"
    __table_args__ = (UniqueConstraint("program_id", "subject_code"),)
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    program_id: Mapped[int] = mapped_column(Integer, ForeignKey("programs.id", ondelete="CASCADE"), index=True)
    subject_code: Mapped[str] = mapped_column(String, index=True)


class ProgramElectiveRule(Base):
    __tablename__ = "program_elective_rules"
    program_id: Mapped[int] = mapped_column(Integer, ForeignKey("programs.id", ondelete="CASCADE"), primary_key=True)
    level_floor: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
