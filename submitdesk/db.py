# submitdesk/db.py
import datetime

from sqlalchemy import (
    create_engine, Boolean, Column, DateTime, ForeignKey, Integer, LargeBinary, String,
    UniqueConstraint,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()

# signed 64-bit range of an INTEGER column
MIN_DB_INT = -(2 ** 63)
MAX_DB_INT = 2 ** 63 - 1


def _utcnow():
    return datetime.datetime.now(datetime.timezone.utc)


# ======== Models ========
class SemesterSubject(Base):
    """One catalog row: a subject offered in a semester."""
    __tablename__ = "semester_subjects"
    id = Column(Integer, primary_key=True)
    semester = Column(Integer, nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String, nullable=False)
    code = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("semester", "code", name="uq_semester_subject_code"),
    )


class Student(Base):
    __tablename__ = "students"
    id = Column(Integer, primary_key=True)
    roll_number = Column(Integer, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    semester = Column(Integer, nullable=False)
    password = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow)

    subjects = relationship(
        "StudentSubject",
        back_populates="student",
        order_by="StudentSubject.position",
        cascade="all, delete-orphan",
    )


class StudentSubject(Base):
    """Per-student copy of an enrolled subject plus its submission flag."""
    __tablename__ = "student_subjects"
    id = Column(Integer, primary_key=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String, nullable=False)
    code = Column(Integer, nullable=False, index=True)
    is_submitted = Column(Boolean, nullable=False, default=False)

    student = relationship("Student", back_populates="subjects")

    __table_args__ = (
        UniqueConstraint("student_id", "code", name="uq_student_subject_code"),
    )


class Submission(Base):
    __tablename__ = "submissions"
    id = Column(Integer, primary_key=True)
    code = Column(Integer, nullable=False, index=True)
    roll_number = Column(Integer, nullable=False, index=True)
    file_name = Column(String, nullable=False)
    file_data = Column(LargeBinary, nullable=False)
    mimetype = Column(String, nullable=False)
    size = Column(Integer)
    sha256 = Column(String)
    submitted_at = Column(DateTime, default=_utcnow)

    # closes the check-then-insert window between concurrent submits
    __table_args__ = (
        UniqueConstraint("roll_number", "code", name="uq_submission_roll_code"),
    )


class Faculty(Base):
    __tablename__ = "faculties"
    id = Column(Integer, primary_key=True)
    username = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    password = Column(String, nullable=False)


class Admin(Base):
    __tablename__ = "admins"
    id = Column(Integer, primary_key=True)
    username = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    password = Column(String, nullable=False)


# ======== Engine & sessions ========
def make_engine(database_url: str) -> Engine:
    kwargs = {"echo": False, "future": True}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)


def make_sessionmaker(engine: Engine):
    return sessionmaker(bind=engine, expire_on_commit=False, future=True)

