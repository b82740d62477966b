# submitdesk/store.py
"""
Repositories over the SQLAlchemy session.

None of these commit; the caller owns the transaction.
"""
import enum
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from submitdesk.db import Admin, Faculty, SemesterSubject, Student, StudentSubject, Submission
from submitdesk.digest import sha256_bytes


@dataclass(frozen=True)
class Subject:
    name: str
    code: int


@dataclass(frozen=True)
class UploadedFile:
    name: str
    data: bytes
    mimetype: str
    size: int


class FlagUpdate(enum.Enum):
    UPDATED = "updated"
    NO_SUBJECT = "no_subject"   # student exists, code not enrolled
    NO_STUDENT = "no_student"


class SubjectCatalog:
    def __init__(self, db: Session):
        self.db = db

    def subjects_for(self, semester: int) -> List[Subject]:
        rows = self.db.scalars(
            select(SemesterSubject)
            .where(SemesterSubject.semester == semester)
            .order_by(SemesterSubject.position, SemesterSubject.id)
        ).all()
        return [Subject(r.name, r.code) for r in rows]

    def has_semester(self, semester: int) -> bool:
        return self.db.scalars(
            select(SemesterSubject.id).where(SemesterSubject.semester == semester).limit(1)
        ).first() is not None

    def all_codes(self) -> List[int]:
        return list(self.db.scalars(
            select(SemesterSubject.code)
            .order_by(SemesterSubject.semester, SemesterSubject.position, SemesterSubject.id)
        ).all())

    def add(self, semester: int, subjects: Iterable[Subject]) -> None:
        start = len(self.subjects_for(semester))
        for i, s in enumerate(subjects):
            self.db.add(SemesterSubject(semester=semester, position=start + i, name=s.name, code=s.code))


class StudentRecords:
    def __init__(self, db: Session):
        self.db = db

    def get(self, roll_number: int) -> Optional[Student]:
        return self.db.scalars(select(Student).where(Student.roll_number == roll_number)).first()

    def create(self, roll_number: int, name: str, semester: int, password: str,
               subjects: Sequence[Subject]) -> Student:
        student = Student(roll_number=roll_number, name=name, semester=semester, password=password)
        student.subjects = [
            StudentSubject(position=i, name=s.name, code=s.code, is_submitted=False)
            for i, s in enumerate(subjects)
        ]
        self.db.add(student)
        self.db.flush()
        return student

    def by_semester(self, semester: int) -> List[Student]:
        return list(self.db.scalars(
            select(Student).where(Student.semester == semester).order_by(Student.roll_number)
        ).all())

    def set_flag(self, roll_number: int, code: int, value: bool = True) -> FlagUpdate:
        student = self.get(roll_number)
        if student is None:
            return FlagUpdate.NO_STUDENT
        entry = self.db.scalars(
            select(StudentSubject).where(
                StudentSubject.student_id == student.id, StudentSubject.code == code
            )
        ).first()
        if entry is None:
            return FlagUpdate.NO_SUBJECT
        entry.is_submitted = value
        self.db.flush()
        return FlagUpdate.UPDATED

    def pending_for(self, code: int) -> List[Tuple[int, str]]:
        rows = self.db.execute(
            select(Student.roll_number, Student.name)
            .join(StudentSubject, StudentSubject.student_id == Student.id)
            .where(StudentSubject.code == code, StudentSubject.is_submitted == False)  # noqa: E712
            .order_by(Student.roll_number)
        ).all()
        return [(r.roll_number, r.name) for r in rows]

    def flags(self) -> List[Tuple[int, int, bool]]:
        """(roll_number, code, is_submitted) for every enrolled subject."""
        rows = self.db.execute(
            select(Student.roll_number, StudentSubject.code, StudentSubject.is_submitted)
            .join(StudentSubject, StudentSubject.student_id == Student.id)
            .order_by(Student.roll_number, StudentSubject.position)
        ).all()
        return [(r.roll_number, r.code, bool(r.is_submitted)) for r in rows]


class SubmissionStore:
    def __init__(self, db: Session):
        self.db = db

    def find(self, roll_number: int, code: int) -> Optional[Submission]:
        return self.db.scalars(
            select(Submission).where(Submission.roll_number == roll_number, Submission.code == code)
        ).first()

    def exists(self, roll_number: int, code: int) -> bool:
        return self.db.scalars(
            select(Submission.id)
            .where(Submission.roll_number == roll_number, Submission.code == code)
            .limit(1)
        ).first() is not None

    def add(self, roll_number: int, code: int, file: UploadedFile) -> Submission:
        # flush so a unique-constraint violation surfaces here, not at commit
        sub = Submission(
            code=code,
            roll_number=roll_number,
            file_name=file.name,
            file_data=file.data,
            mimetype=file.mimetype,
            size=file.size,
            sha256=sha256_bytes(file.data),
        )
        self.db.add(sub)
        self.db.flush()
        return sub

    def list_for_code(self, code: int) -> List[Tuple[int, int]]:
        rows = self.db.execute(
            select(Submission.roll_number, Submission.code)
            .where(Submission.code == code)
            .order_by(Submission.roll_number)
        ).all()
        return [(r.roll_number, r.code) for r in rows]

    def keys(self) -> List[Tuple[int, int, str]]:
        """(roll_number, code, sha256) for every stored submission."""
        rows = self.db.execute(
            select(Submission.roll_number, Submission.code, Submission.sha256)
            .order_by(Submission.roll_number, Submission.code)
        ).all()
        return [(r.roll_number, r.code, r.sha256) for r in rows]


class FacultyRoster:
    def __init__(self, db: Session):
        self.db = db

    def get_by_username(self, username: str) -> Optional[Faculty]:
        return self.db.scalars(select(Faculty).where(Faculty.username == username)).first()

    def get(self, faculty_id: int) -> Optional[Faculty]:
        return self.db.get(Faculty, faculty_id)

    def add(self, username: str, name: str, password: str) -> Faculty:
        f = Faculty(username=username, name=name, password=password)
        self.db.add(f)
        self.db.flush()
        return f

    def all(self) -> List[Faculty]:
        return list(self.db.scalars(select(Faculty).order_by(Faculty.id)).all())

    def delete(self, faculty: Faculty) -> None:
        self.db.delete(faculty)
        self.db.flush()


class AdminAccounts:
    def __init__(self, db: Session):
        self.db = db

    def get_by_username(self, username: str) -> Optional[Admin]:
        return self.db.scalars(select(Admin).where(Admin.username == username)).first()

    def add(self, username: str, name: str, password: str) -> Admin:
        a = Admin(username=username, name=name, password=password)
        self.db.add(a)
        self.db.flush()
        return a
