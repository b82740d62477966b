# submitdesk/roster.py
"""Student enrollment, faculty roster and logins."""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from submitdesk.auth import PlaintextCredentialVerifier
from submitdesk.db import MAX_DB_INT, MIN_DB_INT, Admin, Faculty, Student
from submitdesk.errors import AlreadyExists, InvalidCredentials, NotFound, ValidationError
from submitdesk.store import AdminAccounts, FacultyRoster, StudentRecords, SubjectCatalog

logger = logging.getLogger(__name__)

MIN_SEMESTER = 1
MAX_SEMESTER = 6


def as_int(value: Any) -> Optional[int]:
    """Coerce form/query/json input to int; None when absent, not a number
    or too wide for an INTEGER column."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    else:
        try:
            number = int(str(value).strip())
        except ValueError:
            return None
    if not MIN_DB_INT <= number <= MAX_DB_INT:
        return None
    return number


def student_profile(student: Student) -> Dict[str, Any]:
    return {
        "rollNumber": student.roll_number,
        "name": student.name,
        "semester": student.semester,
        "subjects": [
            {"name": s.name, "code": s.code, "isSubmitted": bool(s.is_submitted)}
            for s in student.subjects
        ],
    }


def faculty_profile(faculty: Faculty) -> Dict[str, Any]:
    return {"_id": faculty.id, "username": faculty.username, "name": faculty.name}


def enroll_student(db: Session, roll_number: Any, name: Optional[str], semester: Any,
                   password: Optional[str]) -> Student:
    roll = as_int(roll_number)
    sem = as_int(semester)
    if not roll or not name or not sem or not password:
        raise ValidationError("One or More Fields missing.")
    if sem < MIN_SEMESTER or sem > MAX_SEMESTER:
        raise ValidationError("Semester does not exist")

    records = StudentRecords(db)
    if records.get(roll):
        raise AlreadyExists("Student with this roll number already exists")

    catalog = SubjectCatalog(db)
    if not catalog.has_semester(sem):
        raise NotFound(f"No subjects configured for semester {sem}")

    try:
        student = records.create(roll, name, sem, password, catalog.subjects_for(sem))
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AlreadyExists("Student with this roll number already exists")
    logger.info("Enrolled student roll=%s semester=%s subjects=%s", roll, sem, len(student.subjects))
    return student


def add_faculty(db: Session, name: Optional[str], username: Optional[str],
                password: Optional[str]) -> Faculty:
    if not name or not username or not password:
        raise ValidationError("Fields missing")
    roster = FacultyRoster(db)
    if roster.get_by_username(username):
        raise AlreadyExists("Faculty already exists")
    try:
        faculty = roster.add(username, name, password)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AlreadyExists("Faculty already exists")
    logger.info("Added faculty %s", username)
    return faculty


def delete_faculty(db: Session, faculty_id: Any) -> None:
    fid = as_int(faculty_id)
    if fid is None:
        raise ValidationError("Id missing")
    roster = FacultyRoster(db)
    faculty = roster.get(fid)
    if faculty is None:
        raise NotFound("Could not delete faculty, please try again")
    roster.delete(faculty)
    db.commit()
    logger.info("Deleted faculty id=%s", fid)


def login_student(db: Session, verifier: PlaintextCredentialVerifier, roll_number: Any,
                  password: Optional[str]) -> Student:
    roll = as_int(roll_number)
    student = StudentRecords(db).get(roll) if roll is not None else None
    if not student:
        raise NotFound("student not found.")
    if not verifier.verify(password, student.password):
        raise InvalidCredentials()
    return student


def login_faculty(db: Session, verifier: PlaintextCredentialVerifier, username: Optional[str],
                  password: Optional[str]) -> Faculty:
    faculty = FacultyRoster(db).get_by_username(username) if username else None
    if not faculty:
        raise NotFound("Faculty does not exist")
    if not verifier.verify(password, faculty.password):
        raise InvalidCredentials()
    return faculty


def login_admin(db: Session, verifier: PlaintextCredentialVerifier, username: Optional[str],
                password: Optional[str]) -> Admin:
    admin = AdminAccounts(db).get_by_username(username) if username else None
    if not admin:
        raise NotFound("Admin does not exist")
    if not verifier.verify(password, admin.password):
        raise InvalidCredentials()
    return admin
